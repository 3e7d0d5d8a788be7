"""Split a MIME multipart body into preamble, parts and epilogue.

A delimiter line is ``--boundary`` at the start of the sub-stream or right
after a line break, optionally followed by the terminal marker ``--`` and
trailing whitespace, and ended by a line break or by the end of input.  The
line break in front of a delimiter stays with the segment it ends; the
delimiter text handed out by ``delimiter`` is exactly the delimiter line.

Typical use::

    reader = MultipartBoundaryReader(parent, boundary)
    while reader.advance():
        data = reader.read()          # the whole current segment
        closing = reader.delimiter    # literal delimiter line, or None
"""

import logging
from collections import deque
from typing import Optional, Union

from mailsplit.models.enums import ReaderState, SegmentKind
from mailsplit.readers.base import ALL, PushbackSlot, Reader, check_chunk_size, read_sized
from mailsplit.readers.chunk import PrefixMatcher
from mailsplit.readers.errors import InvalidArgument

logger = logging.getLogger(__name__)

_NL = 0x0A
_DASH = 0x2D
_WSP = frozenset(b" \t\r\v\f")

# _line_end() result when the delimiter line runs into the end of the text
# and more input may still decide it.
_UNDECIDED = object()

_STATE_FOR_SEGMENT = {
    SegmentKind.preamble: ReaderState.preamble,
    SegmentKind.part: ReaderState.in_part,
    SegmentKind.epilogue: ReaderState.epilogue,
}


class MultipartBoundaryReader:
    """Reads one segment at a time out of a multipart body.

    ``inner`` is the reader positioned at the start of the body; while this
    reader is in use nothing else may read from it.  ``read_chunk`` returns
    None at the end of every segment and ``advance`` moves on to the next
    one.  Nested multiparts simply wrap another MultipartBoundaryReader
    around this one.
    """

    def __init__(
        self,
        inner: Reader,
        boundary: Union[bytes, str],
        chunk_size: Optional[int] = None,
    ) -> None:
        if isinstance(boundary, str):
            boundary = boundary.encode("latin-1")
        if not boundary:
            raise InvalidArgument("boundary must not be empty")
        self.boundary = bytes(boundary)
        self._dash_boundary = b"--" + self.boundary
        self._matcher = PrefixMatcher(b"\n" + self._dash_boundary)
        self._inner = inner
        self._chunk_size = check_chunk_size(
            chunk_size if chunk_size is not None else inner.chunk_size
        )
        self._pushback = PushbackSlot()

        # (data, delimiter, delimiter_is_terminal) pieces split off the input
        self._pieces: deque[tuple[Optional[bytes], Optional[bytes], bool]] = deque()
        self._carry = b""
        self._line_start = True  # is the first byte of _carry at a line start?
        self._input_done = False
        self._terminal_seen = False
        self._eof = False

        self._started = False
        self._segment = SegmentKind.preamble
        self._delimiter: Optional[bytes] = None
        self._delimiter_is_last = False

    # ── Reader interface ──────────────────────────────────────────────────────

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @chunk_size.setter
    def chunk_size(self, size: int) -> None:
        self._chunk_size = check_chunk_size(size)

    def read_chunk(self, size: Optional[int] = None) -> Optional[bytes]:
        """Next bytes of the current segment, or None at its end."""
        size = self._chunk_size if size is None else check_chunk_size(size)
        chunk = self._pushback.take()
        if chunk is None:
            chunk = self._next_piece(size)
        return chunk

    def read(self, size: Optional[int] = ALL) -> Optional[bytes]:
        return read_sized(self, size)

    def pushback(self, chunk: bytes) -> None:
        self._pushback.put(chunk)

    def eof(self) -> bool:
        """True when the current segment has nothing more to deliver."""
        if self._pushback.pending:
            return False
        while True:
            if self._delimiter is not None or self._eof:
                return True
            if self._pieces:
                return self._pieces[0][0] is None
            self._fill(self._chunk_size)

    @property
    def position(self) -> int:
        held = len(self._carry) + len(self._pushback)
        for data, delimiter, _ in self._pieces:
            held += len(data or b"") + len(delimiter or b"")
        return self._inner.position - held

    # ── segments ──────────────────────────────────────────────────────────────

    def advance(self) -> bool:
        """Start reading the next segment.

        Returns False once the input is exhausted.  The first call enters the
        preamble; a call before the current segment was read to its end
        leaves the reader in that segment.
        """
        if not self._started:
            self._started = True
            return not self._eof
        if self._delimiter is None and self.eof() and self._pieces:
            # the segment is used up; its closing delimiter is still queued
            _, self._delimiter, self._delimiter_is_last = self._pieces.popleft()
        if self._delimiter is not None:
            self._segment = (
                SegmentKind.epilogue if self._delimiter_is_last else SegmentKind.part
            )
            self._delimiter = None
            logger.debug("multipart %r: entering %s", self.boundary, self._segment.value)
            return True
        return not self._eof

    @property
    def segment(self) -> SegmentKind:
        return self._segment

    @property
    def is_preamble(self) -> bool:
        return self._segment is SegmentKind.preamble

    @property
    def is_epilogue(self) -> bool:
        return self._segment is SegmentKind.epilogue

    @property
    def delimiter(self) -> Optional[bytes]:
        """Delimiter line that closed the segment just read; cleared by advance()."""
        return self._delimiter

    @property
    def state(self) -> ReaderState:
        if self._eof:
            return ReaderState.finished
        if self._delimiter is not None:
            return ReaderState.between_parts
        return _STATE_FOR_SEGMENT[self._segment]

    # ── scanning ──────────────────────────────────────────────────────────────

    def _next_piece(self, size: int) -> Optional[bytes]:
        while True:
            if self._delimiter is not None or self._eof:
                return None
            if self._pieces:
                data, self._delimiter, self._delimiter_is_last = self._pieces.popleft()
                if data is not None:
                    return data
                continue
            self._fill(size)

    def _fill(self, size: int) -> None:
        chunk = None if self._input_done else self._inner.read_chunk(size)
        if chunk is None:
            self._input_done = True
        text = self._carry + chunk if chunk else self._carry
        self._carry = b""
        if not text:
            self._eof = True
            return
        if self._terminal_seen:
            # epilogue bytes are never scanned
            self._pieces.append((text, None, False))
            return
        self._split(text, final=self._input_done)

    def _split(self, text: bytes, final: bool) -> None:
        pos = 0
        line_start = self._line_start
        while True:
            found = self._find_delimiter(text, pos, line_start, final)
            if found is None:
                break
            begin, end, terminal = found
            if end is None:
                self._queue(text[pos:begin])
                self._carry = text[begin:]
                self._line_start = True
                return
            self._pieces.append((text[pos:begin] or None, text[begin:end], terminal))
            logger.debug("multipart %r: delimiter %r", self.boundary, text[begin:end])
            pos = end
            line_start = True
            if terminal:
                self._terminal_seen = True
                self._queue(text[pos:])
                return

        rest = text[pos:]
        cut = len(rest) if final else len(rest) - self._withheld(rest, line_start)
        self._queue(rest[:cut])
        self._carry = rest[cut:]
        if cut:
            line_start = rest[cut - 1] == _NL
        self._line_start = line_start

    def _find_delimiter(self, text: bytes, pos: int, line_start: bool, final: bool):
        """Return (begin, end, terminal) for the first delimiter line at or
        after ``pos``; ``end`` is None when the line cannot be confirmed yet."""
        dash = self._dash_boundary
        if line_start and text.startswith(dash, pos):
            begin = pos
        else:
            begin = self._next_candidate(text, pos)
        while begin is not None:
            verdict = self._line_end(text, begin + len(dash), final)
            if verdict is _UNDECIDED:
                return begin, None, False
            if verdict is not None:
                end, terminal = verdict
                return begin, end, terminal
            begin = self._next_candidate(text, begin + 1)
        return None

    def _next_candidate(self, text: bytes, pos: int) -> Optional[int]:
        found = text.find(self._matcher.token, pos)
        return None if found < 0 else found + 1

    @staticmethod
    def _line_end(text: bytes, i: int, final: bool):
        n = len(text)
        terminal = False
        if text.startswith(b"--", i):
            terminal = True
            i += 2
        elif i + 1 == n and text[i] == _DASH and not final:
            return _UNDECIDED
        while i < n and text[i] in _WSP:
            i += 1
        if i < n:
            return (i + 1, terminal) if text[i] == _NL else None
        return (n, terminal) if final else _UNDECIDED

    def _withheld(self, rest: bytes, line_start: bool) -> int:
        """Number of trailing bytes of ``rest`` that may begin a delimiter."""
        if not rest:
            return 0
        if line_start and self._dash_boundary.startswith(rest):
            return len(rest)
        # the line break in front of a delimiter belongs to this segment
        return max(self._matcher.partial_length(rest) - 1, 0)

    def _queue(self, data: bytes) -> None:
        if data:
            self._pieces.append((data, None, False))
