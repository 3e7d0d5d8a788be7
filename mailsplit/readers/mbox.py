"""Split a Unix mbox stream into its messages.

Messages are separated by a line starting with ``From ``.  The separator in
front of that line is dropped, so every message except the first starts
with its ``From `` line and ends where the separator was.  Each message is
handed out terminated by exactly one line separator, even when the source's
last message lacks it.

Typical usage::

    with open("file.mbox", "rb") as f:
        for raw in MboxSeparatorReader(f).iter_raw():
            ...
"""

import logging
import os
from typing import Iterator, Optional, Union

from mailsplit.models.enums import SegmentKind
from mailsplit.readers.base import ALL, PushbackSlot, check_chunk_size, read_sized
from mailsplit.readers.chunk import PrefixMatcher, as_reader
from mailsplit.readers.errors import InvalidArgument

logger = logging.getLogger(__name__)

NATIVE_LINE_SEPARATOR = os.linesep.encode("ascii")


class MboxSeparatorReader:
    """Reads one mbox message at a time.

    ``read_chunk`` returns None once the current message is exhausted;
    ``advance`` then begins the next one.  ``source`` may be bytes, a binary
    stream or another reader.
    """

    def __init__(
        self,
        source,
        line_separator: Union[bytes, str, None] = None,
        chunk_size: Optional[int] = None,
    ) -> None:
        if line_separator is None:
            line_separator = NATIVE_LINE_SEPARATOR
        elif isinstance(line_separator, str):
            line_separator = line_separator.encode("ascii")
        if not line_separator:
            raise InvalidArgument("line separator must not be empty")
        self.line_separator = bytes(line_separator)
        self._inner = as_reader(source, chunk_size)
        self._chunk_size = self._inner.chunk_size
        self._matcher = PrefixMatcher(self.line_separator + b"From ")
        self._pushback = PushbackSlot()
        self._held: Optional[bytes] = None  # start of the next message
        self._end_of_message = False
        # last bytes delivered for the current message; None before the first
        self._tail: Optional[bytes] = None

    # ── Reader interface ──────────────────────────────────────────────────────

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @chunk_size.setter
    def chunk_size(self, size: int) -> None:
        self._chunk_size = check_chunk_size(size)

    def read_chunk(self, size: Optional[int] = None) -> Optional[bytes]:
        """Next bytes of the current message, or None at its end."""
        size = self._chunk_size if size is None else check_chunk_size(size)
        chunk = self._pushback.take()
        if chunk is not None:
            # already counted in the tail when it was first delivered
            return chunk
        chunk = self._read_low(size)
        sep = self.line_separator
        if chunk is not None:
            self._tail = ((self._tail or b"") + chunk)[-len(sep):]
        elif self._tail is not None:
            if self._tail != sep:
                chunk = sep
            self._tail = None
        return chunk

    def read(self, size: Optional[int] = ALL) -> Optional[bytes]:
        return read_sized(self, size)

    def pushback(self, chunk: bytes) -> None:
        self._pushback.put(chunk)

    def eof(self) -> bool:
        """True when no message is in progress and the source is exhausted."""
        return (
            not self._pushback.pending
            and self._held is None
            and self._tail is None
            and self._inner.eof()
        )

    @property
    def position(self) -> int:
        held = len(self._held) if self._held is not None else 0
        return self._inner.position - held - len(self._pushback)

    # ── messages ──────────────────────────────────────────────────────────────

    def advance(self) -> bool:
        """Skip what is left of the current message and start the next one.

        Returns False when there is no next message.
        """
        self._pushback.take()
        while self._read_low(self._chunk_size) is not None:
            pass
        self._end_of_message = False
        self._tail = None
        return not self.eof()

    @property
    def segment(self) -> SegmentKind:
        return SegmentKind.message

    def each_message(self) -> Iterator["MboxSeparatorReader"]:
        """Yield this reader once per message, advancing after each."""
        while not self.eof():
            yield self
            self.advance()

    def iter_raw(self) -> Iterator[bytes]:
        for reader in self.each_message():
            data = reader.read()
            if data is not None:
                yield data

    # ── private ───────────────────────────────────────────────────────────────

    def _pull(self, size: int) -> Optional[bytes]:
        if self._held is not None:
            chunk, self._held = self._held, None
            return chunk
        return self._inner.read_chunk(size)

    def _read_low(self, size: int) -> Optional[bytes]:
        if self._end_of_message:
            return None
        chunk = self._pull(size)
        if chunk is None:
            return None

        hit = self._matcher.search(chunk)
        while hit is not None and not hit.complete:
            # a separator may be split across reads; pull until it resolves
            more = self._inner.read_chunk(size)
            if more is None:
                break
            chunk += more
            hit = self._matcher.search(chunk, hit.start)
        if hit is None or not hit.complete:
            return chunk

        self._end_of_message = True
        self._held = chunk[hit.start + len(self.line_separator):]
        logger.debug("mbox: message boundary at offset %d", self.position)
        return chunk[:hit.start] or None
