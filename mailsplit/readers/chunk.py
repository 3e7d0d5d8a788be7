"""Chunked byte reader with a one-slot pushback buffer.

The idea is to read data in decent sized chunks (16 KiB by default) and let
the caller "push back" the part of a chunk it read too far.  Scanning readers
(multipart, mbox) are built on top of this.
"""

import logging
from typing import NamedTuple, Optional

from mailsplit.readers.base import (
    ALL,
    DEFAULT_CHUNK_SIZE,
    PushbackSlot,
    Reader,
    check_chunk_size,
    is_reader,
    read_sized,
)
from mailsplit.readers.errors import InvalidArgument

logger = logging.getLogger(__name__)

_BUFFER_TYPES = (bytes, bytearray, memoryview)


class ChunkReader:
    """Pull-based reader over an in-memory buffer or a binary stream.

    ``source`` is either a bytes-like object or anything with a ``read(n)``
    method returning bytes (an open file, ``io.BytesIO``, a socket file...).
    """

    def __init__(self, source, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if isinstance(source, _BUFFER_TYPES):
            self._buffer: Optional[bytes] = bytes(source)
            self._stream = None
        elif callable(getattr(source, "read", None)):
            self._buffer = None
            self._stream = source
        else:
            raise InvalidArgument(
                f"input must be bytes or a binary stream, not {type(source).__name__}"
            )
        self._offset = 0
        self._lookahead: Optional[bytes] = None
        self._exhausted = False
        self._pushback = PushbackSlot()
        self._delivered = 0
        self._origin = _stream_origin(self._stream)
        self._chunk_size = check_chunk_size(chunk_size)

    # ── chunk size ────────────────────────────────────────────────────────────

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @chunk_size.setter
    def chunk_size(self, size: int) -> None:
        self._chunk_size = check_chunk_size(size)

    # ── reading ───────────────────────────────────────────────────────────────

    def read_chunk(self, size: Optional[int] = None) -> Optional[bytes]:
        """Return the pending pushback chunk, else one pull of about ``size`` bytes."""
        size = self._chunk_size if size is None else check_chunk_size(size)
        chunk = self._pushback.take()
        if chunk is None:
            chunk = self._pull(size)
        if chunk is not None:
            self._delivered += len(chunk)
        return chunk

    def read(self, size: Optional[int] = ALL) -> Optional[bytes]:
        return read_sized(self, size)

    def pushback(self, chunk: bytes) -> None:
        self._pushback.put(chunk)
        self._delivered -= len(chunk)

    def eof(self) -> bool:
        if self._pushback.pending:
            return False
        if self._buffer is not None:
            return self._offset >= len(self._buffer)
        if self._lookahead is not None:
            return False
        if self._exhausted:
            return True
        # Streams cannot tell without reading; park one chunk aside.
        self._lookahead = self._pull(self._chunk_size)
        return self._lookahead is None

    @property
    def position(self) -> int:
        return self._origin + self._delivered

    # ── private ───────────────────────────────────────────────────────────────

    def _pull(self, size: int) -> Optional[bytes]:
        if self._buffer is not None:
            if self._offset >= len(self._buffer):
                return None
            chunk = self._buffer[self._offset:self._offset + size]
            self._offset += len(chunk)
            return chunk

        if self._lookahead is not None:
            chunk, self._lookahead = self._lookahead, None
            return chunk
        if self._exhausted:
            return None
        chunk = self._stream.read(size)
        if isinstance(chunk, str):
            raise InvalidArgument("stream returned text; open it in binary mode")
        if not chunk:
            self._exhausted = True
            return None
        return bytes(chunk)


def _stream_origin(stream) -> int:
    if stream is None:
        return 0
    try:
        if stream.seekable():
            return stream.tell()
    except (AttributeError, OSError):
        pass
    return 0


def as_reader(source, chunk_size: Optional[int] = None) -> Reader:
    """Return ``source`` itself if it is already a reader, else wrap it."""
    if is_reader(source):
        if chunk_size is not None:
            source.chunk_size = chunk_size
        return source
    return ChunkReader(source, chunk_size or DEFAULT_CHUNK_SIZE)


# ── delimiter prefix matching ─────────────────────────────────────────────────

class PrefixMatch(NamedTuple):
    start: int
    complete: bool  # False: only a prefix of the token, running up to end of text


class PrefixMatcher:
    """Finds a literal token anywhere, or an unfinished prefix of it at the end.

    Scanning readers use this to decide whether the tail of a chunk might be
    the beginning of a delimiter that continues in the next physical read.
    The tail check is a KMP automaton over the token's failure table.
    """

    def __init__(self, token: bytes) -> None:
        if not token:
            raise InvalidArgument("token must not be empty")
        self.token = bytes(token)
        self._failure = _failure_table(self.token)

    def search(self, data: bytes, start: int = 0) -> Optional[PrefixMatch]:
        """Earliest full match at or after ``start``; else the longest suffix
        of ``data[start:]`` that is a proper prefix of the token; else None."""
        found = data.find(self.token, start)
        if found >= 0:
            return PrefixMatch(found, True)
        length = self.partial_length(data, start)
        if length:
            return PrefixMatch(len(data) - length, False)
        return None

    def partial_length(self, data: bytes, start: int = 0) -> int:
        """Length of the longest suffix of ``data[start:]`` that is a proper
        prefix of the token (0 if none)."""
        token = self.token
        failure = self._failure
        # Any proper prefix is shorter than the token, so only the last
        # len(token) - 1 bytes can hold one.
        k = 0
        for i in range(max(start, len(data) - len(token) + 1), len(data)):
            byte = data[i]
            while k and token[k] != byte:
                k = failure[k - 1]
            if token[k] == byte:
                k += 1
        return k


def _failure_table(token: bytes) -> list[int]:
    table = [0] * len(token)
    k = 0
    for i in range(1, len(token)):
        while k and token[i] != token[k]:
            k = table[k - 1]
        if token[i] == token[k]:
            k += 1
        table[i] = k
    return table


def prefix_matcher(token: bytes) -> PrefixMatcher:
    return PrefixMatcher(token)
