"""Strip junk that commonly precedes a saved message.

Input such as ``b"\\n\\n>From foo@bar\\n..."`` loses its leading ``b"\\n\\n>"``.
Useful when the input is known to be a MIME entity with headers.
"""

import enum
from typing import Optional

from mailsplit.readers.base import ALL, Reader, read_sized

_QUOTE = 0x3E  # '>'


class _Mode(str, enum.Enum):
    stripping = "stripping"
    pass_through = "pass-through"


class SloppyPrefixReader:
    def __init__(self, inner: Reader) -> None:
        self._inner = inner
        self._mode = _Mode.stripping

    @property
    def chunk_size(self) -> int:
        return self._inner.chunk_size

    @chunk_size.setter
    def chunk_size(self, size: int) -> None:
        self._inner.chunk_size = size

    @property
    def stripping(self) -> bool:
        return self._mode is _Mode.stripping

    def read_chunk(self, size: Optional[int] = None) -> Optional[bytes]:
        while True:
            chunk = self._inner.read_chunk(size)
            if chunk is None or self._mode is _Mode.pass_through:
                return chunk
            chunk = chunk.lstrip(b"\n")
            if not chunk:
                continue
            self._mode = _Mode.pass_through
            if chunk[0] == _QUOTE:
                chunk = chunk[1:]
            if chunk:
                return chunk

    def read(self, size: Optional[int] = ALL) -> Optional[bytes]:
        return read_sized(self, size)

    def pushback(self, chunk: bytes) -> None:
        self._inner.pushback(chunk)

    def eof(self) -> bool:
        return self._inner.eof()

    @property
    def position(self) -> int:
        return self._inner.position
