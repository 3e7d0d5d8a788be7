"""Reader capability interface shared by every reader in this package.

A reader hands out non-empty ``bytes`` chunks and signals the end of its
stream (or of the current segment) with ``None``.  Readers compose: a
decorator or scanner owns exactly one inner reader and pulls from it.
"""

from typing import Optional, Protocol

from mailsplit.readers.errors import DuplicatePushback, InvalidArgument

# Pass as ``size`` to ``read`` to drain everything that is left.
ALL = None

DEFAULT_CHUNK_SIZE = 16384


class Reader(Protocol):
    chunk_size: int

    def read_chunk(self, size: Optional[int] = None) -> Optional[bytes]:
        """Return the next chunk, or None when nothing is left."""
        ...

    def read(self, size: Optional[int] = ALL) -> Optional[bytes]:
        """Return one chunk of about ``size`` bytes, or everything left for ALL."""
        ...

    def pushback(self, chunk: bytes) -> None:
        """Make ``chunk`` the next value returned by ``read_chunk``."""
        ...

    def eof(self) -> bool:
        """Return True if the next ``read_chunk`` would return None."""
        ...

    @property
    def position(self) -> int:
        """Offset of the next byte to be delivered."""
        ...


class PushbackSlot:
    """Holds at most one chunk waiting to be re-delivered."""

    __slots__ = ("_chunk",)

    def __init__(self) -> None:
        self._chunk: Optional[bytes] = None

    @property
    def pending(self) -> bool:
        return self._chunk is not None

    def __len__(self) -> int:
        return len(self._chunk) if self._chunk is not None else 0

    def put(self, chunk: bytes) -> None:
        if not chunk:
            raise InvalidArgument("cannot push back an empty chunk")
        if self._chunk is not None:
            raise DuplicatePushback("a chunk has already been pushed back")
        self._chunk = bytes(chunk)

    def take(self) -> Optional[bytes]:
        chunk, self._chunk = self._chunk, None
        return chunk


def check_chunk_size(size) -> int:
    # bool is an int subclass; True is not a chunk size
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise InvalidArgument(f"chunk size must be a positive integer, got {size!r}")
    return size


def drain(reader: Reader, size: int) -> Optional[bytes]:
    """Read ``reader`` until it returns None; None if it had nothing at all."""
    parts = []
    while True:
        chunk = reader.read_chunk(size)
        if chunk is None:
            break
        parts.append(chunk)
    if not parts:
        return None
    return b"".join(parts)


def read_sized(reader: Reader, size: Optional[int]) -> Optional[bytes]:
    """Shared ``read`` semantics: ALL (or a negative size) drains the reader."""
    if size is None or (isinstance(size, int) and not isinstance(size, bool) and size < 0):
        return drain(reader, reader.chunk_size)
    return reader.read_chunk(size)


def is_reader(obj) -> bool:
    return all(
        callable(getattr(obj, name, None)) for name in ("read_chunk", "pushback", "eof")
    )
