"""A reader decorator that keeps a ledger of everything it delivered."""

from typing import Optional

from mailsplit.readers.base import ALL, Reader, read_sized
from mailsplit.readers.errors import InvalidArgument


class AccumulatingReader:
    """Records every delivered byte; pushed-back bytes leave the ledger again.

    The ledger is a ``bytearray`` so the append / truncate traffic caused by
    frequent pushbacks stays amortized.
    """

    def __init__(self, inner: Reader) -> None:
        self._inner = inner
        self._ledger = bytearray()
        self._protected = 0

    @property
    def chunk_size(self) -> int:
        return self._inner.chunk_size

    @chunk_size.setter
    def chunk_size(self, size: int) -> None:
        self._inner.chunk_size = size

    def read_chunk(self, size: Optional[int] = None) -> Optional[bytes]:
        chunk = self._inner.read_chunk(size)
        if chunk is not None:
            self._ledger += chunk
        return chunk

    def read(self, size: Optional[int] = ALL) -> Optional[bytes]:
        return read_sized(self, size)

    def pushback(self, chunk: bytes) -> None:
        keep = len(self._ledger) - len(chunk)
        if keep < self._protected:
            raise InvalidArgument(
                f"cannot truncate below {self._protected} protected bytes ({keep} attempted)"
            )
        self._inner.pushback(chunk)
        del self._ledger[keep:]

    def eof(self) -> bool:
        return self._inner.eof()

    @property
    def position(self) -> int:
        return len(self._ledger)

    # ── ledger access ─────────────────────────────────────────────────────────

    @property
    def accumulated(self) -> bytes:
        return bytes(self._ledger)

    def substring(self, offset: int, length: int) -> bytes:
        if offset < 0:
            raise InvalidArgument(f"illegal negative offset {offset}")
        if length < 0:
            raise InvalidArgument(f"illegal negative length {length}")
        if offset + length > len(self._ledger):
            raise InvalidArgument(
                f"range end {offset + length} is past the end of the ledger "
                f"(length {len(self._ledger)})"
            )
        return bytes(self._ledger[offset:offset + length])

    def protect(self, length: int) -> None:
        """Forbid pushbacks from truncating the first ``length`` bytes."""
        if length > len(self._ledger):
            raise InvalidArgument(
                f"length {length} greater than maximum of {len(self._ledger)}"
            )
        self._protected = max(length, self._protected)
