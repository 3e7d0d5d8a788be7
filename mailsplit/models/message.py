from typing import Iterator, Optional

from mailsplit.models.header import Header


class Message:
    """A message tree node: a header plus either a body or a list of parts.

    Single-part messages keep their body as bytes (None when the input had no
    blank line after the header).  Multipart messages keep ``parts`` and the
    optional ``preamble`` / ``epilogue`` bytes.
    """

    def __init__(self, header: Optional[Header] = None, body: Optional[bytes] = None) -> None:
        self.header = header if header is not None else Header()
        self.body = body
        self.parts: Optional[list["Message"]] = None
        self.preamble: Optional[bytes] = None
        self.epilogue: Optional[bytes] = None
        self._delimiters: Optional[list[bytes]] = None
        self._delimiters_boundary: Optional[str] = None

    @property
    def multipart(self) -> bool:
        return self.parts is not None

    def make_multipart(self) -> None:
        if self.body is not None:
            raise ValueError("message already has a single-part body")
        if self.parts is None:
            self.parts = []

    def add_part(self, part: "Message") -> None:
        self.make_multipart()
        self.parts.append(part)

    def part(self, index: int) -> "Message":
        if self.parts is None:
            raise ValueError("message is not multipart")
        return self.parts[index]

    def walk(self) -> Iterator["Message"]:
        """Yield this message and every part below it, depth first."""
        yield self
        for part in self.parts or ():
            yield from part.walk()

    # ── recorded delimiters ───────────────────────────────────────────────────

    def set_delimiters(self, delimiters: list[bytes], boundary: str) -> None:
        """Remember the literal delimiter lines read from the input.

        There is one delimiter in front of each part plus the closing one;
        ``b""`` stands for a delimiter the input did not have.
        """
        if self.parts is None or len(delimiters) != len(self.parts) + 1:
            raise ValueError(
                f"expected {len(self.parts or ()) + 1} delimiters, got {len(delimiters)}"
            )
        self._delimiters = list(delimiters)
        self._delimiters_boundary = boundary

    def get_delimiters(self) -> tuple[Optional[list[bytes]], Optional[str]]:
        """Recorded delimiters and their boundary, or (None, None) if they no
        longer match the parts or the Content-Type boundary."""
        if (
            self.parts is None
            or self._delimiters is None
            or len(self._delimiters) != len(self.parts) + 1
            or self.header.param("content-type", "boundary") != self._delimiters_boundary
        ):
            self._delimiters = None
            self._delimiters_boundary = None
        return self._delimiters, self._delimiters_boundary

    def to_bytes(self) -> bytes:
        from mailsplit.serialize import serialize

        return serialize(self)

    def __repr__(self) -> str:
        if self.parts is not None:
            return f"<Message {self.header.content_type} parts={len(self.parts)}>"
        size = len(self.body) if self.body is not None else None
        return f"<Message {self.header.content_type} body={size}>"
