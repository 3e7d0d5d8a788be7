"""Message sources consumed by the importer."""

from typing import Iterator, NamedTuple, Optional, Protocol

from mailsplit.models.enums import SourceType


class ParsedMessage(NamedTuple):
    folder_path: str          # "/INBOX" for every supported source
    raw: bytes                # the message bytes, ready for MessageTreeBuilder
    offset: Optional[int]     # byte offset of the message in its source file


class MailParser(Protocol):
    source_type: SourceType

    def count(self) -> Optional[int]:
        """Return total message count if known upfront, else None."""
        ...

    def messages(self) -> Iterator[ParsedMessage]:
        """Yield one ParsedMessage per email in the source."""
        ...
