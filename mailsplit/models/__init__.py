from mailsplit.models.enums import ReaderState, SegmentKind, SourceType  # noqa: F401
from mailsplit.models.header import Header  # noqa: F401
from mailsplit.models.message import Message  # noqa: F401

__all__ = [
    "Header",
    "Message",
    "ReaderState",
    "SegmentKind",
    "SourceType",
]
