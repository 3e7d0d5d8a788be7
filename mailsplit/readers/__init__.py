from mailsplit.readers.accumulate import AccumulatingReader  # noqa: F401
from mailsplit.readers.base import ALL, DEFAULT_CHUNK_SIZE, Reader  # noqa: F401
from mailsplit.readers.chunk import (  # noqa: F401
    ChunkReader,
    PrefixMatch,
    PrefixMatcher,
    as_reader,
    prefix_matcher,
)
from mailsplit.readers.errors import DuplicatePushback, InvalidArgument, ReaderError  # noqa: F401
from mailsplit.readers.mbox import MboxSeparatorReader  # noqa: F401
from mailsplit.readers.multipart import MultipartBoundaryReader  # noqa: F401
from mailsplit.readers.sloppy import SloppyPrefixReader  # noqa: F401

__all__ = [
    "ALL",
    "DEFAULT_CHUNK_SIZE",
    "Reader",
    "ChunkReader",
    "PrefixMatch",
    "PrefixMatcher",
    "as_reader",
    "prefix_matcher",
    "AccumulatingReader",
    "SloppyPrefixReader",
    "MboxSeparatorReader",
    "MultipartBoundaryReader",
    "ReaderError",
    "DuplicatePushback",
    "InvalidArgument",
]
