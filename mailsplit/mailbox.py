"""Helpers for walking an mbox archive one message at a time."""

from typing import Iterator, Optional, Union

from mailsplit.builder import MessageTreeBuilder
from mailsplit.models.message import Message
from mailsplit.readers.mbox import MboxSeparatorReader


def iter_mbox(
    source,
    line_separator: Union[bytes, str, None] = None,
    chunk_size: Optional[int] = None,
) -> Iterator[bytes]:
    """Yield the raw bytes of each message in ``source``."""
    yield from MboxSeparatorReader(source, line_separator, chunk_size).iter_raw()


def iter_mbox_messages(
    source,
    line_separator: Union[bytes, str, None] = None,
    chunk_size: Optional[int] = None,
    builder: Optional[MessageTreeBuilder] = None,
) -> Iterator[Message]:
    """Yield a parsed Message per mbox message, streaming through ``source``."""
    reader = MboxSeparatorReader(source, line_separator, chunk_size)
    builder = builder or MessageTreeBuilder(chunk_size=chunk_size)
    for message_reader in reader.each_message():
        yield builder.parse(message_reader)
