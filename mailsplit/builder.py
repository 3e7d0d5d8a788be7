"""
Build a message tree out of a byte stream.

The header is read up to the first blank line, the rest of the chunk is
pushed back, and the body is either taken whole or, for multipart messages,
split with a MultipartBoundaryReader and parsed part by part.  Nesting is
handled by recursion; every level wraps one more boundary reader around the
level above.
"""

import logging
import re
from typing import Optional

from mailsplit.models.header import Header
from mailsplit.models.message import Message
from mailsplit.readers.base import Reader
from mailsplit.readers.chunk import as_reader
from mailsplit.readers.multipart import MultipartBoundaryReader
from mailsplit.readers.sloppy import SloppyPrefixReader

logger = logging.getLogger(__name__)

_HEADER_END_RE = re.compile(rb"\n\r?\n")
_MIME_1_0_RE = re.compile(r"\b1\.0\b")


class MessageTreeBuilder:
    """
    Parses one message per ``parse`` call.

    ``chunk_size`` is the read size used on every level; ``sloppy`` strips
    leading line breaks and a stray ``>`` in front of the message first.
    """

    def __init__(self, chunk_size: Optional[int] = None, sloppy: bool = False) -> None:
        self.chunk_size = chunk_size
        self.sloppy = sloppy

    # ── public ────────────────────────────────────────────────────────────────

    def parse(self, source) -> Message:
        """Parse ``source`` (bytes, a binary stream or a reader) to a Message."""
        reader = as_reader(source, self.chunk_size)
        if self.sloppy:
            reader = SloppyPrefixReader(reader)
        message = Message()
        self._parse_low(reader, message, depth=0)
        return message

    # ── private ───────────────────────────────────────────────────────────────

    def _parse_low(self, reader: Reader, message: Message, depth: int) -> None:
        message.header = _parse_header(reader)
        boundary = _multipart_boundary(message.header, depth)
        if boundary is not None:
            self._parse_multipart(reader, message, depth, boundary)
        elif message.header.line_break is not None:
            message.body = reader.read() or b""
        else:
            message.body = None

    def _parse_multipart(
        self, reader: Reader, message: Message, depth: int, boundary: str
    ) -> None:
        logger.debug("builder: multipart boundary %r at depth %d", boundary, depth)
        message.make_multipart()
        parts_reader = MultipartBoundaryReader(reader, boundary, self.chunk_size)
        delimiters: list[bytes] = []
        while parts_reader.advance():
            if parts_reader.is_preamble:
                message.preamble = parts_reader.read()
            elif parts_reader.is_epilogue:
                message.epilogue = parts_reader.read() or b""
            else:
                part = Message()
                self._parse_low(parts_reader, part, depth + 1)
                message.add_part(part)
            if not parts_reader.is_epilogue:
                delimiters.append(parts_reader.delimiter or b"")
        message.set_delimiters(delimiters, boundary)


def _parse_header(reader: Reader) -> Header:
    """Read the header off ``reader`` and push back whatever follows it."""
    buf = bytearray()
    checked_start = False
    while True:
        chunk = reader.read_chunk()
        if chunk is None:
            # no blank line: everything read is header
            return Header.parse(bytes(buf), line_break=None)
        scan_from = max(len(buf) - 2, 0)
        buf += chunk

        if not checked_start:
            # a leading line break means there are no header fields at all
            if buf.startswith(b"\n"):
                return _finish_header(reader, buf, 0, 0, 1)
            if buf.startswith(b"\r\n"):
                return _finish_header(reader, buf, 0, 0, 2)
            if buf == b"\r":
                continue
            checked_start = True

        match = _HEADER_END_RE.search(buf, scan_from)
        if match is not None:
            return _finish_header(reader, buf, match.start() + 1, match.start() + 1, match.end())


def _finish_header(
    reader: Reader, buf: bytearray, header_end: int, break_start: int, body_start: int
) -> Header:
    rest = bytes(buf[body_start:])
    if rest:
        reader.pushback(rest)
    return Header.parse(bytes(buf[:header_end]), line_break=bytes(buf[break_start:body_start]))


def _multipart_boundary(header: Header, depth: int) -> Optional[str]:
    boundary = header.param("content-type", "boundary")
    if not boundary or header.media_type != "multipart":
        return None
    # a top-level message is only MIME with a MIME-Version of 1.0
    if depth == 0 and not _MIME_1_0_RE.search(header.get("mime-version") or ""):
        return None
    return boundary


def parse_message(source, chunk_size: Optional[int] = None, sloppy: bool = False) -> Message:
    return MessageTreeBuilder(chunk_size=chunk_size, sloppy=sloppy).parse(source)
