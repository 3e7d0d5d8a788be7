"""
Write a message tree back out as bytes.

Multipart messages reuse the delimiter lines recorded by the builder when
they still fit the tree, which makes an unmodified parse serialize back to
the input.  Otherwise delimiters are generated from the Content-Type
boundary, after making sure no nested boundary is a prefix of another.
"""

import io
import itertools
import logging
import os
import random
import time
from typing import BinaryIO, Optional

from mailsplit.models.message import Message

logger = logging.getLogger(__name__)


class Serializer:
    """Writes messages to ``output`` (anything with a binary ``write``)."""

    def __init__(self, output: BinaryIO) -> None:
        self._output = output
        self._last: Optional[bytes] = None  # last byte written
        self._counter = itertools.count(1)

    def serialize(self, message: Message) -> None:
        if message.multipart:
            self._calculate_boundaries(message, ())
            if "MIME-Version" not in message.header:
                message.header["MIME-Version"] = "1.0"
        self._serialize_low(message, depth=0)

    # ── writing ───────────────────────────────────────────────────────────────

    def _write(self, data: Optional[bytes]) -> None:
        if data:
            self._output.write(data)
            self._last = data[-1:]

    def _serialize_low(self, message: Message, depth: int) -> None:
        header = message.header
        if not message.multipart:
            self._write(header.to_bytes())
            if message.body is not None:
                self._write(header.line_break if header.line_break is not None else b"\n")
                self._write(message.body)
                if depth == 0 and message.body and not message.body.endswith(b"\n"):
                    self._write(b"\n")
            return

        delimiters, _ = message.get_delimiters()
        generated = delimiters is None
        if generated:
            dash_boundary = b"--" + header.param("content-type", "boundary").encode("latin-1")
            delimiters = [dash_boundary + b"\n"] * len(message.parts)
            delimiters.append(dash_boundary + b"--\n")

        self._write(header.to_bytes())
        if header.line_break is not None:
            self._write(header.line_break)
        self._write(message.preamble)
        for delimiter, part in zip(delimiters, message.parts):
            self._write_delimiter(delimiter, generated)
            self._serialize_low(part, depth + 1)
        self._write_delimiter(delimiters[-1], generated)
        self._write(message.epilogue)

    def _write_delimiter(self, delimiter: bytes, generated: bool) -> None:
        # a delimiter line has to start a line
        if generated and self._last is not None and self._last != b"\n":
            self._write(b"\n")
        self._write(delimiter)

    # ── boundaries ────────────────────────────────────────────────────────────

    def _calculate_boundaries(self, message: Message, outer: tuple[str, ...]) -> None:
        boundary = self._unique_boundary(message, outer)
        for part in message.parts:
            if part.multipart:
                self._calculate_boundaries(part, outer + (boundary,))

    def _unique_boundary(self, message: Message, outer: tuple[str, ...]) -> str:
        candidate = message.header.param("content-type", "boundary")
        boundary = candidate or self._generate_boundary()
        while any(b.startswith(boundary) or boundary.startswith(b) for b in outer):
            boundary = self._generate_boundary()
        if boundary != candidate:
            logger.debug("serialize: boundary %r replaced by %r", candidate, boundary)
            message.header.set_boundary(boundary)
        return boundary

    def _generate_boundary(self) -> str:
        return "=-%d-%d-%d-%d-=" % (
            int(time.time()),
            os.getpid(),
            random.randrange(10000),
            next(self._counter),
        )


def serialize(message: Message) -> bytes:
    output = io.BytesIO()
    Serializer(output).serialize(message)
    return output.getvalue()
