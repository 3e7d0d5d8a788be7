"""MBOX and EML sources built on the streaming readers."""

from pathlib import Path
from typing import Iterator, Optional, Union

from mailsplit.models.enums import SourceType
from mailsplit.parsers.base import ParsedMessage
from mailsplit.readers.chunk import as_reader
from mailsplit.readers.mbox import MboxSeparatorReader
from mailsplit.readers.sloppy import SloppyPrefixReader


class MboxParser:
    """Streams messages out of an MBOX file.  All messages land in /INBOX.

    The message count is not known without reading the whole file, so
    ``count`` returns None.
    """

    source_type = SourceType.mbox

    def __init__(
        self,
        path: str,
        line_separator: Union[bytes, str, None] = None,
        chunk_size: Optional[int] = None,
    ) -> None:
        p = Path(path)
        if not p.is_file():
            raise FileNotFoundError(f"MBOX file not found: {path}")
        self._path = p
        self._line_separator = line_separator
        self._chunk_size = chunk_size

    def count(self) -> Optional[int]:
        return None

    def messages(self) -> Iterator[ParsedMessage]:
        with self._path.open("rb") as f:
            reader = MboxSeparatorReader(f, self._line_separator, self._chunk_size)
            for message_reader in reader.each_message():
                offset = message_reader.position
                raw = message_reader.read()
                if raw:
                    yield ParsedMessage(folder_path="/INBOX", raw=raw, offset=offset)


class EmlFileParser:
    """Parses a single .eml file, dropping junk saved in front of the header."""

    source_type = SourceType.eml

    def __init__(self, path: str, chunk_size: Optional[int] = None) -> None:
        self._path = Path(path)
        if not self._path.is_file():
            raise FileNotFoundError(f"EML file not found: {path}")
        self._chunk_size = chunk_size

    def count(self) -> Optional[int]:
        return 1

    def messages(self) -> Iterator[ParsedMessage]:
        with self._path.open("rb") as f:
            reader = SloppyPrefixReader(as_reader(f, self._chunk_size))
            raw = reader.read() or b""
        yield ParsedMessage(folder_path="/INBOX", raw=raw, offset=0)
