"""Unit tests for MboxSeparatorReader"""

import io
import os

import pytest

from mailsplit.models import SegmentKind
from mailsplit.readers import ChunkReader, InvalidArgument, MboxSeparatorReader

CHUNK_SIZES = [1, 2, 3, 4, 5, 7, 10, 16384]

MESSAGE_1 = b"From a@example.com Mon Jan  1 00:00:00 2024\nSubject: 1\n\nbody1\n"
MESSAGE_2 = b"From b@example.com Mon Jan  1 00:00:01 2024\nSubject: 2\n\nbody2\n"
MBOX = MESSAGE_1 + b"\n" + MESSAGE_2


def messages(data, line_separator=b"\n", chunk_size=16384):
    return list(MboxSeparatorReader(data, line_separator, chunk_size).iter_raw())


class TestSplitting:
    """Test that messages are split on separator + From lines"""

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_two_messages(self, chunk_size):
        assert messages(MBOX, chunk_size=chunk_size) == [MESSAGE_1, MESSAGE_2]

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_missing_trailing_separator_is_added(self, chunk_size):
        assert messages(b"From a\n\nx", chunk_size=chunk_size) == [b"From a\n\nx\n"]

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_message_without_blank_line_before_next(self, chunk_size):
        data = b"From a\n\nbody\nFrom b\n\nnext\n"
        assert messages(data, chunk_size=chunk_size) == [
            b"From a\n\nbody\n",
            b"From b\n\nnext\n",
        ]

    @pytest.mark.parametrize("chunk_size", CHUNK_SIZES)
    def test_crlf_separator(self, chunk_size):
        data = b"From a\r\nS: 1\r\n\r\nx\r\n\r\nFrom b\r\n\r\ny\r\n"
        assert messages(data, b"\r\n", chunk_size) == [
            b"From a\r\nS: 1\r\n\r\nx\r\n",
            b"From b\r\n\r\ny\r\n",
        ]

    def test_from_inside_line_is_content(self):
        data = b"From a\n\nsay From me\n>From b\n"
        assert messages(data) == [data]

    def test_partial_from_at_end_is_content(self):
        assert messages(b"From a\n\nx\nFro", chunk_size=2) == [b"From a\n\nx\nFro\n"]

    def test_empty_input(self):
        reader = MboxSeparatorReader(b"", b"\n")
        assert reader.eof() is True
        assert messages(b"") == []

    def test_every_message_ends_with_one_separator(self):
        data = b"From a\n\n1\n\nFrom b\n\n2\nFrom c\n\n3"
        for raw in messages(data, chunk_size=3):
            assert raw.endswith(b"\n")
            assert not raw.endswith(b"\n\n")

    def test_str_separator_accepted(self):
        assert messages(MBOX, "\n") == [MESSAGE_1, MESSAGE_2]

    def test_default_separator_is_native(self):
        reader = MboxSeparatorReader(b"")
        assert reader.line_separator == os.linesep.encode("ascii")

    def test_empty_separator_rejected(self):
        with pytest.raises(InvalidArgument):
            MboxSeparatorReader(b"", b"")


class TestMessageNavigation:
    """Test advance, eof, position and streaming sources"""

    def test_advance_and_eof(self):
        reader = MboxSeparatorReader(MBOX, b"\n")
        assert reader.eof() is False
        assert reader.read() == MESSAGE_1
        assert reader.read_chunk() is None
        assert reader.advance() is True
        assert reader.read() == MESSAGE_2
        assert reader.advance() is False
        assert reader.eof() is True

    def test_advance_skips_unread_rest(self):
        reader = MboxSeparatorReader(MBOX, b"\n")
        assert reader.read_chunk(3) == b"Fro"
        assert reader.advance() is True
        assert reader.read() == MESSAGE_2

    @pytest.mark.parametrize("chunk_size", [1, 16384])
    def test_position_of_next_message(self, chunk_size):
        reader = MboxSeparatorReader(MBOX, b"\n", chunk_size)
        assert reader.position == 0
        reader.read()
        reader.advance()
        assert reader.position == len(MESSAGE_1) + 1

    def test_each_message_yields_reader(self):
        reader = MboxSeparatorReader(MBOX, b"\n")
        seen = [message.read() for message in reader.each_message()]
        assert seen == [MESSAGE_1, MESSAGE_2]

    def test_pushback_within_message(self):
        reader = MboxSeparatorReader(MBOX, b"\n", chunk_size=8)
        first = reader.read_chunk()
        reader.pushback(first[2:])
        assert first[:2] + reader.read() == MESSAGE_1

    def test_stream_source(self):
        assert list(MboxSeparatorReader(io.BytesIO(MBOX), b"\n").iter_raw()) == [
            MESSAGE_1,
            MESSAGE_2,
        ]

    def test_reader_source(self):
        inner = ChunkReader(MBOX, chunk_size=4)
        reader = MboxSeparatorReader(inner, b"\n")
        assert reader.chunk_size == 4
        assert list(reader.iter_raw()) == [MESSAGE_1, MESSAGE_2]

    def test_segment_kind(self):
        assert MboxSeparatorReader(MBOX, b"\n").segment is SegmentKind.message
