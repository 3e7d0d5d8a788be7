"""Unit tests for ChunkReader, as_reader and the delimiter prefix matcher"""

import io

import pytest

from mailsplit.readers import (
    ALL,
    ChunkReader,
    DuplicatePushback,
    InvalidArgument,
    PrefixMatch,
    ReaderError,
    as_reader,
    prefix_matcher,
)


class TestChunkReaderReading:
    """Test chunked reads from buffers and streams"""

    def test_reads_buffer_in_chunks(self):
        reader = ChunkReader(b"abcdefg", chunk_size=3)
        assert reader.read_chunk() == b"abc"
        assert reader.read_chunk() == b"def"
        assert reader.read_chunk() == b"g"
        assert reader.read_chunk() is None
        assert reader.read_chunk() is None

    def test_size_argument_overrides_chunk_size(self):
        reader = ChunkReader(b"abcdef", chunk_size=2)
        assert reader.read_chunk(5) == b"abcde"
        assert reader.read_chunk() == b"f"

    def test_read_all_drains(self):
        reader = ChunkReader(b"hello world", chunk_size=2)
        assert reader.read(ALL) == b"hello world"
        assert reader.read() is None

    def test_negative_size_drains(self):
        reader = ChunkReader(b"hello", chunk_size=2)
        assert reader.read(-1) == b"hello"

    def test_positive_size_reads_one_chunk(self):
        reader = ChunkReader(b"hello", chunk_size=2)
        assert reader.read(3) == b"hel"

    def test_empty_buffer(self):
        reader = ChunkReader(b"")
        assert reader.eof() is True
        assert reader.read() is None
        assert reader.read_chunk() is None

    def test_accepts_bytearray_and_memoryview(self):
        assert ChunkReader(bytearray(b"abc")).read() == b"abc"
        assert ChunkReader(memoryview(b"abc")).read() == b"abc"

    def test_stream_source(self):
        reader = ChunkReader(io.BytesIO(b"abcde"), chunk_size=2)
        assert reader.read_chunk() == b"ab"
        assert reader.read() == b"cde"
        assert reader.read_chunk() is None

    def test_chunks_are_never_empty(self):
        reader = ChunkReader(b"abc", chunk_size=1)
        chunks = []
        while True:
            chunk = reader.read_chunk()
            if chunk is None:
                break
            chunks.append(chunk)
        assert chunks == [b"a", b"b", b"c"]


class TestChunkReaderPushback:
    """Test the one-slot pushback buffer"""

    def test_pushback_replayed_before_new_data(self):
        reader = ChunkReader(b"abcdef", chunk_size=4)
        assert reader.read_chunk() == b"abcd"
        reader.pushback(b"cd")
        assert reader.read_chunk() == b"cd"
        assert reader.read_chunk() == b"ef"

    def test_pushback_ignores_requested_size(self):
        reader = ChunkReader(b"abcdef", chunk_size=4)
        reader.pushback(reader.read_chunk())
        assert reader.read_chunk(1) == b"abcd"

    def test_pushback_is_idempotent_for_whole_stream(self):
        reader = ChunkReader(b"abcdef", chunk_size=4)
        reader.pushback(reader.read_chunk())
        assert reader.read() == b"abcdef"

    def test_double_pushback_raises(self):
        reader = ChunkReader(b"abcdef", chunk_size=4)
        reader.read_chunk()
        reader.pushback(b"d")
        with pytest.raises(DuplicatePushback):
            reader.pushback(b"c")

    def test_empty_pushback_raises(self):
        reader = ChunkReader(b"abc")
        with pytest.raises(InvalidArgument):
            reader.pushback(b"")

    def test_pushback_on_exhausted_reader(self):
        reader = ChunkReader(b"abc")
        assert reader.read() == b"abc"
        assert reader.eof() is True
        reader.pushback(b"c")
        assert reader.eof() is False
        assert reader.read() == b"c"


class TestChunkReaderState:
    """Test eof detection, positions and argument validation"""

    def test_eof_on_buffer(self):
        reader = ChunkReader(b"ab", chunk_size=2)
        assert reader.eof() is False
        reader.read_chunk()
        assert reader.eof() is True

    def test_stream_eof_peek_loses_nothing(self):
        reader = ChunkReader(io.BytesIO(b"abc"), chunk_size=2)
        assert reader.eof() is False
        assert reader.read_chunk() == b"ab"
        assert reader.eof() is False
        assert reader.read_chunk() == b"c"
        assert reader.eof() is True
        assert reader.read_chunk() is None

    def test_position_tracks_delivered_bytes_and_pushback(self):
        reader = ChunkReader(b"abcdef", chunk_size=4)
        assert reader.position == 0
        reader.read_chunk()
        assert reader.position == 4
        reader.pushback(b"cd")
        assert reader.position == 2
        reader.read_chunk()
        assert reader.position == 4
        reader.read_chunk()
        assert reader.position == 6

    def test_stream_position_starts_at_tell(self):
        stream = io.BytesIO(b"xxabc")
        stream.seek(2)
        reader = ChunkReader(stream)
        assert reader.position == 2
        assert reader.read() == b"abc"
        assert reader.position == 5

    def test_text_stream_rejected_on_read(self):
        reader = ChunkReader(io.StringIO("abc"))
        with pytest.raises(InvalidArgument):
            reader.read_chunk()

    @pytest.mark.parametrize("source", ["text", 42, None])
    def test_non_bytes_source_rejected(self, source):
        with pytest.raises(InvalidArgument):
            ChunkReader(source)

    @pytest.mark.parametrize("size", [0, -1, 1.5, True, "4"])
    def test_bad_chunk_size_rejected(self, size):
        with pytest.raises(InvalidArgument):
            ChunkReader(b"abc", chunk_size=size)
        reader = ChunkReader(b"abc")
        with pytest.raises(InvalidArgument):
            reader.chunk_size = size

    def test_bad_read_size_rejected(self):
        reader = ChunkReader(b"abc")
        with pytest.raises(InvalidArgument):
            reader.read_chunk(0)

    def test_error_hierarchy(self):
        assert issubclass(InvalidArgument, ReaderError)
        assert issubclass(InvalidArgument, ValueError)
        assert issubclass(DuplicatePushback, ReaderError)


class TestAsReader:
    """Test wrapping of arbitrary sources"""

    def test_wraps_bytes(self):
        reader = as_reader(b"abc", chunk_size=2)
        assert isinstance(reader, ChunkReader)
        assert reader.chunk_size == 2

    def test_returns_reader_unchanged(self):
        reader = ChunkReader(b"abc")
        assert as_reader(reader) is reader

    def test_applies_chunk_size_to_existing_reader(self):
        reader = ChunkReader(b"abc")
        as_reader(reader, chunk_size=1)
        assert reader.chunk_size == 1


class TestPrefixMatcher:
    """Test full and partial delimiter matches"""

    def test_full_match(self):
        matcher = prefix_matcher(b"\nFrom ")
        assert matcher.search(b"xx\nFrom y") == PrefixMatch(2, True)

    def test_earliest_full_match_wins(self):
        matcher = prefix_matcher(b"\nFrom ")
        assert matcher.search(b"\nFrom a\nFrom b") == PrefixMatch(0, True)

    def test_full_match_after_start(self):
        matcher = prefix_matcher(b"\nFrom ")
        assert matcher.search(b"\nFrom a\nFrom b", start=1) == PrefixMatch(7, True)

    def test_partial_match_at_end(self):
        matcher = prefix_matcher(b"\nFrom ")
        assert matcher.search(b"abc\nFr") == PrefixMatch(3, False)
        assert matcher.search(b"abc\n") == PrefixMatch(3, False)

    def test_no_match(self):
        matcher = prefix_matcher(b"\nFrom ")
        assert matcher.search(b"abc") is None
        assert matcher.search(b"") is None

    def test_longest_partial_with_repeated_prefix(self):
        matcher = prefix_matcher(b"aab")
        assert matcher.search(b"xaa") == PrefixMatch(1, False)
        assert matcher.search(b"aaa") == PrefixMatch(1, False)

    def test_partial_uses_failure_links(self):
        matcher = prefix_matcher(b"abac")
        assert matcher.partial_length(b"zzabab") == 2
        assert matcher.partial_length(b"zzaba") == 3

    def test_regex_special_token_matched_literally(self):
        matcher = prefix_matcher(b"\n--a.b*")
        assert matcher.search(b"x\n--aXb*") is None
        assert matcher.search(b"x\n--a.b*") == PrefixMatch(1, True)

    def test_empty_token_rejected(self):
        with pytest.raises(InvalidArgument):
            prefix_matcher(b"")
