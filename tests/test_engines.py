"""Tests for codec engines."""

import gzip
import zlib

import pytest

from conftest import requires_snappy
from msgcompress import (
    BufferSource,
    DeflateEngine,
    FlushMode,
    InflateEngine,
    PendingSink,
    SnappyCompressEngine,
    SnappyDecompressEngine,
    StreamCodec,
    StreamStatus,
)


def drain(engine, data, mode=FlushMode.FINISH, window=1024):
    """Feed ``data`` and keep pulling until the engine stops producing."""
    out = bytearray()
    view = memoryview(data)
    while True:
        result = engine.feed(view, mode, window)
        view = view[result.consumed :]
        out += result.produced
        if result.status is not StreamStatus.OK:
            return bytes(out), result
        if len(result.produced) < window and not view:
            return bytes(out), result


class TestDeflateEngine:
    """Tests for DeflateEngine."""

    def test_implements_protocol(self):
        """Test the engine satisfies StreamCodec."""
        assert isinstance(DeflateEngine(), StreamCodec)

    def test_zlib_stream(self):
        """Test output is a complete zlib stream."""
        data = b"hello world " * 100
        out, result = drain(DeflateEngine(15), data)

        assert result.status is StreamStatus.STREAM_END
        assert zlib.decompress(out) == data

    def test_gzip_stream(self):
        """Test gzip framing."""
        data = b"hello world " * 100
        out, result = drain(DeflateEngine(31), data)

        assert result.status is StreamStatus.STREAM_END
        assert gzip.decompress(out) == data

    def test_output_limited_to_window(self):
        """Test output never exceeds the offered window."""
        engine = DeflateEngine(31, level=0)
        data = bytes(range(256)) * 16
        result = engine.feed(data, FlushMode.FINISH, 10)

        assert result.consumed == len(data)
        assert len(result.produced) == 10
        assert result.status is StreamStatus.OK

        rest, final = drain(engine, b"", window=10)
        assert final.status is StreamStatus.STREAM_END
        assert gzip.decompress(result.produced + rest) == data

    def test_continue_consumes_input(self):
        """Test CONTINUE takes all offered input."""
        engine = DeflateEngine()
        result = engine.feed(b"abc" * 10, FlushMode.CONTINUE, 1024)

        assert result.consumed == 30
        assert result.status is StreamStatus.OK

    def test_no_progress_is_soft(self):
        """Test a call with nothing to do reports BUF_ERROR."""
        engine = DeflateEngine()
        engine.feed(b"abc", FlushMode.CONTINUE, 1024)
        result = engine.feed(b"", FlushMode.CONTINUE, 1024)

        assert result.status is StreamStatus.BUF_ERROR
        assert result.consumed == 0

    def test_empty_stream(self):
        """Test finishing without input emits header and trailer only."""
        out, result = drain(DeflateEngine(31), b"")

        assert result.status is StreamStatus.STREAM_END
        assert len(out) == 20
        assert gzip.decompress(out) == b""


class TestInflateEngine:
    """Tests for InflateEngine."""

    def test_roundtrip(self):
        """Test decompressing a zlib stream."""
        data = b"payload " * 500
        out, result = drain(InflateEngine(15), zlib.compress(data))

        assert result.status is StreamStatus.STREAM_END
        assert out == data

    def test_window_leaves_unconsumed_input(self):
        """Test input that cannot be processed yet is reported unconsumed."""
        data = bytes(range(256)) * 64
        compressed = zlib.compress(data, 0)
        engine = InflateEngine(15)

        result = engine.feed(compressed, FlushMode.FINISH, 100)

        assert len(result.produced) == 100
        assert result.consumed < len(compressed)
        assert result.status is StreamStatus.OK

    def test_trailing_data_not_consumed(self):
        """Test bytes after the end of stream are left unconsumed."""
        compressed = zlib.compress(b"hello")
        engine = InflateEngine(15)

        result = engine.feed(compressed + b"xyz", FlushMode.FINISH, 1024)

        assert result.produced == b"hello"
        assert result.status is StreamStatus.STREAM_END
        assert result.consumed == len(compressed)

    def test_after_end_consumes_nothing(self):
        """Test further input after the end is refused."""
        engine = InflateEngine(15)
        engine.feed(zlib.compress(b"hello"), FlushMode.CONTINUE, 1024)

        result = engine.feed(b"\x99", FlushMode.FINISH, 1024)

        assert result.consumed == 0
        assert result.status is StreamStatus.STREAM_END

    def test_corrupt_stream(self):
        """Test malformed data reports DATA_ERROR."""
        result = InflateEngine(15).feed(b"\x78\xda\xff\xff", FlushMode.FINISH, 1024)

        assert result.status is StreamStatus.DATA_ERROR
        assert result.message

    def test_truncated_stream_does_not_end(self):
        """Test a truncated stream never reports STREAM_END."""
        compressed = gzip.compress(b"a" * 4096)
        _, result = drain(InflateEngine(31), compressed[:-8])

        assert result.status is not StreamStatus.STREAM_END

    def test_empty_input_ends_cleanly(self):
        """Test finishing without any input is an empty message."""
        result = InflateEngine(31).feed(b"", FlushMode.FINISH, 1024)

        assert result.status is StreamStatus.STREAM_END
        assert result.produced == b""


class TestBufferSource:
    """Tests for BufferSource."""

    def test_peek_returns_one_range(self):
        """Test peek exposes the first range only."""
        source = BufferSource()
        source.push(b"abc")
        source.push(b"de")

        assert source.available() == 5
        assert bytes(source.peek()) == b"abc"

    def test_skip_across_ranges(self):
        """Test skipping across range boundaries."""
        source = BufferSource()
        source.push(b"abc")
        source.push(b"de")

        source.skip(4)

        assert source.available() == 1
        assert bytes(source.peek()) == b"e"

    def test_skip_too_far(self):
        """Test skipping past the end is rejected."""
        source = BufferSource()
        source.push(b"ab")
        with pytest.raises(ValueError):
            source.skip(3)

    def test_read_all(self):
        """Test draining the source."""
        source = BufferSource()
        for chunk in (b"ab", b"", b"cd"):
            source.push(chunk)

        assert source.read_all() == b"abcd"
        assert source.available() == 0
        assert bytes(source.peek()) == b""


class TestPendingSink:
    """Tests for PendingSink."""

    def test_drain_in_windows(self):
        """Test sink contents drain in bounded windows."""
        sink = PendingSink()
        sink.append(b"abcdef")

        assert sink.drain(4) == b"abcd"
        assert len(sink) == 2
        assert sink.drain(4) == b"ef"
        assert sink.bytes_written == 6


@requires_snappy
class TestSnappyEngines:
    """Tests for the sink-based snappy engines."""

    def test_compress_matches_library(self):
        """Test ranges fed one by one compress like the whole payload."""
        import snappy

        engine = SnappyCompressEngine()
        data = b"abcdefgh" * 200
        out = bytearray()
        for i in range(0, len(data), 100):
            result = engine.feed(data[i : i + 100], FlushMode.CONTINUE, 1024)
            assert result.consumed == 100
            assert result.produced == b""
        tail, result = drain(engine, b"")

        assert result.status is StreamStatus.STREAM_END
        out += tail
        assert snappy.decompress(bytes(out)) == data

    def test_decompress(self):
        """Test snappy decompression through the push interface."""
        import snappy

        data = b"xyz" * 1000
        out, result = drain(SnappyDecompressEngine(), snappy.compress(data))

        assert result.status is StreamStatus.STREAM_END
        assert out == data

    def test_decompress_corrupt(self):
        """Test corrupt input reports DATA_ERROR."""
        result = SnappyDecompressEngine().feed(b"\xff\xff\xff\xff\xff", FlushMode.FINISH, 1024)
        assert result.status is StreamStatus.DATA_ERROR

    def test_decompress_empty(self):
        """Test an empty stream decodes to nothing."""
        result = SnappyDecompressEngine().feed(b"", FlushMode.FINISH, 1024)

        assert result.status is StreamStatus.STREAM_END
        assert result.produced == b""
