"""Tests for the msgcompress CLI."""

import gzip
import zlib

import pytest
from typer.testing import CliRunner

from msgcompress.cli import app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def payload_file(tmp_path):
    """Create a compressible input file."""
    path = tmp_path / "message.bin"
    path.write_bytes(b"compressible message body " * 400)
    return path


# =============================================================================
# compress
# =============================================================================


class TestCompressCommand:
    """Tests for the compress command."""

    def test_compress_gzip(self, runner, payload_file, tmp_path):
        """Test gzip output readable by the gzip module."""
        out = tmp_path / "out.gz"

        result = runner.invoke(app, ["compress", str(payload_file), "-o", str(out)])

        assert result.exit_code == 0
        assert "Written to" in result.output
        assert gzip.decompress(out.read_bytes()) == payload_file.read_bytes()

    def test_compress_deflate_default_name(self, runner, payload_file):
        """Test the default output path appends the encoding name."""
        result = runner.invoke(app, ["compress", str(payload_file), "-a", "deflate"])

        assert result.exit_code == 0
        out = payload_file.with_name("message.bin.deflate")
        assert zlib.decompress(out.read_bytes()) == payload_file.read_bytes()

    def test_compress_not_beneficial(self, runner, tmp_path):
        """Test incompressible input is written verbatim."""
        path = tmp_path / "tiny.bin"
        path.write_bytes(b"a")
        out = tmp_path / "tiny.gz"

        result = runner.invoke(app, ["compress", str(path), "-o", str(out)])

        assert result.exit_code == 0
        assert "size_regression" in result.output
        assert out.read_bytes() == b"a"

    def test_unknown_algorithm(self, runner, payload_file):
        """Test unknown encoding names are rejected."""
        result = runner.invoke(app, ["compress", str(payload_file), "-a", "brotli"])
        assert result.exit_code == 1

    def test_missing_file(self, runner, tmp_path):
        """Test missing input files are rejected."""
        result = runner.invoke(app, ["compress", str(tmp_path / "nope.bin")])
        assert result.exit_code == 1

    def test_invalid_block_size(self, runner, payload_file):
        """Test non-positive block sizes are rejected."""
        result = runner.invoke(app, ["compress", str(payload_file), "--block-size", "0"])
        assert result.exit_code == 1


# =============================================================================
# decompress
# =============================================================================


class TestDecompressCommand:
    """Tests for the decompress command."""

    def test_round_trip(self, runner, payload_file, tmp_path):
        """Test compress then decompress restores the file."""
        compressed = tmp_path / "message.bin.gzip"
        restored = tmp_path / "restored.bin"

        runner.invoke(app, ["compress", str(payload_file), "-o", str(compressed)])
        result = runner.invoke(app, ["decompress", str(compressed), "-o", str(restored)])

        assert result.exit_code == 0
        assert "Decompressed" in result.output
        assert restored.read_bytes() == payload_file.read_bytes()

    def test_default_name_strips_suffix(self, runner, tmp_path):
        """Test the default output drops the encoding suffix."""
        data = b"library payload " * 100
        compressed = tmp_path / "data.txt.gzip"
        compressed.write_bytes(gzip.compress(data))

        result = runner.invoke(app, ["decompress", str(compressed)])

        assert result.exit_code == 0
        assert (tmp_path / "data.txt").read_bytes() == data

    def test_default_name_without_suffix(self, runner, tmp_path):
        """Test files without the suffix get an .out extension."""
        data = b"zlib payload " * 100
        compressed = tmp_path / "data.z"
        compressed.write_bytes(zlib.compress(data))

        result = runner.invoke(app, ["decompress", str(compressed), "-a", "deflate"])

        assert result.exit_code == 0
        assert (tmp_path / "data.z.out").read_bytes() == data

    def test_corrupt_file(self, runner, tmp_path):
        """Test corrupt payloads exit with status 1 and write nothing."""
        compressed = tmp_path / "bad.gzip"
        compressed.write_bytes(gzip.compress(b"x" * 1000)[:-8])

        result = runner.invoke(app, ["decompress", str(compressed)])

        assert result.exit_code == 1
        assert not (tmp_path / "bad").exists()

    def test_missing_file(self, runner, tmp_path):
        """Test missing input files are rejected."""
        result = runner.invoke(app, ["decompress", str(tmp_path / "nope.gzip")])
        assert result.exit_code == 1


# =============================================================================
# algorithms
# =============================================================================


class TestAlgorithmsCommand:
    """Tests for the algorithms command."""

    def test_lists_builtins(self, runner):
        """Test built-in compressors are listed."""
        result = runner.invoke(app, ["algorithms"])

        assert result.exit_code == 0
        for name in ("noop", "deflate", "gzip"):
            assert name in result.output
