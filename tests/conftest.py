"""Shared fixtures for msgcompress tests."""

import pytest

from msgcompress import CompressionAlgorithm, CompressionDispatcher, is_snappy_available

requires_snappy = pytest.mark.skipif(
    not is_snappy_available(), reason="python-snappy not installed"
)

ONE_A = b"a"
ONE_KB_A = b"a" * 1024
ONE_MB_A = b"a" * (1024 * 1024)


def codec_algorithms() -> list[CompressionAlgorithm]:
    """Real codecs available in this environment."""
    algorithms = [CompressionAlgorithm.DEFLATE, CompressionAlgorithm.GZIP]
    if is_snappy_available():
        algorithms.append(CompressionAlgorithm.SNAPPY)
    return algorithms


@pytest.fixture
def dispatcher():
    """Create a dispatcher with default configuration."""
    return CompressionDispatcher()
