"""Named compressor implementations.

A compressor is a long-lived, named handle on one algorithm with
``start``/``stop`` lifecycle hooks. The built-in compressors hold no
per-stream state between calls: every ``compress``/``decompress`` builds
fresh engine state, so a single instance may be shared across threads.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from msgcompress.base import (
    CompressionAlgorithm,
    CompressionConfig,
    DecompressionError,
)
from msgcompress.buffer import SliceBuffer
from msgcompress.dispatch import CompressionDispatcher, copy

logger = logging.getLogger(__name__)


# =============================================================================
# Base Compressor
# =============================================================================


class BaseCompressor(ABC):
    """Abstract base class for compressor implementations.

    Subclasses name their algorithm; compression goes through a
    ``CompressionDispatcher`` so the never-inflate policy applies to every
    compressor.
    """

    def __init__(
        self,
        config: CompressionConfig | None = None,
        dispatcher: CompressionDispatcher | None = None,
    ) -> None:
        """Initialize the compressor.

        Args:
            config: Adapter configuration, used when no dispatcher is given.
            dispatcher: Dispatcher to share with other compressors.
        """
        self._dispatcher = dispatcher or CompressionDispatcher(config)
        self._started = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the encoding name."""
        pass

    @property
    @abstractmethod
    def algorithm(self) -> CompressionAlgorithm:
        """Get the compression algorithm."""
        pass

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Lifecycle hook called before first use."""
        self._started = True
        logger.debug("compressor %s started", self.name)

    def stop(self) -> None:
        """Lifecycle hook called when the compressor is retired."""
        self._started = False
        logger.debug("compressor %s stopped", self.name)

    def compress(self, input: SliceBuffer, output: SliceBuffer) -> bool:
        """Append compressed or copied ``input`` to ``output``.

        Returns:
            Whether compression was actually applied.
        """
        return self._dispatcher.compress(self.algorithm, input, output)

    def decompress(self, input: SliceBuffer, output: SliceBuffer) -> bool:
        """Append decompressed ``input`` to ``output``.

        Returns:
            True on success; False with ``output`` unchanged on failure.
        """
        return self._dispatcher.decompress(self.algorithm, input, output)

    def compress_bytes(self, data: bytes) -> tuple[bytes, bool]:
        """Compress a contiguous payload.

        Returns:
            Tuple of (payload bytes, whether compression was applied).
        """
        output = SliceBuffer()
        applied = self.compress(SliceBuffer.from_bytes(data), output)
        return output.join(), applied

    def decompress_bytes(self, data: bytes) -> bytes:
        """Decompress a contiguous payload.

        Raises:
            DecompressionError: If the payload cannot be decompressed.
        """
        output = SliceBuffer()
        if not self.decompress(SliceBuffer.from_bytes(data), output):
            raise DecompressionError("Decompression failed", self.name)
        return output.join()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# =============================================================================
# Providers
# =============================================================================


class NoopCompressor(BaseCompressor):
    """No-operation compressor (passthrough)."""

    @property
    def name(self) -> str:
        return "noop"

    @property
    def algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.NONE

    def compress(self, input: SliceBuffer, output: SliceBuffer) -> bool:
        return copy(input, output)

    def decompress(self, input: SliceBuffer, output: SliceBuffer) -> bool:
        return copy(input, output)


class DeflateCompressor(BaseCompressor):
    """DEFLATE compression in a zlib stream."""

    @property
    def name(self) -> str:
        return "deflate"

    @property
    def algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.DEFLATE


class GzipCompressor(BaseCompressor):
    """Gzip compression.

    Gzip framing adds a header and a CRC32/length trailer, so corruption
    anywhere in the payload is detected on decompression.
    """

    @property
    def name(self) -> str:
        return "gzip"

    @property
    def algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.GZIP


class SnappyCompressor(BaseCompressor):
    """Snappy compression using the python-snappy library.

    Snappy is designed for speed rather than maximum compression.
    """

    @property
    def name(self) -> str:
        return "snappy"

    @property
    def algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.SNAPPY
