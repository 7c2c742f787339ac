"""Codec adapters and the chunked streaming loop.

``run_stream`` drives one codec engine across the ranges of an input
``SliceBuffer``, collecting its output in fixed-size blocks that are
appended to the output buffer as they fill. The loop is all-or-nothing:
on any fault every block it appended is released and the output buffer is
left exactly as it was.

Example:
    >>> adapter = GzipAdapter()
    >>> out = SliceBuffer()
    >>> adapter.compress(SliceBuffer.from_bytes(b"a" * 4096), out)
    True
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from msgcompress.base import (
    CompressionAlgorithm,
    CompressionConfig,
    CompressionError,
    FlushMode,
    InvalidAlgorithmError,
    StreamCodec,
    StreamStatus,
)
from msgcompress.buffer import SliceBuffer
from msgcompress.engines import (
    DeflateEngine,
    InflateEngine,
    SnappyCompressEngine,
    SnappyDecompressEngine,
    load_snappy,
)

logger = logging.getLogger(__name__)

OUTPUT_BLOCK_SIZE = 1024


def run_stream(
    codec: StreamCodec,
    input: SliceBuffer,
    output: SliceBuffer,
    block_size: int = OUTPUT_BLOCK_SIZE,
    label: str = "codec",
) -> bool:
    """Stream ``input`` through ``codec`` and append the result to ``output``.

    Every range but the last is fed with ``FlushMode.CONTINUE`` and the last
    with ``FlushMode.FINISH``; an input without ranges is fed as a single
    empty final range. The engine's state carries across range and block
    boundaries.

    Args:
        codec: Engine holding the state of one stream.
        input: Ranges to feed, in order.
        output: Buffer that receives the produced blocks.
        block_size: Capacity of each output block.
        label: Name used in log messages.

    Returns:
        True if the engine consumed all input and reported end of stream.
        False on any fault, with ``output`` unchanged.
    """
    count_before = output.count
    block = bytearray()
    status = StreamStatus.STREAM_END

    ranges = list(input) or [b""]
    last = len(ranges) - 1

    for i, chunk in enumerate(ranges):
        mode = FlushMode.FINISH if i == last else FlushMode.CONTINUE
        view = memoryview(chunk)
        pos = 0
        while True:
            if len(block) == block_size:
                output.add(bytes(block))
                block = bytearray()
            result = codec.feed(view[pos:], mode, block_size - len(block))
            pos += result.consumed
            block += result.produced
            status = result.status
            if status is StreamStatus.DATA_ERROR:
                logger.info("%s error: %s", label, result.message)
                output.truncate(count_before)
                return False
            # BUF_ERROR only means no progress was possible; stop once the
            # block has room left.
            if len(block) < block_size:
                break
        if pos < len(view):
            logger.info("%s: not all input consumed", label)
            output.truncate(count_before)
            return False

    if status is not StreamStatus.STREAM_END:
        logger.info("%s: data error, stream did not end", label)
        output.truncate(count_before)
        return False

    if block:
        output.add(bytes(block))
    return True


# =============================================================================
# Codec Adapters
# =============================================================================


class CodecAdapter(ABC):
    """Bridges ``SliceBuffer`` payloads and one codec engine family.

    Adapters hold configuration only. Each call builds fresh engine state,
    so one adapter may serve concurrent calls on separate buffers.
    """

    def __init__(self, config: CompressionConfig | None = None) -> None:
        self._config = config or CompressionConfig()
        self._config.validate()

    @property
    @abstractmethod
    def algorithm(self) -> CompressionAlgorithm:
        """Get the compression algorithm."""
        pass

    @property
    def config(self) -> CompressionConfig:
        return self._config

    @abstractmethod
    def _compress_engine(self) -> StreamCodec:
        pass

    @abstractmethod
    def _decompress_engine(self) -> StreamCodec:
        pass

    def compress(self, input: SliceBuffer, output: SliceBuffer) -> bool:
        """Append the compressed form of ``input`` to ``output``.

        Raises:
            UnsupportedAlgorithmError: If the engine library is unavailable.
        """
        return run_stream(
            self._compress_engine(),
            input,
            output,
            self._config.block_size,
            self.algorithm.encoding_name,
        )

    def decompress(self, input: SliceBuffer, output: SliceBuffer) -> bool:
        """Append the decompressed form of ``input`` to ``output``.

        Raises:
            UnsupportedAlgorithmError: If the engine library is unavailable.
        """
        return run_stream(
            self._decompress_engine(),
            input,
            output,
            self._config.block_size,
            self.algorithm.encoding_name,
        )


class DeflateAdapter(CodecAdapter):
    """DEFLATE in a zlib stream (the ``deflate`` content coding)."""

    @property
    def algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.DEFLATE

    def _compress_engine(self) -> StreamCodec:
        return DeflateEngine(
            self._config.window_bits, self._config.level, self._config.mem_level
        )

    def _decompress_engine(self) -> StreamCodec:
        return InflateEngine(self._config.window_bits)


class GzipAdapter(CodecAdapter):
    """DEFLATE with gzip header and CRC32/size trailer."""

    @property
    def algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.GZIP

    def _compress_engine(self) -> StreamCodec:
        return DeflateEngine(
            self._config.window_bits | 16, self._config.level, self._config.mem_level
        )

    def _decompress_engine(self) -> StreamCodec:
        return InflateEngine(self._config.window_bits | 16)


class SnappyAdapter(CodecAdapter):
    """Snappy raw block format."""

    @property
    def algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.SNAPPY

    def _compress_engine(self) -> StreamCodec:
        return SnappyCompressEngine(load_snappy())

    def _decompress_engine(self) -> StreamCodec:
        return SnappyDecompressEngine(load_snappy())


_ADAPTERS: dict[CompressionAlgorithm, type[CodecAdapter]] = {
    CompressionAlgorithm.DEFLATE: DeflateAdapter,
    CompressionAlgorithm.GZIP: GzipAdapter,
    CompressionAlgorithm.SNAPPY: SnappyAdapter,
}


def get_adapter(
    algorithm: CompressionAlgorithm | int,
    config: CompressionConfig | None = None,
) -> CodecAdapter:
    """Create the codec adapter for ``algorithm``.

    Raises:
        InvalidAlgorithmError: If ``algorithm`` is outside the enumeration.
        CompressionError: For ``NONE``, which has no codec.
    """
    if not CompressionAlgorithm.is_valid(algorithm):
        raise InvalidAlgorithmError(algorithm)
    algorithm = CompressionAlgorithm(algorithm)
    adapter_class = _ADAPTERS.get(algorithm)
    if adapter_class is None:
        raise CompressionError("No codec adapter for identity encoding")
    return adapter_class(config)
