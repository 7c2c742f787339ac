"""Message compression for RPC payloads.

This package compresses and decompresses message payloads held as chunked
byte buffers. Compression never inflates a payload: when the result would
not be strictly smaller, or the codec fails, the input is passed through
unchanged and the caller is told compression was not applied.
Decompression either produces the complete payload or fails without
touching the output.

Features:
    - deflate, gzip and snappy codecs driven chunk by chunk
    - Never-inflate fallback to an uncompressed copy
    - Typed errors for invalid algorithms and corrupt payloads
    - A thread-safe registry of named compressors

Example:
    >>> from msgcompress import (
    ...     CompressionAlgorithm,
    ...     CompressionDispatcher,
    ...     SliceBuffer,
    ... )
    >>>
    >>> dispatcher = CompressionDispatcher()
    >>> payload = SliceBuffer.from_bytes(b"a" * 1024)
    >>> compressed = SliceBuffer()
    >>> dispatcher.compress(CompressionAlgorithm.GZIP, payload, compressed)
    True
    >>> restored = SliceBuffer()
    >>> dispatcher.decompress(CompressionAlgorithm.GZIP, compressed, restored)
    True

Registry Example:
    >>> from msgcompress import CompressorRegistry
    >>>
    >>> registry = CompressorRegistry()
    >>> gzip = registry.get("gzip")
    >>> data, applied = gzip.compress_bytes(b"hello " * 100)
"""

from msgcompress.base import (
    # Protocols
    Compressor,
    StreamCodec,
    # Enums
    CompressionAlgorithm,
    FallbackReason,
    FlushMode,
    StreamStatus,
    # Data classes
    ChunkResult,
    CompressionConfig,
    DispatchStats,
    # Exceptions
    CodecFaultError,
    CompressionConfigError,
    CompressionError,
    DecompressionError,
    InvalidAlgorithmError,
    UnknownCompressorError,
    UnsupportedAlgorithmError,
)
from msgcompress.buffer import SliceBuffer, SplitMode, split_buffer
from msgcompress.engines import (
    BufferSource,
    DeflateEngine,
    InflateEngine,
    PendingSink,
    SnappyCompressEngine,
    SnappyDecompressEngine,
    is_snappy_available,
)
from msgcompress.streaming import (
    CodecAdapter,
    DeflateAdapter,
    GzipAdapter,
    SnappyAdapter,
    get_adapter,
    run_stream,
)
from msgcompress.dispatch import (
    CompressionDispatcher,
    CompressOutcome,
    copy,
    msg_compress,
    msg_decompress,
)
from msgcompress.providers import (
    BaseCompressor,
    DeflateCompressor,
    GzipCompressor,
    NoopCompressor,
    SnappyCompressor,
)
from msgcompress.registry import BUILTIN_COMPRESSORS, CompressorRegistry

__version__ = "0.1.0"

__all__ = [
    # Protocols
    "Compressor",
    "StreamCodec",
    # Enums
    "CompressionAlgorithm",
    "FallbackReason",
    "FlushMode",
    "StreamStatus",
    # Data classes
    "ChunkResult",
    "CompressionConfig",
    "DispatchStats",
    "CompressOutcome",
    # Exceptions
    "CodecFaultError",
    "CompressionConfigError",
    "CompressionError",
    "DecompressionError",
    "InvalidAlgorithmError",
    "UnknownCompressorError",
    "UnsupportedAlgorithmError",
    # Buffers
    "SliceBuffer",
    "SplitMode",
    "split_buffer",
    # Engines
    "BufferSource",
    "PendingSink",
    "DeflateEngine",
    "InflateEngine",
    "SnappyCompressEngine",
    "SnappyDecompressEngine",
    "is_snappy_available",
    # Adapters
    "CodecAdapter",
    "DeflateAdapter",
    "GzipAdapter",
    "SnappyAdapter",
    "get_adapter",
    "run_stream",
    # Dispatch
    "CompressionDispatcher",
    "copy",
    "msg_compress",
    "msg_decompress",
    # Providers
    "BaseCompressor",
    "NoopCompressor",
    "DeflateCompressor",
    "GzipCompressor",
    "SnappyCompressor",
    # Registry
    "BUILTIN_COMPRESSORS",
    "CompressorRegistry",
]
