"""Base classes, protocols, and types for message compression.

This module defines the shared vocabulary of the package: algorithm
identifiers, the streaming codec protocol both engine families implement,
the exception hierarchy, and the configuration and statistics dataclasses.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Any, Protocol, runtime_checkable


# =============================================================================
# Exceptions
# =============================================================================


class CompressionError(Exception):
    """Base exception for compression errors."""

    def __init__(self, message: str, algorithm: str | None = None) -> None:
        self.algorithm = algorithm
        super().__init__(f"[{algorithm}] {message}" if algorithm else message)


class DecompressionError(CompressionError):
    """Error during decompression."""

    pass


class CodecFaultError(DecompressionError):
    """The codec engine reported corruption or a desynchronized stream."""

    pass


class InvalidAlgorithmError(CompressionError):
    """Algorithm identifier is outside the known enumeration."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Invalid compression algorithm {value!r}")


class UnsupportedAlgorithmError(CompressionError):
    """Requested algorithm is valid but its engine is not available."""

    def __init__(self, algorithm: str, available: list[str] | None = None) -> None:
        self.available = available or []
        msg = f"Algorithm '{algorithm}' is not supported"
        if self.available:
            msg += f". Available: {', '.join(self.available)}"
        super().__init__(msg, algorithm)


class UnknownCompressorError(CompressionError, KeyError):
    """No compressor is registered under the requested name."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = available or []
        msg = f"No compressor registered as '{name}'"
        if self.available:
            msg += f". Registered: {', '.join(self.available)}"
        CompressionError.__init__(self, msg)

    def __str__(self) -> str:
        return Exception.__str__(self)


class CompressionConfigError(CompressionError):
    """Invalid compression configuration."""

    pass


# =============================================================================
# Enums
# =============================================================================


class CompressionAlgorithm(IntEnum):
    """Message compression algorithms.

    ``ALGORITHMS_COUNT`` is a sentinel, not an algorithm. Identifiers arrive
    as plain integers from the negotiation layer, so any value at or past
    the sentinel, or negative, must be rejected rather than trusted.
    """

    NONE = 0
    DEFLATE = 1
    GZIP = 2
    SNAPPY = 3
    ALGORITHMS_COUNT = 4

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        """Check whether ``value`` names a real algorithm."""
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        return 0 <= int(value) < cls.ALGORITHMS_COUNT

    @classmethod
    def from_name(cls, name: str) -> "CompressionAlgorithm":
        """Get algorithm from its encoding name."""
        name_map = {
            "identity": cls.NONE,
            "none": cls.NONE,
            "deflate": cls.DEFLATE,
            "gzip": cls.GZIP,
            "snappy": cls.SNAPPY,
        }
        try:
            return name_map[name.lower()]
        except KeyError:
            raise InvalidAlgorithmError(name) from None

    @property
    def encoding_name(self) -> str:
        """Get the encoding name used on the wire."""
        name_map = {
            CompressionAlgorithm.NONE: "identity",
            CompressionAlgorithm.DEFLATE: "deflate",
            CompressionAlgorithm.GZIP: "gzip",
            CompressionAlgorithm.SNAPPY: "snappy",
        }
        return name_map.get(self, "invalid")


class FlushMode(Enum):
    """Whether more input follows the range being fed."""

    CONTINUE = auto()
    FINISH = auto()


class StreamStatus(Enum):
    """Outcome of one ``StreamCodec.feed`` call."""

    OK = auto()
    BUF_ERROR = auto()  # No progress possible; retryable, not a fault
    STREAM_END = auto()
    DATA_ERROR = auto()


class FallbackReason(Enum):
    """Why a compress call copied its input instead of compressing."""

    NOT_REQUESTED = "not_requested"
    INVALID_ALGORITHM = "invalid_algorithm"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    CODEC_FAULT = "codec_fault"
    SIZE_REGRESSION = "size_regression"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ChunkResult:
    """Result of feeding one input window to a codec engine.

    Attributes:
        consumed: Bytes of the offered input the engine took.
        produced: Output bytes, never longer than the offered window.
        status: Engine status after the call.
        message: Engine error text for ``DATA_ERROR``.
    """

    consumed: int
    produced: bytes
    status: StreamStatus
    message: str | None = None


@dataclass
class CompressionConfig:
    """Configuration for codec adapters.

    Attributes:
        block_size: Capacity of each output chunk in the streaming loop.
        level: zlib compression level (-1 is zlib's default).
        window_bits: zlib window size; gzip framing adds 16.
        mem_level: zlib memory level.
    """

    block_size: int = 1024
    level: int = -1
    window_bits: int = 15
    mem_level: int = 8

    def validate(self) -> None:
        """Validate configuration."""
        if self.block_size <= 0:
            raise CompressionConfigError("block_size must be positive")
        if not -1 <= self.level <= 9:
            raise CompressionConfigError("level must be between -1 and 9")
        if not 9 <= self.window_bits <= 15:
            raise CompressionConfigError("window_bits must be between 9 and 15")
        if not 1 <= self.mem_level <= 9:
            raise CompressionConfigError("mem_level must be between 1 and 9")

    @classmethod
    def from_env(cls, prefix: str = "MSGCOMPRESS_") -> "CompressionConfig":
        """Build a configuration from environment variable overrides.

        Reads ``{prefix}BLOCK_SIZE``, ``{prefix}LEVEL``,
        ``{prefix}WINDOW_BITS`` and ``{prefix}MEM_LEVEL``; unset variables
        keep their defaults.

        Raises:
            CompressionConfigError: If a value is not an integer or the
                resulting configuration is invalid.
        """
        values: dict[str, int] = {}
        for attr in ("block_size", "level", "window_bits", "mem_level"):
            raw = os.getenv(f"{prefix}{attr.upper()}")
            if raw is None or raw.strip() == "":
                continue
            try:
                values[attr] = int(raw)
            except ValueError:
                raise CompressionConfigError(
                    f"{prefix}{attr.upper()} must be an integer, got {raw!r}"
                ) from None
        config = cls(**values)
        config.validate()
        return config


@dataclass
class DispatchStats:
    """Aggregated statistics across dispatcher calls.

    Attributes:
        compress_calls: Number of compress calls.
        decompress_calls: Number of decompress calls.
        applied: Compress calls whose output was actually compressed.
        fallbacks: Count of copy fallbacks per reason.
        decompress_failures: Decompress calls that left output untouched.
        bytes_in: Total compress input bytes.
        bytes_out: Total compress output bytes.
    """

    compress_calls: int = 0
    decompress_calls: int = 0
    applied: int = 0
    fallbacks: dict[str, int] = field(default_factory=dict)
    decompress_failures: int = 0
    bytes_in: int = 0
    bytes_out: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def record_compress(
        self,
        bytes_in: int,
        bytes_out: int,
        reason: FallbackReason | None,
    ) -> None:
        """Record one compress call; ``reason`` is None when applied."""
        with self._lock:
            self.compress_calls += 1
            self.bytes_in += bytes_in
            self.bytes_out += bytes_out
            if reason is None:
                self.applied += 1
            else:
                key = reason.value
                self.fallbacks[key] = self.fallbacks.get(key, 0) + 1

    def record_decompress(self, ok: bool) -> None:
        with self._lock:
            self.decompress_calls += 1
            if not ok:
                self.decompress_failures += 1

    @property
    def average_ratio(self) -> float:
        """Calculate the overall compression ratio."""
        if self.bytes_out == 0:
            return 0.0
        return self.bytes_in / self.bytes_out

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        with self._lock:
            return {
                "compress_calls": self.compress_calls,
                "decompress_calls": self.decompress_calls,
                "applied": self.applied,
                "fallbacks": dict(self.fallbacks),
                "decompress_failures": self.decompress_failures,
                "bytes_in": self.bytes_in,
                "bytes_out": self.bytes_out,
                "average_ratio": round(self.average_ratio, 2),
            }


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class StreamCodec(Protocol):
    """Push interface shared by every codec engine family."""

    def feed(self, data: bytes, mode: FlushMode, avail_out: int) -> ChunkResult:
        """Offer input to the engine and collect up to ``avail_out`` bytes.

        Args:
            data: Input window. May be empty when the caller only wants to
                drain pending output.
            mode: ``FINISH`` when ``data`` ends the logical stream.
            avail_out: Space left in the caller's output chunk.

        Returns:
            How much input was consumed, what was produced, and the status.
        """
        ...


@runtime_checkable
class Compressor(Protocol):
    """Protocol for named, long-lived compressors."""

    @property
    def name(self) -> str:
        """Get the encoding name the compressor is registered under."""
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def compress(self, input: Any, output: Any) -> bool:
        """Append the compressed form of ``input`` to ``output``."""
        ...

    def decompress(self, input: Any, output: Any) -> bool:
        """Append the decompressed form of ``input`` to ``output``."""
        ...
