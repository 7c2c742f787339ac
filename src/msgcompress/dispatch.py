"""Algorithm dispatch and the never-inflate policy.

``CompressionDispatcher.compress`` is total: it always appends a valid
payload, either compressed or a verbatim copy of the input, and reports
which one through its return value. ``decompress`` is all-or-nothing: it
either appends the complete decompressed payload or leaves the output
buffer untouched.

Example:
    >>> dispatcher = CompressionDispatcher()
    >>> payload = SliceBuffer.from_bytes(b"a" * 4096)
    >>> compressed = SliceBuffer()
    >>> dispatcher.compress(CompressionAlgorithm.GZIP, payload, compressed)
    True
    >>> restored = SliceBuffer()
    >>> dispatcher.decompress(CompressionAlgorithm.GZIP, compressed, restored)
    True
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from msgcompress.base import (
    CodecFaultError,
    CompressionAlgorithm,
    CompressionConfig,
    CompressionError,
    DispatchStats,
    FallbackReason,
    InvalidAlgorithmError,
    UnsupportedAlgorithmError,
)
from msgcompress.buffer import SliceBuffer
from msgcompress.streaming import CodecAdapter, get_adapter

logger = logging.getLogger(__name__)


@dataclass
class CompressOutcome:
    """Result of ``CompressionDispatcher.compress_with_result``.

    Attributes:
        output: Compressed payload, or the input ranges when not applied.
        applied: Whether compression was actually applied.
        reason: Why the input was copied; None when applied.
    """

    output: SliceBuffer
    applied: bool
    reason: FallbackReason | None = None


def copy(input: SliceBuffer, output: SliceBuffer) -> bool:
    """Append ``input``'s ranges to ``output`` unchanged."""
    output.extend(input)
    return True


class CompressionDispatcher:
    """Selects a codec adapter by algorithm and applies the safety policy.

    Calls share no mutable state apart from the statistics counters, which
    are lock-protected, so one dispatcher may be used from many threads as
    long as each call has its own buffers.
    """

    def __init__(self, config: CompressionConfig | None = None) -> None:
        """Initialize the dispatcher.

        Args:
            config: Adapter configuration; defaults to ``CompressionConfig()``.
        """
        self._config = config or CompressionConfig()
        self._config.validate()
        self._adapters: dict[CompressionAlgorithm, CodecAdapter] = {}
        self._lock = threading.Lock()
        self._stats = DispatchStats()

    @property
    def config(self) -> CompressionConfig:
        return self._config

    @property
    def stats(self) -> DispatchStats:
        return self._stats

    def _adapter(self, algorithm: CompressionAlgorithm) -> CodecAdapter:
        with self._lock:
            adapter = self._adapters.get(algorithm)
            if adapter is None:
                adapter = get_adapter(algorithm, self._config)
                self._adapters[algorithm] = adapter
            return adapter

    # -------------------------------------------------------------------------
    # Compression
    # -------------------------------------------------------------------------

    def _compress_inner(
        self,
        algorithm: Any,
        input: SliceBuffer,
        output: SliceBuffer,
    ) -> FallbackReason | None:
        if not CompressionAlgorithm.is_valid(algorithm):
            logger.error("invalid compression algorithm %r", algorithm)
            return FallbackReason.INVALID_ALGORITHM
        algorithm = CompressionAlgorithm(algorithm)
        if algorithm is CompressionAlgorithm.NONE:
            return FallbackReason.NOT_REQUESTED

        length_before = output.length
        try:
            ok = self._adapter(algorithm).compress(input, output)
        except UnsupportedAlgorithmError as e:
            logger.warning("%s unavailable, sending uncompressed: %s", algorithm.encoding_name, e)
            return FallbackReason.UNSUPPORTED_ALGORITHM
        if not ok:
            return FallbackReason.CODEC_FAULT

        compressed_size = output.length - length_before
        if compressed_size >= input.length:
            logger.debug(
                "%s not beneficial: %d bytes compressed to %d",
                algorithm.encoding_name,
                input.length,
                compressed_size,
            )
            return FallbackReason.SIZE_REGRESSION
        return None

    def _compress(
        self,
        algorithm: Any,
        input: SliceBuffer,
        output: SliceBuffer,
    ) -> FallbackReason | None:
        count_before = output.count
        length_before = output.length

        reason = self._compress_inner(algorithm, input, output)
        if reason is not None:
            output.truncate(count_before)
            copy(input, output)

        self._stats.record_compress(input.length, output.length - length_before, reason)
        return reason

    def compress(self, algorithm: Any, input: SliceBuffer, output: SliceBuffer) -> bool:
        """Compress ``input`` into ``output``.

        On success, appends compressed ranges to ``output`` and returns True.
        Otherwise, including for invalid identifiers, faults and payloads
        that would not shrink, appends ``input``'s ranges verbatim and
        returns False.

        Args:
            algorithm: Algorithm identifier; plain integers are accepted.
            input: Payload to compress.
            output: Buffer the result is appended to.

        Returns:
            Whether compression was actually applied.
        """
        return self._compress(algorithm, input, output) is None

    def compress_with_result(self, algorithm: Any, input: SliceBuffer) -> CompressOutcome:
        """Compress into a fresh buffer and report why it was not applied."""
        output = SliceBuffer()
        reason = self._compress(algorithm, input, output)
        return CompressOutcome(output=output, applied=reason is None, reason=reason)

    # -------------------------------------------------------------------------
    # Decompression
    # -------------------------------------------------------------------------

    def _decompress_into(
        self,
        algorithm: Any,
        input: SliceBuffer,
        output: SliceBuffer,
    ) -> None:
        if not CompressionAlgorithm.is_valid(algorithm):
            logger.error("invalid compression algorithm %r", algorithm)
            raise InvalidAlgorithmError(algorithm)
        algorithm = CompressionAlgorithm(algorithm)
        if algorithm is CompressionAlgorithm.NONE:
            copy(input, output)
            return
        if not self._adapter(algorithm).decompress(input, output):
            raise CodecFaultError("Decompression failed", algorithm.encoding_name)

    def decompress(self, algorithm: Any, input: SliceBuffer, output: SliceBuffer) -> bool:
        """Decompress ``input`` into ``output``.

        On success, appends the decompressed ranges and returns True.
        On failure, ``output`` is unchanged and False is returned.
        """
        try:
            self._decompress_into(algorithm, input, output)
        except CompressionError:
            self._stats.record_decompress(False)
            return False
        self._stats.record_decompress(True)
        return True

    def decompress_or_raise(self, algorithm: Any, input: SliceBuffer) -> SliceBuffer:
        """Decompress into a fresh buffer.

        Raises:
            InvalidAlgorithmError: If ``algorithm`` is outside the enumeration.
            UnsupportedAlgorithmError: If the engine library is unavailable.
            CodecFaultError: If the payload is corrupt or truncated.
        """
        output = SliceBuffer()
        try:
            self._decompress_into(algorithm, input, output)
        except CompressionError:
            self._stats.record_decompress(False)
            raise
        self._stats.record_decompress(True)
        return output


_default_dispatcher: CompressionDispatcher | None = None
_default_lock = threading.Lock()


def _get_default_dispatcher() -> CompressionDispatcher:
    global _default_dispatcher
    with _default_lock:
        if _default_dispatcher is None:
            _default_dispatcher = CompressionDispatcher()
        return _default_dispatcher


def msg_compress(algorithm: Any, input: SliceBuffer, output: SliceBuffer) -> bool:
    """Compress with a default-configured dispatcher."""
    return _get_default_dispatcher().compress(algorithm, input, output)


def msg_decompress(algorithm: Any, input: SliceBuffer, output: SliceBuffer) -> bool:
    """Decompress with a default-configured dispatcher."""
    return _get_default_dispatcher().decompress(algorithm, input, output)
