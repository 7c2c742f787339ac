"""Registry mapping encoding names to compressors.

The registry is an ordinary object: whoever needs compressor lookup
constructs one and owns it. Built-in compressors are registered on first
access.

Example:
    >>> registry = CompressorRegistry()
    >>> registry.get("gzip")
    GzipCompressor(name='gzip')
    >>> registry.get("brotli") is None
    True
"""

from __future__ import annotations

import logging
import threading

from msgcompress.base import (
    CompressionConfig,
    Compressor,
    UnknownCompressorError,
)
from msgcompress.dispatch import CompressionDispatcher
from msgcompress.engines import is_snappy_available
from msgcompress.providers import (
    BaseCompressor,
    DeflateCompressor,
    GzipCompressor,
    NoopCompressor,
    SnappyCompressor,
)

logger = logging.getLogger(__name__)

BUILTIN_COMPRESSORS: tuple[type[BaseCompressor], ...] = (
    NoopCompressor,
    DeflateCompressor,
    GzipCompressor,
)


class CompressorRegistry:
    """Thread-safe name to compressor table.

    Every operation holds the registry lock, so concurrent register, remove
    and get calls never observe a partially updated table. Registering a
    name that is already present replaces the previous compressor.
    """

    def __init__(
        self,
        config: CompressionConfig | None = None,
        include_builtins: bool = True,
        include_snappy: bool = False,
    ) -> None:
        """Initialize the registry.

        Args:
            config: Configuration shared by the built-in compressors.
            include_builtins: Register noop, deflate and gzip on first access.
            include_snappy: Also register snappy when python-snappy is
                installed.
        """
        self._config = config or CompressionConfig()
        self._config.validate()
        self._include_snappy = include_snappy
        self._compressors: dict[str, Compressor] = {}
        self._lock = threading.RLock()
        self._populated = not include_builtins

    def _ensure_populated(self) -> None:
        if self._populated:
            return
        dispatcher = CompressionDispatcher(self._config)
        builtins = list(BUILTIN_COMPRESSORS)
        if self._include_snappy and is_snappy_available():
            builtins.append(SnappyCompressor)
        for compressor_class in builtins:
            compressor = compressor_class(dispatcher=dispatcher)
            self._compressors.setdefault(compressor.name, compressor)
        self._populated = True
        logger.debug("Registered built-in compressors: %s", sorted(self._compressors))

    def register(self, compressor: Compressor) -> None:
        """Register a compressor under its name.

        A started compressor that gets replaced is stopped.

        Args:
            compressor: The compressor to register.
        """
        if not isinstance(compressor, Compressor):
            raise TypeError(f"{compressor!r} does not implement the Compressor protocol")
        with self._lock:
            self._ensure_populated()
            previous = self._compressors.get(compressor.name)
            self._compressors[compressor.name] = compressor
        if previous is not None and previous is not compressor:
            if getattr(previous, "started", False):
                previous.stop()
            logger.debug("Replaced compressor: %s", compressor.name)
        else:
            logger.debug("Registered compressor: %s", compressor.name)

    def get(self, name: str) -> Compressor | None:
        """Get a compressor by name.

        Returns:
            The compressor, or None if no compressor has that name.
        """
        with self._lock:
            self._ensure_populated()
            return self._compressors.get(name)

    def require(self, name: str) -> Compressor:
        """Get a compressor by name.

        Raises:
            UnknownCompressorError: If no compressor has that name.
        """
        with self._lock:
            self._ensure_populated()
            compressor = self._compressors.get(name)
            if compressor is None:
                raise UnknownCompressorError(name, sorted(self._compressors))
            return compressor

    def remove(self, name: str) -> None:
        """Remove a compressor; removing an unknown name does nothing."""
        with self._lock:
            self._ensure_populated()
            removed = self._compressors.pop(name, None)
        if removed is not None:
            logger.debug("Removed compressor: %s", name)

    def names(self) -> list[str]:
        """List registered names in sorted order."""
        with self._lock:
            self._ensure_populated()
            return sorted(self._compressors)

    def start_all(self) -> None:
        for name in self.names():
            compressor = self.get(name)
            if compressor is not None:
                compressor.start()

    def stop_all(self) -> None:
        for name in self.names():
            compressor = self.get(name)
            if compressor is not None:
                compressor.stop()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            self._ensure_populated()
            return name in self._compressors

    def __len__(self) -> int:
        with self._lock:
            self._ensure_populated()
            return len(self._compressors)
