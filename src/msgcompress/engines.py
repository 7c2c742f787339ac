"""Codec engines behind the ``StreamCodec`` push interface.

Two engine families are supported:

- Window-based engines (``zlib``) accept input incrementally and hand back
  output through a bounded window. ``DeflateEngine`` and ``InflateEngine``
  keep zlib's contract: output beyond the caller's window stays pending in
  the engine, and a call that can make no progress reports ``BUF_ERROR``
  rather than failing.
- Sink-based engines (``snappy``) transform a whole logical stream in one
  driving call that pulls from a source and appends to a sink. The snappy
  engines collect fed ranges into a ``BufferSource``, drive the codec once
  when the stream is finished, and drain the ``PendingSink`` through the
  same bounded windows, so callers never special-case the family.

Every engine instance holds the state of exactly one stream.
"""

from __future__ import annotations

import logging
import zlib
from collections import deque
from typing import Any

from msgcompress.base import (
    ChunkResult,
    FlushMode,
    StreamStatus,
    UnsupportedAlgorithmError,
)

logger = logging.getLogger(__name__)


def _status(finished: bool, produced: bytes, consumed: int) -> StreamStatus:
    if finished:
        return StreamStatus.STREAM_END
    if produced or consumed:
        return StreamStatus.OK
    return StreamStatus.BUF_ERROR


# =============================================================================
# zlib Engines
# =============================================================================


class DeflateEngine:
    """Incremental DEFLATE compression.

    ``wbits`` selects the framing: 9..15 for a zlib stream, 25..31 for gzip.
    """

    def __init__(self, wbits: int = 15, level: int = -1, mem_level: int = 8) -> None:
        self._obj = zlib.compressobj(
            level, zlib.DEFLATED, wbits, mem_level, zlib.Z_DEFAULT_STRATEGY
        )
        self._pending = bytearray()
        self._flushed = False

    def feed(self, data: Any, mode: FlushMode, avail_out: int) -> ChunkResult:
        try:
            if len(data):
                self._pending += self._obj.compress(data)
            if mode is FlushMode.FINISH and not self._flushed:
                self._pending += self._obj.flush(zlib.Z_FINISH)
                self._flushed = True
        except zlib.error as e:
            return ChunkResult(0, b"", StreamStatus.DATA_ERROR, str(e))

        produced = bytes(self._pending[:avail_out])
        del self._pending[:avail_out]
        finished = self._flushed and not self._pending
        return ChunkResult(len(data), produced, _status(finished, produced, len(data)))


class InflateEngine:
    """Incremental DEFLATE decompression.

    Once the end of the compressed stream has been seen the engine consumes
    nothing more, so bytes after the trailer are left unconsumed for the
    caller to detect. A stream finished without ever receiving input is an
    empty message and ends cleanly.
    """

    def __init__(self, wbits: int = 15) -> None:
        self._obj = zlib.decompressobj(wbits)
        self._seen_input = False

    def feed(self, data: Any, mode: FlushMode, avail_out: int) -> ChunkResult:
        if self._obj.eof:
            return ChunkResult(0, b"", StreamStatus.STREAM_END)
        if len(data):
            self._seen_input = True
        elif mode is FlushMode.FINISH and not self._seen_input:
            return ChunkResult(0, b"", StreamStatus.STREAM_END)

        try:
            produced = self._obj.decompress(data, avail_out)
        except zlib.error as e:
            return ChunkResult(0, b"", StreamStatus.DATA_ERROR, str(e))

        consumed = (
            len(data) - len(self._obj.unconsumed_tail) - len(self._obj.unused_data)
        )
        return ChunkResult(consumed, produced, _status(self._obj.eof, produced, consumed))


# =============================================================================
# Snappy Engines
# =============================================================================


_snappy: Any = None


def load_snappy() -> Any:
    """Lazy import python-snappy.

    Raises:
        UnsupportedAlgorithmError: If the library is not installed.
    """
    global _snappy
    if _snappy is None:
        try:
            import snappy
        except ImportError:
            raise UnsupportedAlgorithmError("snappy", ["deflate", "gzip"])
        _snappy = snappy
    return _snappy


def is_snappy_available() -> bool:
    """Check if snappy is available."""
    try:
        load_snappy()
    except UnsupportedAlgorithmError:
        return False
    return True


class BufferSource:
    """Pull interface over the ranges of one logical stream.

    ``peek`` exposes one range at a time; ``skip`` advances across range
    boundaries.
    """

    def __init__(self) -> None:
        self._chunks: deque[memoryview] = deque()
        self._left = 0

    def push(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(memoryview(chunk))
            self._left += len(chunk)

    def available(self) -> int:
        return self._left

    def peek(self) -> memoryview:
        if not self._chunks:
            return memoryview(b"")
        return self._chunks[0]

    def skip(self, n: int) -> None:
        if n > self._left:
            raise ValueError(f"cannot skip {n} bytes, {self._left} available")
        self._left -= n
        while n:
            head = self._chunks[0]
            if len(head) <= n:
                self._chunks.popleft()
                n -= len(head)
            else:
                self._chunks[0] = head[n:]
                n = 0

    def read_all(self) -> bytes:
        """Drain the source into one contiguous block."""
        out = bytearray()
        while self.available():
            view = self.peek()
            out += view
            self.skip(len(view))
        return bytes(out)


class PendingSink:
    """Append-only sink whose contents are drained in bounded windows."""

    def __init__(self) -> None:
        self._data = bytearray()
        self.bytes_written = 0

    def append(self, data: bytes) -> None:
        self._data += data
        self.bytes_written += len(data)

    def drain(self, n: int) -> bytes:
        out = bytes(self._data[:n])
        del self._data[:n]
        return out

    def __len__(self) -> int:
        return len(self._data)


class _SinkEngine:
    """Adapts a drive(source, sink) codec to the push interface."""

    def __init__(self, snappy: Any = None) -> None:
        self._snappy = snappy if snappy is not None else load_snappy()
        self._source = BufferSource()
        self._sink = PendingSink()
        self._driven = False

    def _drive(self, source: BufferSource, sink: PendingSink) -> None:
        raise NotImplementedError

    def feed(self, data: Any, mode: FlushMode, avail_out: int) -> ChunkResult:
        consumed = 0
        if not self._driven:
            self._source.push(bytes(data))
            consumed = len(data)
            if mode is FlushMode.FINISH:
                try:
                    self._drive(self._source, self._sink)
                except Exception as e:
                    return ChunkResult(0, b"", StreamStatus.DATA_ERROR, str(e))
                self._driven = True

        produced = self._sink.drain(avail_out)
        finished = self._driven and not self._sink
        return ChunkResult(consumed, produced, _status(finished, produced, consumed))


class SnappyCompressEngine(_SinkEngine):
    """Snappy block compression."""

    def _drive(self, source: BufferSource, sink: PendingSink) -> None:
        sink.append(self._snappy.compress(source.read_all()))


class SnappyDecompressEngine(_SinkEngine):
    """Snappy block decompression; an empty stream decodes to nothing."""

    def _drive(self, source: BufferSource, sink: PendingSink) -> None:
        if not source.available():
            return
        sink.append(self._snappy.decompress(source.read_all()))
