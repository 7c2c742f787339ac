"""Chunked byte buffers.

A ``SliceBuffer`` is an ordered sequence of immutable byte ranges that
together form one logical message payload. Ranges are shared, never copied,
when a buffer is copied or its ranges are appended to another buffer.

Example:
    >>> buf = SliceBuffer.from_bytes(b"hello world", chunk_size=4)
    >>> buf.count, buf.length
    (3, 11)
    >>> buf.join()
    b'hello world'
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator


class SliceBuffer:
    """Ordered sequence of byte ranges.

    ``length`` always equals the sum of the range lengths. Growth happens
    only by appending; ``truncate`` exists so a failed attempt can release
    exactly the ranges it appended.
    """

    def __init__(self, chunks: Iterable[bytes] | None = None) -> None:
        self._chunks: list[bytes] = []
        self._length = 0
        if chunks is not None:
            self.extend(chunks)

    @classmethod
    def from_bytes(cls, data: bytes, chunk_size: int | None = None) -> "SliceBuffer":
        """Build a buffer holding ``data``.

        Args:
            data: Payload bytes.
            chunk_size: Split into ranges of at most this size. ``None``
                keeps the payload as a single range.
        """
        buf = cls()
        if chunk_size is None:
            buf.add(data)
            return buf
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        for start in range(0, len(data), chunk_size):
            buf.add(data[start : start + chunk_size])
        return buf

    @property
    def count(self) -> int:
        """Number of ranges."""
        return len(self._chunks)

    @property
    def length(self) -> int:
        """Total number of bytes across all ranges."""
        return self._length

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._chunks)

    def __getitem__(self, index: int) -> bytes:
        return self._chunks[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SliceBuffer):
            return NotImplemented
        return self._chunks == other._chunks

    def __repr__(self) -> str:
        return f"SliceBuffer(count={self.count}, length={self.length})"

    def add(self, chunk: bytes | bytearray | memoryview) -> None:
        """Append one range."""
        if not isinstance(chunk, bytes):
            chunk = bytes(chunk)
        self._chunks.append(chunk)
        self._length += len(chunk)

    def extend(self, chunks: Iterable[bytes]) -> None:
        for chunk in chunks:
            self.add(chunk)

    def truncate(self, count: int) -> None:
        """Release every range at index ``count`` or later."""
        if count < 0:
            raise ValueError("count must be non-negative")
        for chunk in self._chunks[count:]:
            self._length -= len(chunk)
        del self._chunks[count:]

    def trim_end(self, n: int, garbage: "SliceBuffer | None" = None) -> None:
        """Remove the last ``n`` bytes.

        Args:
            n: Number of bytes to remove. Must not exceed ``length``.
            garbage: If given, receives the removed bytes in order.
        """
        if n < 0 or n > self._length:
            raise ValueError(f"cannot trim {n} bytes from a {self._length} byte buffer")
        removed: list[bytes] = []
        while n > 0:
            last = self._chunks[-1]
            if len(last) <= n:
                self._chunks.pop()
                self._length -= len(last)
                n -= len(last)
                removed.append(last)
            else:
                keep = len(last) - n
                self._chunks[-1] = last[:keep]
                self._length -= n
                removed.append(last[keep:])
                n = 0
        if garbage is not None:
            garbage.extend(reversed(removed))

    def reset(self) -> None:
        self._chunks.clear()
        self._length = 0

    def copy(self) -> "SliceBuffer":
        """Shallow copy sharing the same ranges."""
        return SliceBuffer(self._chunks)

    def join(self) -> bytes:
        """Merge all ranges into one bytes object."""
        return b"".join(self._chunks)


class SplitMode(Enum):
    """Ways to re-split a payload across ranges."""

    IDENTITY = "identity"
    MERGE_ALL = "merge_all"
    ONE_BYTE = "one_byte"


def split_buffer(mode: SplitMode, source: SliceBuffer) -> SliceBuffer:
    """Return a new buffer with ``source``'s bytes laid out per ``mode``.

    ``IDENTITY`` keeps the ranges as they are, ``MERGE_ALL`` collapses them
    into one range, and ``ONE_BYTE`` gives every byte its own range.
    """
    if mode is SplitMode.IDENTITY:
        return source.copy()
    if mode is SplitMode.MERGE_ALL:
        return SliceBuffer([source.join()])
    if mode is SplitMode.ONE_BYTE:
        data = source.join()
        return SliceBuffer(data[i : i + 1] for i in range(len(data)))
    raise ValueError(f"Unknown split mode: {mode!r}")
