"""Chunk buffers that collect items until a size limit is reached."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_ATOMIC = (str, bytes, bytearray, int, float, complex, bool, type(None))
_SEQUENCES = (list, tuple, set, frozenset, deque)


def deep_size_of(obj: Any) -> int:
    """Return the memory taken by ``obj`` and everything it references, in bytes.

    Objects reached more than once are counted only once.
    """
    return _deep_size(obj, set())


def _deep_size(obj: Any, seen: set[int]) -> int:
    if id(obj) in seen:
        return 0
    seen.add(id(obj))
    size = sys.getsizeof(obj)
    if isinstance(obj, _ATOMIC) or isinstance(obj, type):
        return size
    if isinstance(obj, dict):
        size += sum(_deep_size(k, seen) + _deep_size(v, seen) for k, v in obj.items())
    elif isinstance(obj, _SEQUENCES):
        size += sum(_deep_size(item, seen) for item in obj)
    if hasattr(obj, "__dict__"):
        size += _deep_size(vars(obj), seen)
    for cls in type(obj).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            if hasattr(obj, name):
                size += _deep_size(getattr(obj, name), seen)
    return size


class ChunkBuffer(ABC, Generic[T]):
    """A list of items that knows when it has reached its limit."""

    def __init__(self) -> None:
        self._items: list[T] = []

    def push(self, item: T) -> None:
        """Add an item to the buffer."""
        self._items.append(item)

    @abstractmethod
    def is_full(self) -> bool:
        """Tell whether the buffer has reached its limit."""

    def sort(self, key: Callable[[T], Any] | None = None) -> None:
        """Sort the buffered items in place; the sort is stable."""
        self._items.sort(key=key)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)


class LimitedBuffer(ChunkBuffer[T]):
    """Buffer limited by the number of items it holds."""

    def __init__(self, limit: int) -> None:
        super().__init__()
        self.limit = limit

    def push(self, item: T) -> None:
        super().push(item)

    def is_full(self) -> bool:
        return len(self._items) >= self.limit


@dataclass(frozen=True)
class LimitedBufferBuilder:
    """Creates :class:`LimitedBuffer` instances with a fixed item limit."""

    buffer_limit: int = sys.maxsize
    preallocate: bool = False

    def __post_init__(self) -> None:
        if self.buffer_limit < 0:
            raise ValueError(f"buffer limit must not be negative: {self.buffer_limit}")

    def build(self) -> LimitedBuffer[Any]:
        """Create a new empty buffer."""
        return LimitedBuffer(self.buffer_limit)


class MemoryLimitedBuffer(ChunkBuffer[T]):
    """Buffer limited by the memory its items take, in bytes."""

    def __init__(self, limit: int) -> None:
        super().__init__()
        self.limit = limit
        self._current_size = 0

    def push(self, item: T) -> None:
        self._current_size += deep_size_of(item)
        super().push(item)

    def is_full(self) -> bool:
        return self._current_size >= self.limit

    def mem_size(self) -> int:
        """Return the accumulated size of the buffered items in bytes."""
        return self._current_size


@dataclass(frozen=True)
class MemoryLimitedBufferBuilder:
    """Creates :class:`MemoryLimitedBuffer` instances with a fixed byte limit."""

    buffer_limit: int = 2**64 - 1

    def __post_init__(self) -> None:
        if self.buffer_limit < 0:
            raise ValueError(f"buffer limit must not be negative: {self.buffer_limit}")

    def build(self) -> MemoryLimitedBuffer[Any]:
        """Create a new empty buffer."""
        return MemoryLimitedBuffer(self.buffer_limit)