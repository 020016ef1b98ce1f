"""K-way merge of sorted inputs using a binary heap."""

from __future__ import annotations

import heapq
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

T = TypeVar("T")

Compare = Callable[[Any, Any], int]


def _natural_compare(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


class _HeapEntry:
    __slots__ = ("value", "index", "compare")

    def __init__(self, value: Any, index: int, compare: Compare) -> None:
        self.value = value
        self.index = index
        self.compare = compare

    def __lt__(self, other: _HeapEntry) -> bool:
        order = self.compare(self.value, other.value)
        if order != 0:
            return order < 0
        return self.index < other.index


class BinaryHeapMerger(Generic[T]):
    """Merges several sorted inputs into one sorted stream.

    ``compare(a, b)`` returns a negative number, zero or a positive number
    when ``a`` sorts before, together with or after ``b``. Equal items come
    out in the order of their inputs. Errors raised by an input propagate.
    """

    def __init__(
        self,
        chunks: Iterable[Iterable[T]],
        compare: Compare | None = None,
    ) -> None:
        self._chunks: list[Iterator[T]] = [iter(chunk) for chunk in chunks]
        self._heap: list[_HeapEntry] = []
        self._compare = compare if compare is not None else _natural_compare
        self._initiated = False

    def __iter__(self) -> BinaryHeapMerger[T]:
        return self

    def __next__(self) -> T:
        if not self._initiated:
            for index in range(len(self._chunks)):
                self._advance(index)
            self._initiated = True

        if not self._heap:
            raise StopIteration
        entry = heapq.heappop(self._heap)
        self._advance(entry.index)
        return entry.value

    def _advance(self, index: int) -> None:
        try:
            item = next(self._chunks[index])
        except StopIteration:
            return
        heapq.heappush(self._heap, _HeapEntry(item, index, self._compare))