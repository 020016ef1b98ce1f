import sys
from dataclasses import dataclass

import pytest

from extsort.buffer import (
    LimitedBuffer,
    LimitedBufferBuilder,
    MemoryLimitedBuffer,
    MemoryLimitedBufferBuilder,
    deep_size_of,
)


@dataclass
class MyType:
    number: int
    string: str


@dataclass
class Slotted:
    __slots__ = ("payload",)
    payload: str


def test_limited_buffer():
    builder = LimitedBufferBuilder(2, True)
    buffer = builder.build()

    buffer.push(0)
    assert buffer.is_full() is False
    buffer.push(1)
    assert buffer.is_full() is True

    assert list(buffer) == [0, 1]


def test_limited_buffer_len_and_sort():
    buffer = LimitedBuffer(10)
    for item in (5, 3, 9, 1):
        buffer.push(item)
    assert len(buffer) == 4
    buffer.sort()
    assert list(buffer) == [1, 3, 5, 9]
    buffer.sort(key=lambda x: -x)
    assert list(buffer) == [9, 5, 3, 1]


def test_sort_is_stable():
    buffer = LimitedBuffer(10)
    for item in [(1, "a"), (0, "b"), (1, "c"), (0, "d")]:
        buffer.push(item)
    buffer.sort(key=lambda pair: pair[0])
    assert list(buffer) == [(0, "b"), (0, "d"), (1, "a"), (1, "c")]


def test_limited_buffer_builder_defaults():
    builder = LimitedBufferBuilder()
    assert builder.buffer_limit == sys.maxsize
    assert builder.preallocate is False
    buffer = builder.build()
    buffer.push(1)
    assert buffer.is_full() is False


def test_builders_build_fresh_buffers():
    builder = LimitedBufferBuilder(3)
    first = builder.build()
    first.push(1)
    second = builder.build()
    assert len(second) == 0
    assert len(first) == 1


@pytest.mark.parametrize("builder_cls", [LimitedBufferBuilder, MemoryLimitedBufferBuilder])
def test_negative_limit_rejected(builder_cls):
    with pytest.raises(ValueError):
        builder_cls(-1)


def test_memory_limited_buffer():
    item1 = MyType(number=0, string="hello!")
    item2 = MyType(number=1, string="world!")
    size1 = deep_size_of(item1)
    size2 = deep_size_of(item2)

    builder = MemoryLimitedBufferBuilder(size1 + size2)
    buffer = builder.build()

    buffer.push(item1)
    assert buffer.mem_size() == size1
    assert buffer.is_full() is False

    buffer.push(item2)
    assert buffer.mem_size() == size1 + size2
    assert buffer.is_full() is True

    assert list(buffer) == [item1, item2]


def test_memory_limited_buffer_default_limit():
    buffer = MemoryLimitedBufferBuilder().build()
    buffer.push("x" * 10_000)
    assert buffer.is_full() is False
    assert buffer.mem_size() >= 10_000


def test_memory_limited_buffer_zero_limit_full_immediately():
    buffer = MemoryLimitedBuffer(0)
    assert buffer.is_full() is True


def test_deep_size_of_atomic():
    assert deep_size_of("abc") == sys.getsizeof("abc")
    assert deep_size_of(12345) == sys.getsizeof(12345)


def test_deep_size_of_counts_contents():
    assert deep_size_of(["x" * 1000]) > deep_size_of([]) + 1000
    assert deep_size_of({"key": "v" * 500}) > 500


def test_deep_size_of_shared_object_counted_once():
    shared = "x" * 1000
    other = "x" * 999 + "y"
    assert deep_size_of([shared, shared]) < deep_size_of([shared, other])


def test_deep_size_of_cycle():
    cyclic = []
    cyclic.append(cyclic)
    assert deep_size_of(cyclic) == sys.getsizeof(cyclic)


def test_deep_size_of_object_attributes():
    small = MyType(number=0, string="")
    big = MyType(number=0, string="z" * 2000)
    assert deep_size_of(big) - deep_size_of(small) >= 2000


def test_deep_size_of_slots():
    small = Slotted("")
    big = Slotted("q" * 3000)
    assert deep_size_of(big) - deep_size_of(small) >= 3000