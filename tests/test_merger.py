import pytest

from extsort.merger import BinaryHeapMerger


def failing(*values, message="test error"):
    yield from values
    raise OSError(message)


def recording_source(values, pulled):
    for value in values:
        pulled.append(value)
        yield value


def collect_until_error(merger):
    items = []
    with pytest.raises(OSError, match="test error"):
        for item in merger:
            items.append(item)
    return items


@pytest.mark.parametrize(
    "chunks, expected",
    [
        ([], []),
        ([[], []], []),
        ([[4, 5, 7], [1, 6], [3], []], [1, 3, 4, 5, 6, 7]),
    ],
)
def test_merger(chunks, expected):
    assert list(BinaryHeapMerger(chunks)) == expected


def test_merger_error_only():
    merger = BinaryHeapMerger([failing()])
    assert collect_until_error(merger) == []
    assert list(merger) == []


def test_merger_error_after_items():
    merger = BinaryHeapMerger([failing(3), iter([1, 2])])
    assert collect_until_error(merger) == [1, 2]
    assert list(merger) == []


def test_merger_with_compare_reversed():
    chunks = [[7, 5, 4], [6, 1], [3]]
    merger = BinaryHeapMerger(chunks, lambda a, b: (a < b) - (a > b))
    assert list(merger) == [7, 6, 5, 4, 3, 1]


def test_merger_equal_items_keep_chunk_order():
    chunks = [[(1, "a"), (2, "c")], [(1, "b"), (2, "d")]]
    merger = BinaryHeapMerger(chunks, lambda a, b: (a[0] > b[0]) - (a[0] < b[0]))
    assert list(merger) == [(1, "a"), (1, "b"), (2, "c"), (2, "d")]


def test_merger_is_its_own_iterator():
    merger = BinaryHeapMerger([[2], [1]])
    assert iter(merger) is merger
    assert next(merger) == 1
    assert next(merger) == 2
    with pytest.raises(StopIteration):
        next(merger)


def test_merger_strings():
    chunks = [["apple", "pear"], ["banana", "zebra"], ["cherry"]]
    assert list(BinaryHeapMerger(chunks)) == ["apple", "banana", "cherry", "pear", "zebra"]


def test_merger_reads_lazily():
    pulled = []
    merger = BinaryHeapMerger(
        [recording_source([1, 10], pulled), recording_source([2, 20], pulled)]
    )
    assert next(merger) == 1
    assert sorted(pulled) == [1, 2, 10]