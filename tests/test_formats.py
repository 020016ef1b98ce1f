import io
import random
import tempfile

import pytest

from extsort.buffer import LimitedBufferBuilder
from extsort.chunk import ChunkDeserializationError, ChunkSerializationError
from extsort.formats import U32ExternalChunk
from extsort.sort import ExternalSorterBuilder


def test_dump_writes_little_endian_words():
    out = io.BytesIO()
    U32ExternalChunk.dump(out, [1, 258])
    assert out.getvalue() == b"\x01\x00\x00\x00\x02\x01\x00\x00"


def test_round_trip(tmp_path):
    saved = list(range(100))
    chunk = U32ExternalChunk.build(tmp_path, saved)
    try:
        assert list(chunk) == saved
        assert chunk.length == 4 * len(saved)
    finally:
        chunk.close()


def test_round_trip_max_value(tmp_path):
    saved = [0, 2**32 - 1]
    with U32ExternalChunk.build(tmp_path, saved) as chunk:
        assert list(chunk) == saved


def test_empty_chunk(tmp_path):
    with U32ExternalChunk.build(tmp_path, []) as chunk:
        assert list(chunk) == []


def test_out_of_range_value_fails(tmp_path):
    with pytest.raises(ChunkSerializationError):
        U32ExternalChunk.build(tmp_path, [-1])


def test_truncated_data_fails():
    chunk = U32ExternalChunk(io.BytesIO(b"\x07\x00\x00\x00\x02"), 5)
    items = iter(chunk)
    assert next(items) == 7
    with pytest.raises(ChunkDeserializationError):
        next(items)


def test_build_in_temporary_directory_object():
    with tempfile.TemporaryDirectory() as name:
        directory = tempfile.TemporaryDirectory(dir=name)
        with U32ExternalChunk.build(directory, [5, 3]) as chunk:
            assert list(chunk) == [5, 3]
        directory.cleanup()


def test_sorter_with_u32_chunks(tmp_path):
    data = list(range(1000))
    random.shuffle(data)
    sorter = (
        ExternalSorterBuilder()
        .with_tmp_dir(tmp_path)
        .with_buffer(LimitedBufferBuilder(64, True))
        .with_chunk_type(U32ExternalChunk)
        .build()
    )
    with sorter:
        assert list(sorter.sort(data)) == sorted(data)