"""External sorter: sorts chunks in memory, spills them to disk and merges them."""

from __future__ import annotations

import functools
import logging
import os
import tempfile
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .buffer import ChunkBuffer, LimitedBufferBuilder, MemoryLimitedBufferBuilder
from .chunk import (
    ChunkDeserializationError,
    ChunkSerializationError,
    ExternalChunk,
    ExternalChunkError,
    MsgpackExternalChunk,
)
from .merger import BinaryHeapMerger

logger = logging.getLogger(__name__)

Compare = Callable[[Any, Any], int]
BufferBuilder = LimitedBufferBuilder | MemoryLimitedBufferBuilder


class SortError(Exception):
    """Sorting failed."""

    _prefix = "sorting failed"

    def __init__(self, error: object) -> None:
        self.error = error
        super().__init__(f"{self._prefix}: {error}")


class TempDirError(SortError):
    """The temporary directory or file could not be created."""

    _prefix = "temporary directory or file not created"


class ThreadPoolBuildError(SortError):
    """The worker thread pool could not be initialized."""

    _prefix = "thread pool initialization failed"


class SortIOError(SortError):
    """A chunk file operation failed."""

    _prefix = "I/O operation failed"


class SerializationError(SortError):
    """Items could not be serialized into a chunk."""

    _prefix = "data serialization error"


class DeserializationError(SortError):
    """Items could not be read back from a chunk."""

    _prefix = "data deserialization error"


class InputError(SortError):
    """The input data stream raised an error."""

    _prefix = "input data stream error"


class ExternalSorterBuilder:
    """Collects :class:`ExternalSorter` settings; every ``with_*`` method returns the builder."""

    def __init__(self) -> None:
        self.threads_number: int | None = None
        self.tmp_dir: str | os.PathLike[str] | None = None
        self.rw_buf_size: int | None = None
        self.buffer_builder: BufferBuilder = LimitedBufferBuilder()
        self.chunk_type: type[ExternalChunk] = MsgpackExternalChunk

    def with_threads_number(self, threads_number: int) -> ExternalSorterBuilder:
        """Set the number of threads used to sort chunks."""
        self.threads_number = threads_number
        return self

    def with_tmp_dir(self, path: str | os.PathLike[str]) -> ExternalSorterBuilder:
        """Set the directory in which temporary data is stored."""
        self.tmp_dir = path
        return self

    def with_buffer(self, buffer_builder: BufferBuilder) -> ExternalSorterBuilder:
        """Set the builder of chunk buffers."""
        self.buffer_builder = buffer_builder
        return self

    def with_rw_buf_size(self, buf_size: int) -> ExternalSorterBuilder:
        """Set the read/write buffer size of chunk files."""
        self.rw_buf_size = buf_size
        return self

    def with_chunk_type(self, chunk_type: type[ExternalChunk]) -> ExternalSorterBuilder:
        """Set the chunk class that defines the on-disk format."""
        self.chunk_type = chunk_type
        return self

    def build(self) -> ExternalSorter:
        """Create the sorter from the collected settings."""
        return ExternalSorter(
            self.threads_number,
            self.tmp_dir,
            self.buffer_builder,
            self.rw_buf_size,
            self.chunk_type,
        )


class ExternalSorter:
    """Sorts data sets larger than memory using temporary chunk files."""

    def __init__(
        self,
        threads_number: int | None = None,
        tmp_path: str | os.PathLike[str] | None = None,
        buffer_builder: BufferBuilder | None = None,
        rw_buf_size: int | None = None,
        chunk_type: type[ExternalChunk] = MsgpackExternalChunk,
    ) -> None:
        self._buffer_builder = buffer_builder if buffer_builder is not None else LimitedBufferBuilder()
        self._rw_buf_size = rw_buf_size
        self._chunk_type = chunk_type
        self._pool = self._init_thread_pool(threads_number)
        try:
            self._tmp_dir = self._init_tmp_directory(tmp_path)
        except BaseException:
            self._pool.shutdown()
            raise

    @staticmethod
    def _init_thread_pool(threads_number: int | None) -> ThreadPoolExecutor:
        if threads_number is None:
            logger.info("initializing thread-pool (threads: default)")
        else:
            logger.info("initializing thread-pool (threads: %s)", threads_number)
        try:
            return ThreadPoolExecutor(max_workers=threads_number or None)
        except (ValueError, RuntimeError) as err:
            raise ThreadPoolBuildError(err) from err

    @staticmethod
    def _init_tmp_directory(
        tmp_path: str | os.PathLike[str] | None,
    ) -> tempfile.TemporaryDirectory:
        try:
            tmp_dir = tempfile.TemporaryDirectory(
                dir=tmp_path, ignore_cleanup_errors=True
            )
        except OSError as err:
            raise TempDirError(err) from err
        logger.info("using %s as a temporary directory", tmp_dir.name)
        return tmp_dir

    def sort(self, items: Iterable[Any]) -> Iterator[Any]:
        """Sort ``items`` in their natural order and return an iterator over the result."""
        return self._sort(items, None)

    def sort_by(self, items: Iterable[Any], compare: Compare) -> Iterator[Any]:
        """Sort ``items`` with ``compare(a, b)`` returning a negative, zero or positive number.

        The sort is stable: equal items keep their input order.
        """
        return self._sort(items, compare)

    def _sort(self, items: Iterable[Any], compare: Compare | None) -> Iterator[Any]:
        key = functools.cmp_to_key(compare) if compare is not None else None
        chunks: list[ExternalChunk] = []
        try:
            buffer = self._buffer_builder.build()
            iterator = iter(items)
            while True:
                try:
                    item = next(iterator)
                except StopIteration:
                    break
                except Exception as err:
                    raise InputError(err) from err
                buffer.push(item)
                if buffer.is_full():
                    chunks.append(self._create_chunk(buffer, key))
                    buffer = self._buffer_builder.build()
            if len(buffer) > 0:
                chunks.append(self._create_chunk(buffer, key))
        except BaseException:
            for chunk in chunks:
                chunk.close()
            raise

        logger.debug("external sort preparation done")
        return self._merge(chunks, compare)

    def _create_chunk(
        self, buffer: ChunkBuffer[Any], key: Callable[[Any], Any] | None
    ) -> ExternalChunk:
        logger.debug("sorting chunk data ...")
        self._pool.submit(buffer.sort, key).result()

        logger.debug("saving chunk data")
        try:
            return self._chunk_type.build(self._tmp_dir, buffer, self._rw_buf_size)
        except ChunkSerializationError as err:
            raise SerializationError(err) from err
        except ExternalChunkError as err:
            raise SortIOError(err) from err

    @staticmethod
    def _merge(chunks: list[ExternalChunk], compare: Compare | None) -> Iterator[Any]:
        merger = BinaryHeapMerger(chunks, compare)
        try:
            while True:
                try:
                    item = next(merger)
                except StopIteration:
                    return
                except ChunkDeserializationError as err:
                    raise DeserializationError(err) from err
                except ExternalChunkError as err:
                    raise SortIOError(err) from err
                yield item
        finally:
            for chunk in chunks:
                chunk.close()

    def close(self) -> None:
        """Stop the worker threads and remove the temporary directory."""
        self._pool.shutdown()
        self._tmp_dir.cleanup()

    def __enter__(self) -> ExternalSorter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()