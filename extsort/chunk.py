"""Sorted chunks of items stored in temporary files."""

from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from typing import IO, Any, Union

import msgpack

DirectoryLike = Union[str, "os.PathLike[str]", tempfile.TemporaryDirectory]


class ExternalChunkError(Exception):
    """A chunk could not be written to or read from its file."""


class ChunkSerializationError(ExternalChunkError):
    """Items could not be serialized into a chunk."""


class ChunkDeserializationError(ExternalChunkError):
    """Items could not be deserialized from a chunk."""


class _LimitedReader:
    """Reads at most ``limit`` bytes from an underlying binary file."""

    def __init__(self, raw: IO[bytes], limit: int) -> None:
        self._raw = raw
        self._remaining = limit

    @property
    def remaining(self) -> int:
        return self._remaining

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            return b""
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining
        data = self._raw.read(size)
        self._remaining -= len(data)
        return data


class ExternalChunk(ABC):
    """A sequence of items kept in a file and read back one at a time.

    Subclasses define the file format through :meth:`dump` and :meth:`load`.
    ``load`` raises :class:`EOFError` when the chunk holds no further items.
    """

    def __init__(self, reader: IO[bytes], length: int) -> None:
        self._file = reader
        self._reader = _LimitedReader(reader, length)
        self.length = length

    @classmethod
    def build(
        cls,
        directory: DirectoryLike,
        items: Iterable[Any],
        buf_size: int | None = None,
    ) -> ExternalChunk:
        """Create a chunk file in ``directory``, dump ``items`` to it and open it for reading."""
        if isinstance(directory, tempfile.TemporaryDirectory):
            path = directory.name
        else:
            path = os.fspath(directory)
        try:
            tmp_file = tempfile.TemporaryFile(
                dir=path, buffering=-1 if buf_size is None else buf_size
            )
        except OSError as err:
            raise ExternalChunkError(str(err)) from err

        try:
            try:
                cls.dump(tmp_file, items)
            except ExternalChunkError:
                raise
            except Exception as err:
                raise ChunkSerializationError(str(err)) from err
            try:
                tmp_file.flush()
                length = os.fstat(tmp_file.fileno()).st_size
                tmp_file.seek(0)
            except OSError as err:
                raise ExternalChunkError(str(err)) from err
        except BaseException:
            tmp_file.close()
            raise
        return cls(tmp_file, length)

    @classmethod
    @abstractmethod
    def dump(cls, writer: IO[bytes], items: Iterable[Any]) -> None:
        """Write ``items`` to ``writer``."""

    @abstractmethod
    def load(self, reader: _LimitedReader) -> Any:
        """Read the next item from ``reader``; raise EOFError when none is left."""

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                item = self.load(self._reader)
            except EOFError:
                return
            except ExternalChunkError:
                raise
            except OSError as err:
                raise ExternalChunkError(str(err)) from err
            except Exception as err:
                raise ChunkDeserializationError(str(err)) from err
            yield item

    def close(self) -> None:
        """Close the chunk file, which removes it."""
        self._file.close()

    def __enter__(self) -> ExternalChunk:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class MsgpackExternalChunk(ExternalChunk):
    """Chunk stored as a stream of MessagePack values.

    Arrays are read back as tuples.
    """

    def __init__(self, reader: IO[bytes], length: int) -> None:
        super().__init__(reader, length)
        self._unpacker: msgpack.Unpacker | None = None

    @classmethod
    def dump(cls, writer: IO[bytes], items: Iterable[Any]) -> None:
        packer = msgpack.Packer(use_bin_type=True)
        for item in items:
            writer.write(packer.pack(item))

    def load(self, reader: _LimitedReader) -> Any:
        if self._unpacker is None:
            self._unpacker = msgpack.Unpacker(
                reader, raw=False, use_list=False, strict_map_key=False
            )
        try:
            return self._unpacker.unpack()
        except msgpack.exceptions.OutOfData:
            if self._unpacker.tell() >= self.length:
                raise EOFError from None
            raise ChunkDeserializationError("unexpected end of chunk data") from None
        except OSError:
            raise
        except Exception as err:
            raise ChunkDeserializationError(str(err)) from err