"""Additional chunk file formats."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from typing import IO, Any

from .chunk import ChunkDeserializationError, ExternalChunk

_U32 = struct.Struct("<I")


class U32ExternalChunk(ExternalChunk):
    """Chunk of unsigned 32-bit integers stored as little-endian 4-byte words."""

    @classmethod
    def dump(cls, writer: IO[bytes], items: Iterable[int]) -> None:
        for item in items:
            writer.write(_U32.pack(item))

    def load(self, reader: Any) -> int:
        if reader.remaining == 0:
            raise EOFError
        data = reader.read(_U32.size)
        if len(data) < _U32.size:
            raise ChunkDeserializationError("failed to fill whole buffer")
        return _U32.unpack(data)[0]