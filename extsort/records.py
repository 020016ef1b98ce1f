"""Person records read from CSV lines and sorted externally."""

from __future__ import annotations

import functools
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import IO, Any

from .buffer import LimitedBufferBuilder
from .chunk import MsgpackExternalChunk
from .sort import ExternalSorterBuilder

_U8_MAX = 255


class CsvParseError(ValueError):
    """A CSV row could not be turned into a record."""

    _prefix = "CSV parse error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self._prefix}: {detail}")


class RowError(CsvParseError):
    """The row does not have the expected shape."""

    _prefix = "row format error"


class ColumnError(CsvParseError):
    """A column holds a value of the wrong format."""

    _prefix = "column format error"


def _parse_u8(text: str) -> int:
    """Parse an unsigned 8-bit integer, accepting an optional leading '+'."""
    if not text:
        raise ValueError("cannot parse integer from empty string")
    digits = text[1:] if text.startswith("+") else text
    if not digits or not all("0" <= ch <= "9" for ch in digits):
        raise ValueError("invalid digit found in string")
    value = int(digits)
    if value > _U8_MAX:
        raise ValueError("number too large to fit in target type")
    return value


@functools.total_ordering
@dataclass(frozen=True)
class Person:
    """A person ordered by surname, then name, then age."""

    name: str
    surname: str
    age: int

    @classmethod
    def from_str(cls, s: str) -> Person:
        """Parse a ``name,surname,age`` row."""
        parts = s.split(",")
        if len(parts) != 3:
            raise RowError("wrong columns number")
        name, surname, age_text = parts
        try:
            age = _parse_u8(age_text)
        except ValueError as err:
            raise ColumnError(f"age field format error: {err}") from err
        return cls(name=name, surname=surname, age=age)

    def as_csv(self) -> str:
        """Format the record as a ``name,surname,age`` row."""
        return f"{self.name},{self.surname},{self.age}"

    def _sort_key(self) -> tuple[str, str, int]:
        return (self.surname, self.name, self.age)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Person):
            return NotImplemented
        return self._sort_key() < other._sort_key()


class _PersonChunk(MsgpackExternalChunk):
    """MessagePack chunk holding :class:`Person` records."""

    @classmethod
    def dump(cls, writer: IO[bytes], items: Iterable[Any]) -> None:
        super().dump(writer, ((p.name, p.surname, p.age) for p in items))

    def load(self, reader: Any) -> Person:
        name, surname, age = super().load(reader)
        return Person(name, surname, age)


def _strip_line_end(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def sort_people(
    lines: Iterable[str],
    tmp_dir: str | os.PathLike[str] | None = None,
    buffer_limit: int = 1_000_000,
) -> Iterator[Person]:
    """Parse CSV ``lines`` into people and yield them in sorted order.

    A malformed row makes the sort raise :class:`~extsort.sort.InputError`
    whose ``error`` is the :class:`CsvParseError`.
    """
    builder = (
        ExternalSorterBuilder()
        .with_buffer(LimitedBufferBuilder(buffer_limit, True))
        .with_chunk_type(_PersonChunk)
    )
    if tmp_dir is not None:
        builder = builder.with_tmp_dir(tmp_dir)
    with builder.build() as sorter:
        people = (Person.from_str(_strip_line_end(line)) for line in lines)
        yield from sorter.sort(people)