"""Command line external sorter for text files, one item per line."""

from __future__ import annotations

import argparse
import contextlib
import itertools
import logging
import re
import sys
import time
from collections.abc import Iterator
from enum import Enum
from typing import IO, Any

from .buffer import MemoryLimitedBufferBuilder
from .sort import ExternalSorterBuilder, SortError

logger = logging.getLogger(__name__)

_U64_MAX = 2**64 - 1
_INTEGER = re.compile(r"\+?[0-9]+")

_UNITS = {
    "b": 1,
    "k": 10**3,
    "kb": 10**3,
    "m": 10**6,
    "mb": 10**6,
    "g": 10**9,
    "gb": 10**9,
    "t": 10**12,
    "tb": 10**12,
    "p": 10**15,
    "pb": 10**15,
    "ki": 2**10,
    "kib": 2**10,
    "mi": 2**20,
    "mib": 2**20,
    "gi": 2**30,
    "gib": 2**30,
    "ti": 2**40,
    "tib": 2**40,
    "pi": 2**50,
    "pib": 2**50,
}


class Order(str, Enum):
    """Sorting order."""

    ASC = "asc"
    DESC = "desc"

    def __str__(self) -> str:
        return self.value


class LogLevel(str, Enum):
    """Logging verbosity."""

    OFF = "off"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"

    def __str__(self) -> str:
        return self.value

    @property
    def logging_level(self) -> int:
        """The matching level of the logging module."""
        return _LOGGING_LEVELS[self]


_TRACE = 5
_LOGGING_LEVELS = {
    LogLevel.OFF: logging.CRITICAL + 1,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.TRACE: _TRACE,
}


def parse_byte_size(text: str) -> int:
    """Parse a size such as ``1024``, ``50MB`` or ``1.5 KiB`` into bytes."""
    if _INTEGER.fullmatch(text):
        value = int(text)
        if value <= _U64_MAX:
            return value
    number = "".join(itertools.takewhile(lambda c: c.isdigit() and c.isascii() or c == ".", text))
    try:
        value_f = float(number)
    except ValueError:
        raise ValueError(f"couldn't parse {text!r} into a ByteSize") from None
    suffix = "".join(
        itertools.dropwhile(lambda c: c.isspace() or (c.isdigit() and c.isascii()) or c == ".", text)
    )
    unit = _UNITS.get(suffix.lower())
    if unit is None:
        raise ValueError(f"couldn't parse {suffix!r} into a known SI unit")
    return min(int(value_f * unit), _U64_MAX)


def _chunk_size(text: str) -> int:
    try:
        return parse_byte_size(text)
    except ValueError as err:
        raise argparse.ArgumentTypeError(f"Chunk size format incorrect: {err}") from err


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = argparse.ArgumentParser(prog="ext-sort", description="external sorter")
    parser.add_argument("-i", "--input", required=True, help="file to be sorted")
    parser.add_argument("-o", "--output", required=True, help="result file")
    parser.add_argument(
        "-s", "--sort", dest="order", type=Order, choices=list(Order),
        default=Order.ASC, help="sorting order",
    )
    parser.add_argument(
        "-l", "--loglevel", dest="log_level", type=LogLevel, choices=list(LogLevel),
        default=LogLevel.INFO, help="logging level",
    )
    parser.add_argument(
        "-t", "--threads", type=int, default=None,
        help="number of threads to use for parallel sorting",
    )
    parser.add_argument(
        "-d", "--tmp-dir", dest="tmp_dir", default=None,
        help="directory to be used to store temporary data",
    )
    parser.add_argument(
        "-c", "--chunk-size", dest="chunk_size", type=_chunk_size, required=True,
        help="chunk size",
    )
    return parser


class _CliHandler(logging.StreamHandler):
    """Stderr handler installed by :func:`init_logger`."""


def init_logger(log_level: LogLevel | str) -> None:
    """Configure root logging at ``log_level`` with millisecond UTC timestamps."""
    level = LogLevel(log_level).logging_level
    logging.addLevelName(_TRACE, "TRACE")
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, _CliHandler)]:
        root.removeHandler(handler)
    handler = _CliHandler()
    formatter = logging.Formatter(
        "[%(asctime)s.%(msecs)03dZ %(levelname)-5s %(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    formatter.converter = time.gmtime
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(level)


def _read_lines(stream: IO[bytes]) -> Iterator[str]:
    for raw in stream:
        line = raw.decode("utf-8")
        if line.endswith("\n"):
            line = line[:-1]
            if line.endswith("\r"):
                line = line[:-1]
        yield line


def _descending(a: Any, b: Any) -> int:
    return (a < b) - (a > b)


def _sort_stream(args: argparse.Namespace, input_stream: IO[bytes], output_stream: IO[str]) -> int:
    builder = ExternalSorterBuilder()
    if args.threads is not None:
        builder = builder.with_threads_number(args.threads)
    if args.tmp_dir is not None:
        builder = builder.with_tmp_dir(args.tmp_dir)
    builder = builder.with_buffer(MemoryLimitedBufferBuilder(args.chunk_size))

    try:
        sorter = builder.build()
    except SortError as err:
        logger.error("sorter initialization error: %s", err)
        return 1

    with sorter:
        lines = _read_lines(input_stream)
        try:
            if args.order is Order.ASC:
                sorted_stream = sorter.sort(lines)
            else:
                sorted_stream = sorter.sort_by(lines, _descending)
        except SortError as err:
            logger.error("data sorting error: %s", err)
            return 1

        with contextlib.closing(sorted_stream):
            while True:
                try:
                    line = next(sorted_stream)
                except StopIteration:
                    break
                except SortError as err:
                    logger.error("sorting stream error: %s", err)
                    return 1
                try:
                    output_stream.write(f"{line}\n")
                except OSError as err:
                    logger.error("data saving error: %s", err)
                    return 1

    try:
        output_stream.flush()
    except OSError as err:
        logger.error("data flushing error: %s", err)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line sorter and return the exit status."""
    args = build_arg_parser().parse_args(argv)
    init_logger(args.log_level)

    try:
        input_stream = open(args.input, "rb")
    except OSError as err:
        logger.error("input file opening error: %s", err)
        return 1

    with input_stream:
        try:
            output_stream = open(args.output, "w", encoding="utf-8", newline="\n")
        except OSError as err:
            logger.error("output file creation error: %s", err)
            return 1
        with output_stream:
            return _sort_stream(args, input_stream, output_stream)


if __name__ == "__main__":
    sys.exit(main())