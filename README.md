# extsort

External sorting for data sets that are larger than the memory you want to
spend on them.

Sorting takes two passes. The first pass reads the input into a buffer of
bounded size. When the buffer is full, its items are sorted and written to a
temporary file as a sorted chunk. The second pass merges all chunks with a
binary heap into one sorted stream. The stream is read lazily, one item at a
time.

* **Any data type.** By default chunks are stored as MessagePack, so items must
  be values MessagePack can encode: numbers, strings, bytes, lists, dicts and
  so on. Lists and tuples come back as tuples. For other types, subclass
  `ExternalChunk` and define your own file format.
* **Limit by item count or by size.** `LimitedBufferBuilder` caps the number of
  items per chunk. `MemoryLimitedBufferBuilder` caps the approximate memory
  size of a chunk in bytes, as measured by `extsort.buffer.deep_size_of`.
* **Stable.** Items that compare equal keep their input order.
* **Worker threads.** Each chunk is sorted on a thread pool whose size you can
  set.

## Installation

```
pip install extsort
```

## Library usage

```python
from extsort.buffer import MemoryLimitedBufferBuilder
from extsort.sort import ExternalSorterBuilder

builder = (
    ExternalSorterBuilder()
    .with_tmp_dir("./")
    .with_buffer(MemoryLimitedBufferBuilder(50 * 1024 * 1024))
)

with open("input.txt") as src, open("output.txt", "w") as dst:
    lines = (line.rstrip("\n") for line in src)
    with builder.build() as sorter:
        for line in sorter.sort(lines):
            dst.write(f"{line}\n")
```

`ExternalSorterBuilder` has these settings. Each `with_*` method returns the
builder:

* `with_threads_number(n)` sets the size of the thread pool. The default is
  chosen by `concurrent.futures.ThreadPoolExecutor`.
* `with_tmp_dir(path)` sets where the temporary directory is created. The
  default is the system temporary directory.
* `with_buffer(builder)` sets a `LimitedBufferBuilder` or a
  `MemoryLimitedBufferBuilder`. The default is a `LimitedBufferBuilder` with no
  practical limit.
* `with_rw_buf_size(size)` sets the buffer size used for chunk files.
* `with_chunk_type(cls)` sets the `ExternalChunk` subclass used for chunk
  files. The default is `MsgpackExternalChunk`.

`build()` returns an `ExternalSorter`, which you can also construct directly.
Use the sorter as a context manager, or call `close()`. Either way, the
worker threads stop and the temporary directory is removed.

`sort(items)` reads the whole input and writes the chunks, then returns an
iterator over the merged result. Finish iterating before you close the sorter.

### Custom ordering

`sort_by` takes a comparison function. It returns a negative number, zero or a
positive number when the first item sorts before, equal to or after the
second:

```python
descending = sorter.sort_by(items, lambda a, b: (a < b) - (a > b))
```

### Custom chunk formats

Subclass `extsort.chunk.ExternalChunk` and implement two members:

* the `dump(writer, items)` classmethod;
* the `load(reader)` method, which returns the next item and raises `EOFError`
  when none is left.

`extsort.formats.U32ExternalChunk` is an example. It stores unsigned 32-bit
integers as little-endian 4-byte words:

```python
from extsort.buffer import LimitedBufferBuilder
from extsort.formats import U32ExternalChunk
from extsort.sort import ExternalSorterBuilder

with (
    ExternalSorterBuilder()
    .with_buffer(LimitedBufferBuilder(1_000_000, True))
    .with_chunk_type(U32ExternalChunk)
    .build()
) as sorter:
    result = list(sorter.sort([5, 3, 9, 1]))
```

### The merger on its own

`extsort.merger.BinaryHeapMerger(chunks, compare=None)` merges any number of
already sorted iterables into one sorted iterator. When items are equal, the
one from the earlier input comes first.

### Records

`extsort.records.Person` shows how to sort structured records. A `Person` is
parsed from a `name,surname,age` row with `Person.from_str`. The age must fit
in 0–255. `Person` is ordered by surname, then name, then age, and
`as_csv()` writes it back as a row. Malformed rows raise `RowError` or
`ColumnError`, both of which are `CsvParseError`.

`sort_people(lines, tmp_dir=None, buffer_limit=1_000_000)` parses the lines
and yields the people in sorted order.

### Errors

Errors raised while sorting derive from `extsort.sort.SortError`. The
underlying error is kept in its `error` attribute.

* `TempDirError`: the temporary directory could not be created.
* `ThreadPoolBuildError`: the thread pool could not be created, for example
  because the thread count is invalid.
* `SortIOError`: a chunk file operation failed.
* `SerializationError`: items could not be written to a chunk.
* `DeserializationError`: items could not be read back from a chunk.
* `InputError`: the input iterable raised an exception.

## Command line

The `extsort` command sorts the lines of a UTF-8 text file:

```
extsort -i input.txt -o output.txt -c 50MB
```

| Option | Meaning |
| --- | --- |
| `-i`, `--input` | File to be sorted. Required. |
| `-o`, `--output` | Result file. Required. |
| `-c`, `--chunk-size` | Approximate memory size of each chunk. Required. |
| `-s`, `--sort` | Sorting order, `asc` or `desc`. Default `asc`. |
| `-l`, `--loglevel` | `off`, `error`, `warn`, `info`, `debug` or `trace`. Default `info`. |
| `-t`, `--threads` | Number of threads used to sort chunks. |
| `-d`, `--tmp-dir` | Directory for temporary data. |

The chunk size is a plain byte count or a number with a unit, for example
`100KB`, `1.5 MiB` or `2G`:

* `B`, `K`/`KB`, `M`/`MB`, `G`/`GB`, `T`/`TB` and `P`/`PB` are decimal units.
* `Ki`/`KiB`, `Mi`/`MiB`, `Gi`/`GiB`, `Ti`/`TiB` and `Pi`/`PiB` are binary
  units.
* Units are case-insensitive.

`extsort.cli.parse_byte_size` does the parsing.

Log messages go to standard error with UTC timestamps. The command exits with
status 0 on success. It exits with 1 if a file cannot be opened or the sort
fails.