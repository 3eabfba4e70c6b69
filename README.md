# c4id

C4 IDs are 90-character, base-58 encoded SHA-512 identifiers defined by
SMPTE ST 2114:2017. Everyone who identifies the same bytes gets the same ID,
with no central registry. IDs are safe to use in file names, URLs, database
fields and anywhere else a plain string identifier fits.

This package provides:

- identifying data and parsing, comparing and serialising C4 IDs
  (`c4id.core`, `c4id.fixed`);
- identifying collections of data (files in a folder, for example) through
  sorted slices (`c4id.slices`) and ID trees (`c4id.tree`);
- a small persistent store, kept in an SQLite file, mapping keys to digests,
  linking digests to each other and storing ID trees (`c4id.db`,
  `c4id.storage`);
- the `c4` command, which prints IDs for files, folders and piped data
  (`c4id.cli`).

It has no dependencies outside the standard library.

## Installation

```
pip install c4id
```

## Identifying data

```python
import io

from c4id.core import Encoder, identify, parse

id_ = identify(io.BytesIO(b""))   # bytes objects are accepted too
print(id_)
# c459dsjfscH38cYeXXYogktxf4Cd9ibshE3BHUo6a58hBXmRQdZrAkZzsWcbWtDg5oQstpDuni4Hirj75GEmTc1sFT

# Streaming data
encoder = Encoder()
encoder.write(b"This is a pretend asset file, ")
encoder.write(b"for testing asset id generation.\n")
print(encoder.id())
encoder.reset()  # ready for the next block of data

# Parsing and comparing
same = parse(str(id_))
assert same.cmp(id_) == 0
```

`parse` raises `BadLengthError` for strings that are not 90 characters long
and `BadCharError` for characters outside the C4 alphabet; both derive from
`C4Error` (itself a `ValueError`) in `c4id.errors`.

An `ID` holds the integer value of its digest. `digest()` gives the 64-byte
`Digest`, and `Digest.id()` turns one back into an ID. `Digest.sum` combines
two digests, hashing the lesser one first. `ID.to_json()` writes the zero ID
as `""`, and `ID.from_json()` returns `None` for `null`. The constants
`NIL_ID` (the ID of no data), `VOID_ID` and `MAX_ID` are in `c4id.core`.

`c4id.fixed.FixedID` is the same identifier held as exactly 64 bytes, with
`parse_fixed`, `identify_fixed` (which gives the all-zero, nil ID when the
stream fails to read) and `sorted_unique`.

## Identifying collections

A collection is identified by inserting the digests of its members into a
`DigestSlice`, which keeps them sorted and free of duplicates, and asking for
its digest:

```python
from c4id.core import identify
from c4id.slices import DigestSlice

digests = DigestSlice([])
for word in ["alfa", "bravo", "charlie"]:
    digests.insert(identify(word.encode()).digest())

print(digests.digest().id())
```

`Slice` does the same for `ID` objects. `Tree` (in `c4id.tree`) keeps every
intermediate node of the computation: call `compute()` to fill it in, read
it with `row()`, `at()` or `node()`, and round-trip it through `to_bytes()` and
`Tree.from_bytes()`.

## The store

```python
from c4id.core import identify
from c4id.db import open_db

with open_db("my-store", None) as db:
    foo = identify(b"foo").digest()
    db.key_set("assets/foo", foo)
    assert db.key_get("assets/foo") == foo
    print(db.key_find(foo))  # ['assets/foo']
```

The folder is created if it is missing, and the data lives in a file named
`db` inside it. Keys can also be listed and deleted by prefix
(`key_get_all`, `key_delete_all`), swapped atomically (`key_cas`) and written
in bulk with `with db.key_batch() as batch: batch.key_set(...)`.

Links relate one source digest to one or more target digests under a named
relationship (`link_set`, `link_get`, `link_get_all`, `link_delete`,
`link_delete_all`). Computed trees are saved and restored with `tree_set`,
`tree_get` and `tree_delete`; when `Options.tree_max_size` is set, larger
trees are written as files named by their C4 ID in the storage folders.
`Options.tree_strategy` is saved with the other settings but does not change
how trees are stored. `stats()` reports counts of what the store holds.

## The `c4` command

```
c4 file.mov                 # ID of one file
c4 -R footage/              # IDs of a folder and everything in it
cat file.mov | c4           # ID of piped data
c4 -m -f path footage/      # include metadata, path-oriented output
```

Flags:

- `-v`, `--version` — show version information
- `-R`, `--recursive` — identify everything under the given paths
- `-a`, `--absolute` — print absolute paths instead of relative ones
- `-L`, `--links` — follow all symbolic links
- `-d`, `--depth N` — only print IDs for items N directories deep
- `-m`, `--metadata` — include file system metadata
- `-f`, `--formatting id|path` — ID-oriented or path-oriented output

The command only identifies and prints; it does not read from or write to
the store.