"""A small persistent database of keys, links and trees addressed by C4 digests.

Data lives in an SQLite file named ``db`` inside the database folder.  Each
kind of record is kept in its own table of ordered binary keys:

* keys:  name -> digest, with a reverse index digest + name
* links: source digest + target digest -> relationship
* trees: root digest -> serialized tree (or the root alone when the tree was
  written to an external file, whose location is kept in the paths table)
"""

from __future__ import annotations

import os
import sqlite3
from types import TracebackType
from typing import Iterator, List, Optional, Sequence, Tuple, Type, Union

from .core import DIGEST_SIZE, BytesLike, Digest
from .core import new_digest as _to_digest
from .storage import Entry, Options, Stats, TreeStrategy, write_file_data
from .tree import Tree

_KEYS = "keys"
_INDEX = "key_index"
_LINKS = "links"
_TREES = "trees"
_PATHS = "paths"
_OPTIONS = "options"
_TABLES = (_KEYS, _INDEX, _LINKS, _TREES, _PATHS, _OPTIONS)

_OPTIONS_KEY = b"global/options"
_INDEX_MARK = b"\x01"
_BATCH_SIZE = 10000

Rows = List[Tuple[bytes, bytes]]


def _prefix_end(prefix: bytes) -> Optional[bytes]:
    """The smallest key greater than every key starting with ``prefix``."""
    trimmed = prefix.rstrip(b"\xff")
    if not trimmed:
        return None
    return trimmed[:-1] + bytes([trimmed[-1] + 1])


def open_db(path: Union[str, os.PathLike], options: Optional[Options] = None) -> "DB":
    """Open or create the database in the folder ``path``."""
    return DB(path, options)


class DB:
    """Keys, links and trees stored by C4 digest."""

    def __init__(self, path: Union[str, os.PathLike], options: Optional[Options] = None) -> None:
        self.path = os.fspath(path)
        if not os.path.exists(self.path):
            os.mkdir(self.path, 0o700)
        self._conn = sqlite3.connect(os.path.join(self.path, "db"))
        with self._conn:
            for table in _TABLES:
                self._conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} "
                    "(k BLOB PRIMARY KEY, v BLOB NOT NULL) WITHOUT ROWID"
                )

        saved = self._read_options() or Options()
        if options is None:
            self.storage: List[str] = list(saved.external_store)
            self.tree_max_size: int = saved.tree_max_size
            self.tree_strategy: TreeStrategy = saved.tree_strategy
        else:
            self.storage = [os.fspath(p) for p in options.external_store]
            self.tree_max_size = options.tree_max_size if options.tree_max_size > 0 else saved.tree_max_size
            self.tree_strategy = (
                options.tree_strategy
                if options.tree_strategy != TreeStrategy.NONE
                else saved.tree_strategy
            )
        self._write_options()
        if not self.storage:
            self.storage.append(self.path)

    # -- low level table access -------------------------------------------

    def _get(self, table: str, key: bytes) -> Optional[bytes]:
        row = self._conn.execute(f"SELECT v FROM {table} WHERE k = ?", (key,)).fetchone()
        return None if row is None else bytes(row[0])

    def _put(self, table: str, key: bytes, value: bytes) -> None:
        self._conn.execute(f"INSERT OR REPLACE INTO {table} (k, v) VALUES (?, ?)", (key, value))

    def _delete(self, table: str, key: bytes) -> int:
        return self._conn.execute(f"DELETE FROM {table} WHERE k = ?", (key,)).rowcount

    def _scan(self, table: str, prefix: bytes = b"") -> Rows:
        end = _prefix_end(prefix)
        if end is None:
            cursor = self._conn.execute(f"SELECT k, v FROM {table} WHERE k >= ? ORDER BY k", (prefix,))
        else:
            cursor = self._conn.execute(
                f"SELECT k, v FROM {table} WHERE k >= ? AND k < ? ORDER BY k", (prefix, end)
            )
        return [(bytes(k), bytes(v)) for k, v in cursor]

    def _delete_prefix(self, table: str, prefix: bytes = b"") -> int:
        end = _prefix_end(prefix)
        if end is None:
            return self._conn.execute(f"DELETE FROM {table} WHERE k >= ?", (prefix,)).rowcount
        return self._conn.execute(
            f"DELETE FROM {table} WHERE k >= ? AND k < ?", (prefix, end)
        ).rowcount

    def _count(self, table: str) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def _store_key(self, key: bytes, digest: Digest) -> Optional[Digest]:
        previous = self._get(_KEYS, key)
        if previous is not None:
            self._delete(_INDEX, previous + key)
        self._put(_KEYS, key, bytes(digest))
        self._put(_INDEX, bytes(digest) + key, _INDEX_MARK)
        return None if previous is None else Digest(previous)

    # -- options -----------------------------------------------------------

    def _write_options(self) -> None:
        options = Options(
            tree_max_size=self.tree_max_size,
            tree_strategy=self.tree_strategy,
            external_store=list(self.storage),
        )
        with self._conn:
            self._put(_OPTIONS, _OPTIONS_KEY, options.to_json().encode("utf-8"))

    def _read_options(self) -> Optional[Options]:
        data = self._get(_OPTIONS, _OPTIONS_KEY)
        if data is None:
            return None
        try:
            return Options.from_json(data)
        except ValueError:
            return Options()

    # -- lifetime ----------------------------------------------------------

    def close(self) -> None:
        """Close the underlying database file."""
        self._conn.close()

    def __enter__(self) -> "DB":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def stats(self) -> Stats:
        """Counts of keys, index entries, links and trees, and tree bytes."""
        trees_size = self._conn.execute(f"SELECT COALESCE(SUM(LENGTH(v)), 0) FROM {_TREES}").fetchone()[0]
        return Stats(
            keys=self._count(_KEYS),
            key_indexes=self._count(_INDEX),
            trees=self._count(_TREES),
            links=self._count(_LINKS),
            trees_size=int(trees_size),
        )

    # -- keys --------------------------------------------------------------

    def key_set(self, key: str, digest: BytesLike) -> Optional[Digest]:
        """Store ``digest`` under ``key``; return the previous digest, if any."""
        value = _to_digest(digest)
        with self._conn:
            return self._store_key(key.encode("utf-8"), value)

    def key_find(self, digest: BytesLike) -> List[str]:
        """All keys whose value is ``digest``, in key order."""
        value = bytes(_to_digest(digest))
        return [k[DIGEST_SIZE:].decode("utf-8") for k, _ in self._scan(_INDEX, value)]

    def key_get(self, key: str) -> Optional[Digest]:
        """The digest stored under ``key``, or ``None``."""
        data = self._get(_KEYS, key.encode("utf-8"))
        return None if data is None else Digest(data)

    def key_delete(self, key: str) -> Optional[Digest]:
        """Remove ``key``; return the digest it held, or ``None``."""
        raw = key.encode("utf-8")
        with self._conn:
            data = self._get(_KEYS, raw)
            if data is None:
                return None
            self._delete(_KEYS, raw)
            self._delete(_INDEX, data + raw)
        return Digest(data)

    def key_get_all(self, *prefixes: str) -> Iterator[Entry]:
        """Entries for every key starting with each of the given prefixes."""
        for prefix in prefixes:
            for key, value in self._scan(_KEYS, prefix.encode("utf-8")):
                error = None if len(value) == DIGEST_SIZE else ValueError("wrong value size")
                yield Entry(key=key.decode("utf-8"), value=Digest(value), error=error)

    def key_cas(self, key: str, old_digest: Optional[BytesLike], new_digest: Optional[BytesLike]) -> bool:
        """Set ``key`` to ``new_digest`` only if it currently holds ``old_digest``.

        ``None`` stands for an unset key, both as the expected value and as
        the replacement.  Returns whether the swap happened.
        """
        raw = key.encode("utf-8")
        expected = b"" if old_digest is None else bytes(old_digest)
        with self._conn:
            current = self._get(_KEYS, raw)
            if (current or b"") != expected:
                return False
            if current is not None:
                self._delete(_KEYS, raw)
                self._delete(_INDEX, current + raw)
            if new_digest is not None:
                self._store_key(raw, _to_digest(new_digest))
        return True

    def key_delete_all(self, *prefixes: str) -> int:
        """Delete keys with any of the prefixes, or every key; return the count."""
        count = 0
        if not prefixes:
            prefixes = ("",)
        for prefix in prefixes:
            with self._conn:
                for key, value in self._scan(_KEYS, prefix.encode("utf-8")):
                    self._delete(_INDEX, value + key)
                count += self._delete_prefix(_KEYS, prefix.encode("utf-8"))
        return count

    def key_batch(self) -> "KeyBatch":
        """A context manager that writes keys in large transactions."""
        return KeyBatch(self)

    # -- links -------------------------------------------------------------

    def link_set(self, relationship: str, source: BytesLike, *targets: BytesLike) -> None:
        """Link ``source`` to each target under the named relationship."""
        if not targets:
            raise ValueError("missing targets")
        head = bytes(_to_digest(source))
        rel = relationship.encode("utf-8")
        with self._conn:
            for target in targets:
                self._put(_LINKS, head + bytes(_to_digest(target)), rel)

    def link_get(self, relationship: str, source: BytesLike) -> Iterator[Entry]:
        """Entries for the targets linked from ``source`` by ``relationship``."""
        head = bytes(_to_digest(source))
        rel = relationship.encode("utf-8")
        for key, value in self._scan(_LINKS, head):
            if value == rel:
                yield self._link_entry(key, value)

    def link_delete(self, relationship: str, source: BytesLike, *targets: BytesLike) -> int:
        """Remove the named links from ``source``; return how many went."""
        if not targets:
            raise ValueError("missing targets")
        head = bytes(_to_digest(source))
        rel = relationship.encode("utf-8")
        removed = 0
        with self._conn:
            for target in targets:
                key = head + bytes(_to_digest(target))
                if self._get(_LINKS, key) == rel:
                    removed += self._delete(_LINKS, key)
        return removed

    def link_get_all(self, *sources: BytesLike) -> Iterator[Entry]:
        """Entries for every link from the given sources, or for all links."""
        heads = [bytes(_to_digest(s)) for s in sources] or [b""]
        for head in heads:
            for key, value in self._scan(_LINKS, head):
                yield self._link_entry(key, value)

    def link_delete_all(self, *sources: BytesLike) -> int:
        """Delete every link from the given sources, or all links; return the count."""
        heads = [bytes(_to_digest(s)) for s in sources] or [b""]
        count = 0
        for head in heads:
            with self._conn:
                count += self._delete_prefix(_LINKS, head)
        return count

    @staticmethod
    def _link_entry(key: bytes, value: bytes) -> Entry:
        source = Digest(key[:DIGEST_SIZE])
        target = Digest(key[DIGEST_SIZE:])
        relationship = value.decode("utf-8")
        return Entry(
            key=str(source.id()),
            value=target,
            source=source,
            target=target,
            relationships=(relationship,),
        )

    # -- trees -------------------------------------------------------------

    def tree_set(self, tree: Tree) -> None:
        """Store a computed tree, in an external file when it is too large."""
        data = tree.to_bytes()
        root = data[:DIGEST_SIZE]
        if self.tree_max_size == 0 or len(data) <= self.tree_max_size:
            with self._conn:
                self._put(_TREES, root, data)
            return
        location = write_file_data(self.storage, root, data)
        with self._conn:
            self._put(_PATHS, root, location.encode("utf-8"))
            self._put(_TREES, root, root)

    def tree_get(self, tree_digest: BytesLike) -> Optional[Tree]:
        """The tree whose root is ``tree_digest``, or ``None``."""
        root = bytes(_to_digest(tree_digest))
        data = self._get(_TREES, root)
        if data is None:
            return None
        if len(data) == DIGEST_SIZE:
            location = self._get(_PATHS, data)
            if location is None:
                return None
            with open(location.decode("utf-8"), "rb") as handle:
                data = handle.read()
        return Tree.from_bytes(data)

    def tree_delete(self, tree_digest: BytesLike) -> None:
        """Remove the tree whose root is ``tree_digest``."""
        root = bytes(_to_digest(tree_digest))
        with self._conn:
            self._delete(_TREES, root)
            self._delete(_PATHS, root)


class KeyBatch:
    """Collects key writes and commits them in batches of many keys."""

    def __init__(self, db: DB, batch_size: int = _BATCH_SIZE) -> None:
        self._db = db
        self._batch_size = batch_size
        self._pending: List[Tuple[bytes, Digest]] = []

    def key_set(self, key: str, digest: BytesLike) -> None:
        """Queue ``digest`` to be stored under ``key``."""
        self._pending.append((key.encode("utf-8"), _to_digest(digest)))
        if len(self._pending) >= self._batch_size:
            self._flush()

    def _flush(self) -> None:
        pending: Sequence[Tuple[bytes, Digest]] = self._pending
        self._pending = []
        with self._db._conn:
            for key, digest in pending:
                self._db._store_key(key, digest)

    def __enter__(self) -> "KeyBatch":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc_type is None:
            self._flush()
        else:
            self._pending.clear()