"""Storage settings, statistics and file helpers for the C4 database."""

from __future__ import annotations

import json
import os
import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, MutableSequence, Optional, Sequence, Tuple, TypeVar, Union

from .core import BytesLike, Digest, new_digest

_T = TypeVar("_T")


class TreeStrategy(IntEnum):
    """How trees are kept in the database."""

    NONE = 0
    # Always store the entire tree.
    CACHE = 1
    # Store only the list of ids and compute the tree when restored.
    COMPUTE = 2
    # Balance automatically between caching and computing.
    BALANCE = 3


@dataclass
class Options:
    """Database settings, saved alongside the data."""

    # Trees larger than this many bytes are written to separate files;
    # 0 means no limit.
    tree_max_size: int = 0
    tree_strategy: TreeStrategy = TreeStrategy.NONE
    # Folders in which external files may be stored.
    external_store: List[str] = field(default_factory=list)

    def to_json(self) -> str:
        """Compact JSON text of the settings."""
        return json.dumps(
            {
                "TreeMaxSize": int(self.tree_max_size),
                "TreeStrategy": int(self.tree_strategy),
                "ExternalStore": list(self.external_store) or None,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Options":
        """Read settings from JSON text; missing fields take their defaults."""
        if isinstance(text, (bytes, bytearray, memoryview)):
            text = bytes(text).decode("utf-8")
        decoded = json.loads(text)
        if not isinstance(decoded, dict):
            raise ValueError("options must be a JSON object")
        store = decoded.get("ExternalStore") or []
        if not isinstance(store, list) or not all(isinstance(p, str) for p in store):
            raise ValueError("ExternalStore must be a list of paths")
        return cls(
            tree_max_size=int(decoded.get("TreeMaxSize") or 0),
            tree_strategy=TreeStrategy(int(decoded.get("TreeStrategy") or 0)),
            external_store=list(store),
        )


@dataclass
class Stats:
    """Counts of what the database holds."""

    keys: int = 0
    key_indexes: int = 0
    trees: int = 0
    links: int = 0
    trees_size: int = 0


@dataclass(frozen=True)
class Entry:
    """One item produced by a listing: a key and its value, or a link."""

    key: str = ""
    value: Optional[Digest] = None
    source: Optional[Digest] = None
    target: Optional[Digest] = None
    relationships: Tuple[str, ...] = ()
    error: Optional[Exception] = None


def shuffle(items: MutableSequence[_T]) -> None:
    """Shuffle ``items`` in place by swapping each position with a random one."""
    length = len(items)
    for position in range(length):
        other = random.randrange(length)
        if other != position:
            items[position], items[other] = items[other], items[position]


def write_file_data(paths: Sequence[Union[str, os.PathLike]], digest: BytesLike, data: bytes) -> str:
    """Store ``data`` under its C4 ID in one of the storage folders.

    Every folder is first checked for an existing copy of the right size,
    whose path is then returned.  Otherwise the folders are tried in random
    order until the data is written.  A storage folder that does not exist
    raises FileNotFoundError.
    """
    filename = str(new_digest(digest).id())
    candidates: List[str] = []
    for root in paths:
        root = os.fspath(root)
        if not os.path.exists(root):
            raise FileNotFoundError(f"storage location does not exist: {root}")
        full_path = os.path.join(root, filename[0:2], filename[2:4], filename)
        try:
            if os.path.getsize(full_path) == len(data):
                return full_path
        except OSError:
            pass
        candidates.append(full_path)

    shuffle(candidates)

    for full_path in candidates:
        os.makedirs(os.path.dirname(full_path), mode=0o700, exist_ok=True)
        try:
            with open(full_path, "wb") as handle:
                handle.write(data)
        except OSError:
            continue
        return full_path

    raise OSError(f"unable to store {filename} in any storage location")