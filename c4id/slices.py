"""Sorted collections of C4 digests and IDs, and the ID of a collection."""

from __future__ import annotations

from bisect import bisect_left
from typing import Iterable, Iterator, List, Optional, Union, overload

from .core import DIGEST_SIZE, ID, BytesLike, Digest


def _as_digest(value: BytesLike) -> Digest:
    return value if isinstance(value, Digest) else Digest(bytes(value))


class DigestSlice:
    """A sorted list of unique digests.

    The digest of the whole collection is found by combining successive
    pairs, round after round, until a single digest remains.
    """

    def __init__(self, digests: Iterable[BytesLike] = ()) -> None:
        self._items: List[Digest] = []
        for digest in digests:
            self.insert(digest)

    def insert(self, digest: Optional[BytesLike]) -> int:
        """Insert in sorted order and return the insertion index.

        ``None`` is ignored and gives -1.  A digest already present is not
        inserted again; the result is then ``-(index + 1)``.
        """
        if digest is None:
            return -1
        digest = _as_digest(digest)
        position = self.index(digest)
        if position < len(self._items) and self._items[position] == digest:
            return -(position + 1)
        self._items.insert(position, digest)
        return position

    def digest(self) -> Optional[Digest]:
        """The digest of the collection, or ``None`` when it is empty."""
        level = list(self._items)
        if not level:
            return None
        while len(level) > 1:
            pairs = iter(level)
            combined = [left.sum(right) for left, right in zip(pairs, pairs)]
            if len(level) % 2:
                combined.append(level[-1])
            level = combined
        return level[0]

    def index(self, digest: BytesLike) -> int:
        """Position of ``digest``, or where it would be inserted."""
        return bisect_left(self._items, _as_digest(digest))

    def to_bytes(self) -> bytes:
        """All digests concatenated in order: 64 bytes per entry."""
        return b"".join(self._items)

    def write(self, data: BytesLike) -> int:
        """Insert every 64 byte digest in ``data``; return the bytes consumed."""
        raw = bytes(data)
        if len(raw) % DIGEST_SIZE:
            raise ValueError("input must be divisible by 64")
        for offset in range(0, len(raw), DIGEST_SIZE):
            self.insert(Digest(raw[offset:offset + DIGEST_SIZE]))
        return len(raw)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Digest]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> Digest: ...

    @overload
    def __getitem__(self, index: slice) -> List[Digest]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[Digest, List[Digest]]:
        return self._items[index]

    def __contains__(self, digest: object) -> bool:
        if not isinstance(digest, (bytes, bytearray, memoryview)):
            return False
        candidate = _as_digest(digest)
        position = self.index(candidate)
        return position < len(self._items) and self._items[position] == candidate

    def __repr__(self) -> str:
        return f"DigestSlice({len(self._items)} digests)"


class Slice:
    """A sorted list of unique IDs."""

    def __init__(self, ids: Iterable[Optional[ID]] = ()) -> None:
        self._items: List[ID] = []
        for id_ in ids:
            self.insert(id_)

    def insert(self, id_: Optional[ID]) -> None:
        """Insert in sorted order; ``None`` and duplicates are ignored."""
        if id_ is None:
            return
        position = self.index(id_)
        if position < len(self._items) and self._items[position] == id_:
            return
        self._items.insert(position, id_)

    def index(self, id_: Optional[ID]) -> int:
        """Position of ``id_``, or where it would go; -1 for ``None``."""
        if id_ is None:
            return -1
        return bisect_left(self._items, id_)

    def id(self) -> ID:
        """The ID of the collection; an empty collection gives the zero ID."""
        root = DigestSlice(id_.digest() for id_ in self._items).digest()
        if root is None:
            return ID(0)
        return root.id()

    def __str__(self) -> str:
        return "".join(str(id_) for id_ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ID]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> ID: ...

    @overload
    def __getitem__(self, index: slice) -> List[ID]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[ID, List[ID]]:
        return self._items[index]

    def __repr__(self) -> str:
        return f"Slice({len(self._items)} ids)"