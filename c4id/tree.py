"""C4 ID trees: a sorted Merkle tree stored as one flat block of digests.

Leaves are held in sorted order and each parent hashes its lesser child
first, so a given set of digests always yields the same root.  Rows are
laid out root first, each following the one above it.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .core import DIGEST_SIZE, ID, BytesLike, Digest, new_digest
from .errors import InvalidTreeError, NilIDError


def row_and_size(length: int) -> Tuple[int, int]:
    """Number of rows and total number of nodes for ``length`` leaves."""
    rows, size = 1, 1
    while length > 1:
        rows += 1
        size += length
        length = (length + 1) // 2
    return rows, size


def tree_size(length: int) -> int:
    """Total number of nodes needed for a list of ``length`` leaves."""
    return row_and_size(length)[1]


def list_size(total: int) -> int:
    """Number of leaves in a tree holding ``total`` nodes."""
    if total < 1:
        raise InvalidTreeError()
    high = (total + 1) // 2
    low = high - (total.bit_length() - 1)
    if tree_size(low) == total:
        return low
    if tree_size(high) == total:
        return high
    while True:
        length = (high + low) // 2
        if length == low:
            raise InvalidTreeError()
        size = tree_size(length)
        if size > total:
            high = length
        elif size < total:
            low = length
        else:
            return length


def _row_ranges(length: int, rows: int, nodes: int) -> List[Tuple[int, int]]:
    ranges = [(0, 1)] * rows
    offset = nodes - length
    remaining = length
    for row in range(rows - 1, 0, -1):
        ranges[row] = (offset, offset + remaining)
        remaining = (remaining + 1) // 2
        offset -= remaining
    return ranges


def _combine(left: bytes, right: bytes) -> bytes:
    low, high = sorted((left, right))
    return hashlib.sha512(low + high).digest()


class Tree:
    """A tree of digests over a sorted list of leaf digests."""

    def __init__(self, digests: Iterable[BytesLike] = ()) -> None:
        leaves = [new_digest(digest) for digest in digests]
        self._allocate(len(leaves))
        start, _ = self._ranges[-1]
        self._data[start * DIGEST_SIZE:(start + len(leaves)) * DIGEST_SIZE] = b"".join(leaves)

    def _allocate(self, length: int) -> None:
        rows, nodes = row_and_size(length)
        self._data = bytearray(nodes * DIGEST_SIZE)
        self._ranges = _row_ranges(length, rows, nodes)

    def _node_digest(self, flat: int) -> Digest:
        return Digest(bytes(self._data[flat * DIGEST_SIZE:(flat + 1) * DIGEST_SIZE]))

    def id_count(self) -> int:
        """Number of leaf digests."""
        return self.count()

    def node_count(self) -> int:
        """Number of nodes in the whole tree."""
        return len(self._data) // DIGEST_SIZE

    def row_count(self) -> int:
        """Number of rows, the root row included."""
        return len(self._ranges)

    def row(self, index: int) -> List[Digest]:
        """The digests of one row; row 0 holds the root."""
        start, end = self._ranges[index]
        return [self._node_digest(flat) for flat in range(start, end)]

    def at(self, row: int, index: int) -> Digest:
        """The digest at a position within a row."""
        start, end = self._ranges[row]
        if not 0 <= index < end - start:
            raise IndexError("tree index out of range")
        return self._node_digest(start + index)

    def compute(self) -> Digest:
        """Fill in every row above the leaves and return the root digest."""
        for upper in range(len(self._ranges) - 2, -1, -1):
            children = self.row(upper + 1)
            pairs = iter(children)
            parents = [_combine(left, right) for left, right in zip(pairs, pairs)]
            if len(children) % 2:
                parents.append(children[-1])
            start, _ = self._ranges[upper]
            self._data[start * DIGEST_SIZE:(start + len(parents)) * DIGEST_SIZE] = b"".join(parents)
        return self.digest()

    def __str__(self) -> str:
        return "".join(str(self._node_digest(flat).id()) for flat in range(self.node_count()))

    def length(self) -> int:
        """Number of digests in the entire tree."""
        return self.node_count()

    def size(self) -> int:
        """Number of bytes in the binary form of the tree."""
        return len(self._data)

    def count(self) -> int:
        """Number of items in the list this tree represents."""
        start, end = self._ranges[-1]
        return end - start

    def id(self) -> ID:
        """The ID of the root."""
        return self.digest().id()

    def digest(self) -> Digest:
        """The root digest."""
        return self._node_digest(0)

    def to_bytes(self) -> bytes:
        """Binary form: every node's digest, root first.

        Raises NilIDError if the root has not been computed.
        """
        if not any(self._data[:DIGEST_SIZE]):
            raise NilIDError()
        return bytes(self._data)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> "Tree":
        """Rebuild a tree from its binary form, checking the root."""
        raw = bytes(data)
        if len(raw) < 3 * DIGEST_SIZE:
            raise InvalidTreeError()
        root, first, second = (
            Digest(raw[offset:offset + DIGEST_SIZE])
            for offset in (0, DIGEST_SIZE, 2 * DIGEST_SIZE)
        )
        if second.sum(first) != root:
            raise InvalidTreeError()
        length = list_size(len(raw) // DIGEST_SIZE)
        tree = cls.__new__(cls)
        tree._allocate(length)
        available = min(len(raw), len(tree._data))
        tree._data[:available] = raw[:available]
        return tree

    def node(self, index: int) -> "Node":
        """The node at a flat position in the tree, counting from the root."""
        if not 0 <= index < self.node_count():
            raise IndexError("tree node index out of range")
        for row, (start, end) in enumerate(self._ranges):
            if start <= index < end:
                return Node(self, row, index - start)
        raise IndexError("tree node index out of range")

    def __repr__(self) -> str:
        return f"Tree(count={self.count()}, nodes={self.node_count()})"


@dataclass(frozen=True)
class Node:
    """One node of a tree: its label digest and its children."""

    tree: Tree = field(repr=False, compare=False)
    row: int
    index: int

    def parent(self) -> "Node":
        """The node above this one; the root is its own parent."""
        if self.row == 0:
            return self
        return Node(self.tree, self.row - 1, self.index // 2)

    def label(self) -> Digest:
        """The digest stored at this node."""
        return self.tree.at(self.row, self.index)

    def left(self) -> Optional[Digest]:
        """The lesser-positioned child, or ``None`` for a leaf."""
        if self.row + 1 >= self.tree.row_count():
            return None
        return self.tree.at(self.row + 1, 2 * self.index)

    def right(self) -> Optional[Digest]:
        """The second child, or ``None`` for a leaf or a carried-up node."""
        if self.row + 1 >= self.tree.row_count():
            return None
        position = 2 * self.index + 1
        if position >= len(self.tree.row(self.row + 1)):
            return None
        return self.tree.at(self.row + 1, position)