"""Fixed-width C4 IDs that hold the 64 byte SHA-512 digest directly.

A :class:`FixedID` is the in-memory "digest" form of a C4 ID.  Its string
form is the standard 90 character C4 ID.  The all-zero value stands for an
unset ID.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import BinaryIO, Iterable, List, Optional, Union

from .core import BASE, CHARSET, DIGEST_SIZE, ID, ID_LENGTH, PREFIX, BytesLike, Digest, Encoder
from .errors import BadCharError, BadLengthError

_LOOKUP = {ord(char): value for value, char in enumerate(CHARSET)}
_CHUNK_SIZE = 1 << 16
_JSON_TRIM = "\"' \t"


@dataclass(frozen=True, order=True)
class FixedID:
    """A C4 ID stored as exactly 64 bytes; ordering follows the bytes."""

    data: bytes = bytes(DIGEST_SIZE)

    def __post_init__(self) -> None:
        raw = bytes(self.data)
        if len(raw) != DIGEST_SIZE:
            raise ValueError("a fixed C4 ID holds exactly 64 bytes")
        object.__setattr__(self, "data", raw)

    def is_nil(self) -> bool:
        """True when every byte is zero."""
        return not any(self.data)

    def digest(self) -> Digest:
        """The 64 byte digest of this ID."""
        return Digest(self.data)

    def cmp(self, other: Optional["FixedID"]) -> int:
        """Compare bytes: -1, 0 or 1.  A nil or missing ``other`` gives -1."""
        if other is None or other.is_nil():
            return -1
        return (self.data > other.data) - (self.data < other.data)

    def less(self, other: Optional["FixedID"]) -> bool:
        """True if this ID compares below ``other``."""
        return self.cmp(other) < 0

    def sum(self, other: "FixedID") -> "FixedID":
        """ID of the pair, hashing the lesser ID's bytes first.

        Identical IDs need no combining, so the ID itself is returned.
        """
        if self.data == other.data:
            return self
        low, high = sorted((self.data, other.data))
        return FixedID(hashlib.sha512(low + high).digest())

    def __str__(self) -> str:
        return str(ID(int.from_bytes(self.data, "big")))

    def __repr__(self) -> str:
        return f"FixedID({str(self)!r})"

    def to_json(self) -> str:
        """JSON text for this ID; a nil ID is written as an empty string."""
        if self.is_nil():
            return '""'
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "FixedID":
        """Read an ID from JSON text; an empty value gives the nil ID."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data).decode("utf-8")
        text = data.strip(_JSON_TRIM)
        if not text:
            return cls()
        return parse_fixed(text)


def parse_fixed(source: Union[str, bytes]) -> FixedID:
    """Parse a 90 character C4 ID string into a FixedID."""
    raw = source.encode("utf-8") if isinstance(source, str) else bytes(source)
    if len(raw) != ID_LENGTH:
        raise BadLengthError(len(raw))
    number = 0
    for position, byte in enumerate(raw[len(PREFIX):], start=len(PREFIX)):
        digit = _LOOKUP.get(byte)
        if digit is None:
            raise BadCharError(position)
        number = number * BASE + digit
    data = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return FixedID(data[:DIGEST_SIZE].rjust(DIGEST_SIZE, b"\0"))


def identify_fixed(src: Union[BytesLike, BinaryIO]) -> FixedID:
    """FixedID of bytes or of a binary stream; a read failure gives the nil ID."""
    encoder = Encoder()
    if isinstance(src, (bytes, bytearray, memoryview)):
        encoder.write(src)
    else:
        try:
            for chunk in iter(lambda: src.read(_CHUNK_SIZE), b""):
                encoder.write(chunk)
        except OSError:
            return FixedID()
    return FixedID(bytes(encoder.digest()))


def sorted_unique(ids: Iterable[FixedID]) -> List[FixedID]:
    """The IDs in ascending byte order with duplicates removed."""
    return sorted(set(ids))