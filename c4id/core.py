"""C4 IDs: base58-encoded SHA-512 identifiers and their 64-byte digests.

A C4 ID is a 90 character string made of the prefix ``c4`` followed by the
base58 encoding of a SHA-512 hash, left padded with ``1``.  In memory the
hash itself is held as a 64 byte :class:`Digest`.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from .errors import BadCharError, BadLengthError, NilIDError

CHARSET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
BASE = 58
ID_LENGTH = 90
DIGEST_SIZE = 64
PREFIX = "c4"

_PADDING = CHARSET[0]
_LOOKUP = {ord(char): value for value, char in enumerate(CHARSET)}
_CHUNK_SIZE = 1 << 16

BytesLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True, order=True)
class ID:
    """A C4 ID, held as the non-negative integer value of its digest."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("ID value must be an int")
        if self.value < 0:
            raise ValueError("ID value must not be negative")

    def __str__(self) -> str:
        digits = []
        number = self.value
        while number > 0:
            number, remainder = divmod(number, BASE)
            digits.append(CHARSET[remainder])
        width = ID_LENGTH - len(PREFIX)
        if len(digits) > width:
            raise ValueError("ID value is too large to encode")
        return PREFIX + "".join(reversed(digits)).rjust(width, _PADDING)

    def __repr__(self) -> str:
        try:
            return f"ID({str(self)!r})"
        except ValueError:
            return f"ID(value={self.value})"

    def digest(self) -> "Digest":
        """Return the 64 byte digest this ID encodes."""
        if self.value.bit_length() > DIGEST_SIZE * 8:
            raise ValueError("ID value does not fit in a 64 byte digest")
        return Digest(self.value.to_bytes(DIGEST_SIZE, "big"))

    def cmp(self, other: Optional["ID"]) -> int:
        """Compare numerically: -1, 0 or 1.  A missing ``other`` gives -1."""
        if other is None:
            return -1
        return (self.value > other.value) - (self.value < other.value)

    def less(self, other: Optional["ID"]) -> bool:
        """True if this ID compares below ``other``."""
        return self.cmp(other) < 0

    def to_bytes(self) -> bytes:
        """Binary form: the 64 byte digest."""
        return bytes(self.digest())

    @classmethod
    def from_bytes(cls, data: BytesLike) -> "ID":
        """Build an ID from up to 64 bytes of digest data."""
        if len(data) > DIGEST_SIZE:
            raise NilIDError()
        return new_digest(data).id()

    def to_json(self) -> str:
        """JSON text for this ID; the zero ID is written as an empty string."""
        if self.value == 0:
            return '""'
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> Optional["ID"]:
        """Read an ID from JSON text; ``null`` gives ``None``."""
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        decoded = json.loads(data)
        if decoded is None:
            return None
        if not isinstance(decoded, str):
            raise TypeError("a C4 ID must be a JSON string")
        return parse(decoded)


class Digest(bytes):
    """A raw C4 digest: the SHA-512 hash bytes behind an ID."""

    def sum(self, other: BytesLike) -> "Digest":
        """Digest of the pair, hashing the lesser digest first.

        Identical digests need no combining, so the digest itself is returned.
        """
        other = bytes(other)
        if bytes(self) == other:
            return self
        if bytes(self) < other:
            low, high = bytes(self), other
        else:
            low, high = other, bytes(self)
        return new_digest(hashlib.sha512(low + high).digest())

    def id(self) -> ID:
        """The C4 ID of these bytes, read directly and not rehashed."""
        return ID(int.from_bytes(self, "big"))


def new_digest(data: BytesLike) -> Digest:
    """Make a Digest, left padding with zero bytes to 64 bytes."""
    raw = bytes(data)
    if len(raw) > DIGEST_SIZE:
        raise ValueError("a digest holds at most 64 bytes")
    return Digest(raw.rjust(DIGEST_SIZE, b"\0"))


class Encoder:
    """Incrementally identify a contiguous block of data."""

    def __init__(self) -> None:
        self._hash = hashlib.sha512()

    def write(self, data: BytesLike) -> int:
        """Add bytes to the data being identified; return how many."""
        self._hash.update(data)
        return len(data)

    def id(self) -> ID:
        """The ID of the bytes written so far."""
        return self.digest().id()

    def digest(self) -> Digest:
        """The digest of the bytes written so far."""
        return new_digest(self._hash.digest())

    def reset(self) -> None:
        """Start over so new data can be identified."""
        self._hash = hashlib.sha512()


def identify(src: Union[BytesLike, BinaryIO]) -> ID:
    """Return the C4 ID of bytes or of everything read from a binary stream."""
    encoder = Encoder()
    if isinstance(src, (bytes, bytearray, memoryview)):
        encoder.write(src)
    else:
        for chunk in iter(lambda: src.read(_CHUNK_SIZE), b""):
            encoder.write(chunk)
    return encoder.id()


def parse(source: Union[str, bytes]) -> ID:
    """Parse a 90 character C4 ID string."""
    raw = source.encode("utf-8") if isinstance(source, str) else bytes(source)
    if len(raw) != ID_LENGTH:
        raise BadLengthError(len(raw))
    number = 0
    for position, byte in enumerate(raw[len(PREFIX):], start=len(PREFIX)):
        digit = _LOOKUP.get(byte)
        if digit is None:
            raise BadCharError(position)
        number = number * BASE + digit
    return ID(number)


NIL_ID = identify(b"")
VOID_ID = Digest(bytes(DIGEST_SIZE)).id()
MAX_ID = Digest(b"\xff" * DIGEST_SIZE).id()