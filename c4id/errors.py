"""Exceptions raised while parsing and decoding C4 identifiers."""

from __future__ import annotations


class C4Error(ValueError):
    """Base class for all C4 identifier errors."""


class BadCharError(C4Error):
    """A character outside the C4 base58 alphabet was found."""

    def __init__(self, position: int) -> None:
        self.position = position
        super().__init__(f"non c4 id character at position {position}")


class BadLengthError(C4Error):
    """An ID string did not have the required 90 characters."""

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(
            f"c4 ids must be 90 characters long, input length {length}"
        )


class NilIDError(C4Error):
    """An ID was required but none could be produced."""

    def __init__(self) -> None:
        super().__init__("unexpected nil id")


class InvalidTreeError(C4Error):
    """Serialized tree data is malformed."""

    def __init__(self) -> None:
        super().__init__("invalid tree data")