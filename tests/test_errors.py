import pytest

from c4id.errors import (
    BadCharError,
    BadLengthError,
    C4Error,
    InvalidTreeError,
    NilIDError,
)


def test_bad_char_message_and_position():
    err = BadCharError(3)
    assert str(err) == "non c4 id character at position 3"
    assert err.position == 3


def test_bad_length_message_and_length():
    err = BadLengthError(89)
    assert str(err) == "c4 ids must be 90 characters long, input length 89"
    assert err.length == 89


def test_nil_id_message():
    assert str(NilIDError()) == "unexpected nil id"


def test_invalid_tree_message():
    assert str(InvalidTreeError()) == "invalid tree data"


@pytest.mark.parametrize(
    "cls, args, message",
    [
        (BadCharError, (5,), "non c4 id character at position 5"),
        (BadLengthError, (0,), "c4 ids must be 90 characters long, input length 0"),
        (NilIDError, (), "unexpected nil id"),
        (InvalidTreeError, (), "invalid tree data"),
    ],
)
def test_all_errors_share_base(cls, args, message):
    err = cls(*args)
    assert str(err) == message
    assert isinstance(err, C4Error)
    assert isinstance(err, ValueError)


def test_errors_can_be_caught_by_base():
    err = BadLengthError(12)
    assert err.length == 12
    with pytest.raises(C4Error) as info:
        raise err
    assert str(info.value) == "c4 ids must be 90 characters long, input length 12"