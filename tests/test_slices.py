import pytest

from c4id.core import MAX_ID, VOID_ID, Digest, Encoder, identify, parse
from c4id.slices import DigestSlice, Slice

TEST_VECTORS = ["alfa", "bravo", "charlie", "delta", "echo", "foxtrot", "golf", "hotel", "india"]
TEST_VECTOR_IDS = [
    [
        "c43zYcLni5LF9rR4Lg4B8h3Jp8SBwjcnyyeh4bc6gTPHndKuKdjUWx1kJPYhZxYt3zV6tQXpDs2shPsPYjgG81wZM1",
        "c42jd8KUQG9DKppN1qt5aWS3PAmdPmNutXyVTb8H123FcuU3shPxpUXsVdcouSALZ4PaDvMYzQSMYCWkb6rop9zhDa",
        "c44erLietE8C1iKmQ3y4ENqA9g82Exdkoxox3KEHops2ux5MTsuMjfbFRvUPsPdi9Pxc3C2MRvLxWT8eFw5XKbRQGw",
        "c42Sv2Wi2Qo8AKbJKnUP6YTSdz8pt9aDaf2Ltx44HF1UDdXANM8Ltk6qEzpncvmVbw6FZxgBumw9Eo2jtGyaQ5gDSC",
        "c41bviGCyTM2stoMYVTVKgBkfC6SitoLRFinp77BcmN9awdaeC9cxPy4zyFQBhmTvRzChawbECK1KBRnw3KnagA5be",
        "c427CsZdfUAHyQBS3hxDFrL9NqgKeRuKkuSkxuYTm26XG7AKAWCjViDuMhHaMmQBkvuHnsxojetbQU1DdxHjzyQw8r",
        "c41yLiwAPdsjiBAAw8AFwQGG3cAWnNbDio21NtHE8yD1Fh5irRE4FsccZvm1WdJ4FNHtR1kt5kev7wERsgYomaQbfs",
        "c44nNyaFuVbt5MCfo2PYWHpwMkBpYTbt14C6TuoLCYH5RLvAFLngER3nqHfXC2GuttcoDxGBi3pY1j3pUF2W3rZD8N",
        "c41nJ6CvPN7m7UkUA3oS2yjXYNSZ7WayxEQXWPae6wFkWwW8WChQWTu61bSeuCERu78BDK1LUEny1qHZnye3oU7DtY",
    ],
    [
        "c42zjM4ARWVNHVkHsaiEWMAxzngUk8op167Dsm1iNpGfxdQBmhwjhWshKRqacPQw3MKwj7kAVxqBwSxADRDKQFAbtu",
        "c45y4hGsfLRcoDpccf7vh8oaEvuFV5UePJmoXWg2W8fr2EqPHLxucBJMmPSXN1wv45okRdjEXkbZn1KzapPwUhYhgz",
        "c41DGFq9sEb7jVmfsvPWnB8R8nENZp1xfoMbS5kK8TkCDpCT28A3wXsAbj8L5ojNLJrENh4UPmrqBCqJvRtG3oeavt",
        "c453g2FnSZnHyUsM95Hs63wVTLmaJLgcB6HULNY7G6xeKggUPsdtN39e9C2qzkoMWKB9gWHVX6aigy1uSzAvyVoS7R",
        "c44nNyaFuVbt5MCfo2PYWHpwMkBpYTbt14C6TuoLCYH5RLvAFLngER3nqHfXC2GuttcoDxGBi3pY1j3pUF2W3rZD8N",
    ],
]
FINAL_ID = "c435RzTWWsjWD1Fi7dxS3idJ7vFgPVR96oE95RfDDT5ue7hRSPENePDjPDJdnV46g7emDzWK8LzJUjGESMG5qzuXqq"


def _vector_digests():
    encoder = Encoder()
    digests = []
    for word in TEST_VECTORS:
        encoder.write(word.encode())
        digests.append(encoder.digest())
        encoder.reset()
    return digests


@pytest.fixture
def digests():
    ds = DigestSlice()
    for digest in _vector_digests():
        ds.insert(digest)
    return ds


def test_vector_identification():
    for word, expected in zip(TEST_VECTORS, TEST_VECTOR_IDS[0]):
        assert str(identify(word.encode())) == expected


def test_digest_slice_order(digests):
    assert len(digests) == len(TEST_VECTORS)
    assert [str(d.id()) for d in digests] == sorted(TEST_VECTOR_IDS[0])


def test_digest_slice_final_id(digests):
    assert str(digests.digest().id()) == FINAL_ID


def test_digest_sum_matches_first_round(digests):
    items = list(digests)
    round_one = [parse(s).digest() for s in TEST_VECTOR_IDS[1]]
    for pair_index in range(4):
        left = items[2 * pair_index]
        right = items[2 * pair_index + 1]
        assert left.sum(right) == round_one[pair_index]
        assert right.sum(left) == round_one[pair_index]


def test_digest_sum_of_identical_digest_is_itself():
    digest = identify(b"foo").digest()
    assert digest.sum(digest) == digest


def test_digest_slice_reader_writer(digests):
    data = digests.to_bytes()
    assert len(data) == len(digests) * 64
    assert data == b"".join(bytes(d) for d in digests)
    other = DigestSlice()
    assert other.write(data) == len(data)
    assert len(other) == len(digests)
    assert [str(d.id()) for d in other] == [str(d.id()) for d in digests]


def test_digest_slice_write_rejects_partial_digest():
    ds = DigestSlice()
    with pytest.raises(ValueError, match="divisible by 64"):
        ds.write(b"\x01" * 65)
    assert len(ds) == 0


def test_insert_return_values():
    ds = DigestSlice()
    small = Digest(bytes(63) + b"\x01")
    large = Digest(b"\xff" * 64)
    assert ds.insert(None) == -1
    assert ds.insert(large) == 0
    assert ds.insert(small) == 0
    assert ds.insert(large) == -2
    assert ds.insert(small) == -1
    assert list(ds) == [small, large]


def test_index_of_missing_digest():
    ds = DigestSlice([Digest(bytes(63) + b"\x01"), Digest(bytes(63) + b"\x05")])
    assert ds.index(Digest(bytes(63) + b"\x03")) == 1
    assert ds.index(Digest(b"\xff" * 64)) == 2
    assert Digest(bytes(63) + b"\x05") in ds


def test_digest_slice_empty_and_single():
    assert DigestSlice().digest() is None
    digest = identify(b"foo").digest()
    assert DigestSlice([digest]).digest() == digest


def test_slice_sort():
    ids = Slice()
    ids.insert(MAX_ID)
    ids.insert(VOID_ID)
    assert str(ids[0]) == "c4" + "1" * 88
    assert str(ids[1]) == (
        "c467rpwLCuS5DGA8KGZXKsVQ7dnPb9goRLoKfgGbLfQg9WoLUgNY77E2jT11fem3coV9nAkguBACzrU1iyZM4B8roQ"
    )


def test_slice_string():
    ids = Slice()
    foo = identify(b"foo")
    bar = identify(b"bar")
    ids.insert(foo)
    ids.insert(bar)
    assert str(ids) == str(bar) + str(foo)


def test_slice_index():
    ids = Slice()
    foo = identify(b"foo")
    bar = identify(b"bar")
    baz = identify(b"baz")
    for id_ in (foo, bar, baz):
        ids.insert(id_)
    assert ids.index(foo) == 2
    assert ids.index(bar) == 1
    assert ids.index(baz) == 0
    assert ids.index(None) == -1


def test_slice_ignores_none_and_duplicates():
    foo = identify(b"foo")
    ids = Slice([foo, None, foo])
    assert len(ids) == 1
    assert list(ids) == [foo]


def test_slice_id_of_vectors():
    ids = Slice(parse(s) for s in TEST_VECTOR_IDS[0])
    assert str(ids.id()) == FINAL_ID


def test_slice_id_single_and_empty():
    foo = identify(b"foo")
    assert Slice([foo]).id() == foo
    assert Slice().id() == VOID_ID