import pytest

from news_agg.auth.passwords import HashingError, PasswordHasher


@pytest.fixture()
def ph() -> PasswordHasher:
    return PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


def test_hash_is_salted_and_verifiable(ph):
    first = ph.hash("Sup3rSecret")
    second = ph.hash("Sup3rSecret")
    assert first != "Sup3rSecret"
    assert first != second
    assert ph.verify("Sup3rSecret", first)
    assert ph.verify("Sup3rSecret", second)


def test_wrong_password_does_not_verify(ph):
    digest = ph.hash("Sup3rSecret")
    assert ph.verify("sup3rsecret", digest) is False
    assert ph.verify("", digest) is False


def test_empty_password_cannot_be_hashed(ph):
    with pytest.raises(ValueError):
        ph.hash("")


def test_malformed_digest_raises(ph):
    with pytest.raises(HashingError):
        ph.verify("Sup3rSecret", "not-a-hash")


def test_is_hashed(ph):
    assert PasswordHasher.is_hashed(ph.hash("Sup3rSecret"))
    assert not PasswordHasher.is_hashed("Sup3rSecret")
    assert not PasswordHasher.is_hashed(None)
