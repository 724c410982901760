import pytest
from sqlalchemy.exc import IntegrityError

from news_agg.errors import Conflict, NotFound, unique_violation_field
from news_agg.stores.users import OAuthProvider
from news_agg.utils import utcnow

from conftest import PASSWORD


def test_create_hashes_password_and_normalizes_email(users, hasher):
    user = users.create(email="  Reader@NewsMail.io ", name="Reader", password=PASSWORD)
    assert user.id is not None
    assert user.email == "reader@newsmail.io"
    assert user.password_hash != PASSWORD
    assert hasher.verify(PASSWORD, user.password_hash)
    assert users.find_by_email("READER@newsmail.io").id == user.id


def test_oauth_only_user_has_no_password_hash(users):
    user = users.create(email="social@newsmail.io", name="Social", google_id="g-1")
    assert user.password_hash is None
    assert users.find_by_provider_id(OAuthProvider.GOOGLE, "g-1").id == user.id


def test_timestamps_are_stored_as_naive_utc(users, session):
    before = utcnow()
    user = users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    session.commit()
    session.refresh(user)
    assert user.created_at.tzinfo is None
    assert before <= user.created_at <= utcnow()
    assert users.update(user.id, name="Renamed").updated_at >= user.created_at


def test_duplicate_email_in_any_case_conflicts(users, session):
    users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    session.commit()
    with pytest.raises(Conflict) as excinfo:
        users.create(email="READER@newsmail.io", name="Other", password=PASSWORD)
    assert excinfo.value.field == "email"
    assert excinfo.value.status_code == 409


def test_duplicate_provider_id_conflicts(users, session):
    users.create(email="a@newsmail.io", name="Ann", facebook_id="fb-1")
    session.commit()
    with pytest.raises(Conflict) as excinfo:
        users.create(email="b@newsmail.io", name="Bob", facebook_id="fb-1")
    assert excinfo.value.field == "facebook_id"


def test_update_without_password_keeps_hash(users):
    user = users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    digest = user.password_hash
    updated = users.update(user.id, name="Renamed")
    assert updated.name == "Renamed"
    assert updated.password_hash == digest


def test_update_with_same_password_does_not_rehash(users):
    user = users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    digest = user.password_hash
    assert users.update(user.id, password=PASSWORD).password_hash == digest


def test_rehash_writes_fresh_hash_for_same_password(users, hasher):
    user = users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    digest = user.password_hash
    updated = users.update(user.id, password=PASSWORD, rehash=True)
    assert updated.password_hash != digest
    assert hasher.verify(PASSWORD, updated.password_hash)


def test_update_with_new_password_rehashes(users, hasher):
    user = users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    digest = user.password_hash
    updated = users.update(user.id, password="N3wPassword")
    assert updated.password_hash != digest
    assert hasher.verify("N3wPassword", updated.password_hash)
    assert not hasher.verify(PASSWORD, updated.password_hash)


def test_already_hashed_value_is_refused(users, hasher):
    with pytest.raises(ValueError):
        users.create(email="reader@newsmail.io", name="Reader", password=hasher.hash(PASSWORD))


def test_unknown_fields_are_refused(users):
    user = users.create(email="reader@newsmail.io", name="Reader", password=PASSWORD)
    with pytest.raises(ValueError):
        users.update(user.id, password_hash="x")


def test_get_missing_user(users):
    with pytest.raises(NotFound):
        users.get(404)


@pytest.mark.parametrize(
    ("message", "field"),
    [
        ("UNIQUE constraint failed: users.email", "email"),
        ('duplicate key value violates unique constraint "ix_users_email"\n'
         "DETAIL:  Key (email)=(a@b.io) already exists.", "email"),
        ("(1062, \"Duplicate entry 'a@b.io' for key 'users.ix_users_email'\")", "email"),
        ("(1062, \"Duplicate entry 'g-1' for key 'users.google_id'\")", "google_id"),
        ("some other failure", None),
    ],
)
def test_unique_violation_field(message, field):
    exc = IntegrityError("INSERT ...", {}, Exception(message))
    assert unique_violation_field(exc) == field
