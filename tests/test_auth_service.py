import pytest

from news_agg.auth.strategies import AuthStrategy, OAuthProfile
from news_agg.db.models import Role
from news_agg.errors import (AuthenticationFailure, Conflict,
                             InvalidCredentials, InvalidOrExpiredToken,
                             ValidationFailed)
from news_agg.stores.users import OAuthProvider

from conftest import ADMIN_EMAIL, PASSWORD


def google(external_id: str, email: str) -> OAuthProfile:
    return OAuthProfile(
        provider=OAuthProvider.GOOGLE,
        external_id=external_id,
        email=email,
        display_name="Gail Google",
        photo_url="https://img.example.org/g.png",
    )


def twitter(external_id: str, username: str) -> OAuthProfile:
    return OAuthProfile(
        provider=OAuthProvider.TWITTER, external_id=external_id, username=username
    )


def test_register_then_login(auth_service):
    registered = auth_service.register("reader@newsmail.io", PASSWORD, "Reader")
    assert registered.user.role == Role.USER
    assert auth_service.authenticate_bearer(registered.token).id == registered.user.id

    logged_in = auth_service.login("Reader@NewsMail.io", PASSWORD)
    assert logged_in.user.id == registered.user.id


def test_register_admin_email_gets_admin_role(auth_service):
    assert auth_service.register(ADMIN_EMAIL, PASSWORD, "Admin").user.role == Role.ADMIN


def test_register_duplicate_email(auth_service, session):
    auth_service.register("reader@newsmail.io", PASSWORD, "Reader")
    session.commit()
    with pytest.raises(Conflict) as excinfo:
        auth_service.register("READER@newsmail.io", PASSWORD, "Reader Two")
    assert excinfo.value.message == "User with this email already exists"


@pytest.mark.parametrize(
    ("email", "password"),
    [("reader@newsmail.io", "Wr0ngPassword"), ("nobody@newsmail.io", PASSWORD)],
)
def test_login_failures_are_indistinguishable(auth_service, email, password):
    auth_service.register("reader@newsmail.io", PASSWORD, "Reader")
    with pytest.raises(InvalidCredentials) as excinfo:
        auth_service.login(email, password)
    assert excinfo.value.message == "Invalid email or password"


def test_oauth_only_account_cannot_login_locally(auth_service):
    auth_service.oauth_login(google("g-1", "social@newsmail.io"))
    with pytest.raises(InvalidCredentials):
        auth_service.login("social@newsmail.io", PASSWORD)


def test_oauth_creates_account(auth_service):
    result = auth_service.oauth_login(google("g-1", "gail@newsmail.io"))
    assert result.user.google_id == "g-1"
    assert result.user.password_hash is None
    assert result.user.name == "Gail Google"
    assert result.user.profile_picture == "https://img.example.org/g.png"
    assert auth_service.oauth_login(google("g-1", "gail@newsmail.io")).user.id == result.user.id


def test_oauth_links_existing_local_account(auth_service, hasher):
    local = auth_service.register("gail@newsmail.io", PASSWORD, "Gail").user
    linked = auth_service.oauth_login(google("g-1", "Gail@NewsMail.io")).user
    assert linked.id == local.id
    assert linked.google_id == "g-1"
    assert hasher.verify(PASSWORD, linked.password_hash)


def test_oauth_mismatched_provider_id_keeps_existing_link(auth_service):
    first = auth_service.oauth_login(google("g-1", "gail@newsmail.io")).user
    second = auth_service.oauth_login(google("g-2", "gail@newsmail.io")).user
    assert second.id == first.id
    assert second.google_id == "g-1"


def test_twitter_without_email_uses_placeholder(auth_service):
    user = auth_service.oauth_login(twitter("tw-1", "jdoe")).user
    assert user.email == "jdoe@twitter.placeholder"
    assert user.twitter_id == "tw-1"
    assert user.name == "jdoe"


def test_twitter_placeholder_never_links_unlinked_account(auth_service):
    auth_service.register("jdoe@twitter.placeholder", PASSWORD, "Squatter")
    with pytest.raises(AuthenticationFailure):
        auth_service.oauth_login(twitter("tw-1", "jdoe"))


def test_twitter_placeholder_with_other_id_is_refused(auth_service):
    auth_service.oauth_login(twitter("tw-1", "jdoe"))
    with pytest.raises(AuthenticationFailure):
        auth_service.oauth_login(twitter("tw-2", "jdoe"))


def test_resolver_rejects_profile_for_other_provider(resolver):
    with pytest.raises(ValueError):
        resolver.resolve(AuthStrategy.FACEBOOK, google("g-1", "gail@newsmail.io"))


def test_bearer_for_deleted_user(auth_service, session):
    result = auth_service.register("reader@newsmail.io", PASSWORD, "Reader")
    session.delete(result.user)
    session.flush()
    with pytest.raises(InvalidOrExpiredToken):
        auth_service.authenticate_bearer(result.token)


def test_refresh_issues_new_pair(auth_service):
    registered = auth_service.register("reader@newsmail.io", PASSWORD, "Reader")
    refreshed = auth_service.refresh(registered.refresh_token)
    assert refreshed.user.id == registered.user.id
    assert auth_service.authenticate_bearer(refreshed.token).id == registered.user.id
    with pytest.raises(InvalidOrExpiredToken):
        auth_service.refresh(registered.token)


def test_change_password(auth_service):
    user = auth_service.register("reader@newsmail.io", PASSWORD, "Reader").user
    with pytest.raises(InvalidCredentials) as excinfo:
        auth_service.change_password(user.id, "Wr0ngPassword", "N3wPassword")
    assert excinfo.value.message == "Current password is incorrect"

    auth_service.change_password(user.id, PASSWORD, "N3wPassword")
    assert auth_service.login("reader@newsmail.io", "N3wPassword").user.id == user.id
    with pytest.raises(InvalidCredentials):
        auth_service.login("reader@newsmail.io", PASSWORD)


def test_update_profile_email_conflict(auth_service, session):
    auth_service.register("taken@newsmail.io", PASSWORD, "Taken")
    user = auth_service.register("reader@newsmail.io", PASSWORD, "Reader").user
    session.commit()
    with pytest.raises(Conflict) as excinfo:
        auth_service.update_profile(user.id, email="TAKEN@newsmail.io")
    assert excinfo.value.message == "Email address already in use"


def test_update_profile_changes_only_given_fields(auth_service):
    user = auth_service.register("reader@newsmail.io", PASSWORD, "Reader").user
    updated = auth_service.update_profile(user.id, name="New Name")
    assert updated.name == "New Name"
    assert updated.email == "reader@newsmail.io"


def test_forgot_password_is_enumeration_safe(auth_service, notifier):
    assert auth_service.forgot_password("nobody@newsmail.io") is None
    assert notifier.sent == []

    user = auth_service.register("reader@newsmail.io", PASSWORD, "Reader").user
    token = auth_service.forgot_password("reader@newsmail.io")
    assert token is not None
    assert notifier.sent == [(user.id, token)]


def test_reset_password_persists_and_is_single_use(auth_service):
    user = auth_service.register("reader@newsmail.io", PASSWORD, "Reader").user
    token = auth_service.forgot_password("reader@newsmail.io")

    result = auth_service.reset_password(token, "N3wPassword")
    assert auth_service.authenticate_bearer(result.token).id == user.id
    assert auth_service.login("reader@newsmail.io", "N3wPassword").user.id == user.id
    with pytest.raises(InvalidCredentials):
        auth_service.login("reader@newsmail.io", PASSWORD)

    with pytest.raises(ValidationFailed) as excinfo:
        auth_service.reset_password(token, "An0therPassword")
    assert excinfo.value.message == "Invalid or expired reset token"


def test_reset_token_cannot_be_replayed_with_same_password(auth_service):
    auth_service.register("reader@newsmail.io", PASSWORD, "Reader")
    token = auth_service.forgot_password("reader@newsmail.io")

    auth_service.reset_password(token, PASSWORD)
    with pytest.raises(ValidationFailed) as excinfo:
        auth_service.reset_password(token, PASSWORD)
    assert excinfo.value.message == "Invalid or expired reset token"
    assert auth_service.login("reader@newsmail.io", PASSWORD).user.email == "reader@newsmail.io"


def test_reset_password_rejects_access_token(auth_service):
    registered = auth_service.register("reader@newsmail.io", PASSWORD, "Reader")
    with pytest.raises(ValidationFailed):
        auth_service.reset_password(registered.token, "N3wPassword")
