import pytest

from news_agg.auth.oauth import (facebook_profile, google_profile,
                                 twitter_profile)
from news_agg.errors import AuthenticationFailure
from news_agg.stores.users import OAuthProvider


def test_google_profile():
    profile = google_profile(
        {"sub": "1234", "email": "gail@newsmail.io", "name": "Gail", "picture": "https://p/g.png"}
    )
    assert profile.provider is OAuthProvider.GOOGLE
    assert profile.external_id == "1234"
    assert profile.login_email() == "gail@newsmail.io"
    assert profile.photo_url == "https://p/g.png"


def test_facebook_profile_reads_nested_picture():
    profile = facebook_profile(
        {
            "id": 42,
            "email": "fay@newsmail.io",
            "name": "Fay",
            "picture": {"data": {"url": "https://p/f.png"}},
        }
    )
    assert profile.external_id == "42"
    assert profile.photo_url == "https://p/f.png"


def test_twitter_profile_without_email_gets_placeholder():
    profile = twitter_profile({"id_str": "99", "screen_name": "jdoe", "name": ""})
    assert profile.has_placeholder_email
    assert profile.login_email() == "jdoe@twitter.placeholder"
    assert profile.login_name() == "jdoe"


@pytest.mark.parametrize(
    ("normalize", "raw"),
    [
        (google_profile, {"email": "x@newsmail.io"}),
        (google_profile, {"sub": "1"}),
        (facebook_profile, {"id": "1"}),
        (twitter_profile, {"screen_name": "jdoe"}),
    ],
)
def test_incomplete_profiles_are_rejected(normalize, raw):
    with pytest.raises(AuthenticationFailure):
        normalize(raw)
