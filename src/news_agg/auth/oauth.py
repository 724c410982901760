"""OAuth handshakes for Google, Facebook and Twitter (Authlib Starlette client).

Only providers with credentials configured are registered. After the
callback each provider's raw profile is normalized into an OAuthProfile.
"""
import logging
from typing import Any

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from starlette.requests import Request

from news_agg.auth.strategies import OAuthProfile
from news_agg.config import Settings
from news_agg.errors import AuthenticationFailure, NotFound
from news_agg.stores.users import OAuthProvider

logger = logging.getLogger(__name__)

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
FACEBOOK_GRAPH_URL = "https://graph.facebook.com/v19.0/"
TWITTER_API_URL = "https://api.twitter.com/1.1/"


class OAuthRegistry:
    """Registered OAuth clients plus per-provider profile normalization."""

    def __init__(self, settings: Settings) -> None:
        self._oauth = OAuth()
        self._callbacks: dict[OAuthProvider, str] = {}
        if settings.google.enabled:
            self._oauth.register(
                name=OAuthProvider.GOOGLE.value,
                client_id=settings.google.client_id,
                client_secret=settings.google.client_secret,
                server_metadata_url=GOOGLE_DISCOVERY_URL,
                client_kwargs={"scope": "openid email profile"},
            )
            self._callbacks[OAuthProvider.GOOGLE] = settings.google.callback_url
        if settings.facebook.enabled:
            self._oauth.register(
                name=OAuthProvider.FACEBOOK.value,
                client_id=settings.facebook.client_id,
                client_secret=settings.facebook.client_secret,
                access_token_url=f"{FACEBOOK_GRAPH_URL}oauth/access_token",
                authorize_url="https://www.facebook.com/v19.0/dialog/oauth",
                api_base_url=FACEBOOK_GRAPH_URL,
                client_kwargs={"scope": "email public_profile"},
            )
            self._callbacks[OAuthProvider.FACEBOOK] = settings.facebook.callback_url
        if settings.twitter.enabled:
            self._oauth.register(
                name=OAuthProvider.TWITTER.value,
                client_id=settings.twitter.client_id,
                client_secret=settings.twitter.client_secret,
                request_token_url="https://api.twitter.com/oauth/request_token",
                access_token_url="https://api.twitter.com/oauth/access_token",
                authorize_url="https://api.twitter.com/oauth/authenticate",
                api_base_url=TWITTER_API_URL,
            )
            self._callbacks[OAuthProvider.TWITTER] = settings.twitter.callback_url

    @property
    def enabled_providers(self) -> list[OAuthProvider]:
        return list(self._callbacks)

    def _client(self, provider: OAuthProvider):  # noqa: ANN202
        if provider not in self._callbacks:
            raise NotFound(f"{provider.value} login is not configured")
        return self._oauth.create_client(provider.value)

    async def authorize_redirect(self, request: Request, provider: OAuthProvider):  # noqa: ANN201
        """Redirect response that starts the provider's consent screen."""
        client = self._client(provider)
        return await client.authorize_redirect(request, self._callbacks[provider])

    async def fetch_profile(self, request: Request, provider: OAuthProvider) -> OAuthProfile:
        """Complete the callback and return the normalized profile."""
        client = self._client(provider)
        try:
            token = await client.authorize_access_token(request)
            if provider is OAuthProvider.GOOGLE:
                raw = token.get("userinfo") or (await client.userinfo(token=token))
                return google_profile(raw)
            if provider is OAuthProvider.FACEBOOK:
                resp = await client.get(
                    "me", params={"fields": "id,name,email,picture"}, token=token
                )
                resp.raise_for_status()
                return facebook_profile(resp.json())
            resp = await client.get(
                "account/verify_credentials.json",
                params={"include_email": "true", "skip_status": "true"},
                token=token,
            )
            resp.raise_for_status()
            return twitter_profile(resp.json())
        except OAuthError as exc:
            logger.info("%s OAuth callback failed: %s", provider.value, exc.error)
            raise AuthenticationFailure("OAuth authentication failed") from exc
        except httpx.HTTPError as exc:
            logger.info("%s profile request failed: %s", provider.value, exc)
            raise AuthenticationFailure("OAuth authentication failed") from exc


def _missing_id(provider: OAuthProvider) -> AuthenticationFailure:
    return AuthenticationFailure(f"Incomplete {provider.value} profile")


def google_profile(raw: dict[str, Any]) -> OAuthProfile:
    external_id = raw.get("sub") or raw.get("id")
    if not external_id or not raw.get("email"):
        raise _missing_id(OAuthProvider.GOOGLE)
    return OAuthProfile(
        provider=OAuthProvider.GOOGLE,
        external_id=str(external_id),
        email=raw["email"],
        display_name=raw.get("name"),
        photo_url=raw.get("picture"),
    )


def facebook_profile(raw: dict[str, Any]) -> OAuthProfile:
    if not raw.get("id") or not raw.get("email"):
        raise _missing_id(OAuthProvider.FACEBOOK)
    picture = ((raw.get("picture") or {}).get("data") or {}).get("url")
    return OAuthProfile(
        provider=OAuthProvider.FACEBOOK,
        external_id=str(raw["id"]),
        email=raw["email"],
        display_name=raw.get("name"),
        photo_url=picture,
    )


def twitter_profile(raw: dict[str, Any]) -> OAuthProfile:
    external_id = raw.get("id_str") or raw.get("id")
    if not external_id:
        raise _missing_id(OAuthProvider.TWITTER)
    return OAuthProfile(
        provider=OAuthProvider.TWITTER,
        external_id=str(external_id),
        email=raw.get("email") or None,
        display_name=raw.get("name"),
        photo_url=raw.get("profile_image_url_https"),
        username=raw.get("screen_name"),
    )
