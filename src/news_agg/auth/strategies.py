"""Authentication strategies: one resolver per way a caller can prove identity.

The set is closed. AuthenticationResolver.resolve() dispatches on the
AuthStrategy tag and each strategy turns its credential input into a User or
raises an AuthenticationFailure.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from news_agg.auth.passwords import HashingError, PasswordHasher
from news_agg.auth.tokens import TokenService
from news_agg.db.models import Role, User
from news_agg.errors import AuthenticationFailure, InvalidCredentials, InvalidOrExpiredToken
from news_agg.stores.users import CredentialStore, OAuthProvider

logger = logging.getLogger(__name__)

PLACEHOLDER_DOMAIN = "{provider}.placeholder"


class AuthStrategy(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    TOKEN_BEARER = "token_bearer"

    @property
    def oauth_provider(self) -> OAuthProvider | None:
        try:
            return OAuthProvider(self.value)
        except ValueError:
            return None


@dataclass(frozen=True)
class LocalCredentials:
    email: str
    password: str


@dataclass(frozen=True)
class OAuthProfile:
    """Provider-neutral view of the profile an OAuth provider returned."""

    provider: OAuthProvider
    external_id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    username: str | None = None

    @property
    def has_placeholder_email(self) -> bool:
        return not self.email

    def login_email(self) -> str:
        """The verified email, or ``<username>@<provider>.placeholder`` when there is none."""
        if self.email:
            return self.email
        handle = self.username or self.external_id
        return f"{handle}@{PLACEHOLDER_DOMAIN.format(provider=self.provider.value)}"

    def login_name(self) -> str:
        if self.display_name and self.display_name.strip():
            return self.display_name.strip()
        return self.username or self.login_email().split("@", 1)[0]


class AuthenticationResolver:
    """Resolves credential input to a User for a given strategy."""

    def __init__(
        self,
        users: CredentialStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        *,
        admin_emails: tuple[str, ...] = (),
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        self._admin_emails = admin_emails
        self._strategies: dict[AuthStrategy, Callable[[Any], User]] = {
            AuthStrategy.LOCAL: self._resolve_local,
            AuthStrategy.GOOGLE: self._resolve_oauth,
            AuthStrategy.FACEBOOK: self._resolve_oauth,
            AuthStrategy.TWITTER: self._resolve_oauth,
            AuthStrategy.TOKEN_BEARER: self._resolve_bearer,
        }

    def resolve(self, strategy: AuthStrategy, credential_input: Any) -> User:
        if strategy.oauth_provider is not None and (
            not isinstance(credential_input, OAuthProfile)
            or credential_input.provider != strategy.oauth_provider
        ):
            raise ValueError(f"{strategy.value} strategy needs an OAuthProfile for that provider")
        return self._strategies[strategy](credential_input)

    def _resolve_local(self, credentials: LocalCredentials) -> User:
        user = self._users.find_by_email(credentials.email)
        # Same error for unknown email, OAuth-only account and wrong password.
        if user is None or not user.password_hash:
            logger.info("Local login rejected: no usable account")
            raise InvalidCredentials()
        try:
            matches = self._hasher.verify(credentials.password, user.password_hash)
        except HashingError:
            logger.error("User %s has a malformed password hash", user.id)
            raise InvalidCredentials() from None
        if not matches:
            logger.info("Local login rejected for user %s: wrong password", user.id)
            raise InvalidCredentials()
        return user

    def _resolve_bearer(self, token: str) -> User:
        claims = self._tokens.verify_access(token)
        user = self._users.find_by_id(claims["id"])
        if user is None:
            logger.info("Bearer token for missing user %s", claims["id"])
            raise InvalidOrExpiredToken()
        return user

    def _resolve_oauth(self, profile: OAuthProfile) -> User:
        provider = profile.provider
        id_field = provider.id_field

        user = self._users.find_by_provider_id(provider, profile.external_id)
        if user is not None:
            return user

        email = profile.login_email()
        user = self._users.find_by_email(email)
        if user is None:
            logger.info("Creating OAuth-only account via %s", provider.value)
            return self._users.create(
                email=email,
                name=profile.login_name(),
                profile_picture=profile.photo_url,
                role=self._role_for(email),
                **{id_field: profile.external_id},
            )

        linked_id = getattr(user, id_field)
        if linked_id is None:
            if profile.has_placeholder_email:
                # A synthetic email only proves the username, which can be reused
                # by someone else; never link an existing account through it.
                logger.warning(
                    "Refusing %s login: placeholder email %s matches unlinked user %s",
                    provider.value, email, user.id,
                )
                raise AuthenticationFailure("Unable to link this account")
            changes: dict[str, Any] = {id_field: profile.external_id}
            if not user.profile_picture and profile.photo_url:
                changes["profile_picture"] = profile.photo_url
            return self._users.update(user.id, **changes)

        # linked_id differs from profile.external_id (same id was matched above).
        logger.warning(
            "%s id mismatch for user %s; existing linkage kept", provider.value, user.id
        )
        if profile.has_placeholder_email:
            raise AuthenticationFailure("Unable to link this account")
        return user

    def _role_for(self, email: str) -> str:
        return Role.ADMIN if email.strip().lower() in self._admin_emails else Role.USER
