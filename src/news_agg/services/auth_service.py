"""Account flows: registration, login, profile, password change/reset, token refresh.

AuthService works on one request's CredentialStore. Methods are synchronous
and are called from threadpool-run endpoints, so argon2 hashing never runs on
the event loop.
"""
import logging
from dataclasses import dataclass
from typing import Protocol

from news_agg.auth.strategies import (AuthenticationResolver, AuthStrategy,
                                      LocalCredentials, OAuthProfile)
from news_agg.auth.tokens import TokenService, password_fingerprint
from news_agg.db.models import Role, User
from news_agg.errors import (Conflict, InvalidCredentials,
                             InvalidOrExpiredToken, NotFound, ValidationFailed)
from news_agg.stores.users import CredentialStore

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a reset link has been sent"


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str
    refresh_token: str


class ResetNotifier(Protocol):
    """Delivers a reset token to the account owner (email, queue, ...)."""

    def send_reset(self, user: User, token: str) -> None:
        ...


class LoggingResetNotifier:
    """Stand-in delivery channel: records that a reset was issued, never the token."""

    def send_reset(self, user: User, token: str) -> None:  # noqa: ARG002
        logger.info("Password reset issued for user %s", user.id)


class AuthService:
    def __init__(
        self,
        users: CredentialStore,
        resolver: AuthenticationResolver,
        tokens: TokenService,
        notifier: ResetNotifier,
        *,
        admin_emails: tuple[str, ...] = (),
        return_reset_token: bool = False,
    ) -> None:
        self._users = users
        self._resolver = resolver
        self._tokens = tokens
        self._notifier = notifier
        self._admin_emails = admin_emails
        self._return_reset_token = return_reset_token

    def _issue(self, user: User) -> AuthResult:
        token, refresh = self._tokens.issue_pair(user)
        return AuthResult(user=user, token=token, refresh_token=refresh)

    def register(self, email: str, password: str, name: str) -> AuthResult:
        """Create a local account. A duplicate email (any case) is a Conflict."""
        role = Role.ADMIN if email.strip().lower() in self._admin_emails else Role.USER
        try:
            user = self._users.create(email=email, password=password, name=name, role=role)
        except Conflict as exc:
            if exc.field == "email":
                raise Conflict("User with this email already exists", field="email") from exc
            raise
        logger.info("Registered user %s", user.id)
        return self._issue(user)

    def login(self, email: str, password: str) -> AuthResult:
        user = self._resolver.resolve(AuthStrategy.LOCAL, LocalCredentials(email, password))
        return self._issue(user)

    def oauth_login(self, profile: OAuthProfile) -> AuthResult:
        user = self._resolver.resolve(AuthStrategy(profile.provider.value), profile)
        return self._issue(user)

    def authenticate_bearer(self, token: str) -> User:
        return self._resolver.resolve(AuthStrategy.TOKEN_BEARER, token)

    def refresh(self, refresh_token: str) -> AuthResult:
        claims = self._tokens.verify_refresh(refresh_token)
        user = self._users.find_by_id(claims["id"])
        if user is None:
            raise InvalidOrExpiredToken()
        return self._issue(user)

    def update_profile(
        self,
        user_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
        profile_picture: str | None = None,
    ) -> User:
        changes = {
            key: value
            for key, value in (("name", name), ("email", email), ("profile_picture", profile_picture))
            if value is not None
        }
        if not changes:
            return self._users.get(user_id)
        try:
            return self._users.update(user_id, **changes)
        except Conflict as exc:
            if exc.field == "email":
                raise Conflict("Email address already in use", field="email") from exc
            raise

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        user = self._users.get(user_id)
        try:
            self._resolver.resolve(AuthStrategy.LOCAL, LocalCredentials(user.email, current_password))
        except InvalidCredentials:
            raise InvalidCredentials("Current password is incorrect") from None
        self._users.update(user_id, password=new_password)
        logger.info("Password changed for user %s", user_id)

    def forgot_password(self, email: str) -> str | None:
        """Issue a reset token to an existing account's owner.

        The caller always answers with the same generic success; the token is
        returned only when the development flag allows it, else None.
        """
        user = self._users.find_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None
        token = self._tokens.issue_reset(user)
        self._notifier.send_reset(user, token)
        return token if self._return_reset_token else None

    def reset_password(self, reset_token: str, new_password: str) -> AuthResult:
        """Persist the new password, then start a fresh session."""
        try:
            claims = self._tokens.verify_reset(reset_token)
        except InvalidOrExpiredToken as exc:
            logger.info("Reset rejected: %s", exc.reason)
            raise ValidationFailed("Invalid or expired reset token") from exc
        user = self._users.find_by_id(claims["id"])
        if user is None:
            raise NotFound("User not found")
        if claims.get("fp") != password_fingerprint(user.password_hash):
            logger.info("Reset rejected for user %s: token already used", user.id)
            raise ValidationFailed("Invalid or expired reset token")
        user = self._users.update(user.id, password=new_password, rehash=True)
        logger.info("Password reset completed for user %s", user.id)
        return self._issue(user)
