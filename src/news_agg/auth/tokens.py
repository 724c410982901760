"""JWT issuance and verification for access, refresh and reset tokens.

Access and reset tokens share the access secret; refresh tokens use their own
secret. Every verification failure is an InvalidOrExpiredToken whose public
message never says which check failed; the subclass (and its ``reason``) is
only for logs.
"""
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from news_agg.config import Settings
from news_agg.db.models import User
from news_agg.errors import InvalidOrExpiredToken

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)


class TokenType(str, Enum):
    REFRESH = "refresh"
    RESET = "reset"


class TokenExpired(InvalidOrExpiredToken):
    reason = "expired"


class TokenMalformed(InvalidOrExpiredToken):
    reason = "malformed or bad signature"


class TokenTypeMismatch(InvalidOrExpiredToken):
    reason = "wrong token type"


def password_fingerprint(password_hash: str | None) -> str:
    """Short digest of the current password hash; changes whenever the password does."""
    return hashlib.sha256((password_hash or "").encode("utf-8")).hexdigest()[:16]


class TokenService:
    """Issues and verifies the three token kinds."""

    def __init__(
        self,
        secret: str,
        refresh_secret: str,
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(days=7),
        refresh_ttl: timedelta = timedelta(days=30),
    ) -> None:
        if secret == refresh_secret:
            raise ValueError("Access and refresh secrets must differ")
        self._secret = secret
        self._refresh_secret = refresh_secret
        self._algorithm = algorithm
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            settings.jwt_secret,
            settings.jwt_refresh_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=settings.access_token_ttl,
            refresh_ttl=settings.refresh_token_ttl,
        )

    @property
    def access_ttl(self) -> timedelta:
        return self._access_ttl

    def _sign(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str) -> dict[str, Any]:
        if not token:
            raise TokenMalformed()
        try:
            return jwt.decode(token, secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            logger.debug("Token rejected: expired")
            raise TokenExpired() from exc
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise TokenMalformed() from exc

    def issue_access(self, user: User) -> str:
        return self._sign(
            {"id": user.id, "email": user.email, "name": user.name},
            self._secret,
            self._access_ttl,
        )

    def issue_refresh(self, user: User) -> str:
        return self._sign(
            {"id": user.id, "type": TokenType.REFRESH.value},
            self._refresh_secret,
            self._refresh_ttl,
        )

    def issue_reset(self, user: User) -> str:
        return self._sign(
            {
                "id": user.id,
                "email": user.email,
                "type": TokenType.RESET.value,
                "fp": password_fingerprint(user.password_hash),
            },
            self._secret,
            RESET_TOKEN_TTL,
        )

    def issue_pair(self, user: User) -> tuple[str, str]:
        """(access, refresh) for a freshly authenticated user."""
        return self.issue_access(user), self.issue_refresh(user)

    def verify_access(self, token: str) -> dict[str, Any]:
        claims = self._decode(token, self._secret)
        # Reset tokens share the access secret; only untyped tokens are access tokens.
        if "type" in claims:
            logger.debug("Token rejected: %s token used as access token", claims.get("type"))
            raise TokenTypeMismatch()
        if "id" not in claims:
            raise TokenMalformed()
        return claims

    def verify_refresh(self, token: str) -> dict[str, Any]:
        claims = self._decode(token, self._refresh_secret)
        if claims.get("type") != TokenType.REFRESH.value:
            raise TokenTypeMismatch()
        return claims

    def verify_reset(self, token: str) -> dict[str, Any]:
        claims = self._decode(token, self._secret)
        if claims.get("type") != TokenType.RESET.value:
            logger.debug("Token rejected: %r token used as reset token", claims.get("type"))
            raise TokenTypeMismatch()
        return claims
