"""Authorization gate: FastAPI dependencies that resolve the bearer token.

- require_user: 401 unless a valid access token maps to an existing user.
- optional_user: same lookup, but any failure just means "anonymous".
- require_role(*roles): 401 without an identity, 403 when the role is not allowed.

The resolved user is also attached to ``request.state.user``.
"""
import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from news_agg.auth.strategies import AuthStrategy
from news_agg.db.models import Role, User
from news_agg.deps import ResolverDep
from news_agg.errors import (AuthenticationFailure, AuthorizationFailure,
                             InvalidOrExpiredToken)

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def optional_user(
    request: Request, credentials: BearerCredentials, resolver: ResolverDep
) -> User | None:
    """Identity for the bearer token if it is valid, else None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        user = resolver.resolve(AuthStrategy.TOKEN_BEARER, credentials.credentials)
    except InvalidOrExpiredToken as exc:
        logger.debug("Ignoring bearer token on optional route: %s", exc.reason)
        return None
    request.state.user = user
    return user


OptionalUser = Annotated[User | None, Depends(optional_user)]


def require_user(user: OptionalUser) -> User:
    if user is None:
        raise AuthenticationFailure()
    return user


CurrentUser = Annotated[User, Depends(require_user)]


def require_role(*roles: str):  # noqa: ANN201
    """Dependency factory: only identities whose role is in ``roles`` pass."""
    allowed = frozenset(roles)

    def _dependency(user: OptionalUser) -> User:
        if user is None:
            raise AuthenticationFailure()
        if allowed and user.role not in allowed:
            logger.info("User %s (role %s) denied; needs one of %s", user.id, user.role, sorted(allowed))
            raise AuthorizationFailure()
        return user

    return _dependency


AdminUser = Annotated[User, Depends(require_role(Role.ADMIN))]
