"""Account routes: local auth, profile, password flows, refresh and OAuth handshakes."""
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from news_agg.auth.gate import CurrentUser
from news_agg.deps import AuthServiceDep, OAuthDep, SettingsDep
from news_agg.errors import AppError, NotFound
from news_agg.schemas import (ChangePasswordRequest, ForgotPasswordRequest,
                              LoginRequest, RefreshTokenRequest,
                              RegisterRequest, ResetPasswordRequest,
                              UpdateProfileRequest, ok, public_user)
from news_agg.services import AuthResult
from news_agg.services.auth_service import RESET_REQUESTED_MESSAGE
from news_agg.stores.users import OAuthProvider

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_payload(result: AuthResult, *, with_user: bool = True) -> dict:
    payload = {"token": result.token, "refreshToken": result.refresh_token}
    if with_user:
        payload = {"user": public_user(result.user), **payload}
    return payload


def _provider(name: str) -> OAuthProvider:
    try:
        return OAuthProvider(name.lower())
    except ValueError:
        raise NotFound(f"Unknown login provider '{name}'") from None


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, auth: AuthServiceDep) -> dict:
    result = auth.register(body.email, body.password, body.name)
    return ok(_session_payload(result), "User registered successfully")


@router.post("/login")
def login(body: LoginRequest, auth: AuthServiceDep) -> dict:
    result = auth.login(body.email, body.password)
    return ok(_session_payload(result), "Login successful")


@router.post("/logout")
def logout(request: Request, user: CurrentUser) -> dict:
    """Tokens are stateless; the client discards them. Clears the OAuth handshake session."""
    request.session.clear()
    logger.info("User %s logged out", user.id)
    return ok(None, "Logout successful")


@router.get("/me")
def me(user: CurrentUser) -> dict:
    return ok({"user": public_user(user)})


@router.put("/profile")
def update_profile(body: UpdateProfileRequest, user: CurrentUser, auth: AuthServiceDep) -> dict:
    updated = auth.update_profile(
        user.id, name=body.name, email=body.email, profile_picture=body.profile_picture
    )
    return ok({"user": public_user(updated)}, "Profile updated successfully")


@router.put("/change-password")
def change_password(body: ChangePasswordRequest, user: CurrentUser, auth: AuthServiceDep) -> dict:
    auth.change_password(user.id, body.current_password, body.new_password)
    return ok(None, "Password changed successfully")


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, auth: AuthServiceDep) -> dict:
    """Same answer whether or not the email belongs to an account."""
    token = auth.forgot_password(body.email)
    data = {"resetToken": token} if token else None
    return ok(data, RESET_REQUESTED_MESSAGE)


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest, auth: AuthServiceDep) -> dict:
    result = auth.reset_password(body.token, body.new_password)
    return ok(_session_payload(result, with_user=False), "Password reset successfully")


@router.post("/refresh-token")
def refresh_token(body: RefreshTokenRequest, auth: AuthServiceDep) -> dict:
    result = auth.refresh(body.refresh_token)
    return ok(_session_payload(result, with_user=False), "Token refreshed successfully")


@router.get("/{provider}")
async def oauth_start(provider: str, request: Request, oauth: OAuthDep):
    """Redirect to the provider's consent screen."""
    return await oauth.authorize_redirect(request, _provider(provider))


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: str,
    request: Request,
    oauth: OAuthDep,
    auth: AuthServiceDep,
    settings: SettingsDep,
) -> RedirectResponse:
    """Finish the handshake and hand the session tokens to the frontend."""
    oauth_provider = _provider(provider)
    try:
        profile = await oauth.fetch_profile(request, oauth_provider)
        result = await run_in_threadpool(auth.oauth_login, profile)
    except AppError as exc:
        logger.info("%s login failed: %s", oauth_provider.value, exc.message)
        return RedirectResponse(f"{settings.frontend_url}/login?error=oauth_failed")
    query = urlencode({"token": result.token, "refreshToken": result.refresh_token})
    return RedirectResponse(f"{settings.frontend_url}/auth/callback?{query}")
