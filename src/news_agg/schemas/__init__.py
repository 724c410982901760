"""Pydantic schemas for request validation and response bodies. Not persisted to DB."""
import re
from datetime import datetime
from typing import Any

from pydantic import (BaseModel, ConfigDict, EmailStr, Field, field_validator,
                      model_validator)

_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
_URL_RULE = re.compile(r"^https?://\S+$")


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Success envelope: {"success": true, "message"?, "data"}."""
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    return body


def _strong_password(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not _PASSWORD_RULE.match(value):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return value


def _clean_name(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not 2 <= len(value) <= 255:
        raise ValueError("Name must be between 2 and 255 characters long")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Auth requests ---


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str
    name: str

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _strong_password(value)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _clean_name(value)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UpdateProfileRequest(CamelModel):
    name: str | None = None
    email: EmailStr | None = None
    profile_picture: str | None = Field(default=None, alias="profilePicture")

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str | None) -> str | None:
        return _clean_name(value)

    @field_validator("profile_picture")
    @classmethod
    def check_picture_url(cls, value: str | None) -> str | None:
        if value is not None and not _URL_RULE.match(value):
            raise ValueError("Profile picture must be a valid URL")
        return value


class _NewPasswordMixin(CamelModel):
    new_password: str = Field(alias="newPassword")
    confirm_password: str | None = Field(default=None, alias="confirmPassword")

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, value: str) -> str:
        return _strong_password(value)

    @model_validator(mode="after")
    def check_passwords_match(self) -> "_NewPasswordMixin":
        if self.confirm_password is not None and self.confirm_password != self.new_password:
            raise ValueError("Passwords do not match")
        return self


class ChangePasswordRequest(_NewPasswordMixin):
    current_password: str = Field(alias="currentPassword", min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(_NewPasswordMixin):
    token: str = Field(min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(alias="refreshToken", min_length=1)


# --- Responses ---


class UserPublic(BaseModel):
    """A user as returned to clients; the password hash never appears here."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    profile_picture: str | None = None
    role: str
    google_linked: bool = False
    facebook_linked: bool = False
    twitter_linked: bool = False
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def from_user_row(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return data
        return {
            "id": data.id,
            "email": data.email,
            "name": data.name,
            "profile_picture": data.profile_picture,
            "role": data.role,
            "google_linked": data.google_id is not None,
            "facebook_linked": data.facebook_id is not None,
            "twitter_linked": data.twitter_id is not None,
            "created_at": data.created_at,
            "updated_at": data.updated_at,
        }


def public_user(user: Any) -> dict[str, Any]:
    return UserPublic.model_validate(user).model_dump(mode="json")


class ArticleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    content: str | None = None
    author: str | None = None
    source_name: str | None = None
    source_id: str | None = None
    category: str | None = None
    published_at: datetime | None = None
    url: str | None = None
    url_to_image: str | None = None


class PreferenceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    preferred_sources: list[str] = []
    preferred_categories: list[str] = []
    preferred_authors: list[str] = []
    updated_at: datetime


class PreferenceUpdate(BaseModel):
    """Each list replaces the stored set; omitted lists are left unchanged."""

    preferred_sources: list[str] | None = None
    preferred_categories: list[str] | None = None
    preferred_authors: list[str] | None = None


class NewsSourceIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    display_name: str | None = None
    website_url: str | None = None
    api_source: str | None = None
    is_active: bool = True

    @field_validator("website_url")
    @classmethod
    def check_website_url(cls, value: str | None) -> str | None:
        if value is not None and not _URL_RULE.match(value):
            raise ValueError("Invalid website URL format")
        return value


class NewsSourceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    display_name: str | None = None
    website_url: str | None = None
    api_source: str | None = None
    is_active: bool


class CategoryIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    display_name: str | None = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    display_name: str | None = None


class ApiLogIn(BaseModel):
    api_source: str = Field(min_length=1, max_length=100)
    endpoint: str | None = None
    status_code: int | None = None
    response_time_ms: int | None = Field(default=None, ge=0)


class ApiLogOut(ApiLogIn):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime


def page_payload(items: list[Any], total: int, limit: int, offset: int) -> dict[str, Any]:
    return {
        "items": items,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "page": offset // limit + 1,
            "pages": (total + limit - 1) // limit,
        },
    }


__all__ = [
    "ApiLogIn",
    "ApiLogOut",
    "ArticleOut",
    "CategoryIn",
    "CategoryOut",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "LoginRequest",
    "NewsSourceIn",
    "NewsSourceOut",
    "PreferenceOut",
    "PreferenceUpdate",
    "RefreshTokenRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "UpdateProfileRequest",
    "UserPublic",
    "ok",
    "page_payload",
    "public_user",
]
