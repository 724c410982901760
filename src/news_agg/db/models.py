"""Database models for the news aggregation service."""
from datetime import datetime

from sqlalchemy import JSON, Column, ForeignKey, Integer, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from news_agg.utils import utcnow


class Role:
    USER = "user"
    ADMIN = "admin"


class User(SQLModel, table=True):
    """Account identity. password_hash is None for OAuth-only accounts."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str | None = Field(default=None, max_length=255)
    name: str = Field(max_length=255)
    google_id: str | None = Field(default=None, max_length=255, unique=True)
    facebook_id: str | None = Field(default=None, max_length=255, unique=True)
    twitter_id: str | None = Field(default=None, max_length=255, unique=True)
    profile_picture: str | None = Field(default=None, max_length=512)
    role: str = Field(default=Role.USER, max_length=20)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Preference(SQLModel, table=True):
    """Per-user preferred sources, categories and authors (stored as sorted sets)."""

    __tablename__ = "user_preferences"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
            unique=True,
            nullable=False,
        )
    )
    preferred_sources: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    preferred_categories: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    preferred_authors: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Article(SQLModel, table=True):
    """A news article; url is the dedup key for ingestion."""

    __tablename__ = "articles"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(sa_column=Column(Text, nullable=False))
    description: str | None = Field(default=None, sa_column=Column(Text))
    content: str | None = Field(default=None, sa_column=Column(Text))
    author: str | None = Field(default=None, max_length=255)
    source_name: str | None = Field(default=None, max_length=255, index=True)
    source_id: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=100, index=True)
    published_at: datetime | None = Field(default=None, index=True)
    url: str | None = Field(default=None, max_length=2048, unique=True)
    url_to_image: str | None = Field(default=None, max_length=2048)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class SavedArticle(SQLModel, table=True):
    """Bookmark joining a user and an article; at most one row per pair."""

    __tablename__ = "saved_articles"
    __table_args__ = (UniqueConstraint("user_id", "article_id", name="unique_user_article"),)

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    article_id: int = Field(
        sa_column=Column(
            Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    saved_at: datetime = Field(default_factory=utcnow)


class NewsSource(SQLModel, table=True):
    """A publisher known to the aggregator."""

    __tablename__ = "news_sources"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
    display_name: str | None = Field(default=None, max_length=255)
    website_url: str | None = Field(default=None, max_length=512)
    api_source: str | None = Field(default=None, max_length=100)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True)
    display_name: str | None = Field(default=None, max_length=100)
    created_at: datetime = Field(default_factory=utcnow)


class ApiLog(SQLModel, table=True):
    """One call made to an upstream news API."""

    __tablename__ = "api_logs"

    id: int | None = Field(default=None, primary_key=True)
    api_source: str = Field(max_length=100, index=True)
    endpoint: str | None = Field(default=None, max_length=255)
    status_code: int | None = None
    response_time_ms: int | None = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
