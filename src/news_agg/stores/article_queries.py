"""Article query engine: turns filters and preferences into SQL clauses.

Nothing here touches the database; the functions only build the WHERE
clauses and pagination that ArticleStore.query() executes.

Filter mode ANDs its criteria; personalized mode ORs the user's preference
sets. Both degrade to match-all when given nothing to match on.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sqlalchemy import ColumnElement, or_
from sqlmodel import col

from news_agg.db.models import Article, Preference
from news_agg.errors import ValidationFailed

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MIN_SEARCH_LENGTH = 2

ORDERING = (col(Article.published_at).desc().nulls_last(), col(Article.id).desc())


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _contains(column, text: str) -> ColumnElement[bool]:  # noqa: ANN001
    """Case-insensitive substring match with LIKE wildcards escaped."""
    return col(column).ilike(_like_pattern(text), escape="\\")


@dataclass(frozen=True)
class Pagination:
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @classmethod
    def from_params(
        cls, limit: int | None = None, offset: int | None = None, page: int | None = None
    ) -> "Pagination":
        """Validate limit/offset; ``page`` (1-based) replaces offset when given."""
        limit = DEFAULT_LIMIT if limit is None else limit
        if not 1 <= limit <= MAX_LIMIT:
            raise ValidationFailed.for_field("limit", f"Limit must be between 1 and {MAX_LIMIT}")
        if page is not None:
            if page < 1:
                raise ValidationFailed.for_field("page", "Page must be a positive integer")
            return cls(limit=limit, offset=(page - 1) * limit)
        offset = 0 if offset is None else offset
        if offset < 0:
            raise ValidationFailed.for_field("offset", "Offset must be zero or greater")
        return cls(limit=limit, offset=offset)

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1


@dataclass(frozen=True)
class ArticleFilters:
    """Explicit filter criteria; every field is optional."""

    source: str | None = None
    category: str | None = None
    author: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def clauses(self) -> list[ColumnElement[bool]]:
        where: list[ColumnElement[bool]] = []
        if self.source:
            where.append(col(Article.source_name) == self.source)
        if self.category:
            where.append(col(Article.category) == self.category)
        if self.author:
            where.append(_contains(Article.author, self.author))
        if self.start_date is not None:
            where.append(col(Article.published_at) >= self.start_date)
        if self.end_date is not None:
            where.append(col(Article.published_at) <= self.end_date)
        return where


def filter_clauses(filters: ArticleFilters) -> list[ColumnElement[bool]]:
    if (
        filters.start_date is not None
        and filters.end_date is not None
        and filters.start_date > filters.end_date
    ):
        raise ValidationFailed.for_field("endDate", "End date must not be before start date")
    return filters.clauses()


def personalized_clauses(
    sources: Iterable[str] = (),
    categories: Iterable[str] = (),
    authors: Iterable[str] = (),
) -> list[ColumnElement[bool]]:
    """OR across the preference sets; empty sets yield no clause (match-all)."""
    sources, categories, authors = list(sources), list(categories), list(authors)
    alternatives: list[ColumnElement[bool]] = []
    if sources:
        alternatives.append(col(Article.source_name).in_(sources))
    if categories:
        alternatives.append(col(Article.category).in_(categories))
    alternatives.extend(_contains(Article.author, author) for author in authors)
    if not alternatives:
        return []
    return [or_(*alternatives)]


def preference_clauses(preference: Preference | None) -> list[ColumnElement[bool]]:
    if preference is None:
        return []
    return personalized_clauses(
        preference.preferred_sources or (),
        preference.preferred_categories or (),
        preference.preferred_authors or (),
    )


def search_clauses(q: str) -> list[ColumnElement[bool]]:
    """Substring search over title and description."""
    term = (q or "").strip()
    if len(term) < MIN_SEARCH_LENGTH:
        raise ValidationFailed.for_field(
            "q", f"Search query must be at least {MIN_SEARCH_LENGTH} characters"
        )
    return [or_(_contains(Article.title, term), _contains(Article.description, term))]
