"""Database package: models and session management."""
from news_agg.db.models import (ApiLog, Article, Category, NewsSource,
                                Preference, Role, SavedArticle, User)

__all__ = [
    "ApiLog",
    "Article",
    "Category",
    "NewsSource",
    "Preference",
    "Role",
    "SavedArticle",
    "User",
]
