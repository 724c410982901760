"""Service layer: account flows and article reads over the stores."""
from news_agg.services.articles import ArticleService
from news_agg.services.auth_service import (AuthResult, AuthService,
                                            LoggingResetNotifier,
                                            ResetNotifier)

__all__ = [
    "ArticleService",
    "AuthResult",
    "AuthService",
    "LoggingResetNotifier",
    "ResetNotifier",
]
