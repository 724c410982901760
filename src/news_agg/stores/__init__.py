"""Persistence boundary: one store per aggregate, each bound to a request session."""
from news_agg.stores.api_logs import ApiLogStore
from news_agg.stores.articles import ArticleStore, Page
from news_agg.stores.catalog import CategoryStore, NewsSourceStore
from news_agg.stores.preferences import PreferenceStore
from news_agg.stores.saved_articles import SavedArticleStore
from news_agg.stores.users import CredentialStore, OAuthProvider

__all__ = [
    "ApiLogStore",
    "ArticleStore",
    "CategoryStore",
    "CredentialStore",
    "NewsSourceStore",
    "OAuthProvider",
    "Page",
    "PreferenceStore",
    "SavedArticleStore",
]
