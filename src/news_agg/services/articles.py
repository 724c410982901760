"""Article reads (filtered, searched, personalized) and per-user bookmarks."""
from news_agg.db.models import Article, SavedArticle
from news_agg.stores.article_queries import (ArticleFilters, Pagination,
                                             filter_clauses,
                                             preference_clauses,
                                             search_clauses)
from news_agg.stores.articles import ArticleStore, Page
from news_agg.stores.preferences import PreferenceStore
from news_agg.stores.saved_articles import SavedArticleStore


class ArticleService:
    """Combines the query engine with the article, preference and bookmark stores."""

    def __init__(
        self,
        articles: ArticleStore,
        preferences: PreferenceStore,
        saved: SavedArticleStore,
    ) -> None:
        self._articles = articles
        self._preferences = preferences
        self._saved = saved

    def filter(self, filters: ArticleFilters, pagination: Pagination) -> Page[Article]:
        return self._articles.query(filter_clauses(filters), pagination)

    def search(self, q: str, filters: ArticleFilters, pagination: Pagination) -> Page[Article]:
        return self._articles.query(search_clauses(q) + filter_clauses(filters), pagination)

    def personalized(self, user_id: int, pagination: Pagination) -> Page[Article]:
        """Articles matching any of the user's preferences; everything if none are set."""
        preference, _ = self._preferences.get_or_create(user_id)
        return self._articles.query(preference_clauses(preference), pagination)

    def get(self, article_id: int, user_id: int | None = None) -> tuple[Article, bool | None]:
        """The article and, for an identified caller, whether they saved it."""
        article = self._articles.get(article_id)
        if user_id is None:
            return article, None
        return article, self._saved.is_saved(user_id, article_id)

    def save(self, user_id: int, article_id: int) -> tuple[SavedArticle, bool]:
        self._articles.get(article_id)
        return self._saved.save(user_id, article_id)

    def unsave(self, user_id: int, article_id: int) -> bool:
        return self._saved.unsave(user_id, article_id)

    def saved_for_user(
        self, user_id: int, pagination: Pagination
    ) -> Page[tuple[SavedArticle, Article]]:
        return self._saved.list_for_user(user_id, pagination)
