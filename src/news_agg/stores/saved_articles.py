"""Saved-article store: per-user bookmarks, unique per (user, article)."""
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from news_agg.db.models import Article, SavedArticle
from news_agg.stores.article_queries import Pagination
from news_agg.stores.articles import Page


class SavedArticleStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find(self, user_id: int, article_id: int) -> SavedArticle | None:
        statement = select(SavedArticle).where(
            SavedArticle.user_id == user_id, SavedArticle.article_id == article_id
        )
        return self._session.exec(statement).first()

    def save(self, user_id: int, article_id: int) -> tuple[SavedArticle, bool]:
        """Insert the bookmark; an existing pair is returned with created=False.

        The unique constraint decides, so two racing saves cannot both insert.
        """
        saved = SavedArticle(user_id=user_id, article_id=article_id)
        try:
            with self._session.begin_nested():
                self._session.add(saved)
        except IntegrityError:
            existing = self.find(user_id, article_id)
            if existing is None:
                raise
            return existing, False
        self._session.refresh(saved)
        return saved, True

    def unsave(self, user_id: int, article_id: int) -> bool:
        saved = self.find(user_id, article_id)
        if saved is None:
            return False
        self._session.delete(saved)
        self._session.flush()
        return True

    def is_saved(self, user_id: int, article_id: int) -> bool:
        return self.find(user_id, article_id) is not None

    def list_for_user(
        self, user_id: int, pagination: Pagination
    ) -> Page[tuple[SavedArticle, Article]]:
        statement = (
            select(SavedArticle, Article)
            .join(Article, col(Article.id) == col(SavedArticle.article_id))
            .where(SavedArticle.user_id == user_id)
            .order_by(col(SavedArticle.saved_at).desc(), col(SavedArticle.id).desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        count = (
            select(func.count())
            .select_from(SavedArticle)
            .where(SavedArticle.user_id == user_id)
        )
        rows = [(saved, article) for saved, article in self._session.exec(statement).all()]
        total = self._session.exec(count).one()
        return Page(rows=rows, total=total, pagination=pagination)
