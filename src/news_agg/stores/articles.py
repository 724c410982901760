"""Article store: executes query-engine clauses with ordering and pagination."""
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from sqlalchemy import ColumnElement, func
from sqlmodel import Session, select

from news_agg.db.models import Article
from news_agg.errors import NotFound
from news_agg.stores.article_queries import ORDERING, Pagination

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    rows: list[T] = field(default_factory=list)
    total: int = 0
    pagination: Pagination = field(default_factory=Pagination)


class ArticleStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, article_id: int) -> Article:
        article = self._session.get(Article, article_id)
        if article is None:
            raise NotFound("Article not found")
        return article

    def query(
        self, where: Sequence[ColumnElement[bool]], pagination: Pagination
    ) -> Page[Article]:
        """Rows matching every clause in ``where``, newest first, plus the total count."""
        statement = (
            select(Article)
            .where(*where)
            .order_by(*ORDERING)
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        count = select(func.count()).select_from(Article).where(*where)
        rows = list(self._session.exec(statement).all())
        total = self._session.exec(count).one()
        return Page(rows=rows, total=total, pagination=pagination)
