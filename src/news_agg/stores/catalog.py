"""News sources and categories known to the aggregator."""
from sqlmodel import Session, col, select

from news_agg.db.models import Category, NewsSource


class NewsSourceStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def active_sources(self, api_source: str | None = None) -> list[NewsSource]:
        statement = select(NewsSource).where(col(NewsSource.is_active).is_(True))
        if api_source:
            statement = statement.where(NewsSource.api_source == api_source)
        statement = statement.order_by(col(NewsSource.display_name), col(NewsSource.name))
        return list(self._session.exec(statement).all())

    def find_by_name(self, name: str) -> NewsSource | None:
        return self._session.exec(select(NewsSource).where(NewsSource.name == name)).first()

    def initialize(self, sources: list[dict]) -> list[NewsSource]:
        """Insert sources whose name is not present yet; existing names are skipped."""
        return _insert_missing(self._session, NewsSource, sources)


class CategoryStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def all(self) -> list[Category]:
        statement = select(Category).order_by(col(Category.display_name), col(Category.name))
        return list(self._session.exec(statement).all())

    def find_by_name(self, name: str) -> Category | None:
        return self._session.exec(select(Category).where(Category.name == name)).first()

    def by_names(self, names: list[str]) -> list[Category]:
        if not names:
            return []
        statement = select(Category).where(col(Category.name).in_(names))
        return list(self._session.exec(statement).all())

    def unknown_names(self, names: list[str]) -> list[str]:
        """Names from ``names`` that are not registered categories."""
        known = {c.name for c in self.by_names(names)}
        return sorted({n for n in names if n not in known})

    def initialize(self, categories: list[dict]) -> list[Category]:
        return _insert_missing(self._session, Category, categories)


def _insert_missing(session: Session, model, rows: list[dict]) -> list:  # noqa: ANN001
    names = {row["name"] for row in rows}
    existing = set(
        session.exec(select(model.name).where(col(model.name).in_(names))).all()
    )
    created = []
    for row in rows:
        if row["name"] in existing:
            continue
        existing.add(row["name"])
        created.append(model(**row))
    session.add_all(created)
    session.flush()
    for item in created:
        session.refresh(item)
    return created
