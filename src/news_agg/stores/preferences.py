"""Preference store: one row of preferred sources/categories/authors per user."""
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from news_agg.db.models import Preference
from news_agg.utils import unique_strings, utcnow

PREFERENCE_FIELDS = ("preferred_sources", "preferred_categories", "preferred_authors")


class PreferenceStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find(self, user_id: int) -> Preference | None:
        statement = select(Preference).where(Preference.user_id == user_id)
        return self._session.exec(statement).first()

    def get_or_create(self, user_id: int) -> tuple[Preference, bool]:
        """Return (preference, created). Concurrent creators fall back to the winner's row."""
        existing = self.find(user_id)
        if existing is not None:
            return existing, False
        preference = Preference(user_id=user_id)
        try:
            with self._session.begin_nested():
                self._session.add(preference)
        except IntegrityError:
            existing = self.find(user_id)
            if existing is None:
                raise
            return existing, False
        self._session.refresh(preference)
        return preference, True

    def update(self, user_id: int, **changes: list[str] | None) -> Preference:
        """Replace the given preference sets; fields left out (or None) keep their value."""
        unknown = set(changes) - set(PREFERENCE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown preference fields: {sorted(unknown)}")
        preference, _ = self.get_or_create(user_id)
        for field, values in changes.items():
            if values is not None:
                setattr(preference, field, unique_strings(values))
        preference.updated_at = utcnow()
        self._session.add(preference)
        self._session.flush()
        self._session.refresh(preference)
        return preference
