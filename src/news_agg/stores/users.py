"""Credential store: user identity records and the password-hashing step."""
import logging
from enum import Enum
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from news_agg.auth.passwords import PasswordHasher
from news_agg.db.models import User
from news_agg.errors import Conflict, NotFound, conflict_from_integrity
from news_agg.utils import normalize_email, utcnow

logger = logging.getLogger(__name__)


class OAuthProvider(str, Enum):
    GOOGLE = "google"
    FACEBOOK = "facebook"
    TWITTER = "twitter"

    @property
    def id_field(self) -> str:
        return f"{self.value}_id"


_UPDATABLE = frozenset(
    {"email", "name", "profile_picture", "role", "google_id", "facebook_id", "twitter_id"}
)


class CredentialStore:
    """Reads and writes User rows for one unit of work (session).

    Passwords come in as plaintext under ``password`` and are hashed here,
    explicitly: on create, and on update only when the plaintext differs from
    what the stored digest already encodes.
    """

    def __init__(self, session: Session, hasher: PasswordHasher) -> None:
        self._session = session
        self._hasher = hasher

    def find_by_id(self, user_id: int) -> User | None:
        return self._session.get(User, user_id)

    def find_by_email(self, email: str) -> User | None:
        statement = select(User).where(User.email == normalize_email(email))
        return self._session.exec(statement).first()

    def find_by_provider_id(self, provider: OAuthProvider, external_id: str) -> User | None:
        column = getattr(User, provider.id_field)
        return self._session.exec(select(User).where(column == external_id)).first()

    def get(self, user_id: int) -> User:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def create(self, *, email: str, name: str, password: str | None = None, **fields: Any) -> User:
        """Insert a user. Duplicate email or provider id raises Conflict."""
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)}")
        user = User(email=normalize_email(email), name=name, **fields)
        if password is not None:
            user.password_hash = self._hash_plaintext(password)
        return self._flush(user)

    def update(self, user_id: int, *, rehash: bool = False, **fields: Any) -> User:
        """Apply field changes; ``password`` is plaintext and re-hashed only if changed.

        With ``rehash`` a given password always gets a fresh salted hash.
        """
        user = self.get(user_id)
        password = fields.pop("password", None)
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)}")
        for key, value in fields.items():
            if key == "email" and value is not None:
                value = normalize_email(value)
            setattr(user, key, value)
        if password is not None and (rehash or self._password_changed(user, password)):
            user.password_hash = self._hash_plaintext(password)
        user.updated_at = utcnow()
        return self._flush(user)

    def _password_changed(self, user: User, plaintext: str) -> bool:
        if not user.password_hash:
            return True
        return not self._hasher.verify(plaintext, user.password_hash)

    def _hash_plaintext(self, plaintext: str) -> str:
        if self._hasher.is_hashed(plaintext):
            raise ValueError("Refusing to hash a value that is already a password hash")
        return self._hasher.hash(plaintext)

    def _flush(self, user: User) -> User:
        self._session.add(user)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            conflict = conflict_from_integrity(exc)
            logger.info("User write rejected: duplicate %s", conflict.field)
            raise conflict from exc
        self._session.refresh(user)
        return user