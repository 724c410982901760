"""Salted, adaptive password hashing (argon2id)."""
from argon2 import PasswordHasher as _Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

HASH_PREFIX = "$argon2"


class HashingError(Exception):
    """Raised when a stored digest cannot be parsed."""


class PasswordHasher:
    """Hash and verify passwords with a fixed argon2 work factor.

    verify() returns False on mismatch and only raises HashingError when the
    stored digest itself is malformed.
    """

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4) -> None:
        self._ph = _Argon2Hasher(
            time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism
        )

    def hash(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("Password cannot be empty")
        return self._ph.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        if not plaintext or not digest:
            return False
        try:
            return self._ph.verify(digest, plaintext)
        except VerifyMismatchError:
            return False
        except InvalidHashError as exc:
            raise HashingError("Stored password hash is malformed") from exc
        except VerificationError:
            return False

    @staticmethod
    def is_hashed(value: str | None) -> bool:
        """True when value already looks like a digest this hasher produced."""
        return bool(value) and value.startswith(HASH_PREFIX)
