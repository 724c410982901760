"""Authentication building blocks.

- Password hashing/verification (argon2)
- JWT access, refresh and reset tokens (python-jose)
- Strategy resolvers (local, OAuth providers, bearer token)
- FastAPI authorization dependencies (news_agg.auth.gate)
"""
from news_agg.auth.passwords import HashingError, PasswordHasher
from news_agg.auth.tokens import TokenService

__all__ = ["HashingError", "PasswordHasher", "TokenService"]
