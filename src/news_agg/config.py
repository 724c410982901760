"""Application settings, read from the environment (and a local .env file)."""
import os
from dataclasses import dataclass, field
from datetime import timedelta

from dotenv import load_dotenv

from news_agg.utils import parse_duration

_DEFAULT_DB_URL = "sqlite:///./news_aggregator.db"
_DEV_SECRET = "dev-only-jwt-secret-change-me"
_DEV_REFRESH_SECRET = "dev-only-refresh-secret-change-me"
_DEV_SESSION_SECRET = "dev-only-session-secret-change-me"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


def _env_list(name: str, default: str = "") -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class OAuthClientConfig:
    """Credentials and callback for one OAuth provider."""

    client_id: str = ""
    client_secret: str = ""
    callback_url: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration. Build with Settings.from_env() in production."""

    database_url: str = _DEFAULT_DB_URL
    sql_echo: bool = False
    db_pool_size: int = 10
    db_max_overflow: int = 0
    db_pool_timeout: int = 60
    db_pool_recycle: int = 1800

    jwt_secret: str = _DEV_SECRET
    jwt_refresh_secret: str = _DEV_REFRESH_SECRET
    jwt_algorithm: str = "HS256"
    access_token_ttl: timedelta = timedelta(days=7)
    refresh_token_ttl: timedelta = timedelta(days=30)
    session_secret: str = _DEV_SESSION_SECRET

    password_time_cost: int = 3
    password_memory_cost: int = 65536

    google: OAuthClientConfig = field(default_factory=OAuthClientConfig)
    facebook: OAuthClientConfig = field(default_factory=OAuthClientConfig)
    twitter: OAuthClientConfig = field(default_factory=OAuthClientConfig)
    frontend_url: str = "http://localhost:3000"

    admin_emails: tuple[str, ...] = ()
    return_reset_token: bool = False
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: tuple[str, ...] = ("*",)
    host: str = "127.0.0.1"
    port: int = 5080

    @classmethod
    def from_env(cls) -> "Settings":
        """Load .env (if present) and build settings from environment variables."""
        load_dotenv()
        port = int(os.getenv("PORT", "5080"))
        api_base = os.getenv("API_BASE_URL", f"http://localhost:{port}")
        return cls(
            database_url=os.getenv("DATABASE_URL", _DEFAULT_DB_URL),
            sql_echo=os.getenv("SQL_ECHO", "0") == "1",
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "0")),
            db_pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "60")),
            db_pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "1800")),
            jwt_secret=os.getenv("JWT_SECRET", _DEV_SECRET),
            jwt_refresh_secret=os.getenv("JWT_REFRESH_SECRET", _DEV_REFRESH_SECRET),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_ttl=parse_duration(os.getenv("JWT_EXPIRE", "7d")),
            refresh_token_ttl=parse_duration(os.getenv("JWT_REFRESH_EXPIRE", "30d")),
            session_secret=os.getenv("SESSION_SECRET", _DEV_SESSION_SECRET),
            password_time_cost=int(os.getenv("PASSWORD_HASH_TIME_COST", "3")),
            password_memory_cost=int(os.getenv("PASSWORD_HASH_MEMORY_COST", "65536")),
            google=OAuthClientConfig(
                client_id=os.getenv("GOOGLE_CLIENT_ID", ""),
                client_secret=os.getenv("GOOGLE_CLIENT_SECRET", ""),
                callback_url=os.getenv(
                    "GOOGLE_CALLBACK_URL", f"{api_base}/api/auth/google/callback"
                ),
            ),
            facebook=OAuthClientConfig(
                client_id=os.getenv("FACEBOOK_APP_ID", ""),
                client_secret=os.getenv("FACEBOOK_APP_SECRET", ""),
                callback_url=os.getenv(
                    "FACEBOOK_CALLBACK_URL", f"{api_base}/api/auth/facebook/callback"
                ),
            ),
            twitter=OAuthClientConfig(
                client_id=os.getenv("TWITTER_CONSUMER_KEY", ""),
                client_secret=os.getenv("TWITTER_CONSUMER_SECRET", ""),
                callback_url=os.getenv(
                    "TWITTER_CALLBACK_URL", f"{api_base}/api/auth/twitter/callback"
                ),
            ),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/"),
            admin_emails=tuple(e.lower() for e in _env_list("ADMIN_EMAILS")),
            return_reset_token=_env_bool("RETURN_RESET_TOKEN"),
            debug=_env_bool("DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            allowed_origins=_env_list("ALLOWED_ORIGINS", "*"),
            host=os.getenv("HOST", "127.0.0.1"),
            port=port,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")
