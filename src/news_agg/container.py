"""DI container for process-wide singletons.

main.create_app() builds one and stores it on app.state.container; the
request-scoped objects (session, stores, services) are assembled in deps.py.
Tests override providers (e.g. ``container.engine.override(...)``).
"""
from dependency_injector import containers, providers

from news_agg.auth.oauth import OAuthRegistry
from news_agg.auth.passwords import PasswordHasher
from news_agg.auth.tokens import TokenService
from news_agg.config import Settings
from news_agg.db.sessions import StoreHealth, create_db_engine
from news_agg.services.auth_service import LoggingResetNotifier


def _password_hasher(settings: Settings) -> PasswordHasher:
    return PasswordHasher(
        time_cost=settings.password_time_cost,
        memory_cost=settings.password_memory_cost,
    )


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings.from_env)

    engine = providers.Singleton(create_db_engine, settings)
    store_health = providers.Singleton(StoreHealth)

    password_hasher = providers.Singleton(_password_hasher, settings)
    token_service = providers.Singleton(TokenService.from_settings, settings)
    oauth = providers.Singleton(OAuthRegistry, settings)
    reset_notifier = providers.Singleton(LoggingResetNotifier)


def init_container(settings: Settings | None = None) -> Container:
    """Create the container, optionally pinned to explicit settings."""
    container = Container()
    if settings is not None:
        container.settings.override(providers.Object(settings))
    return container
