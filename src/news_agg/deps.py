"""FastAPI dependency injection: the container on app.state holds singletons;
Depends() assembles the per-request session, stores and services from it.
"""
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlmodel import Session

from news_agg.auth.oauth import OAuthRegistry
from news_agg.auth.strategies import AuthenticationResolver
from news_agg.auth.tokens import TokenService
from news_agg.config import Settings
from news_agg.container import Container
from news_agg.db.sessions import session_scope
from news_agg.services import ArticleService, AuthService
from news_agg.stores import (ApiLogStore, ArticleStore, CategoryStore,
                             CredentialStore, NewsSourceStore,
                             PreferenceStore, SavedArticleStore)


def get_container(request: Request) -> Container:
    """Resolve the DI container created at startup."""
    return request.app.state.container


ContainerDep = Annotated[Container, Depends(get_container)]


def get_settings(container: ContainerDep) -> Settings:
    return container.settings()


def get_session(container: ContainerDep) -> Generator[Session, None, None]:
    """One session per request; committed when the handler succeeds."""
    with session_scope(container.engine()) as session:
        yield session


def get_token_service(container: ContainerDep) -> TokenService:
    return container.token_service()


def get_oauth(container: ContainerDep) -> OAuthRegistry:
    return container.oauth()


SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionDep = Annotated[Session, Depends(get_session)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
OAuthDep = Annotated[OAuthRegistry, Depends(get_oauth)]


def get_credential_store(session: SessionDep, container: ContainerDep) -> CredentialStore:
    return CredentialStore(session, container.password_hasher())


CredentialStoreDep = Annotated[CredentialStore, Depends(get_credential_store)]


def get_resolver(
    users: CredentialStoreDep, container: ContainerDep, settings: SettingsDep
) -> AuthenticationResolver:
    return AuthenticationResolver(
        users,
        container.password_hasher(),
        container.token_service(),
        admin_emails=settings.admin_emails,
    )


ResolverDep = Annotated[AuthenticationResolver, Depends(get_resolver)]


def get_auth_service(
    users: CredentialStoreDep,
    resolver: ResolverDep,
    container: ContainerDep,
    settings: SettingsDep,
) -> AuthService:
    return AuthService(
        users,
        resolver,
        container.token_service(),
        container.reset_notifier(),
        admin_emails=settings.admin_emails,
        return_reset_token=settings.return_reset_token,
    )


def get_preference_store(session: SessionDep) -> PreferenceStore:
    return PreferenceStore(session)


def get_article_service(session: SessionDep) -> ArticleService:
    return ArticleService(
        ArticleStore(session), PreferenceStore(session), SavedArticleStore(session)
    )


def get_source_store(session: SessionDep) -> NewsSourceStore:
    return NewsSourceStore(session)


def get_category_store(session: SessionDep) -> CategoryStore:
    return CategoryStore(session)


def get_api_log_store(session: SessionDep) -> ApiLogStore:
    return ApiLogStore(session)


# Type aliases for route injection
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
PreferenceStoreDep = Annotated[PreferenceStore, Depends(get_preference_store)]
ArticleServiceDep = Annotated[ArticleService, Depends(get_article_service)]
SourceStoreDep = Annotated[NewsSourceStore, Depends(get_source_store)]
CategoryStoreDep = Annotated[CategoryStore, Depends(get_category_store)]
ApiLogStoreDep = Annotated[ApiLogStore, Depends(get_api_log_store)]
