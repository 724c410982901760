"""Main module for the news aggregation API."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from news_agg.config import LOG_FORMAT, Settings
from news_agg.container import Container, init_container
from news_agg.db.sessions import init_db, probe_connection
from news_agg.errors import register_exception_handlers
from news_agg.routers import (admin_router, articles_router, auth_router,
                              catalog_router, preferences_router,
                              saved_router)
from news_agg.schemas import ok

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Probe the database at startup and create missing tables; dispose the pool on shutdown."""
    container: Container = fastapi_app.state.container
    engine = container.engine()
    if probe_connection(engine, container.store_health()):
        init_db(engine)
    else:
        logger.warning("Starting without a database connection; see /health")

    yield

    engine.dispose()


def create_app(container: Container | None = None) -> FastAPI:
    """Build the application around a DI container (a fresh one from the environment by default)."""
    container = container or init_container()
    settings = container.settings()
    configure_logging(settings)

    fastapi_app = FastAPI(
        title="News Aggregator",
        description="Personalized news API with local and social login",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.container = container

    origins = list(settings.allowed_origins)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Authlib keeps the OAuth state/request token in the session cookie.
    fastapi_app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)

    register_exception_handlers(fastapi_app, debug=settings.debug)

    fastapi_app.include_router(auth_router)
    fastapi_app.include_router(articles_router)
    fastapi_app.include_router(preferences_router)
    fastapi_app.include_router(saved_router)
    fastapi_app.include_router(catalog_router)
    fastapi_app.include_router(admin_router)

    @fastapi_app.get("/health")
    def health() -> dict:
        """Return backing-store connectivity as recorded by the startup probe."""
        return ok({"status": "ok", "database": container.store_health().status()})

    @fastapi_app.get("/")
    def root() -> dict:
        return ok({"name": "News Aggregator API", "version": fastapi_app.version})

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    settings = app.state.container.settings()
    uvicorn.run("news_agg.main:app", host=settings.host, port=settings.port)


def run_dev():
    """Run the development server with auto-reload on all interfaces."""
    settings = app.state.container.settings()
    uvicorn.run(
        "news_agg.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=True,
        log_level="debug",
    )
