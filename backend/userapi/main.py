"""User API: FastAPI application factory and server bootstrap.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Store client built once in the lifespan and kept on app.state; handlers
      receive it through a dependency, never through a module global
    - Missing config or an unreachable database stops the process before a
      socket is bound

Design Decisions:
    - Factory over module-level app: importing the package needs no environment
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from userapi import __version__
from userapi.api.error_handlers import register_error_handlers
from userapi.api.middleware import setup_middleware
from userapi.api.routes import health, users
from userapi.config import Settings, get_settings
from userapi.infrastructure.database import DatabaseSessionManager
from userapi.infrastructure.observability import setup_logging
from userapi.infrastructure.user_store import SqlUserRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    db_manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if not await db_manager.health_check():
        await db_manager.close()
        raise RuntimeError("Database is unreachable")

    app.state.db_manager = db_manager
    app.state.user_repository = SqlUserRepository(db_manager)
    logger.info("User API started")
    yield
    logger.info("User API shutting down")
    await db_manager.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application: error handlers, middleware chain, routes."""
    app = FastAPI(
        title="User API", version=__version__, lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings or get_settings()

    register_error_handlers(app)
    setup_middleware(app)

    app.include_router(users.router)
    app.include_router(health.router)
    return app


def run() -> None:
    """Console entry point: load settings, then serve with uvicorn."""
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.idle_timeout_seconds,
        log_config=None,
        access_log=False,
    )
