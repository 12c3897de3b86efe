"""FastAPI application factory.

Main entry point for the precalculus course site API.
"""

import sqlite3
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from precalc import __version__
from precalc.config.app_config import load_app_config
from precalc.core.assignments import all_session_stores
from precalc.db.database import init_db
from precalc.web.routes import (
    assignments_router,
    courses_router,
    feedback_router,
    health_router,
    login_router,
    reports_router,
    schedule_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    config = load_app_config()
    init_db(config.db_path)

    restored = 0
    for store in all_session_stores():
        restored += await store.restore(config.state_dir)
    logger.info(
        "api_startup",
        db_path=str(config.db_path),
        state_dir=str(config.state_dir),
        sessions_restored=restored,
    )
    yield
    # Shutdown: keep in-progress assignments across restarts
    persisted = 0
    for store in all_session_stores():
        persisted += await store.persist(config.state_dir)
    logger.info("api_shutdown", sessions_persisted=persisted)


async def _database_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
    logger.error("database_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Failed to load data"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Precalculus Course Site API",
        description="Schedules, course status and assignments for the precalculus program",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def maintenance_mode(request: Request, call_next):
        message = load_app_config().site.maintenance_message
        if message and request.url.path.startswith("/api"):
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"detail": message},
            )
        return await call_next(request)

    app.add_exception_handler(sqlite3.Error, _database_error)

    # Include routers
    app.include_router(health_router)
    app.include_router(login_router)
    app.include_router(schedule_router)
    app.include_router(courses_router)
    app.include_router(reports_router)
    app.include_router(assignments_router)
    app.include_router(feedback_router)

    return app


# Default app instance for uvicorn
app = create_app()
