"""FastAPI application factory.

Main entry point for the course tree API used by the remote adapter.
"""

from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gradetrack import __version__
from gradetrack.db import init_db
from gradetrack.web.routes import (
    assessments_router,
    courses_router,
    health_router,
    modules_router,
    years_router,
)

logger = structlog.get_logger(__name__)


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite database file. Defaults to db/gradetrack.db

    Returns:
        Configured FastAPI app instance
    """
    init_db(db_path)

    app = FastAPI(
        title="GradeTrack API",
        description="Course, year, module and assessment storage for GradeTrack",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware for browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(years_router)
    app.include_router(modules_router)
    app.include_router(assessments_router)

    logger.info("api.created", db_path=str(db_path) if db_path else None)
    return app
