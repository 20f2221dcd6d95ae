"""
Main application entry point for the ExamLink service.

Usage:
    - Direct: python -m examlink.main
    - ASGI server: uvicorn examlink.main:app
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from examlink import __version__
from examlink.api import register_exception_handlers
from examlink.common.logger import app_logger, configure_logger
from examlink.config import Settings, settings
from examlink.database.init_db import close_database, initialize_database
from examlink.exams.router import router as exam_router
from examlink.services import build_services

# Setup module logger
logger = app_logger.getChild("main")


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        config: Settings to use, defaults to the environment-derived settings

    Returns:
        Configured FastAPI application
    """
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize storage on startup and release it on shutdown."""
        if config.STORAGE_BACKEND == "sql":
            await initialize_database(
                database_url=config.DATABASE_URL,
                echo=config.SQL_ECHO,
                pool_size=config.DB_POOL_SIZE,
                max_overflow=config.DB_MAX_OVERFLOW,
                pool_timeout=config.DB_POOL_TIMEOUT,
                create_tables=config.DB_CREATE_SCHEMA
            )
        logger.info("Application startup complete")
        yield
        if config.STORAGE_BACKEND == "sql":
            await close_database()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=config.PROJECT_NAME,
        description="Timed assessments shared by access token, graded on submission",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = build_services(config)
    register_exception_handlers(app)
    app.include_router(exam_router, prefix=config.API_V1_STR, tags=["exams"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"Welcome to {config.PROJECT_NAME}", "version": __version__}

    logger.info(f"Application created with {len(app.routes)} routes")
    return app


configure_logger(
    name="examlink",
    level=settings.LOG_LEVEL,
    use_json=settings.LOG_JSON,
    log_file=settings.LOG_FILE or None
)

app = create_app()

# Entry point for running the application directly
if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port} (reload: {reload_enabled})")

    uvicorn.run(
        "examlink.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level="info"
    )
