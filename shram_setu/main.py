"""FastAPI application initialization."""

from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shram_setu import __version__
from shram_setu.api import (
    CorrelationIdMiddleware,
    admin_router,
    auth_router,
    health_router,
)
from shram_setu.api.errors import register_error_handlers
from shram_setu.config import get_settings
from shram_setu.services.logging_service import configure_logging, get_logger

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger = get_logger("main")

    try:
        from shram_setu.database import init_database, run_migrations

        await init_database()
        await run_migrations()
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - account endpoints will fail",
        )

    logger.info(
        "application_started",
        environment=settings.environment,
        refresh_store=settings.refresh_store_backend,
        log_level=settings.log_level,
    )

    yield

    try:
        from shram_setu.database import close_database

        await close_database()
    except Exception as e:
        logger.warning("database_close_failed", error=str(e))

    logger.info("application_shutdown")


def create_app() -> FastAPI:
    """Build the FastAPI application with routers, middleware and error handlers."""
    settings = get_settings()

    app = FastAPI(
        title="Shram Setu API",
        description="Accounts, sessions and admin endpoints for the Shram Setu job marketplace",
        version=__version__,
        lifespan=lifespan,
    )

    register_error_handlers(app)

    # Credentials are needed for the refresh cookie, so origins must be explicit
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Correlation-Id"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(health_router)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)

    return app


app = create_app()
