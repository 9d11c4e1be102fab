"""EnglishConnect Student API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AppError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and asset store client initialized on startup, released on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py to keep this module a thin wiring layer
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import health, students
from app.config import get_settings
from app.infrastructure import database
from app.infrastructure.asset_store import close_asset_store, init_asset_store
from app.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    init_asset_store(
        settings.asset_store_base_url,
        settings.asset_store_token,
        settings.asset_store_public_host,
        max_retries=settings.asset_store_max_retries,
        base_delay_ms=settings.asset_store_base_delay_ms,
        timeout_seconds=settings.asset_store_timeout_seconds,
    )
    logger.info("EnglishConnect Student API started")
    yield
    logger.info("EnglishConnect Student API shutting down")
    await close_asset_store()
    if database.db_manager is not None:
        await database.db_manager.dispose()


app = FastAPI(
    title="EnglishConnect Student API", version="1.0.0", lifespan=lifespan,
)

# CORS origins come from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(students.router)

register_error_handlers(app)
