"""
OPTCG Price Lookup — Application Entrypoint

Configures structlog, builds the async SQLAlchemy engine, and serves the
FastAPI app with uvicorn.

Run via:
    python -m optcg_prices.main
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from optcg_prices.api.routes import router
from optcg_prices.config import settings
from optcg_prices.errors import CatalogError


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    # Configure stdlib logging first (for third-party libraries)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Database Setup
# ---------------------------------------------------------------------------


def create_db_engine(database_url: str | None = None) -> tuple[Any, async_sessionmaker[AsyncSession]]:
    """
    Create SQLAlchemy async engine and session factory.

    Returns:
        (engine, session_factory) tuple.
    """
    url = database_url or settings.DATABASE_URL
    engine_kwargs: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        engine_kwargs.update(pool_size=5, max_overflow=10)

    engine = create_async_engine(url, **engine_kwargs)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return engine, session_factory


# ---------------------------------------------------------------------------
# FastAPI App
# ---------------------------------------------------------------------------


async def _catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    logger = structlog.get_logger(__name__)
    logger.warning(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger = structlog.get_logger(__name__)
    logger.error(
        "request_crashed",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse({"error": str(exc) or "Unknown error"}, status_code=500)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger = structlog.get_logger(__name__)

    if getattr(app.state, "session_factory", None) is not None:
        # Injected by the caller (tests, scripts)
        yield
        return

    engine, session_factory = create_db_engine()

    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        logger.info("database_health_check_passed")
    except Exception as e:
        logger.error(
            "database_health_check_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        await engine.dispose()
        raise

    app.state.session_factory = session_factory
    logger.info("optcg_prices_startup_complete", tcgcsv_url=settings.tcgcsv_category_url)
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("optcg_prices_shutdown_complete")


def create_app(session_factory: async_sessionmaker[AsyncSession] | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        session_factory: Pre-built session factory. When omitted, one is
            created from settings.DATABASE_URL at startup.
    """
    app = FastAPI(title="OPTCG Price Lookup", lifespan=lifespan)
    app.state.session_factory = session_factory
    app.include_router(router)
    app.add_exception_handler(CatalogError, _catalog_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    return app


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(create_app(), host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    main()
