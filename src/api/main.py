"""FastAPI application entry point for the survey review service.

Routers: records (import, review actions, history, stats), actors (role
administration) and logs (operational log store).
"""

import logging

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from src.api.actors import router as actors_router
from src.api.logs import router as logs_router
from src.api.records import router as records_router
from src.config.settings import get_settings

APP_VERSION = "0.1.0"

settings = get_settings()

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --- Structured logging ---
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == "dev"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(level=_LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value])

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

# --- FastAPI app ---
app = FastAPI(
    title="Survey Review API",
    description="Multi-stage review workflow for field survey records.",
    version=APP_VERSION,
)

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(records_router)
app.include_router(actors_router)
app.include_router(logs_router)


# --- Infrastructure Endpoints ---


async def _review_store_checks() -> dict[str, bool]:
    """Database reachability, and whether the migrated review schema is in place."""
    from src.db.session import engine

    checks = {"database": False, "schema": False}
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            checks["database"] = True
            await conn.execute(text("SELECT 1 FROM survey_records LIMIT 1"))
            checks["schema"] = True
    except Exception as exc:
        logger.warning("review_store_unavailable", error=str(exc), **checks)
    return checks


@app.get("/health")
async def health_check() -> dict:
    """Always 200. ``status`` is ``degraded`` until the review tables are reachable."""
    checks: dict[str, bool] = {"api": True, **await _review_store_checks()}
    return {
        "status": "ok" if all(checks.values()) else "degraded",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "checks": checks,
    }


@app.get("/api/version")
async def get_version() -> dict[str, str]:
    """Return application name, version, and environment."""
    return {
        "name": "survey-review",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
    }
