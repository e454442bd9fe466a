"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that assembles the workflow and scheduler once
  - CORS middleware
  - Global exception handlers (SDK ValueError → 404/400/409, oracle → 502)
  - All API routes mounted under ``/api``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``renewal-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from renewal_db.engine import (
    dispose_engine,
    get_engine,
    get_event_session_factory,
    get_session_factory,
)
from renewal_workflow.errors import OracleFailureError
from renewal_workflow.scheduler import ReminderScheduler

from renewal_server.components import build_workflow
from renewal_server.config import ServerSettings, load_settings
from renewal_server.errors import (
    generic_error_handler,
    oracle_failure_handler,
    value_error_handler,
)
from renewal_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load collaborators named in the settings
      2. Build ``RenewalWorkflow`` and ``ReminderScheduler``
      3. Stash them on ``app.state`` for dependency injection

    Shutdown:
      1. Dispose both database connection pools
    """
    settings: ServerSettings = app.state.settings

    session_factory = get_session_factory()
    workflow = build_workflow(settings, get_event_session_factory())
    app.state.workflow = workflow
    app.state.scheduler = ReminderScheduler(workflow, session_factory, settings.workflow)
    logger.info("Renewal workflow initialised")

    yield

    # --- Shutdown ---
    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="License Renewal API",
        description="REST API for the license renewal workflow orchestrator",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(OracleFailureError, oracle_failure_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — verifies DB connectivity."""
        try:
            engine = get_engine()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn renewal_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``renewal-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "renewal_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
