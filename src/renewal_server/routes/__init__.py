"""Route registration — mounts all routers under ``/api``."""

from fastapi import FastAPI

from renewal_server.routes.cron import router as cron_router
from renewal_server.routes.renewals import router as renewals_router

API_PREFIX = "/api"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the API prefix."""
    app.include_router(renewals_router, prefix=API_PREFIX)
    app.include_router(cron_router, prefix=API_PREFIX)
