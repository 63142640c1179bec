"""
Cosmic Hub API Server - red flags, deadlines and chat moderation for the dashboard.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import logging
import os
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.chat_router import chat_router
from api.dashboard_router import dashboard_router
from api.response_models import HealthResponse
from cosmic_hub import __version__, config
from cosmic_hub.config import RiskThresholds, get_thresholds
from cosmic_hub.dashboard import DashboardDataSource, DashboardService, DataSourceError
from cosmic_hub.dashboard.data_source import InMemoryDataSource, load_snapshot
from cosmic_hub.observability import CorrelationIdMiddleware, configure_logging, get_request_id

logger = logging.getLogger(__name__)


def _default_source() -> DashboardDataSource:
    if config.SNAPSHOT_PATH:
        return load_snapshot(config.SNAPSHOT_PATH)
    logger.warning("COSMIC_HUB_SNAPSHOT not set; serving an empty dashboard")
    return InMemoryDataSource()


def create_app(
    source: DashboardDataSource | None = None,
    thresholds: RiskThresholds | None = None,
) -> FastAPI:
    """
    Build the API around an injected data source.

    Without a source the snapshot named by COSMIC_HUB_SNAPSHOT is loaded.
    """
    app = FastAPI(
        title="Cosmic Hub API",
        description="Dashboard red flags, deadline risk and chat moderation",
        version=__version__,
    )

    app.state.dashboard_service = DashboardService(
        source if source is not None else _default_source(),
        thresholds or get_thresholds(),
    )

    # CORS middleware - configurable via CORS_ORIGINS env var
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(dashboard_router, prefix="/api/dashboard")
    app.include_router(chat_router, prefix="/api/chat")

    @app.exception_handler(DataSourceError)
    async def data_source_error_handler(request: Request, exc: DataSourceError):
        logger.error("Data source failure on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=502,
            content={
                "status": "error",
                "data": None,
                "computed_at": datetime.now(UTC).isoformat(),
                "params": {"request_id": get_request_id()},
                "error": str(exc),
                "error_code": "DATA_SOURCE_ERROR",
            },
        )

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    return app


# ==== Main ====


def main():
    """Run the server."""
    configure_logging(config.LOG_LEVEL, json_format=config.LOG_JSON)
    port = int(os.environ.get("PORT", 8420))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
