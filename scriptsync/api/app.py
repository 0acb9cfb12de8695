"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import Response

from scriptsync.api.routes import health_router, router
from scriptsync.config import get_settings
from scriptsync.log import get_logger, setup_logging
from scriptsync.metrics import metrics_text

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings = get_settings()
    setup_logging(json_output=settings.scriptsync_env != "local")
    logger.info(
        "api_started",
        port=settings.api_port,
        provider=settings.ai_provider,
        ai_configured=bool(settings.ai_api_key),
    )
    yield
    logger.info("api_stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="ScriptSync",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    app.include_router(router)

    @app.get("/metrics")
    async def prom_metrics():
        return Response(content=metrics_text(), media_type="text/plain")

    return app


app = create_app()
