"""
Min-score criteria FastAPI application entry point.

Taxonomy feeds → option groups → selection; criteria edits → host store.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from minscore import __version__
from minscore.config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = get_settings()
    logger.info("%s starting", settings.app_name)
    if not settings.uniform_api_key:
        logger.warning("UNIFORM_API_KEY unset – taxonomy fetches are disabled")
    try:
        yield
    finally:
        logger.info("%s shutting down", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    from minscore.api.criteria import router as criteria_router

    app.include_router(criteria_router, prefix="/api/criteria", tags=["criteria"])

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
