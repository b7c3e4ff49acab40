# rentals/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response

from .core.config import is_running_tests, settings
from .core.constants import BRAND_NAME
from .errors import register_error_handlers
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    availability as availability_v1,
    bookings as bookings_v1,
    business as business_v1,
    credits as credits_v1,
    health as health_v1,
    pricing as pricing_v1,
)

API_TITLE = f"{BRAND_NAME} Booking API"
API_DESCRIPTION = "Availability, pricing, booking and cancellation for credit-based car rentals"
API_VERSION = "1.0.0"

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if settings.is_sqlite:
        logger.warning(
            "SQLite backend: overlap safety relies on per-unit version checks, "
            "not the PostgreSQL exclusion constraint"
        )
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(business_v1.router, prefix="/business")
api_v1.include_router(pricing_v1.router, prefix="/pricing")
api_v1.include_router(credits_v1.router, prefix="/credits")
api_v1.include_router(health_v1.router, prefix="/health")
app.include_router(api_v1)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus exposition of the service registry."""
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )


__all__ = ["app"]
