# rentals/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer checks.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.constants import BRAND_NAME
from ...database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    database: str
    service: str
    environment: str
    timestamp: str


@router.get("", response_model=HealthResponse)
def health_check(response: Response, db: Session = Depends(get_db)) -> HealthResponse:
    """
    Liveness plus a trivial database round trip.

    Always answers 200 so monitors can distinguish "process up, database down"
    from "process down"; the ``database`` field carries the difference.
    """
    database = "ok"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning(f"Health check database query failed: {exc}")
        db.rollback()
        database = "error"
    response.headers["Cache-Control"] = "no-store"
    return HealthResponse(
        status="ok",
        database=database,
        service=f"{BRAND_NAME.lower().replace(' ', '-')}-api",
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
