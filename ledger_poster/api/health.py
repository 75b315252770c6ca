"""
Health check endpoint.

Reports whether the service is up, whether the database answers,
and whether the chart of accounts has been seeded.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_poster.models.base import get_db
from ledger_poster.models.ledger import Ledger

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        ledger_count = db.execute(select(func.count(Ledger.id))).scalar()
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        ledger_count = None
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "ledger-poster",
        "database": db_status,
        "ledgers": ledger_count,
    }
