"""
Ledger Poster FastAPI application.

Entry point: routers are registered and logging configured here.
Run with ``uvicorn ledger_poster.main:app``.
"""

from fastapi import FastAPI

from ledger_poster.config import get_settings
from ledger_poster.logging_config import configure_logging
from ledger_poster.api.health import router as health_router
from ledger_poster.api.events import router as events_router
from ledger_poster.api.ledger import router as ledger_router

settings = get_settings()
configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Posts balanced journal vouchers for business events",
)

# Register routers
app.include_router(health_router)
app.include_router(events_router)
app.include_router(ledger_router)
