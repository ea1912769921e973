"""
Health endpoints.

/healthz is a liveness check with no dependencies. /readyz checks that the
ledger store answers and, when SQL-backed, that the required tables exist.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from momentum_engine.core.database import get_engine
from momentum_engine.features.ledger.store import get_store
from momentum_engine.features.ledger.store_sql import SqlLedgerStore

logger = logging.getLogger("momentum")

root_router = APIRouter(tags=["health"])

REQUIRED_TABLES = [
    "activity_records",
    "drill_sessions",
    "artifacts",
    "drill_scenarios",
    "user_profiles",
    "power_grants",
]


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    """Readiness check: store connectivity + required tables."""
    store = get_store()
    if not isinstance(store, SqlLedgerStore):
        return {"status": "ok", "store": "memory"}

    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")

        inspector = inspect(engine)
        missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
        if missing:
            detail = f"missing tables: {', '.join(missing)}"
            logger.warning(f"[readyz] {detail}")
            return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

        return {"status": "ok", "store": "sql"}
    except Exception as e:
        logger.error(f"[readyz] readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})
