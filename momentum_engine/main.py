import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load env from momentum_engine/.env
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

# Import after dotenv is loaded
from momentum_engine.core.config import settings, validate_config
from momentum_engine.core.logging import configure_logging
from momentum_engine.core.middleware.request_id import RequestIdMiddleware
from momentum_engine.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from momentum_engine.api import artifacts, drills, health, momentum, streaks
from momentum_engine.features.ledger.store import get_store
from momentum_engine.features.ledger.store_sql import SqlLedgerStore

configure_logging(settings.ENV, settings.LOG_LEVEL, settings.LOG_FORMAT)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("momentum")
    logger.info("Starting momentum engine...")
    store = get_store()
    if isinstance(store, SqlLedgerStore):
        from momentum_engine.core.database import create_all_tables

        create_all_tables()
        logger.info("Ledger store: sql")
    else:
        logger.info("Ledger store: memory")
    try:
        yield
    finally:
        logging.getLogger("momentum").info("Stopping momentum engine...")


app = FastAPI(title="Momentum Engine", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# CORS (adjust origins in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(momentum.router)
app.include_router(drills.router)
app.include_router(artifacts.router)
app.include_router(streaks.router)
app.include_router(health.root_router)
