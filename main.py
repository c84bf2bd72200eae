"""Main entrypoint and application factory for the Transaction Tracker API.

This module initializes the FastAPI application, configures logging, creates the
database tables, and exposes the Scalar API reference endpoint for interactive
OpenAPI documentation. It also includes the main entrypoint for running the app
with Uvicorn.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import router
from app.core.db import Base, get_engine
from app.core.settings import get_settings
from app.core.utils import ROOT_LOGGER, get_logger

LOG_DIR = Path("logs")


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure logging to file and console, and ensure the logs directory exists."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger = get_logger(ROOT_LOGGER)
    logger.setLevel(logging.INFO)
    # Add file handler for persistent logs (not colorized)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(LOG_DIR / "txn_tracker.log")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)
    logger.propagate = False


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler to create the transactions and app_state tables."""
    _ = app  # Silence unused argument warning
    engine = get_engine(get_settings().database_url)
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError:
        get_logger(ROOT_LOGGER).exception("Failed to create database tables")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="Transaction Tracker API",
    description="""
    The Transaction Tracker API ingests bank notification emails (BCA, Mandiri), stores the parsed
    transactions and syncs them to a Notion database.

    **Endpoints:**
    - `POST /api/transactions/fetch`: Start fetching and parsing new emails.
    - `POST /api/transactions/sync-notion`: Start pushing unsynced transactions to Notion.
    - `POST /api/transactions`: Create a manual transaction.
    - `GET /api/transactions`: List transactions with filters and pagination.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
    version="1.0.0",
)
app.include_router(router)


@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Return a liveness message."""
    return {"message": "Transaction Tracker API is running."}


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> JSONResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
