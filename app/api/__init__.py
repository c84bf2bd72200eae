"""API package: provides FastAPI dependencies and route definitions for the application."""

from .dependencies import get_ingestion_job, get_store, get_sync_job  # noqa: F401
from .routes import router  # noqa: F401
