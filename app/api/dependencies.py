"""FastAPI dependencies for DI (settings, store, task guard, background jobs).

Every collaborator of the endpoints is provided here so tests can swap the
database, the mailbox or the Notion target through `app.dependency_overrides`.
"""

from fastapi import Depends

from app.core.db import TransactionStore, get_db
from app.core.settings import Settings, get_settings
from app.parsing.rules import load_rules
from app.services.notion_service import NotionTarget
from app.services.task_guard import TaskGuard, get_task_guard
from app.workers.email_ingestion import EmailIngestionJob
from app.workers.notion_sync import NotionSyncJob


def get_store() -> TransactionStore:
    """Provide the transaction store for dependency injection."""
    return get_db()


def get_ingestion_job(
    store: TransactionStore = Depends(get_store),
    guard: TaskGuard = Depends(get_task_guard),
    settings: Settings = Depends(get_settings),
) -> EmailIngestionJob:
    """Provide an EmailIngestionJob wired to IMAP and the configured parser rules."""
    return EmailIngestionJob(store, guard, settings, load_rules(settings.rules_file))


def get_sync_job(
    store: TransactionStore = Depends(get_store),
    guard: TaskGuard = Depends(get_task_guard),
    settings: Settings = Depends(get_settings),
) -> NotionSyncJob:
    """Provide a NotionSyncJob wired to the configured Notion database."""
    return NotionSyncJob(store, guard, NotionTarget.from_settings(settings), settings.sync_batch_size)
