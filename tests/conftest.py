"""Shared pytest fixtures: an in-memory store, a fresh task guard and test settings."""

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base, TransactionStore
from app.core.settings import Settings
from app.services.task_guard import TaskGuard


@pytest.fixture
def store() -> Iterator[TransactionStore]:
    """Provide a TransactionStore over a fresh in-memory SQLite database."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield TransactionStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()


@pytest.fixture
def guard() -> TaskGuard:
    """Provide a task guard with no running tasks."""
    return TaskGuard()


@pytest.fixture
def settings() -> Settings:
    """Provide settings that ignore any local .env file."""
    return Settings(
        _env_file=None,
        bank_senders=["bca@bca.co.id", "noreply.livin@bankmandiri.co.id"],
        notion_database_id="db-123",
        sync_batch_size=50,
    )
