"""Pydantic models for the Transaction Tracker.

This module defines the records that flow between the parser, the store, the
background jobs and the HTTP layer: the transaction shape, manual-entry input,
listing filters and pagination, and the reports produced by each job run.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from app.core.utils import utcnow


class Flow(str, Enum):
    """Direction of money relative to the account owner."""

    IN = "IN"
    OUT = "OUT"


class Bank(str, Enum):
    """Banks accepted for manually entered transactions."""

    BCA = "BCA"
    MANDIRI = "Mandiri"
    MANUAL = "Manual"
    OTHER = "Other"


class JobState(str, Enum):
    """Lifecycle of a single background job run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TriggerResult(str, Enum):
    """Outcome of asking a guarded job to start."""

    ACCEPTED = "accepted"
    CONFLICT = "conflict"


class ParsedTransaction(BaseModel):
    """A transaction extracted from an email, not yet persisted."""

    bank: str
    type: str
    flow: Flow
    amount: float
    description: str
    transaction_date: datetime


class Transaction(ParsedTransaction):
    """A stored transaction as returned by the store and the API."""

    id: int
    synced: bool = False


class TransactionCreate(BaseModel):
    """Body of a manual transaction entry."""

    amount: float = Field(gt=0, description="The transaction amount. Must be a positive number.")
    description: str = Field(min_length=1, description="A brief description of the transaction.")
    flow: Flow
    bank: Bank = Bank.MANUAL
    transaction_type: str = "Manual Input"
    transaction_date: datetime | None = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        """Reject whitespace-only descriptions."""
        if not value.strip():
            msg = "Field 'description' must be a non-empty string."
            raise ValueError(msg)
        return value

    def to_parsed(self) -> ParsedTransaction:
        """Convert the manual entry into the shape the store persists."""
        return ParsedTransaction(
            bank=self.bank.value,
            type=self.transaction_type or "Manual Input",
            flow=self.flow,
            amount=self.amount,
            description=self.description,
            transaction_date=self.transaction_date or utcnow(),
        )


class TransactionFilters(BaseModel):
    """Optional filters for the transaction listing."""

    flow: Flow | None = None
    description: str | None = None
    date_start: datetime | None = None
    date_end: datetime | None = None
    amount_start: float | None = None
    amount_end: float | None = None


class Pagination(BaseModel):
    """Pagination block of a transaction listing."""

    totalItems: int  # noqa: N815
    totalPages: int  # noqa: N815
    currentPage: int  # noqa: N815
    itemsPerPage: int  # noqa: N815


class TransactionPage(BaseModel):
    """A single page of transactions."""

    pagination: Pagination
    data: list[Transaction]


class IngestionReport(BaseModel):
    """Summary of one email ingestion run."""

    state: JobState = JobState.IDLE
    fetched: int = 0
    skipped: int = 0
    saved: int = 0
    failed: int = 0
    error: str | None = None


class SyncReport(BaseModel):
    """Summary of one Notion sync run."""

    state: JobState = JobState.IDLE
    attempted: int = 0
    synced_ids: list[int] = []
    failed_ids: list[int] = []
    error: str | None = None
