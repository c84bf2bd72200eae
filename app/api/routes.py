"""FastAPI endpoints for the Transaction Tracker API.

This module defines the routes that trigger the email fetch and Notion sync
background jobs, create manual transactions, list stored transactions with
filters and pagination, and report service health.
"""

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.api.dependencies import get_ingestion_job, get_store, get_sync_job
from app.core.db import TransactionStore
from app.core.models import Flow, TransactionCreate, TransactionFilters, TransactionPage, TriggerResult
from app.core.utils import get_logger
from app.workers.email_ingestion import EmailIngestionJob
from app.workers.notion_sync import NotionSyncJob

router = APIRouter()
logger = get_logger("txn-tracker.api")


@router.post(
    "/api/transactions/fetch",
    status_code=202,
    tags=["Transactions"],
    summary="Trigger email fetching",
    description=(
        "Starts the background job that fetches new transaction emails from the IMAP server, "
        "parses them and stores the resulting transactions. Fire-and-forget.\n\n"
        "**Response:**\n"
        "- 202 Accepted: the job was started.\n"
        "- 409 Conflict: an email fetch is already running."
    ),
    responses={
        202: {
            "description": "Email processing started.",
            "content": {"application/json": {"example": {"message": "Accepted. Email processing has been started."}}},
        },
        409: {"description": "An email fetch process is already running."},
    },
)
async def trigger_fetch(
    background_tasks: BackgroundTasks,
    job: EmailIngestionJob = Depends(get_ingestion_job),
) -> JSONResponse:
    """Start the email ingestion job in the background."""
    if job.trigger(background_tasks.add_task) is TriggerResult.CONFLICT:
        raise HTTPException(409, "An email fetch process is already running. Please wait.")
    logger.info("Email fetch job scheduled")
    return JSONResponse({"message": "Accepted. Email processing has been started."}, status_code=202)


@router.post(
    "/api/transactions/sync-notion",
    status_code=202,
    tags=["Notion"],
    summary="Sync transactions to Notion",
    description=(
        "Starts the background job that pushes up to one batch of unsynced transactions, "
        "oldest first, to the configured Notion database.\n\n"
        "**Response:**\n"
        "- 202 Accepted: the sync was started.\n"
        "- 409 Conflict: a sync is already running."
    ),
    responses={
        202: {
            "description": "Notion sync started.",
            "content": {"application/json": {"example": {"message": "Accepted. Notion sync has been started."}}},
        },
        409: {"description": "A sync process is already running."},
    },
)
async def trigger_notion_sync(
    background_tasks: BackgroundTasks,
    job: NotionSyncJob = Depends(get_sync_job),
) -> JSONResponse:
    """Start the Notion sync job in the background."""
    if job.trigger(background_tasks.add_task) is TriggerResult.CONFLICT:
        raise HTTPException(409, "A Notion sync process is already running. Please wait.")
    logger.info("Notion sync job scheduled")
    return JSONResponse({"message": "Accepted. Notion sync has been started."}, status_code=202)


@router.post(
    "/api/transactions",
    status_code=201,
    tags=["Transactions"],
    summary="Create a manual transaction",
    description=(
        "Adds a transaction that was not captured from email, e.g. incoming salary. "
        "`amount` must be positive, `description` non-empty and `flow` one of IN/OUT."
    ),
    responses={422: {"description": "Validation failed."}},
)
def create_manual_transaction(body: TransactionCreate, store: TransactionStore = Depends(get_store)) -> dict:
    """Validate and store a manually entered transaction."""
    transaction_id = store.insert_transaction(body.to_parsed())
    logger.info(f"Manual transaction created: id={transaction_id}")
    created = store.get_transaction(transaction_id)
    return {"message": "Transaction created successfully", "data": created.model_dump(mode="json")}


@router.get(
    "/api/transactions",
    response_model=TransactionPage,
    tags=["Transactions"],
    summary="Get all transactions with filters and pagination",
    description=(
        "Lists stored transactions, newest first. Supports filtering by flow, description "
        "(partial, case-insensitive), transaction date range and amount range."
    ),
)
def list_transactions(
    page: int = Query(1, ge=1, description="The page number to retrieve."),
    limit: int = Query(10, ge=1, le=100, description="The number of transactions per page."),
    flow: Flow | None = None,
    description: str | None = None,
    date_start: datetime | None = None,
    date_end: datetime | None = None,
    amount_start: float | None = None,
    amount_end: float | None = None,
    store: TransactionStore = Depends(get_store),
) -> TransactionPage:
    """Return a filtered, paginated list of transactions."""
    filters = TransactionFilters(
        flow=flow,
        description=description,
        date_start=date_start,
        date_end=date_end,
        amount_start=amount_start,
        amount_end=amount_end,
    )
    return store.list_transactions(page, limit, filters)


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
