"""Background job that pushes unsynced transactions to Notion."""

from app.core.db import TransactionStore
from app.core.models import JobState, SyncReport
from app.core.utils import get_logger
from app.services.notion_service import SyncTarget
from app.services.task_guard import TaskGuard
from app.workers.base import GuardedJob

logger = get_logger("txn-tracker.worker.notion")

DEFAULT_BATCH_SIZE = 50


class NotionSyncJob(GuardedJob):
    """Pushes one batch of unsynced transactions, oldest first, and marks the accepted ones.

    Records are sent one at a time to stay within the API rate limits. A failed push
    is logged and left unsynced for the next run; only ids the target accepted are
    flagged, in a single update after the loop.
    """

    task_name = "notion_sync"

    def __init__(
        self,
        store: TransactionStore,
        guard: TaskGuard,
        target: SyncTarget,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """Initialize the job with its store, guard and sync target."""
        super().__init__(guard)
        self.store = store
        self.target = target
        self.batch_size = batch_size

    def execute(self) -> SyncReport:
        """Run one sync pass."""
        logger.info("Starting Notion Sync...")
        report = SyncReport(state=JobState.RUNNING)
        synced_ids: list[int] = []
        try:
            transactions = self.store.list_unsynced(self.batch_size)
            report.attempted = len(transactions)
            if not transactions:
                logger.info("No new transactions to sync to Notion.")
            else:
                logger.info(f"Found {len(transactions)} new transactions to sync...")
            for tx in transactions:
                try:
                    self.target.create_record(tx)
                except Exception:
                    logger.exception(f"Failed to sync transaction ID {tx.id} to Notion")
                    report.failed_ids.append(tx.id)
                    continue
                synced_ids.append(tx.id)
            report.state = JobState.COMPLETED
        except Exception as exc:
            logger.exception("Error during Notion sync process")
            report.state = JobState.FAILED
            report.error = str(exc)

        if synced_ids:
            logger.info(f"Marking {len(synced_ids)} transactions as synced...")
            try:
                self.store.mark_synced(synced_ids)
            except Exception as exc:
                logger.exception("Could not mark transactions as synced; they will be pushed again next run")
                report.state = JobState.FAILED
                report.error = str(exc)
                synced_ids = []
        report.synced_ids = synced_ids
        logger.info("Notion Sync finished.")
        return report
