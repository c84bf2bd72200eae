"""Background job that turns new bank notification emails into stored transactions."""

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from app.core.db import TransactionStore
from app.core.models import IngestionReport, JobState
from app.core.settings import Settings
from app.core.utils import get_logger, utcnow
from app.parsing.extractor import extract_transaction, html_to_text
from app.parsing.rules import ParserRule
from app.services.mailbox import ImapMailbox, Mailbox, parse_message
from app.services.task_guard import TaskGuard
from app.services.watermark import FetchWatermark
from app.workers.base import GuardedJob

logger = get_logger("txn-tracker.worker.email")


class EmailIngestionJob(GuardedJob):
    """Fetches emails newer than the watermark, extracts transactions and stores them.

    The IMAP search only filters by day, so every message is compared against the
    exact watermark timestamp before parsing. The watermark moves to the current
    time only after the whole batch has been looked at; a connection-level failure
    leaves it untouched so the next run retries the same window.

    Instances are built per request; the returned `IngestionReport` is the only
    record of how a run ended.
    """

    task_name = "email_fetch"

    def __init__(
        self,
        store: TransactionStore,
        guard: TaskGuard,
        settings: Settings,
        rules: Sequence[ParserRule],
        mailbox_factory: Callable[[Settings], Mailbox] = ImapMailbox.connect,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the job with its collaborators."""
        super().__init__(guard)
        self.store = store
        self.settings = settings
        self.rules = rules
        self.mailbox_factory = mailbox_factory
        self.clock = clock
        self.watermark = FetchWatermark(store)

    def execute(self) -> IngestionReport:
        """Run one ingestion pass."""
        report = IngestionReport(state=JobState.RUNNING)
        mailbox: Mailbox | None = None
        try:
            last_fetch = self.watermark.read()
            logger.info(f"Fetching emails since: {last_fetch:%Y-%m-%d %H:%M:%S}")
            mailbox = self.mailbox_factory(self.settings)
            # SINCE compares server-local dates; one day of slack covers servers behind UTC.
            messages = mailbox.search(last_fetch.date() - timedelta(days=1), self.settings.bank_senders)
            report.fetched = len(messages)
            logger.info(f"Found {len(messages)} emails to check.")
            for idx, raw in enumerate(messages):
                self._process_message(raw, last_fetch, report, idx + 1)
            logger.info(f"Successfully processed {report.saved} new emails.")
            self.watermark.advance(self.clock())
            report.state = JobState.COMPLETED
        except Exception as exc:
            logger.exception("A major error occurred during email ingestion")
            report.state = JobState.FAILED
            report.error = str(exc)
        finally:
            if mailbox is not None:
                logger.info("Closing IMAP connection...")
                mailbox.close()
        return report

    def _process_message(self, raw: bytes, last_fetch: datetime, report: IngestionReport, idx: int) -> None:
        """Parse, extract and store a single message; never raises."""
        try:
            incoming = parse_message(raw)
            if incoming is None:
                logger.info(f"[EMAIL {idx}/{report.fetched}] Skipping: html body or date not found.")
                report.skipped += 1
                return
            if incoming.received_at <= last_fetch:
                report.skipped += 1
                return
            body = html_to_text(incoming.html)
            parsed = extract_transaction(self.rules, incoming.subject, body, incoming.received_at)
            if parsed is None:
                logger.info(f"[EMAIL {idx}/{report.fetched}] No rule matched subject '{incoming.subject}'")
                report.skipped += 1
                return
            logger.info(f"[EMAIL {idx}/{report.fetched}] Parsed transaction: {parsed.model_dump()}")
            self.store.insert_transaction(parsed)
            report.saved += 1
        except Exception:
            logger.exception(f"[EMAIL {idx}/{report.fetched}] Error processing email. Skipping.")
            report.failed += 1
