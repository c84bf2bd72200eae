"""Email fetch watermark: the newest receipt time already covered by a completed run."""

from datetime import datetime

from app.core.db import TransactionStore
from app.core.utils import get_logger

logger = get_logger("txn-tracker.watermark")


class FetchWatermark:
    """Reads and advances the last fetch timestamp kept in the app_state table."""

    def __init__(self, store: TransactionStore) -> None:
        """Initialize the watermark on top of a TransactionStore."""
        self.store = store

    def read(self) -> datetime:
        """Return the current watermark; the epoch when no run has completed yet."""
        return self.store.get_watermark()

    def advance(self, timestamp: datetime) -> None:
        """Replace the stored watermark with `timestamp`."""
        self.store.set_watermark(timestamp)
        logger.info(f"Fetch watermark advanced to: {timestamp:%Y-%m-%d %H:%M:%S}")
