"""NotionTarget pushes stored transactions into a Notion database."""

from abc import ABC, abstractmethod

from notion_client import Client

from app.core.models import Transaction
from app.core.settings import Settings


def format_transaction_for_notion(tx: Transaction, database_id: str) -> dict:
    """Format a stored transaction as a Notion pages.create payload."""
    return {
        "parent": {"database_id": database_id},
        "properties": {
            "Description": {"title": [{"text": {"content": tx.description or "N/A"}}]},
            "Amount": {"number": float(tx.amount)},
            "Flow": {"select": {"name": tx.flow.value}},
            "Bank": {"select": {"name": tx.bank}},
            "Type": {"select": {"name": tx.type}},
            "Transaction Date": {"date": {"start": tx.transaction_date.isoformat()}},
            "MySQL_ID": {"number": tx.id},
        },
    }


class SyncTarget(ABC):
    """External record-keeping service that accepts one transaction per call."""

    @abstractmethod
    def create_record(self, tx: Transaction) -> None:
        """Push a transaction; raise on any failure."""


class NotionTarget(SyncTarget):
    """SyncTarget backed by the Notion pages API."""

    def __init__(self, client: Client, database_id: str) -> None:
        """Initialize with a Notion client and the target database id."""
        self.client = client
        self.database_id = database_id

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotionTarget":
        """Build a target from the configured API key and database id."""
        return cls(Client(auth=settings.notion_api_key), settings.notion_database_id)

    def create_record(self, tx: Transaction) -> None:
        """Create a page for the transaction in the Notion database."""
        self.client.pages.create(**format_transaction_for_notion(tx, self.database_id))
