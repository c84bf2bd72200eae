"""Core package: provides models, database helpers, settings, and shared utilities."""

from .db import TransactionStore, get_db  # noqa: F401
from .models import Flow, JobState, ParsedTransaction, Transaction, TriggerResult  # noqa: F401
from .settings import Settings  # noqa: F401
from .utils import get_logger  # noqa: F401
