"""DB connection and helpers for the Transaction Tracker."""

import math
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text, create_engine, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.models import Pagination, ParsedTransaction, Transaction, TransactionFilters, TransactionPage
from app.core.utils import EPOCH, as_utc, utcnow

Base = declarative_base()

WATERMARK_KEY = "last_fetch_timestamp"


def _naive_utc(value: datetime) -> datetime:
    """Convert a datetime to naive UTC for storage in a DateTime column."""
    return as_utc(value).replace(tzinfo=None)


class TransactionRecord(Base):
    """A stored bank transaction, either parsed from email or entered manually."""

    __tablename__ = "transactions"
    id = Column(Integer, primary_key=True, autoincrement=True)
    bank = Column(String(50), nullable=False)
    type = Column(String(100), nullable=False)
    flow = Column(String(3), nullable=False)
    amount = Column(Numeric(15, 2, asdecimal=False), nullable=False)
    description = Column(Text, nullable=False, default="")
    transaction_date = Column(DateTime, nullable=False, index=True)
    is_synced_to_notion = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, nullable=False, default=lambda: _naive_utc(utcnow()))

    def to_model(self) -> Transaction:
        """Convert the row into the API-facing Transaction model."""
        return Transaction(
            id=self.id,
            bank=self.bank,
            type=self.type,
            flow=self.flow,
            amount=self.amount,
            description=self.description,
            transaction_date=self.transaction_date.replace(tzinfo=UTC),
            synced=self.is_synced_to_notion,
        )


class AppState(Base):
    """Key/value application state, e.g. the email fetch watermark."""

    __tablename__ = "app_state"
    key_name = Column(String(100), primary_key=True)
    key_value = Column(Text, nullable=True)


def get_engine(url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine using the configured database URL."""
    if url is None:
        from app.core.settings import get_settings

        url = get_settings().database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> "TransactionStore":
    """Get a TransactionStore bound to the application session factory."""
    return TransactionStore(SessionLocal)


class TransactionStore:
    """Read/write operations the ingestion, sync and listing code need from the database."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        """Initialize the store with a SQLAlchemy session factory."""
        self.session_factory = session_factory

    def get_watermark(self) -> datetime:
        """Return the last fetch timestamp, or the epoch if none was ever written."""
        with self.session_factory() as session:
            state = session.get(AppState, WATERMARK_KEY)
        if state is None or not state.key_value:
            return EPOCH
        return as_utc(datetime.fromisoformat(state.key_value))

    def set_watermark(self, timestamp: datetime) -> None:
        """Upsert the last fetch timestamp."""
        with self.session_factory() as session:
            session.merge(AppState(key_name=WATERMARK_KEY, key_value=as_utc(timestamp).isoformat()))
            session.commit()

    def insert_transaction(self, record: ParsedTransaction) -> int:
        """Persist a transaction and return its new id."""
        row = TransactionRecord(
            bank=record.bank,
            type=record.type,
            flow=record.flow.value,
            amount=record.amount,
            description=record.description,
            transaction_date=_naive_utc(record.transaction_date),
            is_synced_to_notion=False,
        )
        with self.session_factory() as session:
            session.add(row)
            session.commit()
            return row.id

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        """Fetch a single transaction by id."""
        with self.session_factory() as session:
            row = session.get(TransactionRecord, transaction_id)
            return row.to_model() if row else None

    def list_unsynced(self, limit: int) -> list[Transaction]:
        """Return up to `limit` transactions not yet synced to Notion, oldest first."""
        stmt = (
            select(TransactionRecord)
            .where(TransactionRecord.is_synced_to_notion.is_(False))
            .order_by(TransactionRecord.transaction_date.asc(), TransactionRecord.id.asc())
            .limit(limit)
        )
        with self.session_factory() as session:
            return [row.to_model() for row in session.scalars(stmt)]

    def mark_synced(self, ids: Iterable[int]) -> None:
        """Flag the given transactions as synced to Notion."""
        ids = list(ids)
        if not ids:
            return
        stmt = update(TransactionRecord).where(TransactionRecord.id.in_(ids)).values(is_synced_to_notion=True)
        with self.session_factory() as session:
            session.execute(stmt)
            session.commit()

    def list_transactions(self, page: int, limit: int, filters: TransactionFilters) -> TransactionPage:
        """Return a filtered page of transactions, newest first."""
        clauses = []
        if filters.flow:
            clauses.append(TransactionRecord.flow == filters.flow.value)
        if filters.description:
            clauses.append(TransactionRecord.description.ilike(f"%{filters.description}%"))
        if filters.date_start:
            clauses.append(TransactionRecord.transaction_date >= _naive_utc(filters.date_start))
        if filters.date_end:
            clauses.append(TransactionRecord.transaction_date <= _naive_utc(filters.date_end))
        if filters.amount_start is not None:
            clauses.append(TransactionRecord.amount >= filters.amount_start)
        if filters.amount_end is not None:
            clauses.append(TransactionRecord.amount <= filters.amount_end)

        count_stmt = select(func.count()).select_from(TransactionRecord).where(*clauses)
        data_stmt = (
            select(TransactionRecord)
            .where(*clauses)
            .order_by(TransactionRecord.transaction_date.desc(), TransactionRecord.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        with self.session_factory() as session:
            total = session.scalar(count_stmt) or 0
            rows = [row.to_model() for row in session.scalars(data_stmt)]
        return TransactionPage(
            pagination=Pagination(
                totalItems=total,
                totalPages=math.ceil(total / limit),
                currentPage=page,
                itemsPerPage=limit,
            ),
            data=rows,
        )
