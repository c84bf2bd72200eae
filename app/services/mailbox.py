"""IMAP mailbox access and parsing of bank notification emails."""

import email
import imaplib
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date, datetime
from email import policy

from pydantic import BaseModel

from app.core.settings import Settings
from app.core.utils import as_utc, get_logger

logger = get_logger("txn-tracker.mailbox")

_IMAP_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class MailboxConnectionError(Exception):
    """Raised when the IMAP connection, authentication or search fails."""


class IncomingEmail(BaseModel):
    """The parts of a notification email the extractor needs."""

    sender: str
    subject: str
    html: str
    received_at: datetime


def imap_date(day: date) -> str:
    """Format a date the way IMAP SINCE/BEFORE expects it (e.g. 01-Jan-1970)."""
    return f"{day.day:02d}-{_IMAP_MONTHS[day.month - 1]}-{day.year:04d}"


def build_search_criteria(since: date, senders: Sequence[str]) -> str:
    """Build 'SINCE <day> (OR FROM a FROM b ...)' search criteria."""
    criteria = f"SINCE {imap_date(since)}"
    if not senders:
        return criteria
    from_terms = " ".join(f'FROM "{sender}"' for sender in senders)
    return f"{criteria} ({'OR ' * (len(senders) - 1)}{from_terms})"


def parse_message(raw: bytes) -> IncomingEmail | None:
    """Parse raw RFC822 bytes; return None when the HTML body or Date header is unusable."""
    msg = email.message_from_bytes(raw, policy=policy.default)
    html_part = msg.get_body(preferencelist=("html",))
    date_header = msg["Date"]
    received_at = getattr(date_header, "datetime", None) if date_header is not None else None
    if html_part is None or received_at is None:
        return None
    html = html_part.get_content()
    if not html:
        return None
    return IncomingEmail(
        sender=str(msg["From"] or ""),
        subject=str(msg["Subject"] or ""),
        html=html,
        received_at=as_utc(received_at),
    )


class Mailbox(ABC):
    """Source of raw notification emails."""

    @abstractmethod
    def search(self, since: date, senders: Sequence[str]) -> list[bytes]:
        """Return raw messages from `senders` received on or after the day `since`."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection."""


class ImapMailbox(Mailbox):
    """Mailbox backed by an authenticated imaplib connection."""

    def __init__(self, conn: imaplib.IMAP4) -> None:
        """Wrap an already authenticated connection with a selected mailbox."""
        self.conn = conn

    @classmethod
    def connect(cls, settings: Settings) -> "ImapMailbox":
        """Open, authenticate and select the configured mailbox."""
        logger.info(f"Connecting to IMAP {settings.imap_host}:{settings.imap_port} as {settings.imap_user}")
        conn: imaplib.IMAP4 | None = None
        try:
            if settings.imap_tls:
                conn = imaplib.IMAP4_SSL(settings.imap_host, settings.imap_port, timeout=settings.imap_auth_timeout)
            else:
                conn = imaplib.IMAP4(settings.imap_host, settings.imap_port, timeout=settings.imap_auth_timeout)
            conn.login(settings.imap_user, settings.imap_password)
            status, _ = conn.select(settings.imap_mailbox, readonly=True)
        except (imaplib.IMAP4.error, OSError) as exc:
            if conn is not None:
                _shutdown(conn)
            msg = f"Cannot connect to {settings.imap_host}:{settings.imap_port}: {exc}"
            raise MailboxConnectionError(msg) from exc
        if status != "OK":
            _shutdown(conn)
            msg = f"Cannot open mailbox '{settings.imap_mailbox}'"
            raise MailboxConnectionError(msg)
        # The timeout only guards connect/login; long fetches must not trip it.
        conn.sock.settimeout(None)
        return cls(conn)

    def search(self, since: date, senders: Sequence[str]) -> list[bytes]:
        """Search by sender and day, then download each matching message."""
        criteria = build_search_criteria(since, senders)
        try:
            status, data = self.conn.search(None, criteria)
        except imaplib.IMAP4.error as exc:
            msg = f"IMAP search failed: {exc}"
            raise MailboxConnectionError(msg) from exc
        if status != "OK":
            msg = f"IMAP search returned {status}"
            raise MailboxConnectionError(msg)

        messages: list[bytes] = []
        for msg_id in data[0].split():
            status, msg_data = self.conn.fetch(msg_id, "(RFC822)")
            if status != "OK" or not msg_data or not isinstance(msg_data[0], tuple):
                logger.warning(f"Could not fetch message {msg_id!r}: {status}")
                continue
            messages.append(msg_data[0][1])
        return messages

    def close(self) -> None:
        """Close the mailbox and log out, tolerating an already dropped connection."""
        try:
            self.conn.close()
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.warning(f"Error while closing IMAP mailbox: {exc}")
        try:
            self.conn.logout()
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.warning(f"Error while logging out of IMAP: {exc}")


def _shutdown(conn: imaplib.IMAP4) -> None:
    """Drop a connection that never became usable."""
    try:
        conn.logout()
    except (imaplib.IMAP4.error, OSError):
        logger.debug("IMAP logout failed, closing the socket directly")
        conn.shutdown()
