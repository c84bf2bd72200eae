"""Configuration and environment settings for the Transaction Tracker."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the Transaction Tracker."""

    imap_user: str = ""
    imap_password: str = ""
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    imap_tls: bool = True
    imap_auth_timeout: float = 20.0
    imap_mailbox: str = "INBOX"
    bank_senders: list[str] = ["bca@bca.co.id", "noreply.livin@bankmandiri.co.id"]
    rules_file: str | None = None
    notion_api_key: str = ""
    notion_database_id: str = ""
    sync_batch_size: int = 50
    database_url: str = "sqlite:///transactions.db"
    server_host: str = "127.0.0.1"
    server_port: int = 3000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
