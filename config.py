"""
Application configuration.

All configuration is loaded from environment variables (a `.env` file in
the working directory is read first). Bot tokens and database passwords
never live in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

from domain.repositories import KeyValueStore
from infrastructure.db.key_value_store_postgres import PostgresKeyValueStore
from infrastructure.db.key_value_store_sqlite import SqliteKeyValueStore
from infrastructure.http.ledger_client import DEFAULT_BASE_URL

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        # Ledger service
        self.LEDGER_API_BASE: str = os.getenv("LEDGER_API_BASE", DEFAULT_BASE_URL)
        self.LEDGER_TIMEOUT: float = float(os.getenv("LEDGER_TIMEOUT", "5"))

        # Session storage
        self.SESSION_BACKEND: str = os.getenv("SESSION_BACKEND", "sqlite").lower()
        self.SESSION_DB_PATH: str = os.getenv("SESSION_DB_PATH", "sessions.db")
        self.POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
        self.POSTGRES_PORT: int = int(os.getenv("POSTGRES_PORT", "5432"))
        self.POSTGRES_DB: str = os.getenv("POSTGRES_DB", "ledger_desk")
        self.POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
        self.POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "")

        # Chat channels
        self.TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN")
        self.DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

        # Logging
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text").lower()

    @property
    def postgres_params(self) -> dict:
        return {
            "host": self.POSTGRES_HOST,
            "port": self.POSTGRES_PORT,
            "dbname": self.POSTGRES_DB,
            "user": self.POSTGRES_USER,
            "password": self.POSTGRES_PASSWORD,
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The environment is read once; call `get_settings.cache_clear()` to
    pick up changes (tests do this).
    """
    return Settings()


def create_session_storage(settings: Settings) -> KeyValueStore:
    """Build the persisted-session backend named by SESSION_BACKEND."""

    if settings.SESSION_BACKEND == "postgres":
        return PostgresKeyValueStore(settings.postgres_params)
    if settings.SESSION_BACKEND == "sqlite":
        return SqliteKeyValueStore(settings.SESSION_DB_PATH)
    raise RuntimeError(
        f"Unknown SESSION_BACKEND {settings.SESSION_BACKEND!r}; use 'sqlite' or 'postgres'."
    )
