"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode connection strings or ledger ids in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Ledger Poster"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/ledger_poster"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "console")

    # Posting
    # Upper bound on how many times a conflicting transaction is re-run
    # before the event is reported as aborted.
    POSTING_MAX_ATTEMPTS: int = int(os.getenv("POSTING_MAX_ATTEMPTS", "5"))
    POSTING_RETRY_BACKOFF_SECONDS: float = float(
        os.getenv("POSTING_RETRY_BACKOFF_SECONDS", "0.05")
    )

    # Ledger debited for advance receipts when no bank ledger carries
    # the company's primary UPI id.
    DEFAULT_BANK_LEDGER_ID: str = os.getenv(
        "DEFAULT_BANK_LEDGER_ID", "L-1.1.1-2"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
