"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


def read_rate(name: str, default: str) -> Decimal:
    """
    Read a fractional rate from the environment.

    Rates are read as strings so they stay exact decimals, and
    must lie in [0, 1].
    """
    rate = Decimal(os.getenv(name, default))
    if not Decimal("0") <= rate <= Decimal("1"):
        raise ValueError(f"{name} must be between 0 and 1, got {rate}")
    return rate


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Money Buddy Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./money_buddy.db"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Ledger rates
    TRANSACTION_FEE_RATE: Decimal = read_rate("TRANSACTION_FEE_RATE", "0.03")
    EARLY_WITHDRAWAL_PENALTY_RATE: Decimal = read_rate(
        "EARLY_WITHDRAWAL_PENALTY_RATE", "0.05"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()
