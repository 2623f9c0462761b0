"""Configuration management for bill-split."""

import logging
from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

# Epsilon used when reconciling percentages / custom amounts with a total
DEFAULT_POLICY_TOLERANCE = Decimal("0.01")

# Balances within this distance of zero count as settled
DEFAULT_SETTLEMENT_TOLERANCE = Decimal("0.01")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BILL_SPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Engine tolerances
    policy_tolerance: Decimal = Field(default=DEFAULT_POLICY_TOLERANCE, ge=0)
    settlement_tolerance: Decimal = Field(default=DEFAULT_SETTLEMENT_TOLERANCE, ge=0)

    # Logging
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the BILL_SPLIT_* environment "
            f"variables or your .env file.\n"
            f"Error: {e}"
        ) from e


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

