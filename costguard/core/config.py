"""
Configuration module for loading environment variables.
All tunables for the estimator, API and CLI are read from the environment.
"""
import os
from typing import Optional


def _optional_float(name: str) -> Optional[float]:
    """Read an optional float from the environment (empty means unset)."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as error:
        raise ValueError(f"{name} must be a number (got: {raw})") from error


class Config:
    """Application configuration loaded from environment variables."""

    APP_VERSION: str = "0.1.0"

    # Pricing Configuration
    HOURS_PER_MONTH: int = 730  # Standard assumption: 24/7 operation
    CURRENCY: str = "USD"

    # Confirmation threshold in USD/month (None = always ask)
    COST_THRESHOLD_USD: Optional[float] = _optional_float("COST_THRESHOLD_USD")

    # Request limits for the plan estimation endpoints
    MAX_PLAN_BODY_SIZE: int = int(os.getenv("MAX_PLAN_BODY_SIZE", str(5 * 1_048_576)))  # 5 MB
    MAX_RESOURCE_CHANGES: int = int(os.getenv("MAX_RESOURCE_CHANGES", "2000"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> None:
        """
        Validates that configuration values are usable.

        Raises:
            ValueError: If any configuration value is missing or invalid.
        """
        if cls.MAX_PLAN_BODY_SIZE <= 0:
            raise ValueError(
                f"MAX_PLAN_BODY_SIZE must be positive (got: {cls.MAX_PLAN_BODY_SIZE})"
            )
        if cls.MAX_RESOURCE_CHANGES <= 0:
            raise ValueError(
                f"MAX_RESOURCE_CHANGES must be positive (got: {cls.MAX_RESOURCE_CHANGES})"
            )
        if cls.COST_THRESHOLD_USD is not None and cls.COST_THRESHOLD_USD < 0:
            raise ValueError(
                f"COST_THRESHOLD_USD must not be negative (got: {cls.COST_THRESHOLD_USD})"
            )
        if cls.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL is not a valid level (got: {cls.LOG_LEVEL})")


config = Config()
