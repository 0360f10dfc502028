"""
Configuration management using Pydantic

This module provides application-wide configuration using Pydantic BaseSettings
with support for environment variables and type validation.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Settlement engine configuration settings.

    All settings can be overridden using environment variables.
    For example, SETTLEMENT_FEE_ASSET will override fee_asset.
    """

    # Settlement Parameters
    fee_asset: str = Field(
        default="ZRX",
        description="Asset all order fees are denominated in"
    )
    max_asset_amount: int = Field(
        default=2**256 - 1,
        description="Largest amount accepted for any order field"
    )
    rounding_error_tolerance_bps: int = Field(
        default=10,
        ge=0,
        description="Truncation loss tolerated on a fill, in basis points"
    )
    reject_rounding_errors: bool = Field(
        default=False,
        description="Reject matches whose left fill truncates beyond the tolerance"
    )

    # Ledger Retry Configuration
    ledger_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts at applying a plan when the ledger is unavailable"
    )
    ledger_retry_min_wait: float = Field(
        default=0.05,
        ge=0,
        description="Minimum wait between ledger attempts in seconds"
    )
    ledger_retry_max_wait: float = Field(
        default=1.0,
        ge=0,
        description="Maximum wait between ledger attempts in seconds"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_dir: str = Field(
        default="",
        description="Directory for log files (empty for console only)"
    )
    use_json_logs: bool = Field(
        default=False,
        description="Emit logs as JSON lines"
    )
    enable_metrics: bool = Field(
        default=True,
        description="Collect settlement statistics"
    )

    class Config:
        env_prefix = "SETTLEMENT_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance.

    Returns:
        Settings instance
    """
    return settings
