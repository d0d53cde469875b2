"""
Configuration Module for the Solana Wallet Analyzer

This module provides configuration management using Pydantic v2 BaseSettings.
All settings are loaded from environment variables with validation and type safety.

Usage:
    from solana_wallet_analyzer.config import get_settings
    print(get_settings().analytics.window_days)
"""

from __future__ import annotations

import sys
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import (
    AnyHttpUrl,
    Field,
    SecretStr,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

SECRET_FIELD_WORDS = ("key", "token", "secret", "password", "credential")


# =============================================================================
# ENUMS
# =============================================================================

class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# BASE CONFIGURATION
# =============================================================================

class BaseConfig(BaseSettings):
    """Base configuration with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


# =============================================================================
# SOLANA RPC CONFIGURATION
# =============================================================================

class SolanaRPCSettings(BaseConfig):
    """Solana RPC connection configuration (balance and token accounts)."""

    model_config = SettingsConfigDict(
        env_prefix="SOLANA_",
        env_file=".env",
        extra="ignore",
    )

    rpc_url: AnyHttpUrl = Field(
        default="https://api.mainnet-beta.solana.com",
        description="RPC endpoint URL",
    )

    commitment: str = Field(
        default="confirmed",
        pattern="^(processed|confirmed|finalized)$",
        description="Commitment level for account reads",
    )

    timeout: int = Field(
        default=30,
        ge=5,
        le=120,
        description="RPC request timeout in seconds",
    )


# =============================================================================
# HELIUS CONFIGURATION
# =============================================================================

class HeliusSettings(BaseConfig):
    """Helius enhanced-transactions API configuration (history)."""

    model_config = SettingsConfigDict(
        env_prefix="HELIUS_",
        env_file=".env",
        extra="ignore",
    )

    api_url: AnyHttpUrl = Field(
        default="https://api.helius.xyz/v0",
        description="Helius REST API base URL",
    )

    api_key: Optional[SecretStr] = Field(
        default=None,
        description="Helius API key",
    )

    page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Transactions requested per page",
    )

    timeout: int = Field(
        default=30,
        ge=5,
        le=120,
        description="Request timeout in seconds",
    )

    @field_validator("api_key", mode="before")
    @classmethod
    def empty_key_is_none(cls, v: Any) -> Any:
        """Treat an empty environment value as unset."""
        if v is None or v == "":
            return None
        return v


# =============================================================================
# PRICE CONFIGURATION
# =============================================================================

class PriceSettings(BaseConfig):
    """Fiat price source configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PRICE_",
        env_file=".env",
        extra="ignore",
    )

    api_url: AnyHttpUrl = Field(
        default="https://api.jup.ag/price/v2",
        description="Jupiter price API endpoint",
    )

    asset_mint: str = Field(
        default="So11111111111111111111111111111111111111112",
        min_length=32,
        max_length=44,
        description="Mint whose USD price converts native balances to fiat",
    )

    timeout: int = Field(
        default=15,
        ge=1,
        le=120,
        description="Request timeout in seconds",
    )


# =============================================================================
# ANALYTICS CONFIGURATION
# =============================================================================

class AnalyticsSettings(BaseConfig):
    """Performance analytics parameters."""

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        extra="ignore",
    )

    window_days: int = Field(
        default=90,
        ge=1,
        le=366,
        description="Length of the canonical daily P&L series",
    )

    history_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum transactions fetched per analysis",
    )

    dust_threshold_sol: Decimal = Field(
        default=Decimal("0.001"),
        ge=0,
        description="Balance changes at or below this size are not counted as trades",
    )

    profit_scale_max: Decimal = Field(
        default=Decimal("800"),
        gt=0,
        description="Daily profit (fiat) rendered at full heatmap intensity",
    )

    loss_scale_max: Decimal = Field(
        default=Decimal("-500"),
        lt=0,
        description="Daily loss (fiat) rendered at full heatmap intensity",
    )

    default_timeframe: str = Field(
        default="30d",
        description="Chart window used when none is requested (7d, 30d, 90d, all)",
    )

    @field_validator("default_timeframe", mode="before")
    @classmethod
    def validate_timeframe(cls, v: Any) -> Any:
        """Normalize the timeframe tag and reject unknown tags."""
        tag = str(v).strip().lower()
        if tag not in ("7d", "30d", "90d", "all"):
            raise ValueError(f"Unknown timeframe: {v}")
        return tag


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

class LoggingSettings(BaseConfig):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )

    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format",
    )

    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log date format",
    )

    file_enabled: bool = Field(
        default=False,
        description="Enable file logging",
    )

    file_path: Path = Field(
        default=Path("logs/analyzer.log"),
        description="Log file path",
    )

    file_max_bytes: int = Field(
        default=10 * 1024 * 1024,  # 10 MB
        ge=1024,
        description="Max log file size in bytes",
    )

    file_backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of backup log files",
    )


# =============================================================================
# AGGREGATED SETTINGS
# =============================================================================

class Settings(BaseConfig):
    """All configuration sections. Prefer ``get_settings()`` outside tests."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    solana: SolanaRPCSettings = Field(default_factory=SolanaRPCSettings)
    helius: HeliusSettings = Field(default_factory=HeliusSettings)
    price: PriceSettings = Field(default_factory=PriceSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def mask_secrets(self) -> dict[str, Any]:
        """Settings as a dict with API keys abbreviated to their ends."""
        return _mask(self.model_dump())

    def to_safe_dict(self) -> dict[str, Any]:
        """Settings as a dict with secret-named fields left out entirely."""
        return _drop_secrets(self.model_dump())


def _mask(value: Any) -> Any:
    if isinstance(value, SecretStr):
        secret = value.get_secret_value()
        return f"{secret[:4]}...{secret[-4:]}" if len(secret) > 8 else "***"
    if isinstance(value, dict):
        return {k: _mask(v) for k, v in value.items()}
    return value


def _drop_secrets(data: dict) -> dict:
    return {
        k: _drop_secrets(v) if isinstance(v, dict) else v
        for k, v in data.items()
        if isinstance(v, dict) or not any(word in k.lower() for word in SECRET_FIELD_WORDS)
    }


# =============================================================================
# SINGLETON & CACHING
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """Settings loaded once per process; see ``reload_settings``."""
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again."""
    get_settings.cache_clear()
    return get_settings()


# =============================================================================
# CLI UTILITIES
# =============================================================================

def print_settings_summary(mask_secrets: bool = True) -> None:
    """Print a summary of current settings."""
    settings = get_settings()

    print("=" * 60)
    print("  Solana Wallet Analyzer settings")
    print("=" * 60)

    data = settings.mask_secrets() if mask_secrets else settings.model_dump()

    sections = [
        ("Solana RPC", "solana"),
        ("Helius", "helius"),
        ("Price", "price"),
        ("Analytics", "analytics"),
        ("Logging", "logging"),
    ]

    for title, key in sections:
        print(f"\n{title}:")
        print("-" * 40)
        section_data = data.get(key, {})
        for k, v in section_data.items():
            print(f"  {k}: {v}")


def validate_settings() -> tuple[bool, list[str]]:
    """
    Validate all settings and return status with any errors.

    Returns:
        Tuple of (is_valid, error_messages)
    """
    errors = []

    try:
        settings = Settings()

        if settings.helius.api_key is None:
            errors.append("HELIUS_API_KEY is not set; transaction history requests will be rejected")

    except Exception as e:
        errors.append(f"Settings validation failed: {str(e)}")

    return len(errors) == 0, errors


def generate_env_template() -> str:
    """Generate a .env template with all available settings."""
    template = """# =============================================================================
# Solana Wallet Analyzer Configuration
# Copy this file to .env and fill in your values
# =============================================================================

# -----------------------------------------------------------------------------
# Solana RPC Configuration
# -----------------------------------------------------------------------------
SOLANA_RPC_URL=https://api.mainnet-beta.solana.com
SOLANA_COMMITMENT=confirmed
SOLANA_TIMEOUT=30

# -----------------------------------------------------------------------------
# Helius Configuration
# -----------------------------------------------------------------------------
HELIUS_API_URL=https://api.helius.xyz/v0
HELIUS_API_KEY=your_helius_api_key_here
HELIUS_PAGE_SIZE=100
HELIUS_TIMEOUT=30

# -----------------------------------------------------------------------------
# Price Configuration
# -----------------------------------------------------------------------------
PRICE_API_URL=https://api.jup.ag/price/v2
PRICE_ASSET_MINT=So11111111111111111111111111111111111111112
PRICE_TIMEOUT=15

# -----------------------------------------------------------------------------
# Analytics Configuration
# -----------------------------------------------------------------------------
ANALYTICS_WINDOW_DAYS=90
ANALYTICS_HISTORY_LIMIT=100
ANALYTICS_DUST_THRESHOLD_SOL=0.001
ANALYTICS_PROFIT_SCALE_MAX=800
ANALYTICS_LOSS_SCALE_MAX=-500
ANALYTICS_DEFAULT_TIMEFRAME=30d

# -----------------------------------------------------------------------------
# Logging Configuration
# -----------------------------------------------------------------------------
LOG_LEVEL=INFO
LOG_FILE_ENABLED=false
LOG_FILE_PATH=logs/analyzer.log
LOG_FILE_MAX_BYTES=10485760
LOG_FILE_BACKUP_COUNT=5
"""
    return template


__all__ = [
    # Main classes
    "Settings",
    "SolanaRPCSettings",
    "HeliusSettings",
    "PriceSettings",
    "AnalyticsSettings",
    "LoggingSettings",
    # Enums
    "LogLevel",
    # Functions
    "get_settings",
    "reload_settings",
    "validate_settings",
    "print_settings_summary",
    "generate_env_template",
]


# =============================================================================
# CLI ENTRYPOINT
# =============================================================================

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Configuration management CLI")
    parser.add_argument(
        "--show",
        action="store_true",
        help="Show current settings"
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate settings"
    )
    parser.add_argument(
        "--generate-env",
        action="store_true",
        help="Generate .env template"
    )
    parser.add_argument(
        "--unmask",
        action="store_true",
        help="Show unmasked secrets (dangerous)"
    )

    args = parser.parse_args()

    if args.generate_env:
        print(generate_env_template())
    elif args.validate:
        is_valid, errors = validate_settings()
        if is_valid:
            print("[PASS] Settings validation passed")
        else:
            print("[FAIL] Settings validation failed:")
            for error in errors:
                print(f"  - {error}")
            sys.exit(1)
    elif args.show:
        print_settings_summary(mask_secrets=not args.unmask)
    else:
        parser.print_help()
