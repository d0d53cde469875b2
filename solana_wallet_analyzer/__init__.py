"""
Solana Wallet Analyzer

Trading performance analytics for Solana wallets: P&L, win rate and a
daily P&L series built from on-chain balance changes.
"""

__version__ = "1.0.0"

from .analytics import DailyPoint, DataSource, WalletAnalysis, WalletMetrics
from .analyzer import WalletAnalyzer, compute_analysis
from .charts import TimePeriod, build_heatmap, select_timeframe
from .config import Settings, get_settings
from .exceptions import (
    InvalidWalletError,
    PriceUnavailableError,
    SourceUnavailableError,
    WalletAnalyzerError,
)

__all__ = [
    "DailyPoint",
    "DataSource",
    "WalletAnalysis",
    "WalletMetrics",
    "WalletAnalyzer",
    "compute_analysis",
    "TimePeriod",
    "build_heatmap",
    "select_timeframe",
    "Settings",
    "get_settings",
    "WalletAnalyzerError",
    "SourceUnavailableError",
    "InvalidWalletError",
    "PriceUnavailableError",
]
