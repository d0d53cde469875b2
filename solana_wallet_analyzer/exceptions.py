"""
Exception Hierarchy for the Solana Wallet Analyzer.

This module defines the error conditions an analysis request can end in,
from unreachable data sources to an unavailable price feed.

Each exception includes:
- Unique error code for logging and debugging
- Descriptive message
- Optional context dictionary for additional debugging info
- is_recoverable flag indicating if the caller may retry
- retry_after for rate-limited sources
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from datetime import datetime, timezone


# =============================================================================
# BASE EXCEPTIONS
# =============================================================================

@dataclass
class WalletAnalyzerError(Exception):
    """
    Base exception for all Solana Wallet Analyzer errors.

    Attributes:
        message: Human-readable error description
        error_code: Unique identifier for the error type (e.g., "SOURCE_001")
        context: Optional dictionary with debugging information
        is_recoverable: Whether the caller may retry the request
        retry_after: Seconds to wait before retry (for rate limits)
        timestamp: When the error occurred
    """
    message: str
    error_code: str = "GENERAL_001"
    context: dict[str, Any] = field(default_factory=dict)
    is_recoverable: bool = False
    retry_after: Optional[float] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Initialize the exception with the formatted message."""
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the error message with code and context."""
        base = f"[{self.error_code}] {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" | Context: {context_str}"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "is_recoverable": self.is_recoverable,
            "retry_after": self.retry_after,
            "timestamp": self.timestamp.isoformat(),
            "exception_type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        return self.format_message()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"is_recoverable={self.is_recoverable})"
        )


@dataclass
class ConfigurationError(WalletAnalyzerError):
    """Error in analyzer configuration or settings."""
    error_code: str = "CONFIG_001"
    is_recoverable: bool = False


# =============================================================================
# DATA SOURCE EXCEPTIONS
# =============================================================================

@dataclass
class SourceUnavailableError(WalletAnalyzerError):
    """An external data source failed (network, HTTP or RPC error payload)."""
    error_code: str = "SOURCE_001"
    is_recoverable: bool = True
    source: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class InvalidWalletError(WalletAnalyzerError):
    """Wallet identifier is malformed or rejected by the data source."""
    error_code: str = "SOURCE_002"
    is_recoverable: bool = False
    address: Optional[str] = None


# =============================================================================
# PRICE EXCEPTIONS
# =============================================================================

@dataclass
class PriceUnavailableError(WalletAnalyzerError):
    """Fiat exchange rate could not be obtained or is unusable."""
    error_code: str = "PRICE_001"
    is_recoverable: bool = True
    asset: Optional[str] = None
    status_code: Optional[int] = None


# =============================================================================
# COMPUTATION EXCEPTIONS
# =============================================================================

@dataclass
class ComputationDegenerateError(WalletAnalyzerError):
    """Division by zero or empty input inside a metric computation."""
    error_code: str = "CALC_001"
    is_recoverable: bool = False


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, WalletAnalyzerError):
        return error.is_recoverable
    return False


def get_retry_delay(error: Exception, default: float = 1.0) -> float:
    """Get the recommended retry delay for an error."""
    if isinstance(error, WalletAnalyzerError) and error.retry_after is not None:
        return error.retry_after
    return default


def wrap_exception(
    original: Exception,
    wrapper_class: type[WalletAnalyzerError],
    message: Optional[str] = None,
    **kwargs: Any
) -> WalletAnalyzerError:
    """Wrap a generic exception in a WalletAnalyzerError subclass."""
    msg = message or str(original)
    context = kwargs.pop("context", {})
    context["original_error"] = type(original).__name__
    context["original_message"] = str(original)

    return wrapper_class(
        message=msg,
        context=context,
        **kwargs
    )


# =============================================================================
# EXCEPTION MAPPING
# =============================================================================

ERROR_CODE_MAP: dict[str, type[WalletAnalyzerError]] = {
    "GENERAL_001": WalletAnalyzerError,
    "CONFIG_001": ConfigurationError,
    "SOURCE_001": SourceUnavailableError,
    "SOURCE_002": InvalidWalletError,
    "PRICE_001": PriceUnavailableError,
    "CALC_001": ComputationDegenerateError,
}


__all__ = [
    "WalletAnalyzerError", "ConfigurationError", "SourceUnavailableError",
    "InvalidWalletError", "PriceUnavailableError", "ComputationDegenerateError",
    "is_retryable", "get_retry_delay", "wrap_exception", "ERROR_CODE_MAP",
]
