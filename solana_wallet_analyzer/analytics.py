"""
Analytics Engine - Wallet P&L, trade statistics and daily series
Turns raw on-chain balance changes into summary metrics and a fixed-cadence
daily P&L series. Every calendar day is resolved in UTC.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .exceptions import ComputationDegenerateError
from .validators import lamports_to_sol

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
DAY_FORMAT = "%Y-%m-%d"


# =============================================================================
# Data Model
# =============================================================================

@dataclass(frozen=True)
class BalanceChange:
    """Native balance change of one account inside a transaction"""
    account: str
    native_change: int  # lamports, signed


@dataclass(frozen=True)
class RawTransaction:
    """Transaction record as supplied by the history source"""
    signature: str
    timestamp: int  # unix seconds
    balance_changes: Tuple[BalanceChange, ...] = ()

    def change_for(self, account: str) -> Optional[int]:
        """Lamport change for ``account``, or None if it was not a party."""
        for change in self.balance_changes:
            if change.account == account:
                return change.native_change
        return None


@dataclass(frozen=True)
class WalletSnapshot:
    """Current native balance and auxiliary account counts"""
    address: str
    lamports: int
    token_accounts: int
    nft_count: int = 0

    @property
    def native_balance(self) -> Decimal:
        return lamports_to_sol(self.lamports)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "lamports": self.lamports,
            "native_balance": str(self.native_balance),
            "token_accounts": self.token_accounts,
            "nft_count": self.nft_count,
        }


@dataclass(frozen=True)
class WalletDelta:
    """One non-zero balance change of the analyzed wallet"""
    signature: str
    timestamp: int
    day: str
    amount: Decimal  # SOL, signed


@dataclass
class NormalizedHistory:
    """Per-event deltas plus their per-day sums"""
    deltas: List[WalletDelta] = field(default_factory=list)
    daily: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return sum((d.amount for d in self.deltas), ZERO)


@dataclass
class TradeStats:
    """Trade counters accumulated from qualifying deltas (native units)"""
    trade_count: int = 0
    win_count: int = 0
    best_native: Decimal = ZERO
    worst_native: Decimal = ZERO
    net_native: Decimal = ZERO

    @property
    def win_rate(self) -> Decimal:
        return safe_divide(Decimal(self.win_count), Decimal(self.trade_count)) * HUNDRED

    @property
    def average_native(self) -> Decimal:
        return safe_divide(self.net_native, Decimal(self.trade_count))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade_count": self.trade_count,
            "win_count": self.win_count,
            "best_native": str(self.best_native),
            "worst_native": str(self.worst_native),
            "net_native": str(self.net_native),
            "win_rate": str(self.win_rate),
        }


@dataclass(frozen=True)
class DailyPoint:
    """Net fiat P&L of one calendar day"""
    date: str  # YYYY-MM-DD
    net_fiat: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "net_usd": str(self.net_fiat),
        }


@dataclass
class WalletMetrics:
    """Summary performance record for one wallet"""
    total_pnl: Decimal
    total_pnl_percentage: Decimal
    win_rate: Decimal
    total_trades: int
    win_count: int
    avg_trade: Decimal
    best_trade: Decimal
    worst_trade: Decimal
    current_value: Decimal
    native_balance: Decimal
    token_accounts: int
    nft_count: int
    sol_price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for k, v in self.__dict__.items():
            if isinstance(v, Decimal):
                result[k] = str(v)
            else:
                result[k] = v
        return result


# =============================================================================
# Helpers
# =============================================================================

def utc_day(timestamp: int) -> str:
    """Calendar day of a unix timestamp, in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(DAY_FORMAT)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        raise ComputationDegenerateError(
            "Division by zero",
            context={"numerator": str(numerator)},
        )
    return numerator / denominator


def safe_divide(numerator: Decimal, denominator: Decimal, default: Decimal = ZERO) -> Decimal:
    """``numerator / denominator``, or ``default`` when the denominator is zero."""
    try:
        return divide(numerator, denominator)
    except ComputationDegenerateError:
        return default


# =============================================================================
# Transaction Normalizer
# =============================================================================

def extract_wallet_deltas(transactions: Iterable[RawTransaction], wallet: str) -> List[WalletDelta]:
    """
    Pick the wallet's own balance change out of each transaction.

    Transactions where the wallet was not a balance-affected party, and
    changes of exactly zero, are skipped.
    """
    deltas: List[WalletDelta] = []
    skipped = 0

    for tx in transactions:
        lamports = tx.change_for(wallet)
        if lamports is None or lamports == 0:
            skipped += 1
            continue

        deltas.append(WalletDelta(
            signature=tx.signature,
            timestamp=tx.timestamp,
            day=utc_day(tx.timestamp),
            amount=lamports_to_sol(lamports),
        ))

    if skipped:
        logger.debug(f"Skipped {skipped} transactions without a balance change for the wallet")
    return deltas


def bucket_by_day(deltas: Iterable[WalletDelta]) -> Dict[str, Decimal]:
    """Sum deltas per UTC calendar day."""
    daily: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for delta in deltas:
        daily[delta.day] += delta.amount
    return dict(daily)


def normalize_transactions(transactions: Iterable[RawTransaction], wallet: str) -> NormalizedHistory:
    deltas = extract_wallet_deltas(transactions, wallet)
    return NormalizedHistory(deltas=deltas, daily=bucket_by_day(deltas))


# =============================================================================
# Trade Classifier & Aggregator
# =============================================================================

def is_trade(amount: Decimal, dust_threshold: Decimal) -> bool:
    """A delta is a trade only if its magnitude exceeds the dust threshold."""
    return abs(amount) > dust_threshold


def aggregate_trades(amounts: Iterable[Decimal], dust_threshold: Decimal) -> TradeStats:
    """
    Accumulate trade counters over per-event deltas.

    Dust deltas are ignored here but still count towards the daily series.
    With no qualifying delta, best and worst resolve to zero.
    """
    stats = TradeStats()
    best: Optional[Decimal] = None
    worst: Optional[Decimal] = None

    for amount in amounts:
        if not is_trade(amount, dust_threshold):
            continue

        stats.trade_count += 1
        if amount > 0:
            stats.win_count += 1
        best = amount if best is None else max(best, amount)
        worst = amount if worst is None else min(worst, amount)
        stats.net_native += amount

    stats.best_native = best if best is not None else ZERO
    stats.worst_native = worst if worst is not None else ZERO
    return stats


# =============================================================================
# Daily Series Builder
# =============================================================================

def build_daily_series(
    daily: Mapping[str, Decimal],
    to_fiat: Callable[[Decimal], Decimal],
    window_days: int,
    today: date,
) -> List[DailyPoint]:
    """
    One point per calendar day from ``today - (window_days - 1)`` to ``today``.

    Days without activity are zero. Ordered oldest to newest.
    """
    if window_days < 0:
        raise ValueError(f"window_days must be >= 0, got {window_days}")

    start = today - timedelta(days=window_days - 1)
    series = []
    for offset in range(window_days):
        key = (start + timedelta(days=offset)).strftime(DAY_FORMAT)
        series.append(DailyPoint(date=key, net_fiat=to_fiat(daily.get(key, ZERO))))
    return series


# =============================================================================
# Metrics
# =============================================================================

def percentage_return(net_fiat: Decimal, current_value_fiat: Decimal) -> Decimal:
    """``net / (current - net) * 100``, zero when the cost base is zero."""
    return safe_divide(net_fiat, current_value_fiat - net_fiat) * HUNDRED


def compute_metrics(
    snapshot: WalletSnapshot,
    trades: TradeStats,
    to_fiat: Callable[[Decimal], Decimal],
) -> WalletMetrics:
    """Assemble metrics; ``to_fiat`` converts native amounts to fiat."""
    current_value = to_fiat(snapshot.native_balance)
    total_pnl = to_fiat(trades.net_native)

    return WalletMetrics(
        total_pnl=total_pnl,
        total_pnl_percentage=percentage_return(total_pnl, current_value),
        win_rate=trades.win_rate,
        total_trades=trades.trade_count,
        win_count=trades.win_count,
        avg_trade=to_fiat(trades.average_native),
        best_trade=to_fiat(trades.best_native),
        worst_trade=to_fiat(trades.worst_native),
        current_value=current_value,
        native_balance=snapshot.native_balance,
        token_accounts=snapshot.token_accounts,
        nft_count=snapshot.nft_count,
        sol_price=to_fiat(ONE),
    )


# =============================================================================
# Result Envelope
# =============================================================================

class DataSource(Enum):
    """Where an analysis result came from"""
    LIVE = "live"
    DEMO = "demo"
    EMPTY = "empty"


@dataclass
class WalletAnalysis:
    """Metrics and daily series for one wallet, labeled with their origin"""
    wallet: str
    metrics: WalletMetrics
    series: List[DailyPoint]
    source: DataSource = DataSource.LIVE
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_synthetic(self) -> bool:
        return self.source is not DataSource.LIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet,
            "source": self.source.value,
            "is_synthetic": self.is_synthetic,
            "generated_at": self.generated_at.isoformat(),
            "metrics": self.metrics.to_dict(),
            "series": [p.to_dict() for p in self.series],
        }


__all__ = [
    "DataSource",
    "WalletAnalysis",
    "BalanceChange",
    "RawTransaction",
    "WalletSnapshot",
    "WalletDelta",
    "NormalizedHistory",
    "TradeStats",
    "DailyPoint",
    "WalletMetrics",
    "utc_day",
    "utc_today",
    "divide",
    "safe_divide",
    "extract_wallet_deltas",
    "bucket_by_day",
    "normalize_transactions",
    "is_trade",
    "aggregate_trades",
    "build_daily_series",
    "percentage_return",
    "compute_metrics",
]
