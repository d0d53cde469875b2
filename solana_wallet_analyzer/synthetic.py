"""
Synthetic dataset providers.

Used only by the fallback path when a live analysis cannot be priced, and
by the demo mode of the entry point. Each call generates a fresh dataset;
nothing here is shared with the live pipeline.
"""

import logging
import random
from abc import ABC, abstractmethod
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from .analytics import (
    DAY_FORMAT,
    HUNDRED,
    ZERO,
    DailyPoint,
    DataSource,
    WalletAnalysis,
    WalletMetrics,
    percentage_return,
    utc_today,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def empty_wallet_metrics() -> WalletMetrics:
    """All-zero metrics for a wallet with no balance and no history."""
    return WalletMetrics(
        total_pnl=ZERO,
        total_pnl_percentage=ZERO,
        win_rate=ZERO,
        total_trades=0,
        win_count=0,
        avg_trade=ZERO,
        best_trade=ZERO,
        worst_trade=ZERO,
        current_value=ZERO,
        native_balance=ZERO,
        token_accounts=0,
        nft_count=0,
        sol_price=ZERO,
    )


def empty_analysis(wallet: str, window_days: int = 90, today: Optional[date] = None) -> WalletAnalysis:
    """Placeholder envelope shown before any analysis has run: zero metrics, flat series."""
    today = today or utc_today()
    start = today - timedelta(days=window_days - 1)
    return WalletAnalysis(
        wallet=wallet,
        metrics=empty_wallet_metrics(),
        series=[
            DailyPoint(date=(start + timedelta(days=i)).strftime(DAY_FORMAT), net_fiat=ZERO)
            for i in range(max(window_days, 0))
        ],
        source=DataSource.EMPTY,
    )


def _money(value: float) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


class SyntheticDatasetProvider(ABC):
    """Generates a labeled demo analysis in place of a live one"""

    name = "synthetic"

    @abstractmethod
    def generate_metrics(self, rng: random.Random) -> WalletMetrics:
        """Build the summary metrics."""

    def generate_series(self, rng: random.Random, window_days: int, today: date) -> List[DailyPoint]:
        """Daily random walk between the heatmap scale bounds, with some idle days."""
        start = today - timedelta(days=window_days - 1)
        series = []
        for offset in range(window_days):
            day = (start + timedelta(days=offset)).strftime(DAY_FORMAT)
            value = ZERO if rng.random() < 0.2 else _money(rng.uniform(-500, 800))
            series.append(DailyPoint(date=day, net_fiat=value))
        return series

    @abstractmethod
    def _rng(self) -> random.Random:
        """Random source for one dataset."""

    def generate(self, wallet: str, window_days: int = 90, today: Optional[date] = None) -> WalletAnalysis:
        rng = self._rng()
        today = today or utc_today()
        analysis = WalletAnalysis(
            wallet=wallet,
            metrics=self.generate_metrics(rng),
            series=self.generate_series(rng, max(window_days, 0), today),
            source=DataSource.DEMO,
        )
        logger.debug(f"Generated {self.name} dataset with {len(analysis.series)} days")
        return analysis


class StaticDemoProvider(SyntheticDatasetProvider):
    """Fixed demo metrics with a reproducible daily series"""

    name = "static-demo"
    SERIES_SEED = 42

    def _rng(self) -> random.Random:
        return random.Random(self.SERIES_SEED)

    def generate_metrics(self, rng: random.Random) -> WalletMetrics:
        return WalletMetrics(
            total_pnl=Decimal("12435.67"),
            total_pnl_percentage=Decimal("24.5"),
            win_rate=Decimal("68.2"),
            total_trades=247,
            win_count=168,
            avg_trade=Decimal("50.34"),
            best_trade=Decimal("2840.12"),
            worst_trade=Decimal("-1250.45"),
            current_value=Decimal("63285.43"),
            native_balance=Decimal("15.7"),
            token_accounts=23,
            nft_count=7,
            sol_price=Decimal("4030.92"),
        )


class RandomDemoProvider(SyntheticDatasetProvider):
    """
    Randomized demo metrics shaped like a plausible trading wallet.

    A seed makes consecutive calls produce the same dataset.
    """

    name = "random-demo"

    def __init__(self, seed: Optional[int] = None, sol_price: Decimal = Decimal("100")):
        self.seed = seed
        self.sol_price = Decimal(sol_price)

    def _rng(self) -> random.Random:
        return random.Random(self.seed)

    def generate_metrics(self, rng: random.Random) -> WalletMetrics:
        native_balance = _money(rng.uniform(1, 50))
        token_accounts = rng.randint(0, 30)
        current_value = native_balance * self.sol_price

        total_trades = max(10, token_accounts * 5 + rng.randint(0, 99))
        win_rate = _money(45 + rng.random() * 35)
        avg_trade = (current_value / total_trades).quantize(CENT)
        total_pnl = (current_value * _money(0.1 + rng.random() * 0.4)).quantize(CENT)

        return WalletMetrics(
            total_pnl=total_pnl,
            total_pnl_percentage=percentage_return(total_pnl, current_value).quantize(CENT),
            win_rate=win_rate,
            total_trades=total_trades,
            win_count=int((win_rate * total_trades / HUNDRED).to_integral_value()),
            avg_trade=avg_trade,
            best_trade=(avg_trade * _money(5 + rng.random() * 10)).quantize(CENT),
            worst_trade=(-avg_trade * _money(2 + rng.random() * 5)).quantize(CENT),
            current_value=current_value,
            native_balance=native_balance,
            token_accounts=token_accounts,
            nft_count=int(token_accounts * 0.3),
            sol_price=self.sol_price,
        )


__all__ = [
    "SyntheticDatasetProvider",
    "StaticDemoProvider",
    "RandomDemoProvider",
    "empty_wallet_metrics",
    "empty_analysis",
]
