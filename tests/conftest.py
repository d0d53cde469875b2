"""Pytest configuration and fixtures for wallet analyzer tests."""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from solana_wallet_analyzer.analytics import (
    BalanceChange,
    DailyPoint,
    RawTransaction,
    WalletSnapshot,
)
from solana_wallet_analyzer.config import AnalyticsSettings, Settings
from solana_wallet_analyzer.price_async import SOL_MINT, TokenPrice
from solana_wallet_analyzer.validators import LAMPORTS_PER_SOL

WALLET = "So11111111111111111111111111111111111111112"
OTHER_WALLET = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def ts(year: int, month: int, day: int, hour: int = 12) -> int:
    """Unix timestamp of a UTC wall-clock time."""
    return int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp())


def make_tx(
    signature: str,
    timestamp: int,
    sol: Optional[Decimal] = None,
    wallet: str = WALLET,
    counterparty_sol: Optional[Decimal] = None,
) -> RawTransaction:
    """Transaction moving ``sol`` into (or out of) ``wallet``."""
    changes = []
    if sol is not None:
        changes.append(BalanceChange(account=wallet, native_change=int(Decimal(sol) * LAMPORTS_PER_SOL)))
    if counterparty_sol is not None:
        changes.append(BalanceChange(
            account=OTHER_WALLET,
            native_change=int(Decimal(counterparty_sol) * LAMPORTS_PER_SOL),
        ))
    return RawTransaction(signature=signature, timestamp=timestamp, balance_changes=tuple(changes))


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

@pytest.fixture
def wallet() -> str:
    """Valid wallet address."""
    return WALLET


@pytest.fixture
def today() -> date:
    """Fixed analysis day."""
    return date(2024, 1, 3)


@pytest.fixture
def sample_transactions() -> List[RawTransaction]:
    """+50 and -10 SOL on Jan 1st, +5 SOL on Jan 3rd, plus an unrelated transfer."""
    return [
        make_tx("sig1", ts(2024, 1, 1, 9), Decimal("50")),
        make_tx("sig2", ts(2024, 1, 1, 17), Decimal("-10")),
        make_tx("sig3", ts(2024, 1, 3, 8), Decimal("5")),
        make_tx("sig4", ts(2024, 1, 2, 8), counterparty_sol=Decimal("3")),
    ]


@pytest.fixture
def sample_snapshot() -> WalletSnapshot:
    """Wallet holding 100 SOL and 4 token accounts, one of them an NFT."""
    return WalletSnapshot(address=WALLET, lamports=100 * LAMPORTS_PER_SOL, token_accounts=4, nft_count=1)


@pytest.fixture
def sample_series() -> List[DailyPoint]:
    """Ten days of alternating profit and loss."""
    return [
        DailyPoint(date=f"2024-01-{day:02d}", net_fiat=Decimal(day * 100) if day % 2 else Decimal(-day * 10))
        for day in range(1, 11)
    ]


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings with a short window and a dust threshold of 1 SOL."""
    return Settings(
        analytics=AnalyticsSettings(
            window_days=3,
            history_limit=50,
            dust_threshold_sol=Decimal("1"),
        ),
    )


# ============================================================================
# SOURCE FIXTURES
# ============================================================================

@pytest.fixture
def snapshot_source(sample_snapshot):
    """Balance & holdings source returning the sample snapshot."""
    source = MagicMock()
    source.get_snapshot = AsyncMock(return_value=sample_snapshot)
    source.close = AsyncMock()
    return source


@pytest.fixture
def history_source(sample_transactions):
    """History source returning the sample transactions."""
    source = MagicMock()
    source.get_transactions = AsyncMock(return_value=sample_transactions)
    source.close = AsyncMock()
    return source


@pytest.fixture
def price_source():
    """Price source quoting SOL at $2."""
    source = MagicMock()
    source.get_price = AsyncMock(return_value=TokenPrice(mint=SOL_MINT, price_usd=Decimal("2")))
    source.close = AsyncMock()
    return source
