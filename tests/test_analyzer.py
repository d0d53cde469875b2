"""Tests for the analysis pipeline, concurrency and fallback path."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from conftest import WALLET, make_tx, ts
from solana_wallet_analyzer.analytics import DailyPoint, DataSource, WalletSnapshot
from solana_wallet_analyzer.analyzer import WalletAnalyzer, compute_analysis
from solana_wallet_analyzer.exceptions import (
    InvalidWalletError,
    PriceUnavailableError,
    SourceUnavailableError,
)
from solana_wallet_analyzer.synthetic import RandomDemoProvider, empty_wallet_metrics


@pytest.fixture
def analyzer(settings, snapshot_source, history_source, price_source):
    """Analyzer wired to fake sources."""
    return WalletAnalyzer(
        settings,
        snapshot_source=snapshot_source,
        history_source=history_source,
        price_source=price_source,
    )


class TestComputeAnalysis:
    """Test suite for the synchronous computation stages."""

    def test_end_to_end_scenario(self, sample_snapshot, sample_transactions, today):
        """Daily buckets, series and counters for the reference scenario."""
        analysis = compute_analysis(
            WALLET, sample_snapshot, sample_transactions, Decimal("2"), 3, Decimal("1"), today
        )

        assert analysis.series == [
            DailyPoint("2024-01-01", Decimal("80")),
            DailyPoint("2024-01-02", Decimal("0")),
            DailyPoint("2024-01-03", Decimal("10")),
        ]
        metrics = analysis.metrics
        assert metrics.total_trades == 3
        assert metrics.win_count == 2
        assert metrics.total_pnl == Decimal("90")
        assert analysis.source is DataSource.LIVE

    def test_series_total_matches_pnl_when_window_covers_history(self, sample_snapshot, sample_transactions, today):
        """With no dust and a covering window, the series sums to the net P&L."""
        analysis = compute_analysis(
            WALLET, sample_snapshot, sample_transactions, Decimal("3"), 10, Decimal("0"), today
        )

        assert sum(p.net_fiat for p in analysis.series) == analysis.metrics.total_pnl

    def test_dust_counts_in_series_but_not_trades(self, sample_snapshot, today):
        """Sub-threshold deltas still move the daily series."""
        txs = [make_tx("dust", ts(2024, 1, 3), Decimal("0.0005"))]

        analysis = compute_analysis(WALLET, sample_snapshot, txs, Decimal("100"), 1, Decimal("0.001"), today)

        assert analysis.metrics.total_trades == 0
        assert analysis.series == [DailyPoint("2024-01-03", Decimal("0.05"))]

    def test_no_transactions_gives_flat_series(self, today):
        """A wallet with no history gets a zero-filled series and zero metrics."""
        snapshot = WalletSnapshot(address=WALLET, lamports=0, token_accounts=0)

        analysis = compute_analysis(WALLET, snapshot, [], Decimal("150"), 90, Decimal("0.001"), today)

        assert len(analysis.series) == 90
        assert analysis.series[-1].date == today.isoformat()
        assert all(p.net_fiat == 0 for p in analysis.series)
        expected = empty_wallet_metrics()
        expected.sol_price = Decimal("150")
        assert analysis.metrics == expected

    def test_zero_rate_is_refused(self, sample_snapshot, sample_transactions, today):
        """A zero rate never produces fiat values."""
        with pytest.raises(PriceUnavailableError):
            compute_analysis(WALLET, sample_snapshot, sample_transactions, Decimal("0"), 3, Decimal("1"), today)


class TestWalletAnalyzer:
    """Test suite for the async pipeline."""

    def test_analyze(self, analyzer, history_source, price_source, today):
        """Sources are queried once and the result is live."""
        analysis = asyncio.run(analyzer.analyze(f"  {WALLET} ", today=today))

        assert analysis.wallet == WALLET
        assert analysis.source is DataSource.LIVE
        assert len(analysis.series) == 3
        assert analysis.metrics.total_trades == 3
        history_source.get_transactions.assert_awaited_once_with(WALLET, limit=50)
        price_source.get_price.assert_awaited_once()

    def test_invalid_wallet_issues_no_io(self, analyzer, snapshot_source, history_source, price_source):
        """A malformed address fails before any source is called."""
        with pytest.raises(InvalidWalletError):
            asyncio.run(analyzer.analyze("0OIl"))

        snapshot_source.get_snapshot.assert_not_called()
        history_source.get_transactions.assert_not_called()
        price_source.get_price.assert_not_called()

    def test_price_failure_fails_request(self, analyzer, price_source, today):
        """Without a rate the strict path raises PriceUnavailableError."""
        price_source.get_price = AsyncMock(side_effect=PriceUnavailableError("down", asset="SOL"))

        with pytest.raises(PriceUnavailableError):
            asyncio.run(analyzer.analyze(WALLET, today=today))

    def test_source_failure_cancels_pending_fetches(self, analyzer, history_source, snapshot_source, today):
        """The first failure cancels the other in-flight fetches."""
        cancelled = []

        async def slow_history(address, limit):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(address)
                raise

        history_source.get_transactions = slow_history
        snapshot_source.get_snapshot = AsyncMock(side_effect=SourceUnavailableError("rpc down"))

        with pytest.raises(SourceUnavailableError):
            asyncio.run(analyzer.analyze(WALLET, today=today))

        assert cancelled == [WALLET]

    def test_fallback_not_used_on_success(self, analyzer, today):
        """A priced analysis is returned unchanged."""
        analysis = asyncio.run(analyzer.analyze_with_fallback(WALLET, today=today))

        assert analysis.source is DataSource.LIVE

    def test_fallback_on_price_failure_is_labeled(self, analyzer, price_source, today):
        """Substituted data is always labeled demo."""
        price_source.get_price = AsyncMock(side_effect=PriceUnavailableError("down"))

        analysis = asyncio.run(analyzer.analyze_with_fallback(WALLET, provider=RandomDemoProvider(seed=7), today=today))

        assert analysis.source is DataSource.DEMO
        assert analysis.is_synthetic is True
        assert analysis.wallet == WALLET
        assert len(analysis.series) == 3
        assert analysis.series[-1].date == today.isoformat()

    def test_fallback_defaults_to_static_demo(self, analyzer, price_source, today):
        """Without a provider the fixed demo metrics are used."""
        price_source.get_price = AsyncMock(side_effect=PriceUnavailableError("down"))

        analysis = asyncio.run(analyzer.analyze_with_fallback(WALLET, today=today))

        assert analysis.metrics.total_trades == 247
        assert analysis.source is DataSource.DEMO

    def test_fallback_does_not_mask_source_failures(self, analyzer, snapshot_source, today):
        """Only price failures are substituted."""
        snapshot_source.get_snapshot = AsyncMock(side_effect=SourceUnavailableError("rpc down"))

        with pytest.raises(SourceUnavailableError):
            asyncio.run(analyzer.analyze_with_fallback(WALLET, today=today))

    def test_close_closes_sources(self, analyzer, snapshot_source, history_source, price_source):
        """Closing the analyzer closes every source."""
        async def use():
            async with analyzer:
                pass

        asyncio.run(use())

        snapshot_source.close.assert_awaited_once()
        history_source.close.assert_awaited_once()
        price_source.close.assert_awaited_once()

    def test_concurrent_analyses_are_independent(self, analyzer, today):
        """Parallel requests produce identical, independent results."""
        async def run_two():
            return await asyncio.gather(
                analyzer.analyze(WALLET, today=today),
                analyzer.analyze(WALLET, today=today),
            )

        first, second = asyncio.run(run_two())

        assert first.metrics == second.metrics
        assert first.series == second.series
        assert first.series is not second.series
