"""
Wallet Analyzer - request-scoped analysis pipeline.

Fetches balance/holdings, transaction history and the SOL spot price
concurrently, then runs the synchronous computation stages over the
collected inputs. Either a complete analysis is returned or the first
failure is raised; pending fetches are cancelled in that case.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from .analytics import (
    DataSource,
    RawTransaction,
    WalletAnalysis,
    WalletSnapshot,
    aggregate_trades,
    build_daily_series,
    compute_metrics,
    normalize_transactions,
    utc_today,
)
from .config import Settings, get_settings
from .exceptions import PriceUnavailableError
from .helius_async import HeliusHistoryClient
from .price_async import FiatConverter, JupiterPriceClient
from .rpc_async import RpcSnapshotClient
from .synthetic import StaticDemoProvider, SyntheticDatasetProvider
from .validators import short_address, validate_solana_address

logger = logging.getLogger(__name__)


def compute_analysis(
    wallet: str,
    snapshot: WalletSnapshot,
    transactions: Iterable[RawTransaction],
    rate: Decimal,
    window_days: int,
    dust_threshold: Decimal,
    today: date,
) -> WalletAnalysis:
    """
    Run the computation stages over already-fetched inputs.

    Trade statistics use every fetched delta; the daily series covers
    only the trailing ``window_days`` ending at ``today``.
    """
    converter = FiatConverter(rate)
    history = normalize_transactions(transactions, wallet)
    trades = aggregate_trades((d.amount for d in history.deltas), dust_threshold)
    series = build_daily_series(history.daily, converter.to_fiat, window_days, today)
    metrics = compute_metrics(snapshot, trades, converter.to_fiat)

    return WalletAnalysis(
        wallet=wallet,
        metrics=metrics,
        series=series,
        source=DataSource.LIVE,
    )


class WalletAnalyzer:
    """
    Analyzes one wallet per call. Holds no per-request state between calls.

    Usage:
        async with WalletAnalyzer() as analyzer:
            analysis = await analyzer.analyze(address)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        snapshot_source: Optional[RpcSnapshotClient] = None,
        history_source: Optional[HeliusHistoryClient] = None,
        price_source: Optional[JupiterPriceClient] = None,
    ):
        self.settings = settings or get_settings()
        cfg = self.settings

        self.snapshot_source = snapshot_source or RpcSnapshotClient(
            str(cfg.solana.rpc_url),
            commitment=cfg.solana.commitment,
            timeout=cfg.solana.timeout,
        )
        self.history_source = history_source or HeliusHistoryClient(
            api_key=cfg.helius.api_key.get_secret_value() if cfg.helius.api_key else None,
            base_url=str(cfg.helius.api_url).rstrip("/"),
            page_size=cfg.helius.page_size,
            timeout=cfg.helius.timeout,
        )
        self.price_source = price_source or JupiterPriceClient(
            base_url=str(cfg.price.api_url),
            timeout=cfg.price.timeout,
        )

    async def __aenter__(self) -> "WalletAnalyzer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await asyncio.gather(
            self.snapshot_source.close(),
            self.history_source.close(),
            self.price_source.close(),
        )

    async def analyze(self, address: str, today: Optional[date] = None) -> WalletAnalysis:
        """
        Analyze a wallet.

        Raises:
            InvalidWalletError: Malformed address, or rejected by a source
            SourceUnavailableError: Balance, holdings or history fetch failed
            PriceUnavailableError: No usable spot price
        """
        wallet = validate_solana_address(address)
        analytics_cfg = self.settings.analytics
        today = today or utc_today()
        logger.info(f"Analyzing wallet {short_address(wallet)}")

        tasks = [
            asyncio.create_task(self.snapshot_source.get_snapshot(wallet)),
            asyncio.create_task(
                self.history_source.get_transactions(wallet, limit=analytics_cfg.history_limit)
            ),
            asyncio.create_task(self.price_source.get_price(self.settings.price.asset_mint)),
        ]
        try:
            snapshot, transactions, price = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        analysis = compute_analysis(
            wallet,
            snapshot,
            transactions,
            price.price_usd,
            analytics_cfg.window_days,
            analytics_cfg.dust_threshold_sol,
            today,
        )
        logger.info(
            f"Analysis for {short_address(wallet)} complete: "
            f"{analysis.metrics.total_trades} trades, P&L ${analysis.metrics.total_pnl:.2f}"
        )
        return analysis

    async def analyze_with_fallback(
        self,
        address: str,
        provider: Optional[SyntheticDatasetProvider] = None,
        today: Optional[date] = None,
    ) -> WalletAnalysis:
        """
        Like ``analyze``, but substitutes a demo dataset when no price is available.

        Every other failure still propagates.
        """
        try:
            return await self.analyze(address, today=today)
        except PriceUnavailableError as e:
            provider = provider or StaticDemoProvider()
            logger.warning(
                f"Price unavailable for {short_address(str(address))} ({e.message}); "
                f"returning {provider.name} dataset"
            )
            analysis = provider.generate(
                validate_solana_address(address),
                window_days=self.settings.analytics.window_days,
                today=today,
            )
            analysis.source = DataSource.DEMO
            return analysis


__all__ = ["WalletAnalyzer", "compute_analysis"]
