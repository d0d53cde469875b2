"""
Command-line entry point: analyze one wallet and print the result as JSON.

    python -m solana_wallet_analyzer.main <wallet> [--timeframe 30d] [--demo-on-price-failure]
"""

import argparse
import asyncio
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Optional

from .analytics import WalletAnalysis
from .analyzer import WalletAnalyzer
from .charts import TimePeriod, build_heatmap, heatmap_summary, select_timeframe
from .config import Settings, get_settings
from .exceptions import WalletAnalyzerError
from .validators import short_address


class ApplicationLogger:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger: Optional[logging.Logger] = None

    def setup(self) -> logging.Logger:
        cfg = self.settings.logging

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, cfg.level.value))
        root_logger.handlers.clear()

        formatter = logging.Formatter(cfg.format, datefmt=cfg.date_format)

        if cfg.file_enabled:
            cfg.file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                cfg.file_path,
                maxBytes=cfg.file_max_bytes,
                backupCount=cfg.file_backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            root_logger.addHandler(file_handler)

        # stdout carries the JSON result
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        for noisy in ("aiohttp", "httpx", "httpcore", "asyncio"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

        self.logger = logging.getLogger("main")
        return self.logger


def build_report(analysis: WalletAnalysis, period: TimePeriod, settings: Settings) -> Dict[str, Any]:
    """Analysis envelope plus the selected chart window and the heatmap grids."""
    analytics_cfg = settings.analytics
    window = select_timeframe(analysis.series, period)
    months = build_heatmap(
        analysis.series,
        analysis.generated_at.date(),
        profit_scale_max=analytics_cfg.profit_scale_max,
        loss_scale_max=analytics_cfg.loss_scale_max,
    )
    summary = heatmap_summary(analysis.series)

    report = analysis.to_dict()
    report["timeframe"] = window.to_dict()
    report["heatmap"] = {
        "months": [m.to_dict() for m in months],
        "summary": {k: str(v) if not isinstance(v, int) else v for k, v in summary.items()},
    }
    return report


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="solana-wallet-analyzer",
        description="Analyze the trading performance of a Solana wallet",
    )
    parser.add_argument("wallet", help="Wallet address (base58)")
    parser.add_argument(
        "--timeframe",
        default=None,
        help="Chart window: 7d, 30d, 90d or all (default from ANALYTICS_DEFAULT_TIMEFRAME)",
    )
    parser.add_argument(
        "--demo-on-price-failure",
        action="store_true",
        help="Return a labeled demo dataset if no SOL price is available",
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    logger = ApplicationLogger(settings).setup()

    try:
        period = TimePeriod.from_tag(args.timeframe or settings.analytics.default_timeframe)
    except ValueError as e:
        logger.error(str(e))
        return 1

    try:
        async with WalletAnalyzer(settings) as analyzer:
            if args.demo_on_price_failure:
                analysis = await analyzer.analyze_with_fallback(args.wallet)
            else:
                analysis = await analyzer.analyze(args.wallet)
    except WalletAnalyzerError as e:
        logger.error(f"Analysis of {short_address(str(args.wallet))} failed: {e}")
        print(json.dumps({"error": e.to_dict()}, indent=2, default=str))
        return 1

    if analysis.is_synthetic:
        logger.warning(f"Result for {short_address(analysis.wallet)} is synthetic ({analysis.source.value})")

    print(json.dumps(build_report(analysis, period, settings), indent=2))
    return 0


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    run()
