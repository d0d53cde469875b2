"""
Helius enhanced-transactions client.

Fetches a wallet's recent transaction history and maps each record onto a
``RawTransaction``: the block timestamp plus the native balance change of
every account the transaction touched.
"""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .analytics import BalanceChange, RawTransaction
from .exceptions import InvalidWalletError, SourceUnavailableError
from .http_async import AsyncHttpClient
from .validators import short_address

logger = logging.getLogger(__name__)

HELIUS_API_BASE = "https://api.helius.xyz/v0"
MAX_PAGE_SIZE = 100


def parse_helius_transactions(payload: Any) -> List[RawTransaction]:
    """
    Convert a Helius ``/addresses/{address}/transactions`` page to raw records.

    Records without a signature or timestamp are skipped, as are
    ``accountData`` entries without an account.
    """
    out: List[RawTransaction] = []
    if not isinstance(payload, list):
        return out

    for tx in payload:
        if not isinstance(tx, dict):
            continue

        sig = tx.get("signature") or ""
        ts = tx.get("timestamp")
        if not sig or ts is None:
            logger.debug(f"Skipping transaction without signature/timestamp: {sig or '?'}")
            continue

        changes = []
        for entry in (tx.get("accountData") or []):
            if not isinstance(entry, dict):
                continue
            account = entry.get("account")
            if not account:
                continue
            changes.append(BalanceChange(
                account=account,
                native_change=int(entry.get("nativeBalanceChange") or 0),
            ))

        out.append(RawTransaction(
            signature=sig,
            timestamp=int(ts),
            balance_changes=tuple(changes),
        ))

    return out


class HeliusHistoryClient(AsyncHttpClient):
    """
    Transaction history source backed by the Helius REST API.

    Usage:
        async with HeliusHistoryClient(api_key="...") as client:
            txs = await client.get_transactions(address, limit=100)
    """

    source_name = "helius"
    error_class = SourceUnavailableError

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = HELIUS_API_BASE,
        page_size: int = MAX_PAGE_SIZE,
        timeout: float = 30,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(base_url, timeout=timeout, session=session)
        self.api_key = api_key
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))

    async def _get_page(self, address: str, limit: int, before: Optional[str]) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"limit": str(limit)}
        if self.api_key:
            params["api-key"] = self.api_key
        if before:
            params["before"] = before

        try:
            data = await self._request(
                "GET", f"{self.base_url}/addresses/{address}/transactions", params=params
            )
        except SourceUnavailableError as e:
            if e.status_code in (400, 404):
                raise InvalidWalletError(
                    f"helius rejected wallet address (HTTP {e.status_code}): {e.message}",
                    address=address,
                ) from e
            raise

        if not isinstance(data, list):
            raise SourceUnavailableError(
                "helius returned an unexpected payload",
                source=self.source_name,
                context={"payload_type": type(data).__name__},
            )
        return data

    async def get_transactions(self, address: str, limit: int = 100) -> List[RawTransaction]:
        """
        Get up to ``limit`` most recent transactions for an address.

        Pages are requested newest-first and chained with the ``before``
        cursor until the limit is reached or a page comes back empty.
        """
        collected: List[RawTransaction] = []
        before: Optional[str] = None

        while len(collected) < limit:
            page_limit = min(self.page_size, limit - len(collected))
            page = await self._get_page(address, page_limit, before)
            if not page:
                break

            collected.extend(parse_helius_transactions(page))

            before = page[-1].get("signature") if isinstance(page[-1], dict) else None
            if not before or len(page) < page_limit:
                break

        logger.info(f"Fetched {len(collected)} transactions for {short_address(address)}")
        return collected[:limit]


__all__ = [
    "HeliusHistoryClient",
    "parse_helius_transactions",
    "HELIUS_API_BASE",
]
