"""
Price Conversion - Jupiter price API client and fiat conversion.

One spot rate is fetched per analysis and applied uniformly to every
native-unit amount. A missing, zero or negative rate is never used.
"""

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import aiohttp

from .exceptions import PriceUnavailableError
from .http_async import AsyncHttpClient

logger = logging.getLogger(__name__)

JUPITER_PRICE_API = "https://api.jup.ag/price/v2"
SOL_MINT = "So11111111111111111111111111111111111111112"


@dataclass
class TokenPrice:
    """Token price information."""
    mint: str
    price_usd: Decimal
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def from_dict(cls, mint: str, data: Dict[str, Any]) -> "TokenPrice":
        raw = data.get("price")
        try:
            price = Decimal(str(raw))
        except (InvalidOperation, ValueError) as e:
            raise PriceUnavailableError(
                f"Non-numeric price for {mint}: {raw!r}", asset=mint
            ) from e
        if not price.is_finite() or price <= 0:
            raise PriceUnavailableError(f"Unusable price for {mint}: {raw!r}", asset=mint)
        return cls(mint=mint, price_usd=price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mint": self.mint,
            "price_usd": str(self.price_usd),
            "timestamp": self.timestamp,
        }


class JupiterPriceClient(AsyncHttpClient):
    """
    Spot price source backed by the Jupiter price API.

    Usage:
        async with JupiterPriceClient() as client:
            price = await client.get_price(SOL_MINT)
    """

    source_name = "jupiter-price"
    error_class = PriceUnavailableError

    def __init__(
        self,
        base_url: str = JUPITER_PRICE_API,
        timeout: float = 15,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(base_url, timeout=timeout, session=session)

    async def get_price(self, mint: str = SOL_MINT) -> TokenPrice:
        """
        Get the current USD price of a token.

        Raises:
            PriceUnavailableError: If the request fails or no usable price is returned
        """
        data = await self._request("GET", self.base_url, params={"ids": mint})

        price_data = (data.get("data") or {}).get(mint) if isinstance(data, dict) else None
        if not price_data:
            raise PriceUnavailableError(f"No price returned for {mint}", asset=mint)

        price = TokenPrice.from_dict(mint, price_data)
        logger.info(f"Price for {mint[:8]}: ${price.price_usd}")
        return price


class FiatConverter:
    """Scales native-unit quantities by a single fiat-per-native rate."""

    def __init__(self, rate: Decimal):
        rate = Decimal(rate)
        if not rate.is_finite() or rate <= 0:
            raise PriceUnavailableError(f"Refusing to convert with rate {rate}")
        self.rate = rate

    def to_fiat(self, amount: Decimal) -> Decimal:
        return Decimal(amount) * self.rate


__all__ = [
    "JupiterPriceClient",
    "TokenPrice",
    "FiatConverter",
    "JUPITER_PRICE_API",
    "SOL_MINT",
]
