"""
Balance & Holdings Snapshot over Solana JSON-RPC.

Resolves a wallet's native SOL balance and its SPL token accounts using the
solana-py ``AsyncClient``. No retries are performed; any RPC failure is
reported as ``SourceUnavailableError``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.types import TokenAccountOpts
from solders.pubkey import Pubkey

from .analytics import WalletSnapshot
from .exceptions import SourceUnavailableError, WalletAnalyzerError, wrap_exception
from .validators import short_address, validate_solana_address

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class TokenAccountInfo:
    """Parsed SPL token account held by the wallet."""
    mint: str
    amount: int  # Raw amount
    decimals: int

    @property
    def is_nft(self) -> bool:
        return self.decimals == 0 and self.amount == 1


def parse_token_account(account: Any) -> Optional[TokenAccountInfo]:
    """Read mint/amount/decimals from a jsonParsed token account, if present."""
    account_data = account.account.data
    if not hasattr(account_data, "parsed"):
        return None

    parsed = account_data.parsed
    info = parsed.get("info", {}) if isinstance(parsed, dict) else {}
    token_amount = info.get("tokenAmount", {})

    return TokenAccountInfo(
        mint=info.get("mint", ""),
        amount=int(token_amount.get("amount", 0)),
        decimals=int(token_amount.get("decimals", 0)),
    )


# =============================================================================
# Snapshot Client
# =============================================================================

class RpcSnapshotClient:
    """
    Reads balance and holdings for one wallet per call.

    Usage:
        async with RpcSnapshotClient("https://api.mainnet-beta.solana.com") as rpc:
            snapshot = await rpc.get_snapshot(address)
    """

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout: float = 30,
        client: Optional[AsyncClient] = None,
    ):
        self.rpc_url = str(rpc_url)
        self.commitment = Commitment(commitment)
        self._client = client or AsyncClient(self.rpc_url, commitment=self.commitment, timeout=timeout)

    async def __aenter__(self) -> "RpcSnapshotClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.close()

    async def _call(self, operation: str, coro) -> Any:
        try:
            return await coro
        except WalletAnalyzerError:
            raise
        except Exception as e:
            logger.warning(f"{operation} failed: {e}")
            raise wrap_exception(
                e,
                SourceUnavailableError,
                f"{operation} failed: {e}",
                source="solana-rpc",
            ) from e

    async def get_balance(self, address: str) -> int:
        """Get the native balance of an address in lamports."""
        pubkey = Pubkey.from_string(validate_solana_address(address))
        response = await self._call(
            "get_balance",
            self._client.get_balance(pubkey, commitment=self.commitment),
        )
        return int(response.value or 0)

    async def get_token_accounts(self, address: str) -> List[TokenAccountInfo]:
        """Get the SPL token accounts owned by an address."""
        pubkey = Pubkey.from_string(validate_solana_address(address))
        response = await self._call(
            "get_token_accounts_by_owner",
            self._client.get_token_accounts_by_owner_json_parsed(
                pubkey,
                TokenAccountOpts(program_id=TOKEN_PROGRAM_ID),
                commitment=self.commitment,
            ),
        )

        accounts = []
        for account in (response.value or []):
            try:
                info = parse_token_account(account)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse token account: {e}")
                info = None
            # Unparseable accounts still count as holdings
            accounts.append(info or TokenAccountInfo(mint="", amount=0, decimals=0))
        return accounts

    async def get_snapshot(self, address: str) -> WalletSnapshot:
        """Get balance and holdings concurrently."""
        lamports, accounts = await asyncio.gather(
            self.get_balance(address),
            self.get_token_accounts(address),
        )
        snapshot = WalletSnapshot(
            address=address,
            lamports=lamports,
            token_accounts=len(accounts),
            nft_count=sum(1 for a in accounts if a.is_nft),
        )
        logger.info(
            f"Snapshot for {short_address(address)}: {snapshot.native_balance} SOL, "
            f"{snapshot.token_accounts} token accounts"
        )
        return snapshot


__all__ = [
    "RpcSnapshotClient",
    "WalletSnapshot",
    "TokenAccountInfo",
    "parse_token_account",
    "TOKEN_PROGRAM_ID",
]
