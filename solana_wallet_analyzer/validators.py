"""
Wallet identifier checks and lamport/SOL conversion.
"""

from decimal import Decimal
from typing import Any

import base58
from solders.pubkey import Pubkey

from .exceptions import InvalidWalletError

SOLANA_ADDRESS_LENGTH = 32
MIN_ADDRESS_CHARS = 32
MAX_ADDRESS_CHARS = 44
LAMPORTS_PER_SOL = 1_000_000_000


def _reject(reason: str, address: str, field_name: str) -> InvalidWalletError:
    return InvalidWalletError(
        f"Not a Solana wallet address: {reason}",
        address=address,
        context={"field": field_name},
    )


def validate_solana_address(address: Any, field_name: str = "address") -> str:
    """
    Return the stripped address if it is a well-formed 32-byte base58 key.

    Raises:
        InvalidWalletError: Before any network call is made
    """
    if not isinstance(address, str):
        raise _reject(f"expected str, got {type(address).__name__}", str(address)[:50], field_name)

    address = address.strip()
    if not address:
        raise _reject("empty", "", field_name)

    if not MIN_ADDRESS_CHARS <= len(address) <= MAX_ADDRESS_CHARS:
        raise _reject(f"{len(address)} characters", address, field_name)

    try:
        raw = base58.b58decode(address)
    except ValueError as e:
        raise _reject(f"bad base58 ({e})", address, field_name) from e

    if len(raw) != SOLANA_ADDRESS_LENGTH:
        raise _reject(f"decodes to {len(raw)} bytes", address, field_name)

    try:
        Pubkey.from_string(address)
    except ValueError as e:
        raise _reject(f"rejected by Pubkey ({e})", address, field_name) from e

    return address


def is_valid_solana_address(address: Any) -> bool:
    try:
        validate_solana_address(address)
    except InvalidWalletError:
        return False
    return True


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(lamports) / LAMPORTS_PER_SOL


def sol_to_lamports(sol_amount: Decimal) -> int:
    return int(sol_amount * LAMPORTS_PER_SOL)


def short_address(address: str) -> str:
    """First and last four characters, for log lines."""
    if len(address) <= 10:
        return address
    return f"{address[:4]}...{address[-4:]}"


__all__ = [
    "validate_solana_address",
    "is_valid_solana_address",
    "lamports_to_sol",
    "sol_to_lamports",
    "short_address",
    "LAMPORTS_PER_SOL",
    "SOLANA_ADDRESS_LENGTH",
]
