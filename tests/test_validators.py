"""Tests for wallet address validation and unit conversion."""

from decimal import Decimal

import pytest

from conftest import WALLET
from solana_wallet_analyzer.exceptions import InvalidWalletError
from solana_wallet_analyzer.validators import (
    is_valid_solana_address,
    lamports_to_sol,
    short_address,
    sol_to_lamports,
    validate_solana_address,
)


class TestValidateSolanaAddress:
    """Test suite for the wallet identifier pre-check."""

    def test_valid_address(self):
        """A 32-byte base58 key passes and is returned stripped."""
        assert validate_solana_address(f"\t{WALLET}\n") == WALLET
        assert is_valid_solana_address("11111111111111111111111111111111") is True

    @pytest.mark.parametrize("address", [
        "",
        "   ",
        "short",
        "0" * 44,
        "I" * 40,
        "1" * 44,
        None,
        12345,
    ])
    def test_invalid_addresses(self, address):
        """Malformed identifiers raise InvalidWalletError."""
        with pytest.raises(InvalidWalletError):
            validate_solana_address(address)

    def test_error_carries_field(self):
        """The failing field name is recorded in the context."""
        with pytest.raises(InvalidWalletError) as exc_info:
            validate_solana_address("short", field_name="wallet")

        assert exc_info.value.context == {"field": "wallet"}
        assert exc_info.value.address == "short"


class TestConversions:
    """Test suite for lamport conversion and formatting."""

    def test_lamports_to_sol(self):
        """Lamports convert exactly to SOL."""
        assert lamports_to_sol(1_500_000_000) == Decimal("1.5")
        assert lamports_to_sol(-1) == Decimal("-0.000000001")

    def test_sol_to_lamports(self):
        """SOL converts back to whole lamports."""
        assert sol_to_lamports(Decimal("2.25")) == 2_250_000_000

    def test_short_address(self):
        """Long addresses are abbreviated to their ends."""
        assert short_address(WALLET) == "So11...1112"
        assert short_address("abc") == "abc"
