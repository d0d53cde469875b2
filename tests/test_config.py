"""Tests for settings loading and validation."""

from decimal import Decimal

import pytest
from pydantic import SecretStr, ValidationError

from solana_wallet_analyzer.config import (
    AnalyticsSettings,
    HeliusSettings,
    Settings,
    generate_env_template,
    get_settings,
    reload_settings,
    validate_settings,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run each test without a .env file and with a fresh settings cache."""
    monkeypatch.chdir(tmp_path)
    for name in ("HELIUS_API_KEY", "ANALYTICS_WINDOW_DAYS", "ANALYTICS_DEFAULT_TIMEFRAME"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAnalyticsSettings:
    """Test suite for analytics parameters."""

    def test_defaults(self):
        """Defaults match the documented analysis parameters."""
        cfg = AnalyticsSettings()

        assert cfg.window_days == 90
        assert cfg.history_limit == 100
        assert cfg.dust_threshold_sol == Decimal("0.001")
        assert cfg.profit_scale_max == Decimal("800")
        assert cfg.loss_scale_max == Decimal("-500")
        assert cfg.default_timeframe == "30d"

    def test_env_override(self, monkeypatch):
        """Values are read from prefixed environment variables."""
        monkeypatch.setenv("ANALYTICS_WINDOW_DAYS", "30")
        monkeypatch.setenv("ANALYTICS_DEFAULT_TIMEFRAME", "7D")

        cfg = AnalyticsSettings()

        assert cfg.window_days == 30
        assert cfg.default_timeframe == "7d"

    def test_rejects_unknown_timeframe(self):
        """Only the supported chart windows are accepted."""
        with pytest.raises(ValidationError):
            AnalyticsSettings(default_timeframe="1y")

    def test_loss_scale_must_be_negative(self):
        """The loss scale bound is below zero."""
        with pytest.raises(ValidationError):
            AnalyticsSettings(loss_scale_max=Decimal("500"))

    def test_window_must_be_positive(self):
        """A zero-day window is rejected."""
        with pytest.raises(ValidationError):
            AnalyticsSettings(window_days=0)


class TestHeliusSettings:
    """Test suite for history source settings."""

    def test_empty_key_is_unset(self, monkeypatch):
        """An empty API key counts as missing."""
        monkeypatch.setenv("HELIUS_API_KEY", "")

        assert HeliusSettings().api_key is None

    def test_page_size_bounds(self):
        """Page size cannot exceed the API maximum."""
        with pytest.raises(ValidationError):
            HeliusSettings(page_size=101)


class TestSettings:
    """Test suite for the aggregated settings."""

    def test_get_settings_is_cached(self):
        """get_settings returns the same instance until reloaded."""
        first = get_settings()

        assert get_settings() is first
        assert reload_settings() is not first

    def test_mask_secrets(self):
        """API keys are abbreviated when masked."""
        settings = Settings(helius=HeliusSettings(api_key=SecretStr("abcd1234efgh5678")))

        masked = settings.mask_secrets()

        assert masked["helius"]["api_key"] == "abcd...5678"

    def test_safe_dict_drops_secrets(self):
        """Secret-named keys are removed from the safe export."""
        settings = Settings(helius=HeliusSettings(api_key=SecretStr("abcd1234efgh5678")))

        safe = settings.to_safe_dict()

        assert "api_key" not in safe["helius"]
        assert safe["helius"]["page_size"] == 100

    def test_validate_warns_without_api_key(self):
        """Missing Helius key is reported."""
        is_valid, errors = validate_settings()

        assert is_valid is False
        assert any("HELIUS_API_KEY" in e for e in errors)

    def test_validate_passes_with_api_key(self, monkeypatch):
        """A configured key validates cleanly."""
        monkeypatch.setenv("HELIUS_API_KEY", "key")

        assert validate_settings() == (True, [])

    def test_env_template_lists_sections(self):
        """Template covers every settings prefix."""
        template = generate_env_template()

        for prefix in ("SOLANA_", "HELIUS_", "PRICE_", "ANALYTICS_", "LOG_"):
            assert prefix in template
