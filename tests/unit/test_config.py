"""Tests for settings loading."""

from pathlib import Path

import pytest

from trading_journal.core.config import AnalyticsConfig, Settings, load_settings
from trading_journal.core.enums import PairingMethod, SymbolConvention
from trading_journal.core.errors import ConfigError

CONFIG_DIR = Path(__file__).resolve().parents[2] / "configs"


class TestDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.analytics.pairing_method == PairingMethod.FIFO
        assert settings.analytics.concentration_pct == 10.0
        assert settings.analytics.symbol_convention == SymbolConvention.FIRST_DIGIT
        assert settings.analytics.recent_trades_limit == 5
        assert settings.analytics.date_range.is_open
        assert settings.observability.log_level == "INFO"

    def test_pairing_method_resolution(self):
        assert AnalyticsConfig(pairing_method=None).pairing_method == PairingMethod.FIFO
        assert AnalyticsConfig(pairing_method="fifo").pairing_method == PairingMethod.FIFO
        assert AnalyticsConfig(pairing_method="newest").pairing_method == PairingMethod.LIFO


class TestLoadSettings:
    def test_toml_file(self, tmp_path):
        path = tmp_path / "journal.toml"
        path.write_text(
            '[analytics]\n'
            'pairing_method = "LIFO"\n'
            'symbol_convention = "occ"\n'
            'start_date = "2024-01-01"\n'
            '\n'
            '[analytics.strategy_names]\n'
            '1 = "Breakout"\n'
        )
        settings = load_settings(path)
        assert settings.analytics.pairing_method == PairingMethod.LIFO
        assert settings.analytics.symbol_convention == SymbolConvention.OCC
        assert settings.analytics.strategy_names == {1: "Breakout"}
        assert settings.analytics.date_range.start == "2024-01-01"

    def test_overrides_merge_into_sections(self, tmp_path):
        path = tmp_path / "journal.toml"
        path.write_text('[observability]\nlog_level = "WARNING"\nlog_format = "json"\n')
        settings = load_settings(path, {"observability": {"log_level": "DEBUG"}})
        assert settings.observability.log_level == "DEBUG"
        assert settings.observability.log_format == "json"

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.toml")
        assert settings.analytics.pairing_method == PairingMethod.FIFO

    def test_shipped_config(self):
        settings = load_settings(CONFIG_DIR / "journal.toml")
        assert settings.analytics.strategy_names[1] == "Opening Range Breakout"

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "journal.toml"
        path.write_text("[analytics\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_invalid_value(self):
        with pytest.raises(ConfigError):
            load_settings(overrides={"analytics": {"recent_trades_limit": 0}})

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TRADING_JOURNAL_ANALYTICS__PAIRING_METHOD", "LIFO")
        monkeypatch.setenv("TRADING_JOURNAL_OBSERVABILITY__LOG_LEVEL", "ERROR")
        settings = load_settings()
        assert settings.analytics.pairing_method == PairingMethod.LIFO
        assert settings.observability.log_level == "ERROR"
