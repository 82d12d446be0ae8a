"""Tests for configuration loading and validation."""

from dataclasses import FrozenInstanceError, replace

import pytest

from lesson_scheduler.config import AppConfig, SchedulingConfig, _safe_bool, _safe_int, _validate_config


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_default_timezone(self):
        assert SchedulingConfig().timezone == "Australia/Brisbane"

    def test_invalid_timezone(self):
        config = replace(AppConfig(), scheduling=replace(SchedulingConfig(), timezone="Nowhere/Special"))
        with pytest.raises(ValueError, match="SCHEDULING_TIMEZONE"):
            _validate_config(config)

    def test_invalid_horizon(self):
        config = replace(AppConfig(), scheduling=replace(SchedulingConfig(), next_slot_horizon_days=0))
        with pytest.raises(ValueError, match="NEXT_SLOT_HORIZON_DAYS"):
            _validate_config(config)

    def test_config_is_frozen(self):
        with pytest.raises(FrozenInstanceError):
            AppConfig().log_level = "DEBUG"


class TestEnvParsing:
    def test_safe_int(self, monkeypatch):
        monkeypatch.setenv("TEST_HORIZON", "14")
        assert _safe_int("TEST_HORIZON", "30") == 14

    def test_safe_int_default(self, monkeypatch):
        monkeypatch.delenv("TEST_HORIZON", raising=False)
        assert _safe_int("TEST_HORIZON", "30") == 30

    def test_safe_int_invalid(self, monkeypatch):
        monkeypatch.setenv("TEST_HORIZON", "two weeks")
        with pytest.raises(ValueError, match="TEST_HORIZON"):
            _safe_int("TEST_HORIZON", "30")

    @pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("Yes", True), ("off", False), ("0", False)])
    def test_safe_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TEST_PACK", raw)
        assert _safe_bool("TEST_PACK", "false") is expected

    def test_safe_bool_invalid(self, monkeypatch):
        monkeypatch.setenv("TEST_PACK", "maybe")
        with pytest.raises(ValueError, match="TEST_PACK"):
            _safe_bool("TEST_PACK", "false")
