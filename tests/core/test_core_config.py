"""
Tests for core.config — Cart engine settings.
"""

import pytest

from core.config import SETTINGS_NAME, CartEngineConfig


class TestCartEngineConfigDefaults:
    def test_defaults(self):
        config = CartEngineConfig()
        assert config.default_currency == "EUR"
        assert config.catalog_cache_ttl_seconds == 60
        assert config.catalog_cache_max_size == 1000
        assert config.catalog_timeout_seconds is None
        assert config.session_idle_ttl_seconds is None
        assert config.max_coupon_code_length == 50

    def test_frozen_immutability(self):
        config = CartEngineConfig()
        with pytest.raises(AttributeError):
            config.default_currency = "USD"


class TestCartEngineConfigValidation:
    def test_blank_currency(self):
        with pytest.raises(ValueError, match="default_currency"):
            CartEngineConfig(default_currency="  ")

    def test_zero_cache_ttl(self):
        with pytest.raises(ValueError, match="catalog_cache_ttl_seconds"):
            CartEngineConfig(catalog_cache_ttl_seconds=0)

    def test_non_positive_timeout(self):
        with pytest.raises(ValueError, match="catalog_timeout_seconds"):
            CartEngineConfig(catalog_timeout_seconds=0)

    def test_non_positive_idle_ttl(self):
        with pytest.raises(ValueError, match="session_idle_ttl_seconds"):
            CartEngineConfig(session_idle_ttl_seconds=-5)

    def test_non_positive_coupon_length(self):
        with pytest.raises(ValueError, match="max_coupon_code_length"):
            CartEngineConfig(max_coupon_code_length=0)


class TestCartEngineConfigSources:
    def test_from_mapping(self):
        config = CartEngineConfig.from_mapping({"default_currency": "USD", "catalog_timeout_seconds": 2})
        assert config.default_currency == "USD"
        assert config.catalog_timeout_seconds == 2

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown TILLPOINT_CART keys: colour"):
            CartEngineConfig.from_mapping({"colour": "red"})

    def test_from_settings(self, settings):
        setattr(settings, SETTINGS_NAME, {"default_currency": "KES", "session_idle_ttl_seconds": 900})
        config = CartEngineConfig.from_settings()
        assert config.default_currency == "KES"
        assert config.session_idle_ttl_seconds == 900

    def test_from_settings_missing_uses_defaults(self, settings):
        setattr(settings, SETTINGS_NAME, None)
        assert CartEngineConfig.from_settings() == CartEngineConfig()

    def test_project_settings_are_valid(self):
        config = CartEngineConfig.from_settings()
        assert config.default_currency
