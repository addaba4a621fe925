"""Tests for RecorderConfig environment overrides."""

from __future__ import annotations

from scriptrecorder.config import RecorderConfig, load_config_from_env


class TestLoadConfigFromEnv:
    def test_defaults(self):
        assert load_config_from_env({}) == RecorderConfig()

    def test_overrides(self):
        config = load_config_from_env({
            "SCRIPTRECORDER_IGNORE_CLASS": "rec-ui",
            "SCRIPTRECORDER_TABLE_CLASS": "grid",
            "SCRIPTRECORDER_WAIT_TIMEOUT": "2500",
            "SCRIPTRECORDER_MAX_RETRIES": "5",
            "SCRIPTRECORDER_MAX_PAGES": "9",
            "SCRIPTRECORDER_HEADLESS": "yes",
        })
        assert config.ignore_class == "rec-ui"
        assert config.table_class == "grid"
        assert config.wait_timeout_ms == 2500
        assert config.max_retries == 5
        assert config.max_pages == 9
        assert config.headless is True

    def test_invalid_numbers_are_ignored(self):
        config = load_config_from_env({
            "SCRIPTRECORDER_WAIT_TIMEOUT": "soon",
            "SCRIPTRECORDER_MAX_PAGES": "0",
        })
        assert config.wait_timeout_ms == 10000
        assert config.max_pages == 50

    def test_headless_false_values(self):
        assert load_config_from_env({"SCRIPTRECORDER_HEADLESS": "off"}).headless is False
