"""Tests for environment-based configuration."""

import logging

import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger


class TestHelperConfig:
    def test_string_value_and_default(self, helper_config, monkeypatch):
        monkeypatch.setenv("SOME_KEY", "  value ")
        assert helper_config.get_string_val("some_key") == "value"
        assert helper_config.get_string_val("UNSET_KEY", default="fallback") == "fallback"

    def test_missing_required_value_raises(self, helper_config):
        with pytest.raises(ValueError, match="UNSET_KEY"):
            helper_config.get_string_val("UNSET_KEY")

    def test_empty_value_counts_as_unset(self, helper_config, monkeypatch):
        monkeypatch.setenv("EMPTY_KEY", "")
        assert helper_config.get_string_val("EMPTY_KEY", default="d") == "d"

    def test_number_value(self, helper_config, monkeypatch):
        monkeypatch.setenv("INT_KEY", "42")
        monkeypatch.setenv("FLOAT_KEY", "2.5")
        monkeypatch.setenv("BAD_KEY", "abc")
        assert helper_config.get_number_val("INT_KEY") == 42
        assert helper_config.get_number_val("FLOAT_KEY") == 2.5
        with pytest.raises(ValueError):
            helper_config.get_number_val("BAD_KEY")

    def test_bool_value(self, helper_config, monkeypatch):
        monkeypatch.setenv("FLAG", "Yes")
        assert helper_config.get_bool_val("FLAG") is True
        monkeypatch.setenv("FLAG", "false")
        assert helper_config.get_bool_val("FLAG") is False
        assert helper_config.get_bool_val("UNSET_FLAG", default=False) is False

    def test_list_value(self, helper_config, monkeypatch):
        monkeypatch.setenv("LIST_KEY", "[1, 2,3]")
        assert helper_config.get_list_val("LIST_KEY", element_type=int) == [1, 2, 3]
        monkeypatch.setenv("LIST_KEY", "1,2")
        with pytest.raises(ValueError):
            helper_config.get_list_val("LIST_KEY")

    def test_plain_logger_is_wrapped_for_colour_logging(self, caplog):
        caplog.set_level(logging.INFO)
        config = HelperConfig(logger=logging.getLogger("invoice_ai_bridge.tests.plain"))

        logger = config.get_logger()
        logger.info("coloured line", color="cyan")

        assert isinstance(logger, ColorLogger)
        assert caplog.records[-1].color == "cyan"
