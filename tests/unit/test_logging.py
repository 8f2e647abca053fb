"""Unit tests for structlog setup."""

import json

import pytest
import structlog

from dexrouter.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_lines(self, capsys):
        configure_logging("info", json_output=True)
        structlog.get_logger().info("swap_executed", amount_out=997)

        event = json.loads(capsys.readouterr().out.strip())
        assert event["event"] == "swap_executed"
        assert event["amount_out"] == 997
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filters_debug(self, capsys):
        configure_logging("INFO", json_output=True)
        structlog.get_logger().debug("pool_discovered")
        assert capsys.readouterr().out == ""

    def test_numeric_level(self, capsys):
        configure_logging(10, json_output=True)
        structlog.get_logger().debug("pool_discovered", key=500)
        assert json.loads(capsys.readouterr().out)["key"] == 500
