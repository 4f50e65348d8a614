"""Unit tests for packscout.logging_config."""

from __future__ import annotations

import json

import pytest
import structlog

from packscout.config import LoggingSettings
from packscout.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_lines_on_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(level="INFO", format="json"))
        structlog.get_logger().info("registry_root_fetched", registry_url="https://r.example")

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip())
        assert record["event"] == "registry_root_fetched"
        assert record["registry_url"] == "https://r.example"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_level_filters_lower_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(level="WARNING", format="json"))
        log = structlog.get_logger()
        log.debug("hidden")
        log.info("hidden_too")
        log.warning("shown")

        lines = capsys.readouterr().err.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["shown"]

    def test_text_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(level="INFO", format="text"))
        structlog.get_logger().info("package_lookup_match", package="acme/tool")
        err = capsys.readouterr().err
        assert "package_lookup_match" in err
        assert "acme/tool" in err
