"""Tests for the ``caltimer`` CLI."""

from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest
import structlog
from typer.testing import CliRunner

from caltimer.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def logging_calls():
    """Keep the CLI from reconfiguring global logging during tests."""
    saved = structlog.get_config()
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING))
    try:
        with (
            patch("caltimer.core.logging.structlog.configure") as configure,
            patch("caltimer.core.logging.logging.basicConfig") as basic_config,
        ):
            yield configure, basic_config
    finally:
        structlog.configure(**saved)


class TestNext:
    def test_next_fire_times_table(self):
        result = runner.invoke(
            app,
            ["next", "--second", "0", "--minute", "0", "--hour", "0", "--from", "2020-01-01T00:00:00", "--count", "2"],
        )
        assert result.exit_code == 0
        assert "2020-01-02 00:00:00" in result.output
        assert "2020-01-03 00:00:00" in result.output

    def test_next_json(self):
        result = runner.invoke(
            app,
            ["next", "--day-of-month", "2nd Fri", "-s", "0", "-m", "0", "-H", "0",
             "--from", "2020-01-01T00:00:00", "--count", "2", "--json"],
        )
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["fire_times"] == ["2020-01-10T00:00:00", "2020-02-14T00:00:00"]
        assert payload["exhausted"] is False
        assert payload["schedule"]["day_of_month"] == "2nd Fri"

    def test_next_exhausted(self):
        result = runner.invoke(app, ["next", "--year", "2019", "--from", "2020-01-01T00:00:00", "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["fire_times"] == []
        assert payload["exhausted"] is True

    def test_next_invalid_expression(self):
        result = runner.invoke(app, ["next", "--hour", "24"])
        assert result.exit_code == 1

    def test_next_bad_from(self):
        result = runner.invoke(app, ["next", "--from", "yesterday"])
        assert result.exit_code != 0


class TestValidate:
    def test_valid(self):
        result = runner.invoke(app, ["validate", "--day-of-week", "mon-fri", "--hour", "9"])
        assert result.exit_code == 0
        assert "Valid schedule" in result.output

    def test_invalid_json(self):
        result = runner.invoke(app, ["validate", "--day-of-month", "---", "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["valid"] is False
        assert payload["error"]["category"] == "VALIDATION"
        assert payload["error"]["context"]["unit"] == "dayOfMonth"


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("caltimer ")


class TestLogging:
    """Test that the root callback configures logging from settings."""

    def test_level_from_environment(self, logging_calls):
        configure, basic_config = logging_calls
        result = runner.invoke(app, ["validate"], env={"CALTIMER_LOG_LEVEL": "DEBUG"})
        assert result.exit_code == 0
        configure.assert_called_once()
        assert basic_config.call_args.kwargs["level"] == logging.DEBUG

    def test_option_overrides_environment(self, logging_calls):
        _, basic_config = logging_calls
        result = runner.invoke(app, ["--log-level", "warning", "validate"], env={"CALTIMER_LOG_LEVEL": "DEBUG"})
        assert result.exit_code == 0
        assert basic_config.call_args.kwargs["level"] == logging.WARNING

    def test_json_logs_setting(self, logging_calls):
        configure, _ = logging_calls
        result = runner.invoke(app, ["validate"], env={"CALTIMER_JSON_LOGS": "false"})
        assert result.exit_code == 0
        processors = configure.call_args.kwargs["processors"]
        assert type(processors[-1]).__name__ == "ConsoleRenderer"

    def test_unknown_level_rejected(self, logging_calls):
        configure, _ = logging_calls
        result = runner.invoke(app, ["--log-level", "chatty", "validate"])
        assert result.exit_code == 2
        configure.assert_not_called()
