"""Tests for itsm-source CLI."""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog
import yaml
from typer.testing import CliRunner

from itsm_source.contracts import ApiError
from itsm_source.core.config import RetrySettings
from itsm_source.plugins.sources.table_source import TableSource

runner = CliRunner()


def write_settings(tmp_path: Path, **option_overrides: Any) -> Path:
    options: dict[str, Any] = {
        "client_id": "client",
        "client_secret": "secret",
        "api_endpoint": "https://example.service-now.com",
        "user": "svc_reader",
        "password": "hunter2",
        "query_mode": "Table",
        "table_name": "incident",
        "page_size": 2,
    }
    options.update(option_overrides)
    config = {
        "datasource": {"plugin": "servicenow_table", "options": options},
        "retry": {"backoff_seconds": [0, 0, 0]},
        "logging": {"level": "WARNING", "format": "console"},
    }
    config_file = tmp_path / "settings.yaml"
    config_file.write_text(yaml.dump(config))
    return config_file


def json_lines(output: str) -> list[dict[str, Any]]:
    """Records printed by read; log lines never start with '{' in console format."""
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """read configures global logging; undo it after each test."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


@pytest.fixture
def fake_source(monkeypatch: pytest.MonkeyPatch, incident_api: Any) -> Any:
    """Route the CLI's TableSource to the in-memory API."""

    class FakeBackedSource(TableSource):
        def __init__(self, config: dict[str, Any], *, retry: RetrySettings | None = None) -> None:
            super().__init__(config, retry=retry, api=incident_api, sleep=lambda _: None)

    monkeypatch.setattr("itsm_source.cli.TableSource", FakeBackedSource)
    return incident_api


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_version_flag(self) -> None:
        """--version shows version info."""
        from itsm_source import __version__
        from itsm_source.cli import app

        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"itsm-source version {__version__}" in result.stdout

    def test_help_flag(self) -> None:
        """--help shows available commands."""
        from itsm_source.cli import app

        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "validate" in result.stdout
        assert "read" in result.stdout


class TestValidateCommand:
    """Tests for validate command."""

    def test_validate_valid_config(self, tmp_path: Path) -> None:
        from itsm_source.cli import app

        result = runner.invoke(app, ["validate", "-s", str(write_settings(tmp_path))])
        assert result.exit_code == 0
        assert "Configuration valid." in result.stdout
        assert "Table: incident" in result.stdout
        assert "Retries: 3" in result.stdout

    def test_validate_missing_file(self, tmp_path: Path) -> None:
        from itsm_source.cli import app

        result = runner.invoke(app, ["validate", "-s", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_validate_bad_settings(self, tmp_path: Path) -> None:
        from itsm_source.cli import app

        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"retry": {"backoff_seconds": [1]}}))

        result = runner.invoke(app, ["validate", "-s", str(config_file)])
        assert result.exit_code == 1
        assert "datasource" in result.output

    def test_validate_bad_source_options(self, tmp_path: Path) -> None:
        from itsm_source.cli import app

        settings = write_settings(tmp_path, start_date="2024-02-01", end_date="2024-01-01")
        result = runner.invoke(app, ["validate", "-s", str(settings)])
        assert result.exit_code == 1
        assert "Source configuration error" in result.output

    def test_validate_unknown_plugin(self, tmp_path: Path) -> None:
        from itsm_source.cli import app

        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml.dump({"datasource": {"plugin": "jira", "options": {}}}))

        result = runner.invoke(app, ["validate", "-s", str(config_file)])
        assert result.exit_code == 1
        assert "Unknown source plugin 'jira'" in result.output


class TestReadCommand:
    """Tests for read command."""

    def test_prints_one_json_object_per_record(self, tmp_path: Path, fake_source: Any) -> None:
        from itsm_source.cli import app

        result = runner.invoke(app, ["read", "-s", str(write_settings(tmp_path))])
        assert result.exit_code == 0, result.output

        records = json_lines(result.stdout)
        assert [r["number"] for r in records] == ["INC0000000", "INC0000001", "INC0000002"]
        assert records[0] == {"number": "INC0000000", "priority": 1, "active": True, "cost": 0.5}

    def test_limit(self, tmp_path: Path, fake_source: Any) -> None:
        from itsm_source.cli import app

        result = runner.invoke(app, ["read", "-s", str(write_settings(tmp_path)), "-n", "2"])
        assert result.exit_code == 0, result.output
        assert len(json_lines(result.stdout)) == 2

    def test_reporting_mode(self, tmp_path: Path, fake_source: Any) -> None:
        from itsm_source.cli import app

        settings = write_settings(tmp_path, query_mode="Reporting")
        result = runner.invoke(app, ["read", "-s", str(settings)])
        assert result.exit_code == 0, result.output
        assert all(r["tablename"] == "incident" for r in json_lines(result.stdout))

    def test_source_error_exits_1(self, tmp_path: Path, fake_source: Any) -> None:
        from itsm_source.cli import app

        fake_source.record_failures = [ApiError("forbidden", status_code=403)]
        result = runner.invoke(app, ["read", "-s", str(write_settings(tmp_path))])
        assert result.exit_code == 1
        assert "Error reading table: forbidden" in result.output

    def test_bad_source_options(self, tmp_path: Path) -> None:
        from itsm_source.cli import app

        result = runner.invoke(app, ["read", "-s", str(write_settings(tmp_path, page_size=0))])
        assert result.exit_code == 1
        assert "Source configuration error" in result.output
