"""Tests for the console entry point."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sqlsentry import cli

CONFIG = """---
profiles:
  local:
    type: mysql
    host: localhost
    port: 3306
    user: root
    password: s3cret
    database: shop
---
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / ".sqlsentry.md"
    path.write_text(CONFIG, encoding="utf-8")
    return path


def test_help_lists_commands(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--help"]) == 0

    err = capsys.readouterr().err
    assert err.startswith("Usage: sqlsentry <command>")
    assert "explain-query   - Explain query execution plan" in err


def test_missing_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 1
    assert capsys.readouterr().err.startswith("Error: Missing command")


def test_config_flag_requires_value(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["list-tables", "--config"]) == 1
    assert "--config requires a value" in capsys.readouterr().err


def test_too_many_arguments(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["query", "{}", "extra"]) == 1
    assert "Too many arguments" in capsys.readouterr().err


def test_missing_config_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["list-tables", "--config", str(tmp_path / "absent.md")]) == 1
    assert "Error executing command: Configuration file not found" in capsys.readouterr().err


def test_runs_command_with_config(config_file: Path, mysql_driver, capsys: pytest.CaptureFixture[str]) -> None:
    mysql_driver.connection.responses = {"SHOW DATABASES": {"columns": ["Database"], "rows": [{"Database": "shop"}]}}

    code = cli.main(["list-databases", "--config", str(config_file)])

    assert code == 0
    assert capsys.readouterr().out == "Databases:\n  • shop\n"
    assert mysql_driver.connection.closed is True


def test_blocked_statement_exits_nonzero(config_file: Path, mysql_driver, capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["query", '{"query": "DROP DATABASE shop"}', "--config", str(config_file)])

    assert code == 1
    assert "blacklisted" in capsys.readouterr().err
    assert mysql_driver.connect_calls == []


def test_verbose_sets_info_level(config_file: Path, mysql_driver) -> None:
    cli.main(["test-connection", "--verbose", "--config", str(config_file)])

    assert logging.getLogger("sqlsentry").level == logging.INFO


def test_quiet_by_default() -> None:
    cli.configure_logging(verbose=False)

    logger = logging.getLogger("sqlsentry")
    assert logger.level == logging.WARNING
    assert logger.handlers
