"""Tests for the headless command runner."""

from __future__ import annotations

import pytest

from sqlsentry.config import Configuration
from sqlsentry.dispatcher import Dispatcher
from sqlsentry.runner import INTERACTIVE_NOTE, parse_arguments, run_command


@pytest.mark.anyio
async def test_success_prints_to_stdout(config: Configuration, mysql_driver, capsys: pytest.CaptureFixture[str]) -> None:
    mysql_driver.connection.responses = {"SHOW TABLES": {"columns": ["Tables_in_shop"], "rows": [{"Tables_in_shop": "users"}]}}

    code = await run_command(Dispatcher(config), "list-tables", '{"profile": "local"}')

    captured = capsys.readouterr()
    assert code == 0
    assert captured.out == "Tables in database:\n  • users\n"
    assert captured.err == ""
    assert mysql_driver.connection.closed is True


@pytest.mark.anyio
async def test_confirmation_prints_interactive_note(config: Configuration, mysql_driver, capsys: pytest.CaptureFixture[str]) -> None:
    code = await run_command(Dispatcher(config), "query", '{"query": "UPDATE users SET active = 0"}')

    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert captured.err.startswith("WARNING: This query contains a destructive operation: UPDATE")
    assert captured.err.rstrip().endswith(INTERACTIVE_NOTE)


@pytest.mark.anyio
async def test_failure_prints_error(config: Configuration, mysql_driver, capsys: pytest.CaptureFixture[str]) -> None:
    code = await run_command(Dispatcher(config), "describe-table", "{}")

    captured = capsys.readouterr()
    assert code == 1
    assert captured.err == 'ERROR: "table" parameter is required\n'
    assert INTERACTIVE_NOTE not in captured.err


@pytest.mark.anyio
async def test_invalid_json_is_rejected_and_connections_released(config: Configuration, capsys: pytest.CaptureFixture[str]) -> None:
    closed: list[bool] = []

    class _Dispatcher(Dispatcher):
        async def close(self) -> None:
            closed.append(True)
            await super().close()

    code = await run_command(_Dispatcher(config), "query", "{not json")

    assert code == 1
    assert capsys.readouterr().err.startswith("Error: Invalid JSON arguments")
    assert closed == [True]


def test_parse_arguments() -> None:
    assert parse_arguments(None) == {}
    assert parse_arguments("  ") == {}
    assert parse_arguments('{"table": "users"}') == {"table": "users"}
    with pytest.raises(ValueError, match="expected an object"):
        parse_arguments('["users"]')
