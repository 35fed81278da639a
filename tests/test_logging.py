"""Tests for structured database logging helpers."""

from __future__ import annotations

import json
import logging

import pytest

from sqlsentry.database.logging import (
    QueryTimer,
    hash_query,
    log_connection,
    log_query_execution,
    preview_query,
    sanitize_dsn,
)


def test_sanitize_dsn_masks_credentials() -> None:
    assert sanitize_dsn("mysql://root:pw@db:3306/shop") == "mysql://***:***@db:3306/shop"
    assert sanitize_dsn("postgresql://report@pg:5432/warehouse") == "postgresql://***:***@pg:5432/warehouse"
    assert sanitize_dsn("mysql://local") == "mysql://local"


def test_hash_query_is_stable_and_short() -> None:
    assert hash_query("SELECT 1") == hash_query("SELECT 1")
    assert hash_query("SELECT 1") != hash_query("SELECT 2")
    assert len(hash_query("SELECT 1")) == 16


def test_preview_query_truncates_long_statements() -> None:
    assert preview_query("SELECT 1") == "SELECT 1"
    assert preview_query("x" * 150) == "x" * 100 + "..."


@pytest.mark.parametrize(
    ("kwargs", "level"),
    [
        ({"success": True}, logging.INFO),
        ({"success": False, "error": "boom"}, logging.ERROR),
        ({"success": False, "blocked": True}, logging.WARNING),
        ({"success": False, "needs_confirmation": True}, logging.WARNING),
    ],
)
def test_query_execution_levels(kwargs: dict, level: int, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="sqlsentry.database")

    log_query_execution("DELETE FROM users", "mysql://root@db:3306/shop", **kwargs)

    record = caplog.records[-1]
    payload = json.loads(record.getMessage())
    assert record.levelno == level
    assert payload["event"] == "query_execution"
    assert payload["dsn"] == "mysql://***:***@db:3306/shop"
    assert payload["query_hash"] == hash_query("DELETE FROM users")


def test_failed_connection_logs_error(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="sqlsentry.database")

    log_connection("postgresql://report@pg:5432/warehouse", success=False, error="timeout")

    payload = json.loads(caplog.records[-1].getMessage())
    assert caplog.records[-1].levelno == logging.ERROR
    assert payload["error"] == "timeout"


def test_query_timer_measures_duration() -> None:
    with QueryTimer() as timer:
        sum(range(1000))

    assert timer.duration >= 0
