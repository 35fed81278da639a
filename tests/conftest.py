"""Shared fixtures: a two-profile configuration and fake database drivers."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from sqlsentry.config import Configuration


class FakeCursor:
    """DB-API cursor stand-in returning canned responses."""

    def __init__(self, connection: "FakeConnection") -> None:
        self.connection = connection
        self.description = None
        self.rowcount = -1
        self.lastrowid = None
        self._rows: list[dict[str, Any]] = []

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc_info: Any) -> bool:
        return False

    def execute(self, query: str, params: Any = None) -> None:
        self.connection.executed.append((query, params))
        if self.connection.error is not None:
            raise self.connection.error
        response = self.connection.respond(query)
        columns = response.get("columns")
        self.description = [(name, None, None, None, None, None, None) for name in columns] if columns else None
        self._rows = list(response.get("rows", []))
        self.rowcount = response.get("rowcount", len(self._rows))
        self.lastrowid = response.get("lastrowid")

    def fetchall(self) -> list[dict[str, Any]]:
        return list(self._rows)


class FakeConnection:
    """Connection whose responses are picked by a substring of the statement."""

    def __init__(self) -> None:
        self.responses: dict[str, dict[str, Any]] = {}
        self.executed: list[tuple[str, Any]] = []
        self.error: Exception | None = None
        self.closed = False
        self.autocommit = False

    def respond(self, query: str) -> dict[str, Any]:
        for needle, response in self.responses.items():
            if needle in query:
                return response
        return {}

    def cursor(self, cursor_factory: Any = None) -> FakeCursor:
        return FakeCursor(self)

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> list[str]:
        return [query for query, _ in self.executed]


class FakePool:
    def __init__(self, connection: FakeConnection, minconn: int, maxconn: int, **params: Any) -> None:
        self.connection = connection
        self.minconn = minconn
        self.maxconn = maxconn
        self.params = params
        self.checked_out = 0
        self.closed = False

    def getconn(self) -> FakeConnection:
        self.checked_out += 1
        return self.connection

    def putconn(self, connection: FakeConnection) -> None:
        self.checked_out -= 1

    def closeall(self) -> None:
        self.closed = True


class MySQLDriver:
    """Records pymysql.connect calls and hands out one shared connection."""

    def __init__(self) -> None:
        self.connection = FakeConnection()
        self.connect_calls: list[dict[str, Any]] = []

    def connect(self, **params: Any) -> FakeConnection:
        self.connect_calls.append(params)
        return self.connection


class PostgresDriver:
    """Records pool creation and hands out pools sharing one connection."""

    def __init__(self) -> None:
        self.connection = FakeConnection()
        self.pools: list[FakePool] = []

    def create_pool(self, minconn: int, maxconn: int, **params: Any) -> FakePool:
        pool = FakePool(self.connection, minconn, maxconn, **params)
        self.pools.append(pool)
        return pool


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def config_data() -> dict[str, Any]:
    return {
        "profiles": {
            "local": {
                "type": "mysql",
                "host": "localhost",
                "port": 3306,
                "user": "root",
                "password": "s3cret",
                "database": "shop",
            },
            "analytics": {
                "type": "postgresql",
                "host": "pg.internal",
                "port": 5432,
                "user": "report",
                "password": "s3cret",
                "database": "warehouse",
                "schema": "sales",
            },
        },
        "safety": {
            "defaultLimit": 100,
            "requireConfirmationFor": ["DELETE", "UPDATE", "DROP", "TRUNCATE", "ALTER"],
            "blacklistedOperations": ["DROP DATABASE"],
        },
    }


@pytest.fixture
def config(config_data: dict[str, Any]) -> Configuration:
    return Configuration.from_mapping(config_data)


@pytest.fixture
def mysql_driver(monkeypatch: pytest.MonkeyPatch) -> MySQLDriver:
    driver = MySQLDriver()
    monkeypatch.setattr("sqlsentry.database.adapters.mysql.pymysql.connect", driver.connect)
    return driver


@pytest.fixture
def postgres_driver(monkeypatch: pytest.MonkeyPatch) -> PostgresDriver:
    driver = PostgresDriver()
    monkeypatch.setattr("sqlsentry.database.adapters.postgresql.ThreadedConnectionPool", driver.create_pool)
    return driver


@pytest.fixture(autouse=True)
def _restore_sqlsentry_logger():
    logger = logging.getLogger("sqlsentry")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
