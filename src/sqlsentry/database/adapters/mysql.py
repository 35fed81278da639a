"""MySQL database adapter implementation."""

import asyncio
import ssl
from typing import Any

import pymysql
import pymysql.converters
import pymysql.cursors
from pymysql.constants import FIELD_TYPE

from sqlsentry.config import EngineFamily, Profile
from sqlsentry.database.adapters.base import BaseAdapter, QueryParams, StatementOutcome, outcome_from_cursor


def _temporal_or_null(convert):
    # pymysql hands back the raw text for values it cannot parse (zero dates)
    def wrapper(value):
        converted = convert(value)
        if isinstance(converted, (str, bytes)):
            return None
        return converted

    return wrapper


TEMPORAL_CONVERSIONS = dict(pymysql.converters.conversions)
TEMPORAL_CONVERSIONS.update(
    {
        FIELD_TYPE.DATETIME: _temporal_or_null(pymysql.converters.convert_datetime),
        FIELD_TYPE.TIMESTAMP: _temporal_or_null(pymysql.converters.convert_datetime),
        FIELD_TYPE.DATE: _temporal_or_null(pymysql.converters.convert_date),
    }
)


def quote_identifier(name: str) -> str:
    """Quote a (possibly database-qualified) identifier with backticks.

    Example:
        >>> quote_identifier("shop.orders")
        '`shop`.`orders`'
    """
    return ".".join("`" + part.replace("`", "``") + "`" for part in name.split("."))


class MySQLAdapter(BaseAdapter):
    """MySQL-specific adapter using the pymysql driver.

    Holds one connection per profile. Connections run in autocommit mode so
    data-modifying statements take effect immediately.
    """

    engine = EngineFamily.MYSQL
    engine_label = "MySQL"
    driver_errors = (pymysql.Error, OSError)

    def _connection_params(self, profile: Profile) -> dict[str, Any]:
        params = {
            "host": profile.host,
            "port": profile.port,
            "user": profile.user,
            "password": profile.password,
            "database": profile.database,
            "connect_timeout": int(self.connect_timeout),
            "charset": "utf8mb4",
            "cursorclass": pymysql.cursors.DictCursor,
            "autocommit": True,
            "conv": TEMPORAL_CONVERSIONS,
        }

        # Only enable TLS when the profile asks for it
        if profile.ssl:
            params["ssl"] = ssl.create_default_context()

        return params

    async def _open(self, profile_name: str) -> pymysql.connections.Connection:
        params = self._connection_params(self.config.profile(profile_name))
        return await asyncio.to_thread(pymysql.connect, **params)

    def _run_sync(self, connection, query: str, params: QueryParams) -> StatementOutcome:
        with connection.cursor() as cursor:
            cursor.execute(query, params or None)
            return outcome_from_cursor(cursor, last_insert_id=cursor.lastrowid)

    def _close_sync(self, connection) -> None:
        connection.close()

    def _list_databases_query(self, profile_name: str) -> tuple[str, QueryParams]:
        return "SHOW DATABASES", None

    def _list_tables_query(self, profile_name: str) -> tuple[str, QueryParams]:
        return "SHOW TABLES", None

    def _tables_heading(self, profile_name: str) -> str:
        return "Tables in database"

    def _describe_query(self, profile_name: str, table: str) -> tuple[str, QueryParams]:
        return f"DESCRIBE {quote_identifier(table)}", None

    def _indexes_query(self, profile_name: str, table: str) -> tuple[str, QueryParams]:
        return f"SHOW INDEXES FROM {quote_identifier(table)}", None

    def _version_query(self) -> str:
        return "SELECT VERSION() AS version, DATABASE() AS current_database"
