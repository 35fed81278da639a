"""PostgreSQL database adapter implementation."""

import asyncio
from typing import Any

import psycopg2
import psycopg2.extras
from psycopg2.pool import ThreadedConnectionPool

from sqlsentry.config import EngineFamily, Profile
from sqlsentry.constants import DB_POOL_MIN_SIZE, DB_POOL_SIZE
from sqlsentry.database.adapters.base import BaseAdapter, QueryParams, StatementOutcome, outcome_from_cursor
from sqlsentry.database.logging import log_pool_operation

DESCRIBE_COLUMNS_QUERY = """
    SELECT
      c.column_name AS "Field",
      c.data_type AS "Type",
      c.is_nullable AS "Null",
      c.column_default AS "Default",
      CASE WHEN pk.column_name IS NOT NULL THEN 'PRI' ELSE '' END AS "Key"
    FROM information_schema.columns c
    LEFT JOIN (
      SELECT ku.column_name
      FROM information_schema.table_constraints tc
      JOIN information_schema.key_column_usage ku
        ON tc.constraint_name = ku.constraint_name
        AND tc.table_schema = ku.table_schema
      WHERE tc.constraint_type = 'PRIMARY KEY'
        AND tc.table_name = %(table)s
        AND tc.table_schema = %(schema)s
    ) pk ON c.column_name = pk.column_name
    WHERE c.table_name = %(table)s AND c.table_schema = %(schema)s
    ORDER BY c.ordinal_position
"""

LIST_INDEXES_QUERY = """
    SELECT
      schemaname AS "Schema",
      tablename AS "Table",
      indexname AS "Key_name",
      indexdef AS "Index_definition"
    FROM pg_indexes
    WHERE tablename = %(table)s AND schemaname = %(schema)s
    ORDER BY indexname
"""


class PostgreSQLAdapter(BaseAdapter):
    """PostgreSQL adapter backed by one psycopg2 connection pool per profile.

    Catalog lookups (tables, columns, indexes) are qualified by the profile's
    schema, which defaults to ``public``.
    """

    engine = EngineFamily.POSTGRESQL
    engine_label = "PostgreSQL"
    driver_errors = (psycopg2.Error, OSError)

    def _connection_params(self, profile: Profile) -> dict[str, Any]:
        params = {
            "host": profile.host,
            "port": profile.port,
            "user": profile.user,
            "password": profile.password,
            "dbname": profile.database,
            "connect_timeout": int(self.connect_timeout),
        }

        if profile.ssl:
            params["sslmode"] = "require"

        return params

    async def _open(self, profile_name: str) -> ThreadedConnectionPool:
        params = self._connection_params(self.config.profile(profile_name))
        pool = await asyncio.to_thread(ThreadedConnectionPool, DB_POOL_MIN_SIZE, DB_POOL_SIZE, **params)
        log_pool_operation(self.dsn(profile_name), "create", DB_POOL_SIZE, len(self._connections) + 1)
        return pool

    def _run_sync(self, pool, query: str, params: QueryParams) -> StatementOutcome:
        connection = pool.getconn()
        try:
            connection.autocommit = True
            with connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                cursor.execute(query, params or None)
                return outcome_from_cursor(cursor)
        finally:
            pool.putconn(connection)

    def _close_sync(self, pool) -> None:
        pool.closeall()

    def _list_databases_query(self, profile_name: str) -> tuple[str, QueryParams]:
        return 'SELECT datname AS "Database" FROM pg_database WHERE datistemplate = false ORDER BY datname', None

    def _list_tables_query(self, profile_name: str) -> tuple[str, QueryParams]:
        return (
            'SELECT tablename AS "Tables" FROM pg_tables WHERE schemaname = %(schema)s ORDER BY tablename',
            {"schema": self.config.schema_for(profile_name)},
        )

    def _tables_heading(self, profile_name: str) -> str:
        return f"Tables in schema '{self.config.schema_for(profile_name)}'"

    def _describe_query(self, profile_name: str, table: str) -> tuple[str, QueryParams]:
        return DESCRIBE_COLUMNS_QUERY, {"table": table, "schema": self.config.schema_for(profile_name)}

    def _indexes_query(self, profile_name: str, table: str) -> tuple[str, QueryParams]:
        return LIST_INDEXES_QUERY, {"table": table, "schema": self.config.schema_for(profile_name)}

    def _version_query(self) -> str:
        return (
            "SELECT version() AS version, current_database() AS current_database, "
            "current_schema() AS current_schema"
        )

    def _connection_details(self, profile_name: str, info: dict[str, Any]) -> list[str]:
        return [f"Schema: {info.get('current_schema') or self.config.schema_for(profile_name)}"]
