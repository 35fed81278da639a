"""Single entry point routing operations to the right database adapter."""

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from sqlsentry.config import Configuration, ConfigurationError
from sqlsentry.database.connection import ConnectionRegistry
from sqlsentry.database.formatting import OutputFormat
from sqlsentry.database.results import CommandResult

logger = logging.getLogger("sqlsentry")


class Operation(str, Enum):
    """Operations exposed to callers, named after their commands."""

    EXECUTE = "query"
    LIST_DATABASES = "list-databases"
    LIST_TABLES = "list-tables"
    DESCRIBE_TABLE = "describe-table"
    SHOW_INDEXES = "show-indexes"
    EXPLAIN = "explain-query"
    TEST_CONNECTION = "test-connection"


# Parameter each operation cannot run without
REQUIRED_PARAMS = {
    Operation.EXECUTE: "query",
    Operation.DESCRIBE_TABLE: "table",
    Operation.SHOW_INDEXES: "table",
    Operation.EXPLAIN: "query",
}


class Dispatcher:
    """Facade used by the runner and the MCP server.

    Resolves the profile's engine family, obtains the adapter from the
    registry and delegates. Never raises for user-facing failures; every
    problem comes back as a failed CommandResult.
    """

    def __init__(self, config: Configuration, registry: Optional[ConnectionRegistry] = None):
        self.config = config
        self.registry = registry or ConnectionRegistry(config)

    async def dispatch(
        self,
        profile_name: Optional[str],
        operation: "Operation | str",
        params: Optional[Mapping[str, Any]] = None,
    ) -> CommandResult:
        """Run one operation for a profile.

        Args:
            profile_name: Profile to use; None selects the configured default
            operation: Operation or its command name
            params: Operation parameters (query, table, format)

        Returns:
            CommandResult describing the outcome
        """
        params = params or {}
        profile_name = profile_name or self.config.default_profile

        try:
            operation = Operation(operation)
        except ValueError:
            valid = ", ".join(op.value for op in Operation)
            return CommandResult.failure(f"Unknown command: {operation}. Valid commands: {valid}")

        required = REQUIRED_PARAMS.get(operation)
        if required and not params.get(required):
            return CommandResult.failure(f'"{required}" parameter is required')

        try:
            output_format = OutputFormat.parse(params.get("format") or self.config.default_format)
            adapter = self.registry.adapter_for_profile(profile_name)
        except (ConfigurationError, ValueError) as exc:
            return CommandResult.failure(str(exc))

        logger.debug(f"Dispatching {operation.value} to {adapter.engine_label} profile '{profile_name}'")

        if operation is Operation.EXECUTE:
            return await adapter.execute_statement(profile_name, params["query"], output_format)
        if operation is Operation.LIST_DATABASES:
            return await adapter.list_databases(profile_name)
        if operation is Operation.LIST_TABLES:
            return await adapter.list_tables(profile_name)
        if operation is Operation.DESCRIBE_TABLE:
            return await adapter.describe_columns(profile_name, params["table"], output_format)
        if operation is Operation.SHOW_INDEXES:
            return await adapter.list_indexes(profile_name, params["table"], output_format)
        if operation is Operation.EXPLAIN:
            return await adapter.explain_statement(profile_name, params["query"], output_format)
        return await adapter.test_connectivity(profile_name)

    async def close(self) -> None:
        """Release every connection opened through this dispatcher."""
        await self.registry.close_all()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
