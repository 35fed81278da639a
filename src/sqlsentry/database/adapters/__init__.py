"""Database adapters for the supported engine families."""

from sqlsentry.config import Configuration, EngineFamily
from sqlsentry.constants import DB_CONNECT_TIMEOUT, DB_SUPPORTED_ENGINES

from .base import BaseAdapter, StatementOutcome
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter

__all__ = [
    "BaseAdapter",
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "StatementOutcome",
    "create_adapter",
]

ADAPTER_CLASSES: dict[EngineFamily, type[BaseAdapter]] = {
    EngineFamily.MYSQL: MySQLAdapter,
    EngineFamily.POSTGRESQL: PostgreSQLAdapter,
}


def create_adapter(
    engine: EngineFamily,
    config: Configuration,
    connect_timeout: float = DB_CONNECT_TIMEOUT,
) -> BaseAdapter:
    """Factory function to create the adapter for an engine family.

    Args:
        engine: Engine family (mysql, postgresql)
        config: Configuration shared by all profiles of the family
        connect_timeout: Connection establishment timeout in seconds

    Returns:
        Adapter instance for the engine family

    Raises:
        ValueError: If the engine family is not supported
    """
    try:
        adapter_class = ADAPTER_CLASSES[EngineFamily(engine)]
    except (KeyError, ValueError):
        raise ValueError(
            f"Unsupported database engine: {engine}\n"
            f"  Supported engines: {', '.join(DB_SUPPORTED_ENGINES)}"
        ) from None
    return adapter_class(config, connect_timeout=connect_timeout)
