"""Structured logging for database operations.

Every event is a single JSON object on one log line. DSNs are masked and
statements are reduced to a hash plus a short preview, so credentials and
full statement text never reach the logs.
"""

import hashlib
import json
import logging
import re
import time
from typing import Any, Optional

from sqlsentry.constants import QUERY_PREVIEW_LENGTH

db_logger = logging.getLogger("sqlsentry.database")

_CREDENTIALS = re.compile(r"://([^@/]+)@")


def sanitize_dsn(dsn: str) -> str:
    """Mask the user:password section of a DSN.

    Example:
        >>> sanitize_dsn("mysql://root:pw@db:3306/shop")
        'mysql://***:***@db:3306/shop'
    """
    return _CREDENTIALS.sub("://***:***@", dsn)


def hash_query(query: str) -> str:
    """First 16 hex characters of the statement's SHA256 digest, for correlating log lines."""
    return hashlib.sha256(query.encode()).hexdigest()[:16]


def preview_query(query: str) -> str:
    if len(query) > QUERY_PREVIEW_LENGTH:
        return query[:QUERY_PREVIEW_LENGTH] + "..."
    return query


def _emit(level: int, event: str, dsn: str, **fields: Any) -> None:
    if not db_logger.isEnabledFor(level):
        return
    record = {"event": event, "dsn": sanitize_dsn(dsn), **fields}
    db_logger.log(level, json.dumps(record))


def log_connection(dsn: str, success: bool, error: Optional[str] = None, duration: float = 0.0) -> None:
    """Record a connection attempt (INFO on success, ERROR on failure)."""
    extra = {"error": error} if error else {}
    _emit(
        logging.INFO if success else logging.ERROR,
        "database_connection",
        dsn,
        success=success,
        duration_seconds=round(duration, 3),
        **extra,
    )


def log_query_execution(
    query: str,
    dsn: str,
    success: bool,
    row_count: int = 0,
    duration: float = 0.0,
    error: Optional[str] = None,
    blocked: bool = False,
    needs_confirmation: bool = False,
) -> None:
    """Record one statement.

    Statements stopped by the safety policy (blocked, or held for
    confirmation) log at WARNING so they stand out in an audit trail.
    Executed statements log at INFO, driver failures at ERROR.

    Args:
        query: SQL statement; only its hash and preview are logged
        dsn: Connection string, masked before logging
        success: Whether the statement executed
        row_count: Rows returned or affected
        duration: Execution time in seconds
        error: Driver or policy message
        blocked: Stopped by the blacklist
        needs_confirmation: Held for confirmation
    """
    if blocked or needs_confirmation:
        level = logging.WARNING
    else:
        level = logging.INFO if success else logging.ERROR

    extra = {"error": error} if error else {}
    _emit(
        level,
        "query_execution",
        dsn,
        query_hash=hash_query(query),
        query_preview=preview_query(query),
        success=success,
        blocked=blocked,
        needs_confirmation=needs_confirmation,
        row_count=row_count,
        duration_seconds=round(duration, 3),
        timestamp=time.time(),
        **extra,
    )


def log_pool_operation(dsn: str, operation: str, pool_size: int, active_connections: int) -> None:
    """Record a pool lifecycle step (create, close, close_all) at DEBUG."""
    _emit(
        logging.DEBUG,
        "connection_pool",
        dsn,
        operation=operation,
        pool_size=pool_size,
        active_connections=active_connections,
    )


class QueryTimer:
    """Measures the wall time of a with-block; `duration` is set on exit, even on error."""

    def __init__(self):
        self._started: float = 0.0
        self.duration: float = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self._started
