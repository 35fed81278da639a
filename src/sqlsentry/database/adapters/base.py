"""Abstract base class for database adapters."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from sqlsentry.config import Configuration, ConfigurationError, EngineFamily
from sqlsentry.constants import DB_CONNECT_TIMEOUT, DB_POOL_SIZE, WARNING_MARKER
from sqlsentry.database.formatting import OutputFormat, format_bullet_list, render
from sqlsentry.database.logging import (
    QueryTimer,
    db_logger,
    log_connection,
    log_pool_operation,
    log_query_execution,
)
from sqlsentry.database.results import CommandResult
from sqlsentry.database.validation import (
    RESULT_BEARING_TYPES,
    Advisory,
    SafetyVerdict,
    StatementType,
    apply_default_limit,
    classify,
    evaluate,
)

QueryParams = Optional[Union[Sequence[Any], dict[str, Any]]]


@dataclass(frozen=True)
class StatementOutcome:
    """Driver-neutral view of one executed statement."""

    columns: tuple[str, ...] = ()
    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    last_insert_id: Optional[int] = None
    has_result_set: bool = False


def outcome_from_cursor(cursor, last_insert_id: Optional[int] = None) -> StatementOutcome:
    """Build a StatementOutcome from a DB-API cursor with dict-shaped rows."""
    if cursor.description:
        columns = tuple(column[0] for column in cursor.description)
        rows = [dict(row) for row in cursor.fetchall()]
        return StatementOutcome(columns=columns, rows=rows, row_count=len(rows), has_result_set=True)
    return StatementOutcome(row_count=max(cursor.rowcount, 0), last_insert_id=last_insert_id)


def format_advisories(advisories: Sequence[Advisory]) -> str:
    if not advisories:
        return ""
    lines = [f"  [{item.severity.value.upper()}] {item.message}\n  → {item.suggestion}" for item in advisories]
    return "⚠️  Query Analysis:\n" + "\n".join(lines) + "\n\n"


class BaseAdapter(ABC):
    """Abstract base class for engine-specific adapters.

    Each engine family (MySQL, PostgreSQL) implements the connection and
    catalog hooks; the safety pipeline, result shaping and error conversion
    live here so every engine exposes the same contract. Public operations
    never raise: driver and configuration failures come back as failed
    CommandResults.

    Connections are created lazily, one per profile, and stay cached until
    release_all() is called.
    """

    engine: EngineFamily
    engine_label: str
    driver_errors: tuple[type[BaseException], ...] = (OSError,)

    def __init__(self, config: Configuration, connect_timeout: float = DB_CONNECT_TIMEOUT):
        """Initialize adapter.

        Args:
            config: Configuration holding profiles and safety policy
            connect_timeout: Seconds allowed for establishing a connection
        """
        self.config = config
        self.connect_timeout = connect_timeout
        self._connections: dict[str, Any] = {}

    @property
    def handled_errors(self) -> tuple[type[BaseException], ...]:
        return self.driver_errors + (ConfigurationError,)

    # Engine hooks

    @abstractmethod
    async def _open(self, profile_name: str) -> Any:
        """Open the connection or pool for a profile.

        Raises:
            One of driver_errors if the connection cannot be established
        """

    @abstractmethod
    def _run_sync(self, handle: Any, query: str, params: QueryParams) -> StatementOutcome:
        """Execute a statement on a connection handle (runs in a worker thread)."""

    @abstractmethod
    def _close_sync(self, handle: Any) -> None:
        """Close a connection handle (runs in a worker thread)."""

    @abstractmethod
    def _list_databases_query(self, profile_name: str) -> tuple[str, QueryParams]:
        pass

    @abstractmethod
    def _list_tables_query(self, profile_name: str) -> tuple[str, QueryParams]:
        pass

    @abstractmethod
    def _tables_heading(self, profile_name: str) -> str:
        pass

    @abstractmethod
    def _describe_query(self, profile_name: str, table: str) -> tuple[str, QueryParams]:
        pass

    @abstractmethod
    def _indexes_query(self, profile_name: str, table: str) -> tuple[str, QueryParams]:
        pass

    @abstractmethod
    def _version_query(self) -> str:
        pass

    def _connection_details(self, profile_name: str, info: dict[str, Any]) -> list[str]:
        """Extra lines for the connectivity report, built from the version query row."""
        return []

    # Connection management

    def dsn(self, profile_name: str) -> str:
        """DSN for logging; never includes the password."""
        profile = self.config.profile(profile_name)
        return f"{self.engine.value}://{profile.user}@{profile.host}:{profile.port}/{profile.database}"

    def _log_dsn(self, profile_name: str) -> str:
        try:
            return self.dsn(profile_name)
        except ConfigurationError:
            return f"{self.engine.value}://{profile_name}"

    async def _get_connection(self, profile_name: str) -> Any:
        handle = self._connections.get(profile_name)
        if handle is not None:
            return handle

        dsn = self.dsn(profile_name)
        timer = QueryTimer()
        try:
            with timer:
                handle = await self._open(profile_name)
        except self.driver_errors as exc:
            log_connection(dsn, success=False, error=str(exc), duration=timer.duration)
            raise

        log_connection(dsn, success=True, duration=timer.duration)
        self._connections[profile_name] = handle
        return handle

    async def _query(self, profile_name: str, query: str, params: QueryParams = None) -> StatementOutcome:
        """Run a statement with timing and structured logging; driver errors propagate."""
        dsn = self.dsn(profile_name)
        timer = QueryTimer()
        try:
            with timer:
                handle = await self._get_connection(profile_name)
                outcome = await asyncio.to_thread(self._run_sync, handle, query, params)
        except self.driver_errors as exc:
            log_query_execution(query, dsn, success=False, error=str(exc), duration=timer.duration)
            raise

        log_query_execution(query, dsn, success=True, row_count=outcome.row_count, duration=timer.duration)
        return outcome

    async def release_all(self) -> None:
        """Close every connection owned by this adapter. Safe to call repeatedly."""
        handles = list(self._connections.items())
        self._connections.clear()
        for profile_name, handle in handles:
            dsn = self.dsn(profile_name)
            try:
                await asyncio.to_thread(self._close_sync, handle)
            except self.driver_errors as exc:
                db_logger.warning(f"Error closing {self.engine_label} connection for '{profile_name}': {exc}")
            log_pool_operation(dsn, "close", DB_POOL_SIZE, len(self._connections))

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release_all()

    # Operations

    async def execute_statement(
        self,
        profile_name: str,
        statement: str,
        output_format: OutputFormat = OutputFormat.TABLE,
    ) -> CommandResult:
        """Run a statement through the safety policy, then execute it.

        Args:
            profile_name: Profile to execute against
            statement: SQL statement
            output_format: Encoding for result sets

        Returns:
            CommandResult with the rendered result, a block reason, or a
            confirmation request
        """
        policy = self.config.safety
        verdict = evaluate(statement, policy)
        refusal = self._refuse(profile_name, statement, verdict)
        if refusal is not None:
            return refusal

        notes = format_advisories(verdict.advisories)
        statement_type = classify(statement)
        final_statement = statement
        if statement_type is StatementType.SELECT:
            final_statement = apply_default_limit(statement, policy.row_limit_default)
            if final_statement != statement:
                notes += f"ℹ️  Applied default LIMIT {policy.row_limit_default}\n\n"

        try:
            outcome = await self._query(profile_name, final_statement)
        except self.handled_errors as exc:
            return CommandResult.failure(str(exc))

        returns_rows = statement_type in RESULT_BEARING_TYPES or (
            statement_type is StatementType.UNKNOWN and outcome.has_result_set
        )
        if returns_rows:
            try:
                body = render(outcome.rows, outcome.columns, output_format)
            except (TypeError, ValueError) as exc:
                return self._render_failure(output_format, exc)
            text = f"Query executed successfully. Rows returned: {len(outcome.rows)}\n\n{body}"
            return CommandResult.ok(notes + text, data=tuple(outcome.rows))

        text = f"Query executed successfully.\nAffected rows: {outcome.row_count}\n"
        if outcome.last_insert_id:
            text += f"Insert ID: {outcome.last_insert_id}\n"
        return CommandResult.ok(
            notes + text,
            data={"affected_rows": outcome.row_count, "insert_id": outcome.last_insert_id or None},
        )

    async def list_databases(self, profile_name: str) -> CommandResult:
        """List databases visible to the profile's user."""
        try:
            query, params = self._list_databases_query(profile_name)
            outcome = await self._query(profile_name, query, params)
        except self.handled_errors as exc:
            return CommandResult.failure(str(exc))

        names = _first_column(outcome)
        return CommandResult.ok(format_bullet_list("Databases", names), data=names)

    async def list_tables(self, profile_name: str) -> CommandResult:
        """List tables in the profile's database (or schema)."""
        try:
            query, params = self._list_tables_query(profile_name)
            outcome = await self._query(profile_name, query, params)
            heading = self._tables_heading(profile_name)
        except self.handled_errors as exc:
            return CommandResult.failure(str(exc))

        names = _first_column(outcome)
        return CommandResult.ok(format_bullet_list(heading, names), data=names)

    async def describe_columns(
        self, profile_name: str, table: str, output_format: OutputFormat = OutputFormat.TABLE
    ) -> CommandResult:
        """Describe the columns of a table."""
        try:
            query, params = self._describe_query(profile_name, table)
            outcome = await self._query(profile_name, query, params)
        except self.handled_errors as exc:
            return CommandResult.failure(str(exc))
        return self._render_introspection(outcome, output_format)

    async def list_indexes(
        self, profile_name: str, table: str, output_format: OutputFormat = OutputFormat.TABLE
    ) -> CommandResult:
        """Show the indexes defined on a table."""
        try:
            query, params = self._indexes_query(profile_name, table)
            outcome = await self._query(profile_name, query, params)
        except self.handled_errors as exc:
            return CommandResult.failure(str(exc))
        return self._render_introspection(outcome, output_format)

    async def explain_statement(
        self, profile_name: str, statement: str, output_format: OutputFormat = OutputFormat.TABLE
    ) -> CommandResult:
        """Show the execution plan for a statement.

        Blacklist and confirmation rules still apply, since some engines
        execute the statement (EXPLAIN ANALYZE).
        """
        explained = f"EXPLAIN {statement}"
        refusal = self._refuse(profile_name, explained, evaluate(statement, self.config.safety))
        if refusal is not None:
            return refusal

        try:
            outcome = await self._query(profile_name, explained)
        except self.handled_errors as exc:
            return CommandResult.failure(str(exc))
        return self._render_introspection(outcome, output_format)

    async def test_connectivity(self, profile_name: str) -> CommandResult:
        """Round-trip a trivial query and report server version and database."""
        try:
            outcome = await self._query(profile_name, self._version_query())
        except self.handled_errors as exc:
            return CommandResult.failure(str(exc))

        info = outcome.rows[0] if outcome.rows else {}
        details = self._connection_details(profile_name, info)
        version = info.get("version")
        database = info.get("current_database")
        lines = [
            "✅ Connection successful!",
            "",
            f"Profile: {profile_name}",
            f"{self.engine_label} Version: {version}",
            f"Current Database: {database}",
            *details,
        ]
        return CommandResult.ok("\n".join(lines), data={"version": version, "database": database})

    def _render_introspection(self, outcome: StatementOutcome, output_format: OutputFormat) -> CommandResult:
        # CSV is only offered for statement results
        output_format = OutputFormat(output_format)
        if output_format is OutputFormat.CSV:
            output_format = OutputFormat.TABLE
        try:
            body = render(outcome.rows, outcome.columns, output_format)
        except (TypeError, ValueError) as exc:
            return self._render_failure(output_format, exc)
        return CommandResult.ok(body, data=tuple(outcome.rows))

    def _refuse(self, profile_name: str, statement: str, verdict: SafetyVerdict) -> Optional[CommandResult]:
        """Result for a statement the policy stops, or None when it may run.

        Both outcomes are logged at WARNING for the audit trail.
        """
        if not verdict.allowed:
            log_query_execution(statement, self._log_dsn(profile_name), success=False,
                                error=verdict.block_reason, blocked=True)
            return CommandResult.failure(
                f"{verdict.block_reason}\n\nThis operation is blocked by safety rules and cannot be executed."
            )

        if verdict.confirmation_required:
            log_query_execution(statement, self._log_dsn(profile_name), success=False,
                                needs_confirmation=True)
            return CommandResult.needs_confirmation(
                f"{WARNING_MARKER} {verdict.confirmation_message}\n\n"
                f"Query: {statement}\n\n"
                f"This is a destructive operation. Please confirm you want to proceed."
            )

        return None

    def _render_failure(self, output_format: OutputFormat, exc: Exception) -> CommandResult:
        db_logger.error(f"Could not render {self.engine_label} result as {OutputFormat(output_format).value}: {exc}")
        return CommandResult.failure(f"Could not render result as {OutputFormat(output_format).value}: {exc}")


def _first_column(outcome: StatementOutcome) -> tuple[str, ...]:
    if not outcome.columns:
        return ()
    key = outcome.columns[0]
    return tuple(str(row[key]) for row in outcome.rows)
