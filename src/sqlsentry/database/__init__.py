"""Database layer for sqlsentry.

This package classifies and guards SQL statements, executes them against
MySQL or PostgreSQL, and renders the results.

Architecture:
- validation.py: Statement classification and safety policy
- formatting.py: Result rendering (table, JSON, CSV, TOON)
- results.py: CommandResult returned by every operation
- logging.py: Structured logging of connections and statements
- connection.py: Adapter registry (import directly; it depends on the adapters)
- adapters/: Engine-specific implementations (MySQL, PostgreSQL)
"""

from sqlsentry.database.formatting import OutputFormat, render
from sqlsentry.database.results import CommandResult
from sqlsentry.database.validation import SafetyVerdict, StatementType, apply_default_limit, classify, evaluate

__all__ = [
    "CommandResult",
    "OutputFormat",
    "SafetyVerdict",
    "StatementType",
    "apply_default_limit",
    "classify",
    "evaluate",
    "render",
]
