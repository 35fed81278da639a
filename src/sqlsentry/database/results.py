"""Outcome value returned by every database operation."""

from dataclasses import dataclass
from typing import Any, Optional

from sqlsentry.constants import ERROR_MARKER


@dataclass(frozen=True)
class CommandResult:
    """Immutable result of one dispatched operation.

    ``succeeded=False`` with ``confirmation_required=True`` asks the caller to
    obtain explicit consent; any other failure is terminal for the call.
    ``data`` carries the structured payload behind ``rendered_text`` (names,
    rows, or version info) when the operation produces one.
    """

    succeeded: bool
    rendered_text: Optional[str] = None
    error_text: Optional[str] = None
    confirmation_required: bool = False
    data: Any = None

    @classmethod
    def ok(cls, rendered_text: str, data: Any = None) -> "CommandResult":
        return cls(succeeded=True, rendered_text=rendered_text, data=data)

    @classmethod
    def failure(cls, message: str) -> "CommandResult":
        """Failed result whose error text carries the error marker."""
        return cls(succeeded=False, error_text=f"{ERROR_MARKER} {message}")

    @classmethod
    def needs_confirmation(cls, message: str) -> "CommandResult":
        return cls(succeeded=False, error_text=message, confirmation_required=True)
