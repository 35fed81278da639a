"""Statement classification and safety policy enforcement.

All checks here are lexical: they look at the uppercased statement text and
never parse SQL. A keyword inside a string literal or comment is treated the
same as a keyword in the statement body.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence


class StatementType(str, Enum):
    """Coarse statement category derived from the leading keyword."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DROP = "DROP"
    CREATE = "CREATE"
    ALTER = "ALTER"
    TRUNCATE = "TRUNCATE"
    SHOW = "SHOW"
    DESCRIBE = "DESCRIBE"
    EXPLAIN = "EXPLAIN"
    UNKNOWN = "UNKNOWN"


# Statement kinds whose output is a result set rather than an affected-row count
RESULT_BEARING_TYPES = frozenset({
    StatementType.SELECT,
    StatementType.SHOW,
    StatementType.DESCRIBE,
    StatementType.EXPLAIN,
})

_KNOWN_TYPES = {member.value: member for member in StatementType if member is not StatementType.UNKNOWN}


class Severity(str, Enum):
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Advisory:
    """Non-blocking note about the shape of a statement."""

    severity: Severity
    message: str
    suggestion: str


@dataclass(frozen=True)
class SafetyVerdict:
    """Outcome of running a statement through the safety policy."""

    allowed: bool
    block_reason: Optional[str] = None
    confirmation_required: bool = False
    confirmation_message: Optional[str] = None
    advisories: tuple[Advisory, ...] = field(default_factory=tuple)


MISSING_WHERE = Advisory(
    Severity.WARNING,
    "Missing WHERE clause in UPDATE/DELETE query",
    "This will affect all rows in the table. Add a WHERE clause to limit scope.",
)
SELECT_STAR = Advisory(
    Severity.INFO,
    "Using SELECT * may impact performance",
    "Consider selecting only the columns you need.",
)
MISSING_LIMIT = Advisory(
    Severity.INFO,
    "SELECT query without LIMIT",
    "Consider adding a LIMIT clause to prevent large result sets.",
)


def _normalize(statement: str) -> str:
    return statement.strip().upper()


def classify(statement: str) -> StatementType:
    """Return the statement type from its first whitespace-delimited token.

    Args:
        statement: Raw statement text

    Returns:
        Matching StatementType, or UNKNOWN for empty or unrecognized text
    """
    tokens = _normalize(statement).split(None, 1)
    if not tokens:
        return StatementType.UNKNOWN
    return _KNOWN_TYPES.get(tokens[0], StatementType.UNKNOWN)


def check_blacklist(statement: str, blacklisted_phrases: Sequence[str]) -> tuple[bool, Optional[str]]:
    """Check the statement against blacklisted phrases.

    Args:
        statement: Statement to check
        blacklisted_phrases: Phrases that may never be executed

    Returns:
        Tuple of (allowed, reason)
        - (True, None) if no phrase matches
        - (False, reason) naming the first matching phrase
    """
    normalized = _normalize(statement)
    for phrase in blacklisted_phrases:
        if phrase.upper() in normalized:
            return False, f'Operation "{phrase}" is blacklisted and not allowed'
    return True, None


def requires_confirmation(statement: str, keywords: Sequence[str]) -> tuple[bool, Optional[str]]:
    """Check whether the statement contains a keyword that needs consent.

    A keyword matches as the leading token of the statement or as a word
    surrounded by single spaces anywhere else.

    Args:
        statement: Statement to check
        keywords: Confirmation keywords, in priority order

    Returns:
        Tuple of (required, message)
    """
    normalized = _normalize(statement)
    for keyword in keywords:
        needle = keyword.upper()
        if _leads_with(normalized, needle) or f" {needle} " in normalized:
            return True, f"This query contains a destructive operation: {keyword}"
    return False, None


def _leads_with(normalized: str, needle: str) -> bool:
    if not needle or not normalized.startswith(needle):
        return False
    rest = normalized[len(needle):]
    return not rest or rest[0].isspace()


def analyze_statement(statement: str) -> list[Advisory]:
    """Collect non-blocking advisories for a statement.

    Order is fixed: missing WHERE, then SELECT *, then missing LIMIT.
    """
    normalized = _normalize(statement)
    statement_type = classify(statement)
    advisories = []

    if statement_type in (StatementType.UPDATE, StatementType.DELETE) and "WHERE" not in normalized:
        advisories.append(MISSING_WHERE)

    if "SELECT *" in normalized:
        advisories.append(SELECT_STAR)

    if statement_type is StatementType.SELECT and "LIMIT" not in normalized:
        advisories.append(MISSING_LIMIT)

    return advisories


def apply_default_limit(statement: str, limit: int) -> str:
    """Append a LIMIT clause to SELECT statements that have none.

    Args:
        statement: SQL statement
        limit: Row limit to inject

    Returns:
        The trimmed statement with ` LIMIT {limit}` appended, or the original
        statement unchanged when it is not a SELECT or already has a LIMIT
    """
    if classify(statement) is not StatementType.SELECT:
        return statement
    if "LIMIT" in statement.upper():
        return statement
    return f"{statement.strip().rstrip(';').rstrip()} LIMIT {limit}"


def evaluate(statement: str, policy) -> SafetyVerdict:
    """Run the blacklist, confirmation and advisory checks.

    The blacklist takes precedence: a blocked statement never reports a
    confirmation request.

    Args:
        statement: Statement to evaluate
        policy: SafetyPolicy providing phrases and keywords

    Returns:
        SafetyVerdict for the statement
    """
    allowed, reason = check_blacklist(statement, policy.blacklisted_phrases)
    if not allowed:
        return SafetyVerdict(allowed=False, block_reason=reason)

    required, message = requires_confirmation(statement, policy.confirmation_keywords)
    return SafetyVerdict(
        allowed=True,
        confirmation_required=required,
        confirmation_message=message,
        advisories=tuple(analyze_statement(statement)),
    )
