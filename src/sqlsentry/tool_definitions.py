"""Command and tool descriptions shared by the CLI usage text and the MCP server."""

from typing import Sequence

from sqlsentry.database.formatting import OutputFormat
from sqlsentry.dispatcher import Operation

STATEMENT_FORMATS = [fmt.value for fmt in OutputFormat]
INTROSPECTION_FORMATS = [OutputFormat.TABLE.value, OutputFormat.JSON.value, OutputFormat.TOON.value]


class ToolDescriptions:
    """Centralized descriptions for the seven database commands."""

    SUMMARIES = {
        Operation.EXECUTE: "Execute a SQL query",
        Operation.LIST_DATABASES: "List all databases",
        Operation.LIST_TABLES: "List all tables in current database",
        Operation.DESCRIBE_TABLE: "Describe table structure",
        Operation.SHOW_INDEXES: "Show table indexes",
        Operation.EXPLAIN: "Explain query execution plan",
        Operation.TEST_CONNECTION: "Test database connection",
    }

    EXAMPLES = {
        Operation.EXECUTE: '{"query":"SELECT * FROM users","profile":"local","format":"table"}',
        Operation.LIST_DATABASES: '{"profile":"local"}',
        Operation.LIST_TABLES: '{"profile":"local"}',
        Operation.DESCRIBE_TABLE: '{"table":"users","profile":"local"}',
        Operation.SHOW_INDEXES: '{"table":"users","profile":"local"}',
        Operation.EXPLAIN: '{"query":"SELECT * FROM users WHERE id = 1","profile":"local"}',
        Operation.TEST_CONNECTION: '{"profile":"local"}',
    }

    CONFIRMATION_NOTE = (
        "This statement was NOT executed. It matches a keyword that requires explicit "
        "human confirmation. Ask the user before taking any further action."
    )

    @classmethod
    def get_tool_description(cls, operation: Operation) -> str:
        """Get the description for one command, including safety notes for statements."""
        summary = cls.SUMMARIES[operation]
        if operation is Operation.EXECUTE:
            return (
                f"{summary}.\n\n"
                "Safety rules apply: blacklisted operations are refused, destructive statements "
                "(e.g. DELETE, UPDATE, DROP) are held for human confirmation, and SELECT "
                "statements without LIMIT get the configured default limit."
            )
        if operation is Operation.EXPLAIN:
            return f"{summary}. Blacklist and confirmation rules apply to the explained statement."
        return f"{summary}."

    @classmethod
    def get_profile_description(cls, profiles: Sequence[str], default_profile: str) -> str:
        return (
            f"Optional: Database profile name (default: {default_profile}). "
            f"Available profiles: {', '.join(profiles)}"
        )

    @classmethod
    def get_input_schema(cls, operation: Operation, profiles: Sequence[str], default_profile: str) -> dict:
        """Build the JSON schema for a command's arguments."""
        properties: dict = {
            "profile": {
                "type": "string",
                "enum": list(profiles),
                "description": cls.get_profile_description(profiles, default_profile),
            },
        }
        required = []

        if operation in (Operation.EXECUTE, Operation.EXPLAIN):
            properties["query"] = {
                "type": "string",
                "description": "SQL query to execute" if operation is Operation.EXECUTE else "SQL query to explain",
            }
            required.append("query")

        if operation in (Operation.DESCRIBE_TABLE, Operation.SHOW_INDEXES):
            properties["table"] = {"type": "string", "description": "Table name"}
            required.append("table")

        if operation in (Operation.EXECUTE, Operation.DESCRIBE_TABLE, Operation.SHOW_INDEXES, Operation.EXPLAIN):
            formats = STATEMENT_FORMATS if operation is Operation.EXECUTE else INTROSPECTION_FORMATS
            properties["format"] = {
                "type": "string",
                "enum": formats,
                "description": f"Optional: Output format: {', '.join(formats)}",
            }

        return {"type": "object", "properties": properties, "required": required}

    @classmethod
    def get_usage(cls) -> str:
        """Command overview for the CLI usage text."""
        lines = ["Commands:"]
        for operation in Operation:
            lines.append(f"  {operation.value:<16}- {cls.SUMMARIES[operation]}")
        lines.append("")
        lines.append("Examples:")
        for operation in Operation:
            lines.append(f"  sqlsentry {operation.value} '{cls.EXAMPLES[operation]}'")
        return "\n".join(lines)
