"""Result set rendering in table, JSON, CSV and TOON encodings."""

import base64
import datetime
import json
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from toon import encode as toon_encode

from sqlsentry.constants import NO_RESULTS

Row = dict[str, Any]

MIN_COLUMN_WIDTH = 3
NULL_TEXT = "NULL"


class OutputFormat(str, Enum):
    """Supported output encodings."""

    TABLE = "table"
    JSON = "json"
    CSV = "csv"
    TOON = "toon"

    @classmethod
    def parse(cls, value: "str | OutputFormat") -> "OutputFormat":
        """Parse a format selector, raising ValueError with the valid choices."""
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f'Unsupported output format "{value}". Valid formats: {choices}') from None


def normalize_value(value: Any) -> Any:
    """Convert a driver value into a JSON-safe value.

    Timestamps become ISO-8601 strings, binary data becomes base64 text, and
    numeric or identifier types without a JSON counterpart become their string
    form. Lists and mappings (PostgreSQL arrays, json/jsonb columns) are
    normalized element by element.
    """
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, (Decimal, uuid.UUID, datetime.timedelta)):
        return str(value)
    if isinstance(value, dict):
        return {str(key): normalize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    return value


def _normalize_row(row: Row, columns: Sequence[str]) -> Row:
    return {column: normalize_value(row.get(column)) for column in columns}


def _cell_text(value: Any) -> Optional[str]:
    """Display text for a table or CSV cell, None for SQL NULL."""
    value = normalize_value(value)
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _table_cell(value: Any) -> str:
    text = _cell_text(value)
    return NULL_TEXT if text is None else text


def format_as_table(rows: Sequence[Row], columns: Sequence[str]) -> str:
    """Render rows as a box-drawing grid.

    Column width is the widest of the header, the rendered cells, and a minimum
    of three characters. NULL values are shown literally.
    """
    if not rows:
        return NO_RESULTS

    cells = [[_table_cell(row.get(column)) for column in columns] for row in rows]
    widths = [
        max(len(str(column)), MIN_COLUMN_WIDTH, *(len(line[index]) for line in cells))
        for index, column in enumerate(columns)
    ]

    def border(left: str, middle: str, right: str) -> str:
        return left + middle.join("─" * (width + 2) for width in widths) + right

    def line(values: Sequence[str]) -> str:
        return "│ " + " │ ".join(value.ljust(width) for value, width in zip(values, widths)) + " │"

    output = [
        border("┌", "┬", "┐"),
        line([str(column) for column in columns]),
        border("├", "┼", "┤"),
    ]
    output.extend(line(values) for values in cells)
    output.append(border("└", "┴", "┘"))
    return "\n".join(output)


def format_as_json(rows: Sequence[Row], columns: Sequence[str]) -> str:
    """Render rows as a pretty-printed JSON array of objects."""
    return json.dumps([_normalize_row(row, columns) for row in rows], indent=2, ensure_ascii=False)


def _csv_cell(value: Any) -> str:
    text = _cell_text(value)
    if text is None:
        text = ""
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def format_as_csv(rows: Sequence[Row], columns: Sequence[str]) -> str:
    """Render rows as CSV with a header line.

    Cells containing a comma, quote or newline are quoted with inner quotes
    doubled. An empty result renders as an empty string.
    """
    if not rows:
        return ""

    lines = [",".join(_csv_cell(column) for column in columns)]
    for row in rows:
        lines.append(",".join(_csv_cell(row.get(column)) for column in columns))
    return "\n".join(lines) + "\n"


def format_as_toon(rows: Sequence[Row], columns: Sequence[str]) -> str:
    """Render rows as TOON after normalizing every value to a JSON-safe form."""
    if not rows:
        return ""
    return toon_encode([_normalize_row(row, columns) for row in rows])


_RENDERERS: dict[OutputFormat, Callable[[Sequence[Row], Sequence[str]], str]] = {
    OutputFormat.TABLE: format_as_table,
    OutputFormat.JSON: format_as_json,
    OutputFormat.CSV: format_as_csv,
    OutputFormat.TOON: format_as_toon,
}


def render(rows: Sequence[Row], columns: Optional[Sequence[str]], output_format: OutputFormat) -> str:
    """Render a result set in the requested encoding.

    Args:
        rows: Result rows, each a mapping of column name to value
        columns: Column order; taken from the first row when not given
        output_format: Target encoding

    Returns:
        Rendered text
    """
    if columns is None:
        columns = list(rows[0].keys()) if rows else []
    return _RENDERERS[OutputFormat(output_format)](rows, columns)


def format_bullet_list(heading: str, items: Sequence[str]) -> str:
    """Render a heading followed by one bullet per item."""
    return "\n".join([f"{heading}:", *(f"  • {item}" for item in items)])
