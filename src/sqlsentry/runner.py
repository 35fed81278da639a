"""Headless command runner: one command, one result, then exit."""

import json
import sys
from typing import Optional, TextIO

from .constants import EXIT_FAILURE, EXIT_SUCCESS
from .dispatcher import Dispatcher

INTERACTIVE_NOTE = "To execute destructive operations, use an interactive session."


def parse_arguments(arg_json: Optional[str]) -> dict:
    """Parse the command's JSON argument object.

    Raises:
        ValueError: If the text is not a JSON object
    """
    if not arg_json or not arg_json.strip():
        return {}
    try:
        arguments = json.loads(arg_json)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON arguments: {exc.msg}") from exc
    if not isinstance(arguments, dict):
        raise ValueError("Invalid JSON arguments: expected an object")
    return arguments


async def run_command(
    dispatcher: Dispatcher,
    command: str,
    arg_json: Optional[str] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """Run one command and print its outcome.

    The rendered text goes to stdout, errors to stderr. Connections are
    released before returning, whatever the outcome.

    Returns:
        Process exit code
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    try:
        try:
            arguments = parse_arguments(arg_json)
        except ValueError as exc:
            print(f"Error: {exc}", file=stderr)
            return EXIT_FAILURE

        result = await dispatcher.dispatch(arguments.get("profile"), command, arguments)
    finally:
        await dispatcher.close()

    if result.succeeded:
        print(result.rendered_text, file=stdout)
        return EXIT_SUCCESS

    print(result.error_text, file=stderr)
    if result.confirmation_required:
        print(f"\n{INTERACTIVE_NOTE}", file=stderr)
    return EXIT_FAILURE
