"""Console entry point for the sqlsentry command."""

import asyncio
import logging
import sys
from typing import Optional

from .config import ConfigurationError, load_config
from .constants import EXIT_FAILURE, EXIT_SUCCESS
from .dispatcher import Dispatcher
from .runner import run_command
from .server import serve
from .tool_definitions import ToolDescriptions

USAGE = "Usage: sqlsentry <command> ['<json-args>'] [--config <path>] [--verbose]\n       sqlsentry serve [--config <path>] [--verbose]\n"


def configure_logging(verbose: bool) -> None:
    """Send sqlsentry logs to stderr; stdout carries results only."""
    logger = logging.getLogger("sqlsentry")
    logger.setLevel(logging.INFO if verbose else logging.WARNING)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)


def write_usage() -> None:
    sys.stderr.write(USAGE)
    sys.stderr.write("\n")
    sys.stderr.write(ToolDescriptions.get_usage())
    sys.stderr.write("\n\n")
    sys.stderr.write("Optional Flags:\n")
    sys.stderr.write("  --config <path>  - Configuration file (YAML, or Markdown with YAML front matter)\n")
    sys.stderr.write("                     Default: $SQLSENTRY_CONFIG, then ./.sqlsentry.md\n")
    sys.stderr.write("  --verbose        - Log connections and statements to stderr\n")


def main(argv: Optional[list[str]] = None) -> int:
    """Parse command line arguments and run a command or the MCP server."""
    args = list(sys.argv[1:] if argv is None else argv)
    config_path = None
    verbose = False

    # Parse optional flags
    i = 0
    while i < len(args):
        if args[i] == "--config":
            if i + 1 >= len(args):
                sys.stderr.write("Error: --config requires a value\n")
                return EXIT_FAILURE
            config_path = args[i + 1]
            args.pop(i)  # Remove --config
            args.pop(i)  # Remove path value
        elif args[i] == "--verbose":
            verbose = True
            args.pop(i)
        elif args[i] in ("-h", "--help"):
            write_usage()
            return EXIT_SUCCESS
        else:
            i += 1

    if not args:
        sys.stderr.write("Error: Missing command\n")
        write_usage()
        return EXIT_FAILURE

    if len(args) > 2:
        sys.stderr.write("Error: Too many arguments\n")
        sys.stderr.write(USAGE)
        return EXIT_FAILURE

    configure_logging(verbose)

    try:
        config = load_config(config_path)
    except ConfigurationError as exc:
        sys.stderr.write(f"Error executing command: {exc}\n")
        return EXIT_FAILURE

    command = args[0]
    if command == "serve":
        asyncio.run(serve(config))
        return EXIT_SUCCESS

    arg_json = args[1] if len(args) > 1 else None
    return asyncio.run(run_command(Dispatcher(config), command, arg_json))


def run():
    """Entry point for the sqlsentry command."""
    sys.exit(main())
