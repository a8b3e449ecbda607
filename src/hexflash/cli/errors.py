"""
Unified CLI Error Handling
==========================

Provides consistent error handling and exit codes for the CLI tools.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Decode, assembly, or output error
    INVALID_ARGS = 2     # Invalid option values
    INTERNAL_ERROR = 3   # Unexpected internal error


def fail(message: str, code: ExitCode = ExitCode.INVALID_ARGS) -> NoReturn:
    """Print a message to stderr and exit."""
    click.echo(message, err=True)
    sys.exit(code)


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Unified exception handler for the CLI tools.

    Formats the error message appropriately, optionally prints traceback
    in verbose mode, and exits with the correct exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for the error message (e.g., "Conversion")

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    from hexflash.errors import HexFlashError, SourceUnavailableError

    if isinstance(error, SourceUnavailableError):
        # Reported in the tool's own words; no output has been written
        click.echo("File doesn't exist")
        sys.exit(ExitCode.SUCCESS)

    elif isinstance(error, HexFlashError):
        # Decode, assembly or output errors
        prefix = f"{error_type} error: " if error_type else "Error: "
        fail(f"{prefix}{error}", ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        fail(f"Error: {error}", ExitCode.INVALID_ARGS)

    elif isinstance(error, PermissionError):
        fail(f"Error: {error}", ExitCode.INVALID_ARGS)

    else:
        # Unexpected internal error
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
