"""
hex2bin - Intel-HEX to Binary Command-Line Interface
====================================================

This module implements the command-line interface for the Intel-HEX
converter. It reads an Intel-HEX file and writes the flat memory image as
raw bytes.

Usage Examples
--------------
Basic conversion (8 KiB image, unprogrammed bytes 0xFF):
    $ hex2bin firmware.hex firmware.bin

Different image size and fill:
    $ hex2bin -s 0x4000 -f 0x00 firmware.hex firmware.bin

List the records of a file without converting:
    $ hex2bin --list firmware.hex

Verbose mode:
    $ hex2bin -v firmware.hex firmware.bin
"""

import logging
from pathlib import Path
from typing import Optional

import click

from hexflash import __version__
from hexflash.config import BLOCK_SIZE, FILL_BYTE, FLASH_SIZE, ImageConfig
from hexflash.cli.errors import handle_cli_exception
from hexflash.image import convert_file
from hexflash.reader import ByteCursor
from hexflash.records import iter_records

logger = logging.getLogger(__name__)


# =============================================================================
# Integer Parameter Type
# =============================================================================

class AutoIntParam(click.ParamType):
    """
    Click parameter type for integers in any Python literal base.

    Accepts: 8192, 0x2000, 0o20000, 0b... (prefix decides the base)
    """
    name = "integer"

    def convert(self, value: str, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        """Convert string to int, honouring 0x/0o/0b prefixes."""
        if isinstance(value, int):
            return value
        try:
            return int(value, 0)
        except ValueError:
            self.fail(f"'{value}' is not a valid integer", param, ctx)


AUTO_INT = AutoIntParam()


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def list_records(input_file: Path) -> None:
    """Print every record of a file, one per line."""
    logger.debug(f"Listing records of {input_file}")
    with ByteCursor.open(input_file) as cursor:
        for record in iter_records(cursor):
            click.echo(f"{record.line:5d}  {record.to_line():<45}  {record}")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("input_file", required=False, type=click.Path(path_type=Path))
@click.argument("output_file", required=False, type=click.Path(path_type=Path))
@click.option(
    "-s", "--size",
    type=AUTO_INT,
    default=FLASH_SIZE,
    show_default=True,
    help="Image size in bytes (0x prefix for hex)",
)
@click.option(
    "-f", "--fill",
    type=AUTO_INT,
    default=FILL_BYTE,
    show_default=True,
    help="Value of bytes not written by any data record",
)
@click.option(
    "-l", "--list", "list_only",
    is_flag=True,
    help="List the records of INPUT_FILE instead of converting",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(__version__, "--version", "-V", prog_name="hex2bin")
def main(
    input_file: Optional[Path],
    output_file: Optional[Path],
    size: int,
    fill: int,
    list_only: bool,
    verbose: bool,
) -> None:
    """
    Convert an Intel-HEX file to a flat binary image.

    INPUT_FILE is the Intel-HEX file to read. OUTPUT_FILE receives exactly
    SIZE raw bytes: every data record loaded at its address, and FILL
    everywhere else.

    \b
    Examples:
        hex2bin firmware.hex firmware.bin
        hex2bin -s 0x4000 firmware.hex firmware.bin
        hex2bin --list firmware.hex
    """
    setup_logging(verbose)

    if input_file is None:
        click.echo("Missing file name argument")
        return

    try:
        if list_only:
            list_records(input_file)
            return

        if output_file is None:
            click.echo("Missing output file")
            return

        config = ImageConfig(flash_size=size, fill=fill, block_size=BLOCK_SIZE)
        try:
            config.validate()
        except ValueError as e:
            raise click.BadParameter(str(e)) from e

        if verbose:
            click.echo(f"Converting {input_file} ({size} bytes, fill 0x{fill:02X})...")

        stats = convert_file(input_file, output_file, config)

        if verbose:
            click.echo(
                f"Applied {stats.data_records} data records "
                f"({stats.bytes_written} bytes) from {stats.records} records"
            )
            if stats.highest_address is not None:
                click.echo(f"Highest address written: ${stats.highest_address:04X}")
            if stats.ignored_records:
                click.echo(f"Ignored {stats.ignored_records} extended address records")
            click.echo(f"Wrote {size} bytes to {output_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Conversion")


if __name__ == "__main__":
    main()
