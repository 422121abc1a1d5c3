"""
xrec2srec - X-Record to S-Record Converter
==========================================

This module implements the command-line interface for converting X-record
tape load files (SWTPC cassette format) into Motorola S-record text.

The S-records are written to standard output unless -o is given. Any
warnings about the input (unknown record types, failed checksums, missing
termination record) are printed to standard output after the records, and
do not change the exit status unless --strict is given.

Usage Examples
--------------
Basic conversion:
    $ xrec2srec game.xrec > game.s19

With output file and 32-byte lines:
    $ xrec2srec game.xrec -o game.s19 -w 32

Also write the loaded memory image:
    $ xrec2srec game.xrec -o game.s19 -b game.bin

Fail on damaged input:
    $ xrec2srec --strict game.xrec

Exit Codes
----------
0 - Success (warnings may have been printed)
1 - Conversion or output error
2 - Invalid arguments or unreadable input
4 - Strict check failed (--strict only)
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from xrec_tools import __version__
from xrec_tools.cli.errors import handle_cli_exception
from xrec_tools.convert import check_strict, convert_file
from xrec_tools.srec import DEFAULT_LINE_WIDTH, MAX_LINE_WIDTH, MemoryImage


def setup_logging(verbose: bool) -> None:
    """Send debug logging to stderr when verbose, away from the record stream."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s: %(message)s",
            stream=sys.stderr,
        )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write S-records to this file instead of stdout",
)
@click.option(
    "-w", "--line-width",
    type=click.IntRange(1, MAX_LINE_WIDTH),
    default=DEFAULT_LINE_WIDTH,
    show_default=True,
    help="Maximum data bytes per S1 line",
)
@click.option(
    "-b", "--binary",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the loaded memory image as raw binary",
)
@click.option(
    "--keep-corrupt",
    is_flag=True,
    help="Include records with failed checksums in the binary image",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with an error if the input is damaged or incomplete",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="xrec2srec")
def main(
    input_file: Path,
    output: Optional[Path],
    line_width: int,
    binary: Optional[Path],
    keep_corrupt: bool,
    strict: bool,
    verbose: bool,
) -> None:
    """
    Convert an X-record tape load file to Motorola S-records.

    INPUT_FILE is the binary X-record file, as read from a SWTPC cassette.

    \b
    Examples:
        xrec2srec game.xrec              # S-records on stdout
        xrec2srec game.xrec -o game.s19  # Specify output file
        xrec2srec -w 32 game.xrec        # 32 data bytes per line
        xrec2srec --strict game.xrec     # Fail on damaged input
    """
    setup_logging(verbose)

    try:
        image = MemoryImage(include_corrupt=keep_corrupt) if binary else None

        if output is not None:
            with output.open("w", encoding="ascii", newline="\n") as stream:
                result = convert_file(
                    input_file, output=stream, line_width=line_width, image=image
                )
        else:
            result = convert_file(
                input_file, output=sys.stdout, line_width=line_width, image=image
            )

        if image is not None:
            written = image.write(binary)
            if verbose:
                origin = image.origin if image.origin is not None else 0
                click.echo(
                    f"Wrote {written} bytes at ${origin:04X} to {binary}", err=True
                )
                if image.skipped_records:
                    click.echo(
                        f"Left out {image.skipped_records} corrupt record(s)", err=True
                    )

        # Warnings follow the records on stdout
        for warning in result.warnings():
            click.echo()
            click.echo(warning)

        if verbose:
            click.echo(
                f"Converted {result.bytes_read} bytes: {result.records_read} records, "
                f"{len(result.lines)} lines",
                err=True,
            )
            if output is not None:
                click.echo(f"Wrote {output}", err=True)

        if strict:
            check_strict(result)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
