"""
xrec-tools - X-Record Tape Load File Converter
==============================================

This package decodes the compact binary "X-record" load format written by
the SWTPC cassette tool chain, and re-encodes the decoded data as Motorola
S-record text.

Main Components
---------------
- **xrec**: Streaming X-record parser
    Decodes records byte by byte, resynchronizes on garbage and flags
    checksum failures without stopping

- **srec**: Output encoders
    Re-frames record bytes into fixed-width S1 lines, or lays them out as
    a raw memory image

- **convert**: Conversion driver
    Connects the parser to the encoder and summarizes the result

Quick Start
-----------
Convert a file:
    >>> import sys
    >>> from xrec_tools import convert_file
    >>> result = convert_file("game.xrec", output=sys.stdout)
    >>> result.warnings()
    []

Decode records directly:
    >>> from xrec_tools import parse_xrec
    >>> records, state = parse_xrec(data)

Or use the command-line tool:
    $ xrec2srec game.xrec > game.s19
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from xrec_tools.errors import (
    XRecToolsError,
    XRecError,
    XRecFormatError,
    ScratchOverflowError,
    SRecError,
    LineWidthError,
    StrictModeError,
)

from xrec_tools.xrec import (
    RecordType,
    SoftError,
    ParsePhase,
    DecodedRecord,
    ParserState,
    XRecParser,
    RecordCollector,
    parse_xrec,
    encode_xrec_record,
    encode_xrec_termination,
)

from xrec_tools.srec import (
    SRecEncoder,
    MemoryImage,
    TeeSink,
    format_s1_line,
    TERMINATION_LINE,
)

from xrec_tools.convert import (
    ConversionResult,
    convert_bytes,
    convert_file,
    check_strict,
)

__all__ = [
    "__version__",
    # Exception hierarchy
    "XRecToolsError",
    "XRecError",
    "XRecFormatError",
    "ScratchOverflowError",
    "SRecError",
    "LineWidthError",
    "StrictModeError",
    # Parser
    "RecordType",
    "SoftError",
    "ParsePhase",
    "DecodedRecord",
    "ParserState",
    "XRecParser",
    "RecordCollector",
    "parse_xrec",
    "encode_xrec_record",
    "encode_xrec_termination",
    # Output
    "SRecEncoder",
    "MemoryImage",
    "TeeSink",
    "format_s1_line",
    "TERMINATION_LINE",
    # Conversion
    "ConversionResult",
    "convert_bytes",
    "convert_file",
    "check_strict",
]
