"""
X-Record to S-Record Conversion
===============================

This module wires the X-record parser to the S-record encoder and
summarizes the outcome of a conversion.

The conversion itself never fails on bad input. Instead, the returned
ConversionResult describes what happened, and warnings() turns that into
the messages the command-line tool prints. Callers that want to reject
damaged input call check_strict() on the result.

Usage Examples
--------------
Converting a file to S-record text on stdout:
    >>> import sys
    >>> result = convert_file("game.xrec", output=sys.stdout)
    >>> for warning in result.warnings():
    ...     print(warning)

Rejecting damaged input:
    >>> result = convert_bytes(data)
    >>> check_strict(result)   # raises StrictModeError
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO, Union
import logging

from xrec_tools.errors import StrictModeError
from xrec_tools.srec.encoder import DEFAULT_LINE_WIDTH, SRecEncoder
from xrec_tools.srec.image import MemoryImage, TeeSink
from xrec_tools.xrec.parser import XRecParser
from xrec_tools.xrec.records import RecordType, SoftError

logger = logging.getLogger(__name__)


# =============================================================================
# Warning Messages
# =============================================================================

WARNING_UNKNOWN_RECORD = "Warning: input contained at least one unknown record type."
WARNING_BAD_CHECKSUM = (
    "Warning: input contained at least one failed data checksum. Beware corruption!"
)
WARNING_NO_TERMINATION = (
    "Warning: did not encounter (or emit) closing termination record."
)
WARNING_TRUNCATED = "Warning: input ended in the middle of a record."


# =============================================================================
# Conversion Result
# =============================================================================

@dataclass
class ConversionResult:
    """
    Outcome of one conversion.

    Attributes:
        lines: S-record lines emitted, without line terminators
        soft_error: The parser's sticky soft error after the last byte
        last_record_type: Type of the last record the encoder received
        records_read: Records decoded
        checksum_failures: Data records that failed their checksum
        parser_idle: False if the input stopped part-way through a record
        bytes_read: Input size
    """
    lines: list[str] = field(default_factory=list)
    soft_error: SoftError = SoftError.NONE
    last_record_type: int = RecordType.NONE
    records_read: int = 0
    checksum_failures: int = 0
    parser_idle: bool = True
    bytes_read: int = 0

    @property
    def termination_seen(self) -> bool:
        return self.last_record_type == RecordType.TERMINATION

    def warnings(self) -> list[str]:
        """
        Human-readable warnings, in the order they should be reported.

        Only the most recent soft error is known, so at most one of the
        record type and checksum warnings appears.
        """
        messages = []
        if self.soft_error == SoftError.UNKNOWN_RECORD_TYPE:
            messages.append(WARNING_UNKNOWN_RECORD)
        elif self.soft_error == SoftError.INVALID_CHECKSUM:
            messages.append(WARNING_BAD_CHECKSUM)
        if not self.termination_seen:
            messages.append(WARNING_NO_TERMINATION)
        return messages

    def strict_problems(self) -> list[str]:
        """Warnings plus the findings only strict mode cares about."""
        problems = self.warnings()
        if not self.parser_idle:
            problems.append(WARNING_TRUNCATED)
        return problems

    @property
    def is_strict_ok(self) -> bool:
        return not self.strict_problems()


def check_strict(result: ConversionResult) -> None:
    """
    Apply strict checking to a finished conversion.

    Raises:
        StrictModeError: If the input had an unknown record type, a failed
            checksum, a truncated final record or no termination record
    """
    problems = result.strict_problems()
    if problems:
        raise StrictModeError(problems)


# =============================================================================
# Conversion
# =============================================================================

def convert_bytes(
    data: Union[bytes, bytearray, memoryview],
    output: Optional[TextIO] = None,
    line_width: int = DEFAULT_LINE_WIDTH,
    image: Optional[MemoryImage] = None,
) -> ConversionResult:
    """
    Convert X-record bytes to S-record lines.

    Args:
        data: The complete X-record input
        output: Text stream that receives each line plus a newline
        line_width: Maximum data bytes per S1 line
        image: Optional MemoryImage that also receives every record

    Returns:
        ConversionResult with the emitted lines and diagnostics

    Raises:
        LineWidthError: If line_width is out of range
    """
    result = ConversionResult(bytes_read=len(data))

    def emit(line: str) -> None:
        result.lines.append(line)
        if output is not None:
            output.write(line + "\n")

    encoder = SRecEncoder(emit, max_line_width=line_width)
    sink = encoder.on_record
    if image is not None:
        sink = TeeSink(encoder.on_record, image.on_record)

    parser = XRecParser(sink)
    parser.begin()
    parser.feed_bytes(data)

    # The parser never signals end of stream
    encoder.flush()

    result.soft_error = parser.state.last_soft_error
    result.last_record_type = encoder.last_record_type
    result.records_read = parser.state.records_completed
    result.checksum_failures = encoder.checksum_failures
    result.parser_idle = parser.state.is_idle

    logger.info(
        f"Converted {result.bytes_read} bytes: {result.records_read} records, "
        f"{len(result.lines)} lines"
    )
    if not result.parser_idle:
        logger.warning(f"Input ended inside a record (phase {parser.state.phase.value})")

    return result


def convert_file(
    input_path: Union[str, Path],
    output: Optional[TextIO] = None,
    line_width: int = DEFAULT_LINE_WIDTH,
    image: Optional[MemoryImage] = None,
) -> ConversionResult:
    """
    Read an X-record file and convert it.

    The whole file is read into memory first.

    Raises:
        FileNotFoundError: If the file doesn't exist
        LineWidthError: If line_width is out of range
    """
    input_path = Path(input_path)
    data = input_path.read_bytes()
    logger.debug(f"Read {len(data)} bytes from {input_path}")
    return convert_bytes(data, output=output, line_width=line_width, image=image)
