"""
S-Record Line Encoder
=====================

This module re-frames decoded X-records as Motorola S-record text.

Input records can carry up to 256 payload bytes and arrive in whatever
grouping the tape tool chose. The encoder pours their bytes into
fixed-width output lines instead:

- Bytes that continue the current line's address range are appended
- A record that does not continue the range flushes the pending line and
  starts a new one at its own address
- A line is emitted as soon as it reaches the maximum width, and the next
  line starts at the following address
- A termination record flushes the pending line and emits S9030000FC

The caller must call flush() once after the last input byte, since the
parser never signals end of stream.

S1 Line Format
--------------
    S1 <count> <address> <data...> <checksum>

    count:    2 hex digits, bytes that follow (2 address + data + 1 checksum)
    address:  4 hex digits, big-endian
    data:     2 hex digits per byte
    checksum: 2 hex digits, one's complement of the 8-bit sum of the count,
              both address bytes and the data bytes

Usage
-----
    >>> encoder = SRecEncoder(max_line_width=16)
    >>> parser = XRecParser(encoder.on_record)
    >>> parser.feed_bytes(data)
    >>> encoder.flush()
    >>> print("\\n".join(encoder.lines))
"""

from typing import Callable, Final, Optional, Union
import logging

from xrec_tools.errors import LineWidthError
from xrec_tools.xrec.checksum import record_checksum
from xrec_tools.xrec.records import RecordType

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Data bytes per output line unless configured otherwise
DEFAULT_LINE_WIDTH: Final[int] = 16

# S1 count byte = 2 address + width + 1 checksum, and must fit in 0xFF
MAX_LINE_WIDTH: Final[int] = 0xFF - 3

# Fixed S9 record: count 3, start address 0000, checksum FC
TERMINATION_LINE: Final[str] = "S9030000FC"


def validate_line_width(width: int) -> int:
    """
    Validate an output line width.

    Raises:
        LineWidthError: If width is outside 1..MAX_LINE_WIDTH
    """
    if not 1 <= width <= MAX_LINE_WIDTH:
        raise LineWidthError(width, MAX_LINE_WIDTH)
    return width


def format_s1_line(address: int, payload: Union[bytes, bytearray, memoryview]) -> str:
    """
    Format one S1 line (without line terminator).

    Args:
        address: 16-bit address of the first data byte
        payload: 1 to MAX_LINE_WIDTH data bytes

    Returns:
        The S1 record text, upper-case hex

    Example:
        >>> format_s1_line(0x1000, b"\\xaa")
        'S1041000AA41'
    """
    if len(payload) > MAX_LINE_WIDTH:
        raise LineWidthError(len(payload), MAX_LINE_WIDTH)
    count = len(payload) + 3
    checksum = record_checksum(count, address, payload)
    return f"S1{count:02X}{address:04X}{bytes(payload).hex().upper()}{checksum:02X}"


# =============================================================================
# Encoder
# =============================================================================

class SRecEncoder:
    """
    Regroups decoded record bytes into S1 lines.

    One encoder belongs to one output stream. Its on_record method has the
    record sink signature and can be handed straight to an XRecParser.

    Attributes:
        line_sink: Callable receiving each finished line, without newline
        lines: Emitted lines when no line_sink was given
        max_line_width: Data bytes per full line
        line_address: Address of the first byte in line_buffer
        line_buffer: Data bytes of the line being assembled
        last_record_type: Type of the most recent record seen
        checksum_failures: Data records passed through with a bad checksum
        unknown_records: Records of unrecognized type that were ignored
    """

    def __init__(
        self,
        line_sink: Optional[Callable[[str], None]] = None,
        max_line_width: int = DEFAULT_LINE_WIDTH,
    ):
        self.max_line_width = validate_line_width(max_line_width)
        self.lines: list[str] = []
        self.line_sink = line_sink if line_sink is not None else self.lines.append
        self.line_address = 0
        self.line_buffer = bytearray()
        self.last_record_type: int = RecordType.NONE
        self.lines_emitted = 0
        self.checksum_failures = 0
        self.unknown_records = 0

    @property
    def next_address(self) -> int:
        """Address a record must start at to continue the pending line."""
        return self.line_address + len(self.line_buffer)

    @property
    def termination_seen(self) -> bool:
        return self.last_record_type == RecordType.TERMINATION

    def on_record(
        self,
        state: object,
        record_type: int,
        address: int,
        payload: Union[bytes, memoryview],
        length: int,
        checksum_failed: bool,
    ) -> None:
        """
        Consume one decoded record.

        Args:
            state: Parser state that produced the record (unused)
            record_type: RecordType number
            address: 16-bit load address
            payload: Borrowed payload view
            length: Number of payload bytes
            checksum_failed: True if the record failed its checksum
        """
        if record_type == RecordType.DATA:
            if checksum_failed:
                # Corrupt bytes are still written; the caller decides via
                # the parser's sticky error whether that is acceptable.
                self.checksum_failures += 1
            self._append_data(address, payload[:length])
        elif record_type == RecordType.TERMINATION:
            self.flush()
            self._emit(TERMINATION_LINE)
        else:
            self.unknown_records += 1
            logger.warning(f"Ignoring record of unknown type {record_type}")

        self.last_record_type = record_type

    def _append_data(self, address: int, data: Union[bytes, memoryview]) -> None:
        if address != self.next_address:
            self.flush()
            self.line_address = address

        offset = 0
        while offset < len(data):
            room = self.max_line_width - len(self.line_buffer)
            chunk = data[offset:offset + room]
            self.line_buffer.extend(chunk)
            offset += len(chunk)
            if len(self.line_buffer) == self.max_line_width:
                self.flush()

    def flush(self) -> None:
        """
        Emit the pending partial line, if any.

        The line address advances past the emitted bytes (wrapping at 64K)
        so that a following contiguous record continues seamlessly.
        """
        if not self.line_buffer:
            return
        self._emit(format_s1_line(self.line_address, self.line_buffer))
        self.line_address = (self.line_address + len(self.line_buffer)) & 0xFFFF
        self.line_buffer.clear()

    def _emit(self, line: str) -> None:
        self.lines_emitted += 1
        self.line_sink(line)
