"""
X-Record Type Definitions
=========================

This module defines the data structures shared by the X-record parser and
its consumers.

X-Record Format
---------------
X-records are the binary load format written to cassette by the SWTPC
tape tool chain. Every record starts with the ASCII marker "X" followed by
an ASCII type digit.

**Data record** ("X1"):
    Byte 0:     'X'  (0x58)
    Byte 1:     '1'  (0x31)
    Byte 2:     Byte count N - the payload holds N + 1 bytes (1..256)
    Byte 3-4:   Load address (big-endian)
    Byte 5+:    Payload (N + 1 bytes)
    Last byte:  Checksum - one's complement of the 8-bit sum of the
                count byte, both address bytes and every payload byte

**Termination record** ("X9"):
    Byte 0:     'X'
    Byte 1:     '9'
    No further fields.

Anything between records (leader bytes, tape noise) is skipped until the
next 'X'.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Final, Union


# =============================================================================
# Format Constants
# =============================================================================

# Start-of-record marker
START_MARKER: Final[int] = ord("X")

# ASCII type digits following the marker
DATA_TYPE_DIGIT: Final[int] = ord("1")
TERMINATION_TYPE_DIGIT: Final[int] = ord("9")

# Byte count field encodes payload length - 1, so payloads are 1..256 bytes
MAX_PAYLOAD: Final[int] = 256

# Count byte + two address bytes in front of the payload
HEADER_SIZE: Final[int] = 3

# count(1) + address(2) + payload(256) + checksum(1)
SCRATCH_CAPACITY: Final[int] = HEADER_SIZE + MAX_PAYLOAD + 1


# =============================================================================
# Enumeration Types
# =============================================================================

class RecordType(IntEnum):
    """
    Record type numbers reported to record sinks.

    The values match the type digit of the record ('1' -> 1, '9' -> 9).
    NONE is used by a parser that is not inside a record.
    """
    NONE = 0
    DATA = 1            # X1: 16-bit address data record
    TERMINATION = 9     # X9: end of load

    @classmethod
    def describe(cls, value: int) -> str:
        """Get a display name for a record type number, known or not."""
        try:
            return cls(value).name.lower()
        except ValueError:
            return f"unknown ({value})"


class SoftError(IntEnum):
    """
    Non-fatal anomalies seen while parsing.

    The parser keeps only the most recent one (a sticky single slot); a new
    anomaly overwrites the previous value, and only begin() clears it.
    """
    NONE = 0
    UNKNOWN_RECORD_TYPE = 1
    INVALID_CHECKSUM = 2


class ParsePhase(Enum):
    """Parser phases. Completion returns straight to AWAIT_START."""
    AWAIT_START = "await_start"
    READ_TYPE = "read_type"
    READ_COUNT = "read_count"
    READ_ADDRESS_HIGH = "read_address_high"
    READ_ADDRESS_LOW = "read_address_low"
    READ_DATA = "read_data"
    READ_CHECKSUM = "read_checksum"


# =============================================================================
# Decoded Records
# =============================================================================

@dataclass(frozen=True)
class DecodedRecord:
    """
    A decoded X-record kept beyond the sink callback.

    The parser hands sinks a borrowed view of its scratch buffer; this class
    holds an owned copy so records can be collected into a list.

    Attributes:
        record_type: Record type number (see RecordType)
        address: 16-bit load address (0 for termination records)
        payload: Payload bytes, without count/address/checksum framing
        checksum_failed: True if the record's checksum did not match
    """
    record_type: int
    address: int
    payload: bytes = b""
    checksum_failed: bool = False

    @classmethod
    def from_view(
        cls,
        record_type: int,
        address: int,
        payload: Union[bytes, memoryview],
        checksum_failed: bool,
    ) -> "DecodedRecord":
        """Copy a borrowed sink payload into a new record."""
        return cls(record_type, address, bytes(payload), checksum_failed)

    @property
    def length(self) -> int:
        return len(self.payload)

    @property
    def end_address(self) -> int:
        """Address one past the last payload byte (not wrapped)."""
        return self.address + len(self.payload)

    @property
    def is_data(self) -> bool:
        return self.record_type == RecordType.DATA

    @property
    def is_termination(self) -> bool:
        return self.record_type == RecordType.TERMINATION

    def __str__(self) -> str:
        kind = RecordType.describe(self.record_type)
        if not self.is_data:
            return f"<{kind} record>"
        flag = " CHECKSUM ERROR" if self.checksum_failed else ""
        return f"<{kind} record ${self.address:04X} {self.length} bytes{flag}>"
