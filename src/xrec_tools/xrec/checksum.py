"""
X-Record and S-Record Checksums
===============================

Both the binary X-record format and the Motorola S1 text format protect
each record with the same 8-bit checksum:

- Sum every byte of the count field, the address bytes and the payload
- Keep only the low 8 bits of the sum (carries are discarded)
- Take the one's complement of that byte

The X-record decoder applies this to everything in front of the trailing
checksum byte and compares. The S-record encoder applies it to the S1 byte
count, the address and the payload. The inversion is applied exactly once
on each side.

Usage
-----
    >>> from xrec_tools.xrec.checksum import record_checksum
    >>> record_checksum(0x00, 0x1000, b"\\xaa")  # ~(0x00+0x10+0x00+0xAA)
    69
    >>> encode_xrec_record(0x1000, b"\\xaa").hex()
    '5831001000aa45'
"""

from typing import Final, Iterable

from xrec_tools.errors import XRecFormatError
from xrec_tools.xrec.records import (
    DATA_TYPE_DIGIT,
    MAX_PAYLOAD,
    START_MARKER,
    TERMINATION_TYPE_DIGIT,
)

# Mask for the 8-bit running sum
BYTE_MASK: Final[int] = 0xFF


def ones_complement_sum(data: Iterable[int]) -> int:
    """
    One's complement of the 8-bit truncated sum of data.

    Args:
        data: Byte values (bytes, bytearray, memoryview or ints 0..255)

    Returns:
        Checksum byte (0..255)
    """
    return ~sum(data) & BYTE_MASK


def record_checksum(count_field: int, address: int, payload: Iterable[int]) -> int:
    """
    Checksum over a count field, a 16-bit address and a payload.

    This is the checksum carried by both X1 records (where count_field is
    the payload length minus one) and S1 lines (where count_field is the
    number of bytes after the count: address, data and checksum).

    Args:
        count_field: Value of the record's count byte
        address: 16-bit load address
        payload: Payload bytes

    Returns:
        Checksum byte (0..255)
    """
    total = count_field + (address >> 8) + (address & 0xFF) + sum(payload)
    return ~total & BYTE_MASK


def verify_record_checksum(framed: bytes) -> bool:
    """
    Verify a framed X1 record body.

    Args:
        framed: [count, address_high, address_low, payload..., checksum]

    Returns:
        True if the trailing byte matches the computed checksum
    """
    if len(framed) < 2:
        return False
    return ones_complement_sum(framed[:-1]) == framed[-1]


def encode_xrec_record(address: int, payload: bytes) -> bytes:
    """
    Build a complete X1 data record.

    Args:
        address: 16-bit load address of the first payload byte
        payload: 1 to 256 payload bytes

    Returns:
        b"X1" + count + address + payload + checksum

    Raises:
        XRecFormatError: If the payload length or address cannot be encoded
    """
    if not 1 <= len(payload) <= MAX_PAYLOAD:
        raise XRecFormatError(
            f"X-record payload must be 1..{MAX_PAYLOAD} bytes, got {len(payload)}"
        )
    if not 0 <= address <= 0xFFFF:
        raise XRecFormatError(f"X-record address out of range: 0x{address:X}")

    count = len(payload) - 1
    body = bytes([count, address >> 8, address & 0xFF]) + bytes(payload)
    return bytes([START_MARKER, DATA_TYPE_DIGIT]) + body + bytes([ones_complement_sum(body)])


def encode_xrec_termination() -> bytes:
    """Build an X9 termination record."""
    return bytes([START_MARKER, TERMINATION_TYPE_DIGIT])
