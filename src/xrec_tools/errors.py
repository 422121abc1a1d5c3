"""
xrec-tools Error Hierarchy
==========================

This module defines the exception hierarchy for the xrec-tools package.
All exceptions inherit from XRecToolsError, allowing callers to catch all
package-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
XRecToolsError (base)
├── XRecError (binary X-record input side)
│   ├── XRecFormatError - malformed record requested from the encoder helpers
│   └── ScratchOverflowError - record scratch buffer capacity exceeded
├── SRecError (S-record output side)
│   └── LineWidthError - output line width out of range
└── StrictModeError - post-hoc strict check failed

Design Philosophy
-----------------
The X-record parser is forgiving: corrupt input is never reported through
an exception. Unknown record types and checksum mismatches are recorded as
a sticky SoftError on the parser state (see xrec_tools.xrec.records), and
the caller decides whether they matter. The exceptions below are reserved
for programming errors, invalid configuration, and the opt-in strict mode.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class XRecToolsError(Exception):
    """
    Base exception for all xrec-tools errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch everything with a single except clause:

        try:
            result = convert_file("game.xrec")
            check_strict(result)
        except XRecToolsError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# X-Record Exceptions
# =============================================================================

class XRecError(XRecToolsError):
    """Base exception for X-record handling errors."""
    pass


class XRecFormatError(XRecError):
    """
    Invalid X-record content requested.

    Raised when building an X-record whose payload cannot be represented
    by the format (empty, or longer than 256 bytes), or whose address does
    not fit in 16 bits.
    """
    pass


class ScratchOverflowError(XRecError):
    """
    The per-record scratch buffer is full.

    The buffer is sized for the largest possible record (count, two address
    bytes, 256 payload bytes, checksum), so a correctly sequenced parser
    never raises this.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(f"scratch buffer overflow (capacity {capacity} bytes)")


# =============================================================================
# S-Record Exceptions
# =============================================================================

class SRecError(XRecToolsError):
    """Base exception for S-record output errors."""
    pass


class LineWidthError(SRecError):
    """
    Invalid output line width.

    An S1 line stores its byte count (address + data + checksum) in a single
    byte, so the data width must lie between 1 and 252 bytes.
    """

    def __init__(self, width: int, maximum: int):
        self.width = width
        self.maximum = maximum
        super().__init__(
            f"invalid line width {width}: must be between 1 and {maximum} bytes"
        )


# =============================================================================
# Strict Mode
# =============================================================================

class StrictModeError(XRecToolsError):
    """
    Strict conversion check failed.

    Raised by check_strict() when the input contained an unknown record
    type, a failed checksum, a truncated trailing record, or no closing
    termination record.

    Attributes:
        problems: The individual human-readable findings
    """

    def __init__(self, problems: Optional[list[str]] = None):
        self.problems = problems or []
        message = "strict check failed"
        if self.problems:
            message += ": " + "; ".join(self.problems)
        super().__init__(message)
