"""
X-Record Input Handling
=======================

This package decodes "X-record" binary load files, the cassette load
format used by SWTPC tapes.

This package provides:
- **XRecParser**: Streaming byte-at-a-time record decoder
- **parse_xrec**: Decode a whole byte string into DecodedRecord objects
- **Record types**: RecordType, SoftError, ParsePhase, DecodedRecord
- **Checksum utilities**: Compute and verify record checksums, build
  well-formed records

Quick Start
-----------
    >>> from xrec_tools.xrec import parse_xrec, SoftError
    >>> records, state = parse_xrec(Path("game.xrec").read_bytes())
    >>> for record in records:
    ...     print(record)
    >>> state.last_soft_error == SoftError.NONE
    True
"""

# =============================================================================
# Public API Exports
# =============================================================================

from xrec_tools.xrec.records import (
    START_MARKER,
    DATA_TYPE_DIGIT,
    TERMINATION_TYPE_DIGIT,
    MAX_PAYLOAD,
    HEADER_SIZE,
    SCRATCH_CAPACITY,
    RecordType,
    SoftError,
    ParsePhase,
    DecodedRecord,
)

from xrec_tools.xrec.checksum import (
    ones_complement_sum,
    record_checksum,
    verify_record_checksum,
    encode_xrec_record,
    encode_xrec_termination,
)

from xrec_tools.xrec.parser import (
    ScratchBuffer,
    ParserState,
    RecordSink,
    XRecParser,
    RecordCollector,
    begin,
    feed_byte,
    feed_bytes,
    parse_xrec,
)

__all__ = [
    # Constants
    "START_MARKER",
    "DATA_TYPE_DIGIT",
    "TERMINATION_TYPE_DIGIT",
    "MAX_PAYLOAD",
    "HEADER_SIZE",
    "SCRATCH_CAPACITY",
    # Enums and records
    "RecordType",
    "SoftError",
    "ParsePhase",
    "DecodedRecord",
    # Checksum utilities
    "ones_complement_sum",
    "record_checksum",
    "verify_record_checksum",
    "encode_xrec_record",
    "encode_xrec_termination",
    # Parser
    "ScratchBuffer",
    "ParserState",
    "RecordSink",
    "XRecParser",
    "RecordCollector",
    "begin",
    "feed_byte",
    "feed_bytes",
    "parse_xrec",
]
