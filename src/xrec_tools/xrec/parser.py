"""
Streaming X-Record Parser
=========================

This module decodes X-record byte streams one byte at a time.

The parser is a push-driven state machine: the caller feeds it bytes in
chunks of any size, and each time a record completes it synchronously
invokes a record sink with the decoded fields. No records are buffered,
and nothing in the input can make the parser raise:

- Bytes outside a record are skipped until the next 'X' marker
- An unknown type digit abandons the record attempt, sets the sticky
  SoftError.UNKNOWN_RECORD_TYPE and waits for the next marker
- A checksum mismatch sets SoftError.INVALID_CHECKSUM and is reported to
  the sink through its checksum_failed flag; the record is still delivered

Record Sinks
------------
A sink is any callable with the signature

    sink(state, record_type, address, payload, length, checksum_failed)

where payload is a memoryview over the parser's scratch buffer. The view is
released as soon as the sink returns, so sinks must copy any bytes they
keep. A sink must not feed bytes back into the parser that called it.

Usage Examples
--------------
Collecting decoded records:
    >>> from xrec_tools.xrec import parse_xrec
    >>> records, state = parse_xrec(data)
    >>> for record in records:
    ...     print(record)

Streaming into a custom sink:
    >>> def on_record(state, record_type, address, payload, length, failed):
    ...     print(f"{record_type} ${address:04X} {bytes(payload).hex()}")
    >>> parser = XRecParser(on_record)
    >>> for chunk in chunks:
    ...     parser.feed_bytes(chunk)

Strict Checking
---------------
The parser never fails. A caller that wants strict behaviour checks, after
the last byte, that state.last_soft_error is SoftError.NONE, that the
parser is idle (not part-way through a record) and that the last record
delivered was a termination record. See xrec_tools.convert.check_strict.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Union
import logging

from xrec_tools.errors import ScratchOverflowError
from xrec_tools.xrec.checksum import ones_complement_sum
from xrec_tools.xrec.records import (
    DATA_TYPE_DIGIT,
    HEADER_SIZE,
    SCRATCH_CAPACITY,
    START_MARKER,
    TERMINATION_TYPE_DIGIT,
    DecodedRecord,
    ParsePhase,
    RecordType,
    SoftError,
)

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Parser State
# =============================================================================

class ScratchBuffer:
    """
    Fixed-capacity byte buffer for the record being decoded.

    Holds [count, address_high, address_low, payload..., checksum] with an
    explicit fill length. Writing past capacity raises ScratchOverflowError
    rather than relying on the count field to bound the record.
    """

    __slots__ = ("_data", "_length")

    def __init__(self, capacity: int = SCRATCH_CAPACITY):
        self._data = bytearray(capacity)
        self._length = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    def append(self, byte: int) -> None:
        if self._length >= len(self._data):
            raise ScratchOverflowError(len(self._data))
        self._data[self._length] = byte
        self._length += 1

    def clear(self) -> None:
        self._length = 0

    def view(self, start: int = 0, stop: Optional[int] = None) -> memoryview:
        """Borrowed view of the valid bytes in [start, stop)."""
        if stop is None or stop > self._length:
            stop = self._length
        return memoryview(self._data)[start:stop]

    def to_bytes(self) -> bytes:
        return bytes(self._data[:self._length])

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index: int) -> int:
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError("scratch index out of range")
        return self._data[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScratchBuffer):
            return NotImplemented
        return self.capacity == other.capacity and self.to_bytes() == other.to_bytes()

    def __repr__(self) -> str:
        return f"ScratchBuffer({self.to_bytes().hex()!r}, capacity={self.capacity})"


@dataclass
class ParserState:
    """
    Mutable state of one parsing session.

    One ParserState belongs to exactly one input stream. Independent streams
    need independent states.

    Attributes:
        phase: Current state machine phase
        record_type: Type of the record being decoded (RecordType.NONE if none)
        remaining_count: Payload bytes still expected in READ_DATA
        payload_length: Payload length of the record being completed
        scratch: Framing and payload bytes of the record being decoded
        last_soft_error: Most recent anomaly (sticky, cleared only by begin)
        context: Opaque per-stream object available to the sink
        records_completed: Records delivered to the sink since begin
    """
    phase: ParsePhase = ParsePhase.AWAIT_START
    record_type: int = RecordType.NONE
    remaining_count: int = 0
    payload_length: int = 0
    scratch: ScratchBuffer = field(default_factory=ScratchBuffer, repr=False)
    last_soft_error: SoftError = SoftError.NONE
    context: Any = field(default=None, repr=False)
    records_completed: int = 0

    @property
    def scratch_len(self) -> int:
        return len(self.scratch)

    @property
    def is_idle(self) -> bool:
        """True when the parser is between records."""
        return self.phase is ParsePhase.AWAIT_START

    def reset_record(self) -> None:
        """Drop the record in progress, keeping the sticky error."""
        self.phase = ParsePhase.AWAIT_START
        self.record_type = RecordType.NONE
        self.remaining_count = 0
        self.payload_length = 0
        self.scratch.clear()


# Signature shared by every record consumer
RecordSink = Callable[[ParserState, int, int, memoryview, int, bool], None]


# =============================================================================
# Phase Handlers
# =============================================================================
# Each handler consumes one byte and returns True when the record is complete.
# =============================================================================

def _await_start(state: ParserState, byte: int) -> bool:
    if byte == START_MARKER:
        state.phase = ParsePhase.READ_TYPE
    return False


def _read_type(state: ParserState, byte: int) -> bool:
    if byte == DATA_TYPE_DIGIT:
        state.record_type = RecordType.DATA
        state.phase = ParsePhase.READ_COUNT
        return False

    if byte == TERMINATION_TYPE_DIGIT:
        state.record_type = RecordType.TERMINATION
        return True

    # No other type digits exist; resync on the next marker
    logger.warning(f"Unknown record type byte 0x{byte:02X}, resynchronizing")
    state.last_soft_error = SoftError.UNKNOWN_RECORD_TYPE
    state.phase = ParsePhase.AWAIT_START
    return False


def _read_count(state: ParserState, byte: int) -> bool:
    state.remaining_count = byte + 1
    state.scratch.append(byte)
    state.phase = ParsePhase.READ_ADDRESS_HIGH
    return False


def _read_address_high(state: ParserState, byte: int) -> bool:
    state.scratch.append(byte)
    state.phase = ParsePhase.READ_ADDRESS_LOW
    return False


def _read_address_low(state: ParserState, byte: int) -> bool:
    state.scratch.append(byte)
    state.phase = ParsePhase.READ_DATA
    return False


def _read_data(state: ParserState, byte: int) -> bool:
    state.scratch.append(byte)
    state.remaining_count -= 1
    if state.remaining_count == 0:
        state.payload_length = len(state.scratch) - HEADER_SIZE
        state.phase = ParsePhase.READ_CHECKSUM
    return False


def _read_checksum(state: ParserState, byte: int) -> bool:
    state.scratch.append(byte)
    return True


_TRANSITIONS: dict[ParsePhase, Callable[[ParserState, int], bool]] = {
    ParsePhase.AWAIT_START: _await_start,
    ParsePhase.READ_TYPE: _read_type,
    ParsePhase.READ_COUNT: _read_count,
    ParsePhase.READ_ADDRESS_HIGH: _read_address_high,
    ParsePhase.READ_ADDRESS_LOW: _read_address_low,
    ParsePhase.READ_DATA: _read_data,
    ParsePhase.READ_CHECKSUM: _read_checksum,
}


def _complete_record(state: ParserState, sink: RecordSink) -> None:
    """Decode the finished record, hand it to the sink and reset."""
    scratch = state.scratch
    address = 0
    length = 0
    checksum_failed = False

    if state.record_type == RecordType.DATA:
        address = (scratch[1] << 8) | scratch[2]
        length = state.payload_length
        with scratch.view(0, len(scratch) - 1) as covered:
            expected = ones_complement_sum(covered)
        stored = scratch[-1]
        if stored != expected:
            checksum_failed = True
            state.last_soft_error = SoftError.INVALID_CHECKSUM
            logger.warning(
                f"Checksum mismatch in record at ${address:04X}: "
                f"stored 0x{stored:02X}, computed 0x{expected:02X}"
            )

    state.records_completed += 1
    logger.debug(
        f"Record {state.records_completed}: {RecordType.describe(state.record_type)} "
        f"${address:04X} ({length} bytes)"
    )

    try:
        with scratch.view(HEADER_SIZE, HEADER_SIZE + length) as payload:
            sink(state, state.record_type, address, payload, length, checksum_failed)
    finally:
        state.reset_record()


# =============================================================================
# Parser Operations
# =============================================================================

def begin(state: ParserState) -> None:
    """
    Reset a parser state to the start of a new stream.

    Any partially decoded record is discarded and the sticky soft error is
    cleared. The context object is left alone.
    """
    state.reset_record()
    state.last_soft_error = SoftError.NONE
    state.records_completed = 0


def feed_byte(state: ParserState, byte: int, sink: RecordSink) -> None:
    """
    Advance the state machine by one input byte.

    Calls sink at most once, when this byte completes a record. Every byte
    value is accepted in every phase.

    Args:
        state: Parser state to advance
        byte: Input byte (only the low 8 bits are used)
        sink: Record consumer
    """
    byte &= 0xFF
    if _TRANSITIONS[state.phase](state, byte):
        _complete_record(state, sink)


def feed_bytes(state: ParserState, data: Iterable[int], sink: RecordSink) -> None:
    """Feed every byte of data, in order."""
    transitions = _TRANSITIONS
    for byte in data:
        byte &= 0xFF
        if transitions[state.phase](state, byte):
            _complete_record(state, sink)


class XRecParser:
    """
    X-record parser bound to a record sink.

    A thin object wrapper around a ParserState and the module-level
    operations, for callers that prefer to keep the sink with the state.

    Example:
        >>> collector = RecordCollector()
        >>> parser = XRecParser(collector)
        >>> parser.feed_bytes(b"X1\\x00\\x10\\x00\\xaa\\x45X9")
        >>> [str(r) for r in collector.records]
        ['<data record $1000 1 bytes>', '<termination record>']
    """

    def __init__(
        self,
        sink: RecordSink,
        state: Optional[ParserState] = None,
        context: Any = None,
    ):
        self.sink = sink
        self.state = state if state is not None else ParserState()
        if context is not None:
            self.state.context = context

    def begin(self) -> None:
        begin(self.state)

    def feed_byte(self, byte: int) -> None:
        feed_byte(self.state, byte, self.sink)

    def feed_bytes(self, data: Iterable[int]) -> None:
        feed_bytes(self.state, data, self.sink)

    @property
    def last_soft_error(self) -> SoftError:
        return self.state.last_soft_error

    @property
    def is_idle(self) -> bool:
        return self.state.is_idle


# =============================================================================
# Collecting Records
# =============================================================================

class RecordCollector:
    """Record sink that keeps an owned copy of every record."""

    def __init__(self) -> None:
        self.records: list[DecodedRecord] = []

    def __call__(
        self,
        state: ParserState,
        record_type: int,
        address: int,
        payload: memoryview,
        length: int,
        checksum_failed: bool,
    ) -> None:
        self.records.append(
            DecodedRecord.from_view(record_type, address, payload, checksum_failed)
        )


def parse_xrec(
    data: Union[bytes, bytearray, memoryview],
) -> tuple[list[DecodedRecord], ParserState]:
    """
    Decode a complete X-record byte string.

    Args:
        data: The raw X-record input

    Returns:
        The decoded records and the final parser state (for its soft error
        and idle flag)

    Example:
        >>> records, state = parse_xrec(Path("game.xrec").read_bytes())
        >>> if state.last_soft_error != SoftError.NONE:
        ...     print("input was damaged")
    """
    collector = RecordCollector()
    parser = XRecParser(collector)
    parser.feed_bytes(data)
    return collector.records, parser.state
