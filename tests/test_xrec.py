"""
X-Record Parser Unit Tests
==========================

This module contains tests for the X-record input side.

Test Categories
---------------
1. Records: Enum values and DecodedRecord helpers
2. Checksum: Checksum calculation and record building
3. Scratch: Bounded scratch buffer
4. Parser: State machine, resynchronization, checksum flagging
5. Sink contract: Invocation count, borrowed views, context
"""

import pytest

from xrec_tools.errors import ScratchOverflowError, XRecFormatError
from xrec_tools.xrec import (
    SCRATCH_CAPACITY,
    DecodedRecord,
    ParsePhase,
    ParserState,
    RecordCollector,
    RecordType,
    ScratchBuffer,
    SoftError,
    XRecParser,
    begin,
    encode_xrec_record,
    encode_xrec_termination,
    feed_byte,
    feed_bytes,
    ones_complement_sum,
    parse_xrec,
    record_checksum,
    verify_record_checksum,
)


# =============================================================================
# Test Fixtures
# =============================================================================

# count=0x00 (1 byte), address=0x1000, payload=0xAA
# checksum = ~(0x00 + 0x10 + 0x00 + 0xAA) & 0xFF = ~0xBA & 0xFF = 0x45
SINGLE_BYTE_RECORD = b"X1\x00\x10\x00\xaa\x45"


@pytest.fixture
def collector() -> RecordCollector:
    return RecordCollector()


@pytest.fixture
def parser(collector: RecordCollector) -> XRecParser:
    return XRecParser(collector)


# =============================================================================
# Record Type Tests
# =============================================================================

class TestRecordTypes:
    """Tests for the shared enums and DecodedRecord."""

    def test_record_type_values(self):
        """Record type numbers match the ASCII type digits."""
        assert RecordType.NONE == 0
        assert RecordType.DATA == 1
        assert RecordType.TERMINATION == 9

    def test_describe_unknown_value(self):
        assert RecordType.describe(1) == "data"
        assert RecordType.describe(5) == "unknown (5)"

    def test_soft_error_values(self):
        assert SoftError.NONE == 0
        assert SoftError.UNKNOWN_RECORD_TYPE == 1
        assert SoftError.INVALID_CHECKSUM == 2

    def test_scratch_capacity(self):
        """count(1) + address(2) + payload(256) + checksum(1)"""
        assert SCRATCH_CAPACITY == 260

    def test_decoded_record_properties(self):
        record = DecodedRecord(RecordType.DATA, 0x2000, b"\x01\x02\x03")
        assert record.length == 3
        assert record.end_address == 0x2003
        assert record.is_data
        assert not record.is_termination
        assert str(record) == "<data record $2000 3 bytes>"

    def test_decoded_record_copies_view(self):
        source = bytearray(b"\x10\x20")
        record = DecodedRecord.from_view(RecordType.DATA, 0, memoryview(source), False)
        source[0] = 0xFF
        assert record.payload == b"\x10\x20"


# =============================================================================
# Checksum Tests
# =============================================================================

class TestChecksum:
    """Tests for checksum calculation and record building."""

    def test_worked_example(self):
        """~(0x00 + 0x10 + 0x00 + 0xAA) & 0xFF == 0x45"""
        assert record_checksum(0x00, 0x1000, b"\xaa") == 0x45
        assert ones_complement_sum(b"\x00\x10\x00\xaa") == 0x45

    def test_sum_is_truncated(self):
        """Carries out of the low byte are discarded."""
        # 0xFF + 0xFF + 0x03 = 0x201 -> 0x01 -> ~0x01 = 0xFE
        assert ones_complement_sum(b"\xff\xff\x03") == 0xFE

    def test_empty_sum(self):
        assert ones_complement_sum(b"") == 0xFF

    def test_verify_record_checksum(self):
        assert verify_record_checksum(b"\x00\x10\x00\xaa\x45")
        assert not verify_record_checksum(b"\x00\x10\x00\xaa\x44")
        assert not verify_record_checksum(b"\x45")

    def test_encode_record(self):
        assert encode_xrec_record(0x1000, b"\xaa") == SINGLE_BYTE_RECORD

    def test_encode_termination(self):
        assert encode_xrec_termination() == b"X9"

    def test_encode_rejects_empty_payload(self):
        with pytest.raises(XRecFormatError):
            encode_xrec_record(0x1000, b"")

    def test_encode_rejects_long_payload(self):
        with pytest.raises(XRecFormatError):
            encode_xrec_record(0x1000, bytes(257))

    def test_encode_rejects_wide_address(self):
        with pytest.raises(XRecFormatError):
            encode_xrec_record(0x10000, b"\x00")


# =============================================================================
# Scratch Buffer Tests
# =============================================================================

class TestScratchBuffer:
    """Tests for the bounded scratch buffer."""

    def test_append_and_index(self):
        scratch = ScratchBuffer()
        scratch.append(0x12)
        scratch.append(0x34)
        assert len(scratch) == 2
        assert scratch[0] == 0x12
        assert scratch[-1] == 0x34
        assert scratch.to_bytes() == b"\x12\x34"

    def test_index_beyond_length(self):
        scratch = ScratchBuffer()
        scratch.append(0x12)
        with pytest.raises(IndexError):
            scratch[1]

    def test_overflow_raises(self):
        scratch = ScratchBuffer(capacity=2)
        scratch.append(1)
        scratch.append(2)
        with pytest.raises(ScratchOverflowError):
            scratch.append(3)
        assert len(scratch) == 2

    def test_clear(self):
        scratch = ScratchBuffer()
        scratch.append(1)
        scratch.clear()
        assert len(scratch) == 0
        assert scratch.to_bytes() == b""

    def test_view_is_limited_to_valid_bytes(self):
        scratch = ScratchBuffer()
        for value in (1, 2, 3):
            scratch.append(value)
        assert bytes(scratch.view()) == b"\x01\x02\x03"
        assert bytes(scratch.view(1, 100)) == b"\x02\x03"


# =============================================================================
# Parser Tests
# =============================================================================

class TestParser:
    """Tests for the X-record state machine."""

    def test_initial_state(self):
        state = ParserState()
        assert state.phase is ParsePhase.AWAIT_START
        assert state.record_type == RecordType.NONE
        assert state.scratch_len == 0
        assert state.last_soft_error == SoftError.NONE
        assert state.is_idle

    def test_single_record(self, parser, collector):
        parser.feed_bytes(SINGLE_BYTE_RECORD)
        assert collector.records == [
            DecodedRecord(RecordType.DATA, 0x1000, b"\xaa", False)
        ]
        assert parser.last_soft_error == SoftError.NONE
        assert parser.is_idle

    def test_termination_record(self, parser, collector):
        parser.feed_bytes(b"X9")
        assert collector.records == [DecodedRecord(RecordType.TERMINATION, 0, b"", False)]
        assert parser.state.records_completed == 1

    def test_count_zero_is_one_byte(self, collector):
        """A count field of 0x00 means one payload byte."""
        records, _ = parse_xrec(b"X1\x00\x12\x34\x56" + bytes([ones_complement_sum(b"\x00\x12\x34\x56")]))
        assert records[0].length == 1
        assert records[0].address == 0x1234

    def test_count_ff_is_256_bytes(self):
        """A count field of 0xFF means 256 payload bytes."""
        payload = bytes(range(256))
        data = encode_xrec_record(0x4000, payload)
        assert data[2] == 0xFF
        records, state = parse_xrec(data)
        assert records[0].length == 256
        assert records[0].payload == payload
        assert not records[0].checksum_failed
        assert state.last_soft_error == SoftError.NONE

    def test_maximum_record_fills_scratch(self):
        """The largest record uses exactly the scratch capacity."""
        seen = []

        def sink(state, record_type, address, payload, length, failed):
            seen.append(state.scratch_len)

        parser = XRecParser(sink)
        parser.feed_bytes(encode_xrec_record(0x0000, bytes(256)))
        assert seen == [SCRATCH_CAPACITY]

    def test_address_is_big_endian(self):
        records, _ = parse_xrec(encode_xrec_record(0xABCD, b"\x01"))
        assert records[0].address == 0xABCD

    def test_leading_garbage_is_skipped(self):
        data = b"\x00\xff\r\nleader" + SINGLE_BYTE_RECORD + b"\r\n" + b"X9"
        records, state = parse_xrec(data)
        assert [r.record_type for r in records] == [RecordType.DATA, RecordType.TERMINATION]
        assert state.last_soft_error == SoftError.NONE

    def test_unknown_type_resynchronizes(self):
        """An invalid type digit is abandoned and the next record decodes."""
        records, state = parse_xrec(b"XQ" + SINGLE_BYTE_RECORD)
        assert state.last_soft_error == SoftError.UNKNOWN_RECORD_TYPE
        assert records == [DecodedRecord(RecordType.DATA, 0x1000, b"\xaa", False)]

    def test_repeated_marker_counts_as_unknown_type(self):
        """The byte after 'X' is always taken as the type digit."""
        records, state = parse_xrec(b"XX" + SINGLE_BYTE_RECORD)
        assert state.last_soft_error == SoftError.UNKNOWN_RECORD_TYPE
        assert len(records) == 1

    @pytest.mark.parametrize("bit", range(8))
    def test_checksum_bit_flip_is_flagged(self, bit):
        data = bytearray(SINGLE_BYTE_RECORD)
        data[-1] ^= 1 << bit
        records, state = parse_xrec(bytes(data))
        assert records[0].checksum_failed
        assert records[0].payload == b"\xaa"
        assert state.last_soft_error == SoftError.INVALID_CHECKSUM

    def test_sticky_error_is_overwritten_not_cleared(self):
        bad = bytearray(SINGLE_BYTE_RECORD)
        bad[-1] ^= 0x01
        # checksum failure, then an unknown type: only the latest is kept
        _, state = parse_xrec(bytes(bad) + b"X7")
        assert state.last_soft_error == SoftError.UNKNOWN_RECORD_TYPE
        # unknown type, then a checksum failure
        _, state = parse_xrec(b"X7" + bytes(bad))
        assert state.last_soft_error == SoftError.INVALID_CHECKSUM
        # good records afterwards do not clear it
        _, state = parse_xrec(bytes(bad) + SINGLE_BYTE_RECORD + b"X9")
        assert state.last_soft_error == SoftError.INVALID_CHECKSUM

    def test_termination_has_no_checksum(self):
        """X9 has no fields, so it can never fail a checksum."""
        records, state = parse_xrec(b"X9X9")
        assert all(not r.checksum_failed for r in records)
        assert state.last_soft_error == SoftError.NONE

    def test_truncated_record_leaves_parser_busy(self, parser, collector):
        parser.feed_bytes(SINGLE_BYTE_RECORD[:-1])
        assert collector.records == []
        assert parser.state.phase is ParsePhase.READ_CHECKSUM
        assert not parser.is_idle

    def test_phase_sequence(self):
        state = ParserState()
        phases = []
        for byte in SINGLE_BYTE_RECORD:
            feed_byte(state, byte, lambda *args: None)
            phases.append(state.phase)
        assert phases == [
            ParsePhase.READ_TYPE,
            ParsePhase.READ_COUNT,
            ParsePhase.READ_ADDRESS_HIGH,
            ParsePhase.READ_ADDRESS_LOW,
            ParsePhase.READ_DATA,
            ParsePhase.READ_CHECKSUM,
            ParsePhase.AWAIT_START,
        ]

    def test_every_byte_accepted_in_every_phase(self):
        """Feeding any byte in any phase never raises."""
        prefixes = [b"", b"X", b"X1", b"X1\x01", b"X1\x01\x00", b"X1\x01\x00\x00",
                    b"X1\x00\x00\x00\x00"]
        for prefix in prefixes:
            for value in range(256):
                state = ParserState()
                feed_bytes(state, prefix, lambda *args: None)
                feed_byte(state, value, lambda *args: None)

    def test_byte_at_a_time_matches_bulk(self):
        data = (
            b"noise"
            + encode_xrec_record(0x0100, bytes(range(40)))
            + b"XZ"
            + encode_xrec_record(0x0200, b"\x55" * 7)
            + encode_xrec_termination()
        )
        bulk, bulk_state = parse_xrec(data)

        collector = RecordCollector()
        parser = XRecParser(collector)
        for byte in data:
            parser.feed_byte(byte)

        assert collector.records == bulk
        assert parser.last_soft_error == bulk_state.last_soft_error

    def test_chunk_boundaries_do_not_matter(self):
        data = encode_xrec_record(0x0100, bytes(range(20))) + b"X9"
        expected, _ = parse_xrec(data)
        for split in range(len(data) + 1):
            collector = RecordCollector()
            parser = XRecParser(collector)
            parser.feed_bytes(data[:split])
            parser.feed_bytes(data[split:])
            assert collector.records == expected


# =============================================================================
# Restart Tests
# =============================================================================

class TestBegin:
    """Tests for resetting a parser."""

    def test_begin_discards_partial_record(self, parser, collector):
        parser.feed_bytes(b"X1\x05\x10\x00\x01\x02")
        parser.begin()
        assert parser.state.scratch_len == 0
        assert parser.is_idle

        parser.feed_bytes(SINGLE_BYTE_RECORD)
        assert collector.records == [
            DecodedRecord(RecordType.DATA, 0x1000, b"\xaa", False)
        ]

    def test_begin_clears_sticky_error(self, parser):
        parser.feed_bytes(b"XQ")
        assert parser.last_soft_error == SoftError.UNKNOWN_RECORD_TYPE
        parser.begin()
        assert parser.last_soft_error == SoftError.NONE
        assert parser.state.records_completed == 0

    def test_restart_equals_fresh_state(self):
        data = encode_xrec_record(0x3000, b"\x01\x02\x03") + b"X9"

        fresh = RecordCollector()
        fresh_state = ParserState()
        feed_bytes(fresh_state, data, fresh)

        reused = RecordCollector()
        reused_state = ParserState()
        feed_bytes(reused_state, b"garbageX1\x10\x20", reused)
        begin(reused_state)
        feed_bytes(reused_state, data, reused)

        assert reused.records == fresh.records
        assert reused_state == fresh_state

    def test_begin_keeps_context(self):
        marker = object()
        parser = XRecParser(lambda *args: None, context=marker)
        parser.begin()
        assert parser.state.context is marker


# =============================================================================
# Sink Contract Tests
# =============================================================================

class TestSinkContract:
    """Tests for how the parser invokes record sinks."""

    def test_at_most_one_call_per_byte(self):
        calls = []
        state = ParserState()
        data = SINGLE_BYTE_RECORD + b"X9" + SINGLE_BYTE_RECORD
        for byte in data:
            before = len(calls)
            feed_byte(state, byte, lambda *args: calls.append(args))
            assert len(calls) - before <= 1
        assert len(calls) == 3

    def test_sink_arguments(self):
        calls = []

        def sink(state, record_type, address, payload, length, checksum_failed):
            calls.append((record_type, address, bytes(payload), length, checksum_failed))

        parser = XRecParser(sink)
        parser.feed_bytes(encode_xrec_record(0x2000, b"\x01\x02\x03\x04"))
        assert calls == [(RecordType.DATA, 0x2000, b"\x01\x02\x03\x04", 4, False)]

    def test_sink_receives_state_and_context(self):
        marker = object()
        seen = []
        parser = XRecParser(lambda state, *rest: seen.append(state.context), context=marker)
        parser.feed_bytes(SINGLE_BYTE_RECORD)
        assert seen == [marker]

    def test_payload_view_is_released_after_callback(self):
        kept = []
        parser = XRecParser(lambda state, rt, addr, payload, length, failed: kept.append(payload))
        parser.feed_bytes(SINGLE_BYTE_RECORD)
        with pytest.raises(ValueError):
            kept[0][0]

    def test_state_reset_before_next_record(self):
        """Inside the sink the record is intact; afterwards the state is idle."""
        during = []

        def sink(state, *args):
            during.append((state.phase, state.record_type))

        parser = XRecParser(sink)
        parser.feed_bytes(SINGLE_BYTE_RECORD)
        assert during == [(ParsePhase.READ_CHECKSUM, RecordType.DATA)]
        assert parser.state.record_type == RecordType.NONE
        assert parser.state.scratch_len == 0

    def test_sink_exception_propagates_and_resets(self):
        def sink(*args):
            raise RuntimeError("consumer failed")

        parser = XRecParser(sink)
        with pytest.raises(RuntimeError):
            parser.feed_bytes(SINGLE_BYTE_RECORD)
        assert parser.is_idle
        assert parser.state.scratch_len == 0

    def test_independent_streams(self):
        first = RecordCollector()
        second = RecordCollector()
        a = XRecParser(first)
        b = XRecParser(second)
        a.feed_bytes(SINGLE_BYTE_RECORD[:4])
        b.feed_bytes(b"X9")
        a.feed_bytes(SINGLE_BYTE_RECORD[4:])
        assert [r.record_type for r in first.records] == [RecordType.DATA]
        assert [r.record_type for r in second.records] == [RecordType.TERMINATION]
