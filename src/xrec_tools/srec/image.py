"""
Raw Memory Image
================

A record sink that lays decoded data records out at their load addresses,
producing the binary image the tape would have loaded into memory.

Records whose checksum failed are left out by default, so a damaged block
shows up as fill bytes rather than as plausible-looking garbage. Later
records overwrite earlier ones at the same address, as a real load would.
"""

from pathlib import Path
from typing import Optional, Union
import logging

from xrec_tools.xrec.records import RecordType

logger = logging.getLogger(__name__)

# 16-bit address space
ADDRESS_SPACE = 0x10000


class MemoryImage:
    """
    64K memory image assembled from data records.

    Attributes:
        fill: Byte value used for addresses no record wrote
        include_corrupt: Also load records that failed their checksum
        skipped_records: Data records left out because of a bad checksum
    """

    def __init__(self, fill: int = 0x00, include_corrupt: bool = False):
        if not 0 <= fill <= 0xFF:
            raise ValueError(f"Fill byte out of range: {fill}")
        self.fill = fill
        self.include_corrupt = include_corrupt
        self.skipped_records = 0
        self._memory = bytearray([fill]) * ADDRESS_SPACE
        self._low: Optional[int] = None
        self._high: Optional[int] = None

    def on_record(
        self,
        state: object,
        record_type: int,
        address: int,
        payload: Union[bytes, memoryview],
        length: int,
        checksum_failed: bool,
    ) -> None:
        if record_type != RecordType.DATA:
            return
        if checksum_failed and not self.include_corrupt:
            self.skipped_records += 1
            logger.info(f"Skipping corrupt record at ${address:04X} ({length} bytes)")
            return

        for offset in range(length):
            self._store((address + offset) & 0xFFFF, payload[offset])

    def _store(self, address: int, value: int) -> None:
        self._memory[address] = value
        if self._low is None or address < self._low:
            self._low = address
        if self._high is None or address > self._high:
            self._high = address

    @property
    def is_empty(self) -> bool:
        return self._low is None

    @property
    def origin(self) -> Optional[int]:
        """Lowest address written, or None for an empty image."""
        return self._low

    @property
    def end(self) -> Optional[int]:
        """One past the highest address written, or None."""
        return None if self._high is None else self._high + 1

    def to_bytes(self, origin: Optional[int] = None) -> bytes:
        """
        Get the image from origin up to the highest written address.

        Args:
            origin: First address of the image (default: lowest written)

        Returns:
            Image bytes, gaps filled with the fill byte; b"" if empty

        Raises:
            ValueError: If origin lies above data that was written
        """
        if self._low is None:
            return b""
        if origin is None:
            origin = self._low
        if origin > self._low:
            raise ValueError(
                f"Origin ${origin:04X} is above lowest loaded address ${self._low:04X}"
            )
        return bytes(self._memory[origin:self._high + 1])

    def write(self, filepath: Union[str, Path], origin: Optional[int] = None) -> int:
        """Write the image to a file and return the number of bytes written."""
        data = self.to_bytes(origin)
        Path(filepath).write_bytes(data)
        return len(data)


class TeeSink:
    """Record sink that forwards every record to several sinks in order."""

    def __init__(self, *sinks):
        self.sinks = sinks

    def __call__(self, state, record_type, address, payload, length, checksum_failed):
        for sink in self.sinks:
            sink(state, record_type, address, payload, length, checksum_failed)
