"""
Intel-HEX Record Decoder
========================

This module decodes Intel-HEX records from a ByteCursor, one record per
call, validating each record's checksum.

Record Format
-------------
Each record is a line of ASCII hex digits introduced by a colon:

    :LLAAAATT[DD...]CC

- LL: payload length in bytes
- AAAA: 16-bit load address, big-endian
- TT: record type (see RecordType)
- DD: LL payload bytes
- CC: checksum, the two's complement of the sum of all preceding bytes

Bytes between records (CR, LF, blanks, comments) are skipped while looking
for the next colon. Inside a record every character must be a hex digit.

Checksum
--------
All decoded bytes of a record, including CC, must sum to zero modulo 256:

    (LL + AA_high + AA_low + TT + sum(DD) + CC) & 0xFF == 0

Reference
---------
- Intel Hexadecimal Object File Format Specification, Rev. A (1988)
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional

from hexflash.config import RECORD_MARK
from hexflash.errors import ChecksumError, MalformedRecordError
from hexflash.reader import ByteCursor, next_hex_byte

logger = logging.getLogger(__name__)


# =============================================================================
# Record Types
# =============================================================================

class RecordType(IntEnum):
    """
    Intel-HEX record type identifiers.

    Only DATA, END_OF_FILE and EXTENDED_LINEAR_ADDRESS are accepted by the
    image assembler; the others are named here for diagnostics.
    """
    DATA = 0x00                       # Payload to load at the record address
    END_OF_FILE = 0x01                # Last record of the file
    EXTENDED_SEGMENT_ADDRESS = 0x02   # Segment base (not supported)
    START_SEGMENT_ADDRESS = 0x03      # CS:IP entry point (not supported)
    EXTENDED_LINEAR_ADDRESS = 0x04    # Upper address bits (accepted, ignored)
    START_LINEAR_ADDRESS = 0x05       # EIP entry point (not supported)

    @classmethod
    def get_name(cls, type_byte: int) -> str:
        """Get a human-readable name for a record type."""
        names = {
            0x00: "Data",
            0x01: "End Of File",
            0x02: "Extended Segment Address",
            0x03: "Start Segment Address",
            0x04: "Extended Linear Address",
            0x05: "Start Linear Address",
        }
        return names.get(type_byte, f"Unknown (0x{type_byte:02X})")


def record_checksum(length: int, address: int, record_type: int, data: bytes) -> int:
    """
    Calculate the checksum byte for a record.

    Args:
        length: Payload length
        address: 16-bit load address
        record_type: Record type byte
        data: Payload bytes

    Returns:
        The byte that makes the record sum to zero modulo 256

    Example:
        >>> hex(record_checksum(2, 0x0010, 0x00, bytes([0x01, 0x02])))
        '0xeb'
    """
    total = length + (address >> 8) + (address & 0xFF) + record_type + sum(data)
    return (-total) & 0xFF


# =============================================================================
# Record
# =============================================================================

@dataclass(frozen=True)
class Record:
    """
    One decoded, checksum-validated Intel-HEX record.

    Attributes:
        address: 16-bit load address
        record_type: Record type byte (see RecordType)
        data: Payload bytes
        line: Input line of the record's colon (0 if unknown)
    """
    address: int
    record_type: int
    data: bytes
    line: int = 0

    @property
    def end_address(self) -> int:
        """Address one past the last payload byte."""
        return self.address + len(self.data)

    def to_line(self) -> str:
        """Render the record back to its ':LLAAAATT...CC' text form."""
        checksum = record_checksum(len(self.data), self.address, self.record_type, self.data)
        return (
            f":{len(self.data):02X}{self.address:04X}{self.record_type:02X}"
            f"{self.data.hex().upper()}{checksum:02X}"
        )

    def __str__(self) -> str:
        return (
            f"{RecordType.get_name(self.record_type)} @ ${self.address:04X} "
            f"({len(self.data)} bytes)"
        )


# =============================================================================
# Record Decoder
# =============================================================================

class RecordDecoder:
    """
    Decode Intel-HEX records from a shared ByteCursor.

    The decoder keeps no state between records; everything it needs is
    the cursor position.

    Example:
        >>> with ByteCursor.open("firmware.hex") as cursor:
        ...     decoder = RecordDecoder(cursor)
        ...     record = decoder.next_record()
    """

    def __init__(self, cursor: ByteCursor):
        self.cursor = cursor

    def _seek_mark(self) -> bool:
        """Skip bytes up to and including the next ':'. False at end of stream."""
        while True:
            c = self.cursor.next_raw_byte()
            if c is None:
                return False
            if c == RECORD_MARK:
                return True

    def _read_byte(self, field_name: str, line: int) -> int:
        """Decode one hex byte of the current record, or raise."""
        value = next_hex_byte(self.cursor)
        if value is None:
            if self.cursor.exhausted:
                reason = f"truncated record: input ended in {field_name}"
            else:
                reason = f"invalid hex digit in {field_name}"
            raise MalformedRecordError(reason, line=line, offset=self.cursor.offset)
        return value

    def next_record(self) -> Optional[Record]:
        """
        Decode the next record.

        Returns:
            The record, or None if the input ended before another ':'

        Raises:
            MalformedRecordError: If a record is truncated or holds a
                non-hex character
            ChecksumError: If the record's bytes do not sum to zero
        """
        if not self._seek_mark():
            return None
        line = self.cursor.line

        length = self._read_byte("length", line)
        checksum = length

        addr_high = self._read_byte("address", line)
        addr_low = self._read_byte("address", line)
        checksum = (checksum + addr_high + addr_low) & 0xFF
        address = (addr_high << 8) | addr_low

        record_type = self._read_byte("record type", line)
        checksum = (checksum + record_type) & 0xFF

        data = bytearray()
        for _ in range(length):
            b = self._read_byte("data", line)
            checksum = (checksum + b) & 0xFF
            data.append(b)

        stored = self._read_byte("checksum", line)
        if (checksum + stored) & 0xFF != 0:
            raise ChecksumError(
                expected=(-checksum) & 0xFF,
                actual=stored,
                line=line,
                offset=self.cursor.offset,
            )

        record = Record(address=address, record_type=record_type, data=bytes(data), line=line)
        logger.debug(f"Line {line}: {record}")
        return record

    def __iter__(self) -> Iterator[Record]:
        return iter_records(self.cursor)


def iter_records(cursor: ByteCursor) -> Iterator[Record]:
    """
    Yield records from the cursor until the input is exhausted.

    The End-Of-File record is yielded like any other; stopping on it is
    the caller's decision.
    """
    decoder = RecordDecoder(cursor)
    while True:
        record = decoder.next_record()
        if record is None:
            return
        yield record
