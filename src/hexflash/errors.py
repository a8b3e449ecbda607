"""
HexFlash Error Hierarchy
========================

This module defines the exception hierarchy for the hexflash package.
All exceptions inherit from HexFlashError, allowing callers to catch all
conversion-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
HexFlashError (base)
├── SourceUnavailableError - input file cannot be opened
├── ConversionError (fatal decode/assembly failures)
│   ├── MalformedRecordError - truncated record or invalid hex digit
│   │   └── ChecksumError - record checksum does not sum to zero
│   ├── UnsupportedRecordTypeError - record type outside 00/01/04
│   ├── PrematureEndError - input ended before an End-Of-File record
│   └── ImageBoundsError - payload extends past the image capacity
└── SinkUnavailableError - output file cannot be created or written

Only SourceUnavailableError is treated as an ordinary user-facing
condition by the command-line tool. Everything under ConversionError
aborts the conversion; there is no skip-and-continue.

Error messages follow this format:
    line 12: checksum mismatch (record sums to 0x01)
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class HexFlashError(Exception):
    """
    Base exception for all hexflash errors.

    Attributes:
        message: The error description
        line: 1-indexed line of the input where the error was found (optional)
        offset: 0-indexed byte offset into the input (optional)

    Example:
        try:
            convert_file("firmware.hex", "firmware.bin")
        except HexFlashError as e:
            print(f"Error: {e}")
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.message = message
        self.line = line
        self.offset = offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Prefix the message with its input line when one is known."""
        if self.line is not None:
            return f"line {self.line}: {self.message}"
        return self.message


# =============================================================================
# I/O Exceptions
# =============================================================================

class SourceUnavailableError(HexFlashError):
    """
    The input file could not be opened.

    Raised by ByteCursor.open(). The command-line tool reports this as
    "File doesn't exist" and exits without writing any output.
    """

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        message = f"cannot open input '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SinkUnavailableError(HexFlashError):
    """The output file could not be created or fully written."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        message = f"cannot write output '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


# =============================================================================
# Conversion Exceptions
# =============================================================================

class ConversionError(HexFlashError):
    """Base exception for fatal failures while decoding or assembling."""
    pass


class MalformedRecordError(ConversionError):
    """
    A record could not be decoded.

    Raised when, after a ':' start-of-record marker:
    - the input ends before the record is complete
    - a field contains a byte that is not a hex digit
    """
    pass


class ChecksumError(MalformedRecordError):
    """
    Record checksum mismatch.

    The length, address, type, payload and checksum bytes of a record
    must sum to zero modulo 256.
    """

    def __init__(
        self,
        expected: int,
        actual: int,
        line: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"checksum mismatch: record carries 0x{actual:02X}, "
            f"expected 0x{expected:02X}",
            line=line,
            offset=offset,
        )


class UnsupportedRecordTypeError(ConversionError):
    """A record type other than Data (00), End-Of-File (01) or 04."""

    def __init__(
        self,
        record_type: int,
        line: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.record_type = record_type
        super().__init__(
            f"unsupported record type 0x{record_type:02X}",
            line=line,
            offset=offset,
        )


class PrematureEndError(ConversionError):
    """The input ended without an End-Of-File (01) record."""
    pass


class ImageBoundsError(ConversionError):
    """
    A data record writes past the end of the memory image.

    Attributes:
        address: Start address of the offending record
        length: Payload length of the record
        capacity: Size of the memory image in bytes
    """

    def __init__(
        self,
        address: int,
        length: int,
        capacity: int,
        line: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.address = address
        self.length = length
        self.capacity = capacity
        super().__init__(
            f"data record at 0x{address:04X} with {length} bytes "
            f"exceeds image size 0x{capacity:04X}",
            line=line,
            offset=offset,
        )
