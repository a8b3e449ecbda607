"""
Buffered Byte Reader
====================

This module provides the lowest layer of the Intel-HEX decoder: a forward
only byte cursor over a binary source, plus the hex digit helpers that
turn pairs of ASCII characters into byte values.

ByteCursor
----------
The cursor pulls bytes from its source one at a time through a fixed
lookahead block. The block is refilled from the source exactly when the
read index reaches the number of valid bytes in it. A refill returning
zero bytes marks the stream as exhausted for good; later calls never
touch the source again.

Hex Decoding
------------
- digit_value(): one ASCII hex digit to 0-15, case-insensitive
- decode_byte(): two digits to one byte, high nibble first
- next_hex_byte(): two raw bytes from a cursor, decoded

next_hex_byte() does not distinguish end-of-stream from a non-hex
character; both yield None. Callers that need to word an error message
differently can check ByteCursor.exhausted afterwards.

Usage
-----
    from hexflash.reader import ByteCursor, next_hex_byte

    with ByteCursor.open("firmware.hex") as cursor:
        while (c := cursor.next_raw_byte()) != ord(":"):
            ...
        length = next_hex_byte(cursor)
"""

import logging
import os
from typing import BinaryIO, Optional, Union

from hexflash.config import BLOCK_SIZE
from hexflash.errors import SourceUnavailableError

logger = logging.getLogger(__name__)

_NEWLINE = ord("\n")

# ASCII ranges of valid hex digits
_ZERO, _NINE = ord("0"), ord("9")
_UPPER_A, _UPPER_F = ord("A"), ord("F")
_LOWER_A, _LOWER_F = ord("a"), ord("f")


# =============================================================================
# Hex Digit Decoding
# =============================================================================

def digit_value(c: Union[int, str, bytes]) -> Optional[int]:
    """
    Convert one ASCII hex digit to its value.

    Args:
        c: The digit as a byte value or a one-character str/bytes

    Returns:
        0-15 for '0'-'9', 'A'-'F' and 'a'-'f', None for anything else

    Example:
        >>> digit_value("b")
        11
        >>> digit_value(ord("G")) is None
        True
    """
    if not isinstance(c, int):
        if len(c) != 1:
            return None
        c = ord(c)

    if _ZERO <= c <= _NINE:
        return c - _ZERO
    if _UPPER_A <= c <= _UPPER_F:
        return c - _UPPER_A + 10
    if _LOWER_A <= c <= _LOWER_F:
        return c - _LOWER_A + 10
    return None


def decode_byte(c1: Union[int, str, bytes], c2: Union[int, str, bytes]) -> Optional[int]:
    """
    Combine two hex digits into a byte, high nibble first.

    Returns:
        The byte value, or None if either digit is invalid

    Example:
        >>> hex(decode_byte("a", "7"))
        '0xa7'
    """
    high = digit_value(c1)
    if high is None:
        return None
    low = digit_value(c2)
    if low is None:
        return None
    return (high << 4) + low


# =============================================================================
# Byte Cursor
# =============================================================================

class ByteCursor:
    """
    Forward-only byte reader backed by a fixed lookahead block.

    Attributes:
        block_size: Capacity of the lookahead block

    The cursor owns its source handle. Use ByteCursor.open() to create one,
    ideally as a context manager so the handle is released:

        with ByteCursor.open("firmware.hex") as cursor:
            byte = cursor.next_raw_byte()
    """

    def __init__(self, handle: BinaryIO, block_size: int = BLOCK_SIZE, owns_handle: bool = True):
        if block_size <= 0:
            raise ValueError(f"Block size must be positive, got {block_size}")
        self.block_size = block_size
        self._handle = handle
        self._owns_handle = owns_handle
        self._block = bytearray(block_size)
        self._size = 0
        self._index = 0
        self._exhausted = False
        self._offset = 0
        self._line = 1
        self._fill()

    @classmethod
    def open(
        cls,
        source: Union[str, "os.PathLike[str]", BinaryIO],
        block_size: int = BLOCK_SIZE,
    ) -> "ByteCursor":
        """
        Open a cursor on a file path or an already-open binary handle.

        A handle passed in is read but not closed by the cursor.

        Raises:
            SourceUnavailableError: If the path cannot be opened or its
                first block cannot be read
        """
        if hasattr(source, "read"):
            return cls(source, block_size=block_size, owns_handle=False)

        path = os.fspath(source)
        try:
            handle = open(path, "rb")
        except OSError as e:
            raise SourceUnavailableError(path, e.strerror) from e

        logger.debug(f"Opened {path} for reading")
        try:
            return cls(handle, block_size=block_size, owns_handle=True)
        except OSError as e:
            handle.close()
            raise SourceUnavailableError(path, e.strerror) from e

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def exhausted(self) -> bool:
        """True once a refill has returned zero bytes."""
        return self._exhausted

    @property
    def offset(self) -> int:
        """Number of bytes consumed so far."""
        return self._offset

    @property
    def line(self) -> int:
        """1-indexed line of the next byte to be read."""
        return self._line

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def _fill(self) -> None:
        """Refill the block from the source, marking exhaustion on a zero read."""
        count = self._handle.readinto(self._block) or 0
        self._size = count
        self._index = 0
        if count == 0:
            self._exhausted = True
            logger.debug(f"Source exhausted after {self._offset} bytes")

    def next_raw_byte(self) -> Optional[int]:
        """
        Return the next byte of the source, or None at end of stream.

        End of stream is permanent: once reached, the source is not read
        again.
        """
        if self._index == self._size:
            if self._exhausted:
                return None
            self._fill()
            if self._exhausted:
                return None

        b = self._block[self._index]
        self._index += 1
        self._offset += 1
        if b == _NEWLINE:
            self._line += 1
        return b

    def close(self) -> None:
        """Release the source handle if the cursor opened it."""
        if self._owns_handle and not self._handle.closed:
            self._handle.close()

    def __enter__(self) -> "ByteCursor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def next_hex_byte(cursor: ByteCursor) -> Optional[int]:
    """
    Read two characters from the cursor and decode them as one byte.

    The second character is not read when the first is not a hex digit.

    Returns:
        The byte value, or None if the stream ended or a character was
        not a hex digit
    """
    c1 = cursor.next_raw_byte()
    if c1 is None or digit_value(c1) is None:
        return None
    c2 = cursor.next_raw_byte()
    if c2 is None:
        return None
    return decode_byte(c1, c2)
