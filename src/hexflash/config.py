"""
Conversion Configuration
========================

Default sizes and the ImageConfig dataclass shared by the reader, the
assembler and the command-line tool.

Defaults
--------
- FLASH_SIZE: 8 KiB target flash, the size of every output image
- FILL_BYTE: 0xFF, the value of unprogrammed flash
- BLOCK_SIZE: 256-byte lookahead block used by ByteCursor
"""

from dataclasses import dataclass
from typing import Final

# Size of the output image in bytes
FLASH_SIZE: Final[int] = 8 * 1024

# Value of every byte not written by a data record
FILL_BYTE: Final[int] = 0xFF

# Lookahead block capacity for chunked source reads
BLOCK_SIZE: Final[int] = 256

# Start-of-record marker
RECORD_MARK: Final[int] = ord(":")


@dataclass
class ImageConfig:
    """
    Parameters of a single conversion.

    Attributes:
        flash_size: Capacity of the memory image in bytes
        fill: Sentinel value for unprogrammed bytes (0-255)
        block_size: Lookahead block size of the input cursor
    """
    flash_size: int = FLASH_SIZE
    fill: int = FILL_BYTE
    block_size: int = BLOCK_SIZE

    def validate(self) -> None:
        """
        Check that every field is in range.

        Raises:
            ValueError: If a size is not positive or fill is not a byte
        """
        if self.flash_size <= 0:
            raise ValueError(f"Image size must be positive, got {self.flash_size}")
        if not 0 <= self.fill <= 0xFF:
            raise ValueError(f"Fill value must be 0-255, got {self.fill}")
        if self.block_size <= 0:
            raise ValueError(f"Block size must be positive, got {self.block_size}")
