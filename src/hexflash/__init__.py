"""
HexFlash - Intel-HEX to Flat Binary Converter
=============================================

This package decodes Intel-HEX text files into a fixed-size flat memory
image, ready for flashing or further binary processing.

Main Components
---------------
- **reader**: buffered byte cursor and hex digit decoding
- **records**: Intel-HEX record decoder with checksum validation
- **image**: memory image assembler and file conversion
- **cli**: the hex2bin command-line tool

Quick Start
-----------
Convert a file:
    >>> from hexflash import convert_file
    >>> convert_file("firmware.hex", "firmware.bin")

Build an image in memory with a different size and fill:
    >>> from hexflash import assemble_image, ImageConfig
    >>> image = assemble_image("firmware.hex", ImageConfig(flash_size=0x4000, fill=0x00))

Or use the command-line tool:
    $ hex2bin firmware.hex firmware.bin
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from hexflash.config import (
    FLASH_SIZE,
    FILL_BYTE,
    BLOCK_SIZE,
    ImageConfig,
)
from hexflash.errors import (
    HexFlashError,
    SourceUnavailableError,
    SinkUnavailableError,
    ConversionError,
    MalformedRecordError,
    ChecksumError,
    UnsupportedRecordTypeError,
    PrematureEndError,
    ImageBoundsError,
)
from hexflash.reader import (
    ByteCursor,
    digit_value,
    decode_byte,
    next_hex_byte,
)
from hexflash.records import (
    RecordType,
    Record,
    RecordDecoder,
    iter_records,
    record_checksum,
)
from hexflash.image import (
    AssemblyStats,
    ImageAssembler,
    assemble_image,
    write_image,
    convert_file,
)

__all__ = [
    "__version__",
    # Configuration
    "FLASH_SIZE",
    "FILL_BYTE",
    "BLOCK_SIZE",
    "ImageConfig",
    # Errors
    "HexFlashError",
    "SourceUnavailableError",
    "SinkUnavailableError",
    "ConversionError",
    "MalformedRecordError",
    "ChecksumError",
    "UnsupportedRecordTypeError",
    "PrematureEndError",
    "ImageBoundsError",
    # Reader
    "ByteCursor",
    "digit_value",
    "decode_byte",
    "next_hex_byte",
    # Records
    "RecordType",
    "Record",
    "RecordDecoder",
    "iter_records",
    "record_checksum",
    # Image
    "AssemblyStats",
    "ImageAssembler",
    "assemble_image",
    "write_image",
    "convert_file",
]
