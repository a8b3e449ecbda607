"""
Memory Image Assembler
======================

This module folds decoded Intel-HEX records into a flat memory image and
writes that image to disk.

Assembly Rules
--------------
The image starts as `flash_size` bytes of the fill value (0xFF, i.e.
unprogrammed flash). Records are applied in file order:

- Data (00): payload byte i is written to image[address + i]. Later
  records overwrite earlier ones where ranges overlap.
- End Of File (01): assembly stops successfully.
- Extended Linear Address (04): accepted and ignored. The payload is
  discarded and no address translation is performed, so data records
  that follow still load at their 16-bit address.
- Anything else: UnsupportedRecordTypeError.

Input that ends before an End Of File record raises PrematureEndError.
A data record reaching past the image raises ImageBoundsError before any
of its bytes are written.

Usage Examples
--------------
Convert a file:
    >>> from hexflash import convert_file
    >>> stats = convert_file("firmware.hex", "firmware.bin")
    >>> print(f"{stats.bytes_written} bytes programmed")

Assemble in memory:
    >>> from hexflash import assemble_image
    >>> image = assemble_image("firmware.hex")
    >>> len(image)
    8192
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

from hexflash.config import ImageConfig
from hexflash.errors import (
    ImageBoundsError,
    PrematureEndError,
    SinkUnavailableError,
    UnsupportedRecordTypeError,
)
from hexflash.reader import ByteCursor
from hexflash.records import Record, RecordDecoder, RecordType

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", BinaryIO]


@dataclass
class AssemblyStats:
    """
    Counters collected while assembling an image.

    Attributes:
        records: Total records decoded, End Of File included
        data_records: Data records applied to the image
        bytes_written: Payload bytes copied into the image
        ignored_records: Type 04 records skipped
        highest_address: Highest image offset written, or None if none
    """
    records: int = 0
    data_records: int = 0
    bytes_written: int = 0
    ignored_records: int = 0
    highest_address: Optional[int] = None


class ImageAssembler:
    """
    Builds one memory image from a record stream.

    Attributes:
        config: Image size and fill value
        stats: Counters for the last call to assemble()

    Example:
        >>> with ByteCursor.open("firmware.hex") as cursor:
        ...     image = ImageAssembler().assemble(cursor)
    """

    def __init__(self, config: Optional[ImageConfig] = None):
        self.config = config if config is not None else ImageConfig()
        self.config.validate()
        self.stats = AssemblyStats()

    def _apply_data(self, image: bytearray, record: Record) -> None:
        """Copy a data record's payload into the image."""
        if not record.data:
            return
        if record.end_address > len(image):
            raise ImageBoundsError(
                record.address, len(record.data), len(image), line=record.line
            )
        image[record.address:record.end_address] = record.data

        self.stats.data_records += 1
        self.stats.bytes_written += len(record.data)
        last = record.end_address - 1
        if self.stats.highest_address is None or last > self.stats.highest_address:
            self.stats.highest_address = last

    def assemble(self, cursor: ByteCursor) -> bytes:
        """
        Decode every record from the cursor and build the image.

        Returns:
            The completed image, exactly config.flash_size bytes

        Raises:
            MalformedRecordError: A record is truncated, holds non-hex
                characters, or fails its checksum
            UnsupportedRecordTypeError: A record type other than 00/01/04
            PrematureEndError: The input ends before an End Of File record
            ImageBoundsError: A data record extends past the image
        """
        self.stats = AssemblyStats()
        image = bytearray([self.config.fill]) * self.config.flash_size
        decoder = RecordDecoder(cursor)

        while True:
            record = decoder.next_record()
            if record is None:
                raise PrematureEndError(
                    "input ended without an End Of File record",
                    line=cursor.line,
                    offset=cursor.offset,
                )
            self.stats.records += 1

            if record.record_type == RecordType.DATA:
                self._apply_data(image, record)
            elif record.record_type == RecordType.END_OF_FILE:
                logger.debug(f"End Of File at line {record.line}")
                break
            elif record.record_type == RecordType.EXTENDED_LINEAR_ADDRESS:
                self.stats.ignored_records += 1
                logger.debug(
                    f"Line {record.line}: ignoring extended address record "
                    f"{record.data.hex().upper()}"
                )
            else:
                raise UnsupportedRecordTypeError(record.record_type, line=record.line)

        logger.debug(
            f"Assembled {self.stats.data_records} data records, "
            f"{self.stats.bytes_written} bytes"
        )
        return bytes(image)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble_image(source: Source, config: Optional[ImageConfig] = None) -> bytes:
    """
    Assemble an image from an Intel-HEX path or binary handle.

    Raises:
        SourceUnavailableError: If the source path cannot be opened
        ConversionError: On any decode or assembly failure
    """
    config = config if config is not None else ImageConfig()
    with ByteCursor.open(source, block_size=config.block_size) as cursor:
        return ImageAssembler(config).assemble(cursor)


def write_image(image: bytes, path: Union[str, Path]) -> None:
    """
    Write all bytes of an image to a file.

    Raises:
        SinkUnavailableError: If the file cannot be created or written
    """
    path = Path(path)
    try:
        path.write_bytes(image)
    except OSError as e:
        raise SinkUnavailableError(str(path), e.strerror) from e
    logger.debug(f"Wrote {len(image)} bytes to {path}")


def convert_file(
    input_path: Source,
    output_path: Union[str, Path],
    config: Optional[ImageConfig] = None,
) -> AssemblyStats:
    """
    Convert an Intel-HEX file to a flat binary file.

    The output is only created once the whole image has been assembled,
    so a failed conversion leaves no output file behind.

    Returns:
        Counters describing the conversion

    Raises:
        SourceUnavailableError: If the input cannot be opened
        ConversionError: On any decode or assembly failure
        SinkUnavailableError: If the output cannot be written
    """
    config = config if config is not None else ImageConfig()
    assembler = ImageAssembler(config)
    with ByteCursor.open(input_path, block_size=config.block_size) as cursor:
        image = assembler.assemble(cursor)
    write_image(image, output_path)
    return assembler.stats
