"""
Image Assembler Unit Tests
==========================

This module tests folding decoded records into a memory image and writing
the image to disk.

Test Categories
---------------
1. Assembly: data placement, fill, overlap, record type dispatch
2. Failures: unsupported types, missing End Of File, bounds
3. Files: convert_file(), write_image(), idempotence
4. Configuration: ImageConfig validation
"""

import io
from pathlib import Path
from typing import Optional

import pytest

from hexflash import (
    FLASH_SIZE,
    ImageAssembler,
    ImageConfig,
    assemble_image,
    convert_file,
    write_image,
)
from hexflash.reader import ByteCursor
from hexflash.errors import (
    ChecksumError,
    ConversionError,
    ImageBoundsError,
    MalformedRecordError,
    PrematureEndError,
    SinkUnavailableError,
    SourceUnavailableError,
    UnsupportedRecordTypeError,
)

EOF = ":00000001FF"


def assemble_text(text: str, config: Optional[ImageConfig] = None) -> bytes:
    return assemble_image(io.BytesIO(text.encode("ascii")), config)


# =============================================================================
# Assembly
# =============================================================================

class TestAssembly:
    """Tests for successful assembly."""

    def test_eof_only_is_all_fill(self):
        image = assemble_text(EOF + "\n")
        assert image == b"\xff" * FLASH_SIZE

    def test_data_record_placement(self, make_record):
        data = bytes([0x11, 0x22, 0x33])
        image = assemble_text(f"{make_record(0x0100, 0x00, data)}\n{EOF}\n")

        assert image[0x0100:0x0103] == data
        assert image[:0x0100] == b"\xff" * 0x0100
        assert image[0x0103:] == b"\xff" * (FLASH_SIZE - 0x0103)

    def test_sample_file(self, sample_hex: str):
        image = assemble_text(sample_hex)
        assert len(image) == FLASH_SIZE
        assert image[0:4] == bytes([0xDE, 0xAD, 0xBE, 0xEF])
        assert image[4:0x10] == b"\xff" * 12
        assert image[0x10:0x12] == bytes([0x01, 0x02])

    def test_disjoint_records(self, make_record):
        text = "\n".join([
            make_record(0x0000, 0x00, b"\x01\x02"),
            make_record(0x0002, 0x00, b"\x03\x04"),
            EOF,
        ])
        image = assemble_text(text)
        assert image[0:4] == b"\x01\x02\x03\x04"

    def test_overlap_later_write_wins(self, make_record):
        text = "\n".join([
            make_record(0x0010, 0x00, b"\xaa\xaa\xaa\xaa"),
            make_record(0x0012, 0x00, b"\xbb\xbb\xbb\xbb"),
            EOF,
        ])
        image = assemble_text(text)
        assert image[0x10:0x16] == b"\xaa\xaa\xbb\xbb\xbb\xbb"

    def test_extended_address_record_is_ignored(self, make_record):
        """Type 04 payload is discarded; following data keeps its address."""
        text = "\n".join([
            make_record(0x0000, 0x04, b"\x08\x00"),
            make_record(0x0020, 0x00, b"\x5a"),
            EOF,
        ])
        image = assemble_text(text)
        assert image[0x20] == 0x5A
        assert image.count(0xFF) == FLASH_SIZE - 1

    def test_input_after_eof_is_not_read(self):
        """Anything following the End Of File record is ignored."""
        image = assemble_text(EOF + "\n:zz not a record\n")
        assert image == b"\xff" * FLASH_SIZE

    def test_record_filling_last_byte(self, make_record):
        record = make_record(FLASH_SIZE - 2, 0x00, b"\x01\x02")
        image = assemble_text(record + "\n" + EOF)
        assert image[-2:] == b"\x01\x02"

    def test_empty_data_record(self, make_record):
        image = assemble_text(f"{make_record(0xFFFF, 0x00)}\n{EOF}")
        assert image == b"\xff" * FLASH_SIZE

    def test_custom_size_and_fill(self, make_record):
        config = ImageConfig(flash_size=16, fill=0x00)
        record = make_record(0x0004, 0x00, b"\x7f")
        image = assemble_text(record + "\n" + EOF, config)
        assert image == bytes(4) + b"\x7f" + bytes(11)

    def test_small_block_size(self, sample_hex: str):
        """Decoding does not depend on the lookahead block size."""
        assert assemble_text(sample_hex, ImageConfig(block_size=3)) == assemble_text(sample_hex)

    def test_stats(self, make_record):
        text = "\n".join([
            make_record(0x0000, 0x04, b"\x00\x00"),
            make_record(0x0000, 0x00, b"\x01\x02\x03"),
            make_record(0x0100, 0x00, b"\x04"),
            EOF,
        ])
        assembler = ImageAssembler()
        assembler.assemble(ByteCursor.open(io.BytesIO(text.encode())))

        assert assembler.stats.records == 4
        assert assembler.stats.data_records == 2
        assert assembler.stats.bytes_written == 4
        assert assembler.stats.ignored_records == 1
        assert assembler.stats.highest_address == 0x0100


# =============================================================================
# Failures
# =============================================================================

class TestAssemblyFailures:
    """Tests for fatal assembly errors."""

    @pytest.mark.parametrize("record_type", [0x02, 0x03, 0x05, 0x10, 0xFF])
    def test_unsupported_record_type(self, make_record, record_type: int):
        text = make_record(0x0000, record_type, b"\x00\x00") + "\n" + EOF + "\n"
        with pytest.raises(UnsupportedRecordTypeError) as exc_info:
            assemble_text(text)
        assert exc_info.value.record_type == record_type
        assert exc_info.value.line == 1

    def test_missing_eof(self, make_record):
        with pytest.raises(PrematureEndError):
            assemble_text(make_record(0x0000, 0x00, b"\x01") + "\n")

    def test_empty_input(self):
        with pytest.raises(PrematureEndError):
            assemble_text("")

    def test_corrupt_record_aborts(self, make_record):
        text = make_record(0x0000, 0x00, b"\x01") + "\n:020010000103EB\n" + EOF + "\n"
        with pytest.raises(ChecksumError):
            assemble_text(text)

    def test_truncated_record_aborts(self):
        with pytest.raises(MalformedRecordError):
            assemble_text(":02001000")

    def test_out_of_bounds(self, make_record):
        text = make_record(FLASH_SIZE - 1, 0x00, b"\x01\x02") + "\n" + EOF
        with pytest.raises(ImageBoundsError) as exc_info:
            assemble_text(text)
        assert exc_info.value.capacity == FLASH_SIZE
        assert exc_info.value.address == FLASH_SIZE - 1

    def test_all_core_errors_are_conversion_errors(self):
        for error_class in (MalformedRecordError, ChecksumError, UnsupportedRecordTypeError,
                            PrematureEndError, ImageBoundsError):
            assert issubclass(error_class, ConversionError)


# =============================================================================
# Files
# =============================================================================

class TestConvertFile:
    """Tests for convert_file() and write_image()."""

    def test_writes_full_image(self, sample_hex_file: Path, tmp_path: Path):
        output = tmp_path / "out.bin"
        stats = convert_file(sample_hex_file, output)

        data = output.read_bytes()
        assert len(data) == FLASH_SIZE
        assert data[0:4] == bytes([0xDE, 0xAD, 0xBE, 0xEF])
        assert stats.bytes_written == 6

    def test_idempotent(self, sample_hex_file: Path, tmp_path: Path):
        first = tmp_path / "first.bin"
        second = tmp_path / "second.bin"
        convert_file(sample_hex_file, first)
        convert_file(sample_hex_file, second)
        assert first.read_bytes() == second.read_bytes()

    def test_missing_input(self, tmp_path: Path):
        output = tmp_path / "out.bin"
        with pytest.raises(SourceUnavailableError):
            convert_file(tmp_path / "missing.hex", output)
        assert not output.exists()

    def test_no_output_on_failure(self, tmp_path: Path):
        source = tmp_path / "bad.hex"
        source.write_text(":020010000103EB\n:00000001FF\n")
        output = tmp_path / "out.bin"
        with pytest.raises(ChecksumError):
            convert_file(source, output)
        assert not output.exists()

    def test_unwritable_output(self, sample_hex_file: Path, tmp_path: Path):
        with pytest.raises(SinkUnavailableError):
            convert_file(sample_hex_file, tmp_path / "no_such_dir" / "out.bin")

    def test_write_image(self, tmp_path: Path):
        path = tmp_path / "image.bin"
        write_image(b"\x01\x02\x03", path)
        assert path.read_bytes() == b"\x01\x02\x03"


# =============================================================================
# Configuration
# =============================================================================

class TestImageConfig:
    """Tests for ImageConfig."""

    def test_defaults(self):
        config = ImageConfig()
        assert config.flash_size == 8192
        assert config.fill == 0xFF
        assert config.block_size == 256

    @pytest.mark.parametrize("kwargs", [
        {"flash_size": 0},
        {"fill": 0x100},
        {"fill": -1},
        {"block_size": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ImageConfig(**kwargs).validate()

    def test_assembler_validates_config(self):
        with pytest.raises(ValueError):
            ImageAssembler(ImageConfig(flash_size=-1))
