"""
Shared test fixtures for hexflash.

Provides sample Intel-HEX text and a helper for building well-formed
records with correct checksums.
"""

from pathlib import Path
from typing import Callable

import pytest

from hexflash.records import record_checksum


EOF_RECORD = ":00000001FF"


def _make_record(address: int, record_type: int, data: bytes = b"") -> str:
    checksum = record_checksum(len(data), address, record_type, data)
    return f":{len(data):02X}{address:04X}{record_type:02X}{data.hex().upper()}{checksum:02X}"


@pytest.fixture
def make_record() -> Callable[..., str]:
    """Factory building one Intel-HEX record line with a valid checksum."""
    return _make_record


@pytest.fixture
def sample_hex() -> str:
    """
    A small well-formed file.

    - 4 bytes DE AD BE EF at $0000
    - 2 bytes 01 02 at $0010
    - End Of File
    """
    return "\r\n".join([
        _make_record(0x0000, 0x00, bytes([0xDE, 0xAD, 0xBE, 0xEF])),
        ":020010000102EB",
        EOF_RECORD,
    ]) + "\r\n"


@pytest.fixture
def sample_hex_file(tmp_path: Path, sample_hex: str) -> Path:
    """Write sample_hex to a file and return its path."""
    path = tmp_path / "sample.hex"
    path.write_text(sample_hex)
    return path
