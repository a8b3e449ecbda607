"""
HexFlash Command-Line Interface
===============================

This package provides the command-line tool for hexflash:

- **hex2bin**: Intel-HEX to flat binary converter

The tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["hex2bin"]
