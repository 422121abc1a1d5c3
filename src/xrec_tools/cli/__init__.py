"""
xrec-tools Command-Line Interface
=================================

This package provides the command-line tool for xrec-tools:

- **xrec2srec**: Convert an X-record tape load file to Motorola S-records

The tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["xrec2srec"]
