"""
S-Record Output
===============

This package turns decoded X-records into output formats:

- **SRecEncoder**: Re-frames record bytes into fixed-width Motorola S1
  lines with an S9 termination line
- **MemoryImage**: Lays data records out at their load addresses as a raw
  binary image
- **TeeSink**: Feeds one parser into several consumers at once
"""

from xrec_tools.srec.encoder import (
    DEFAULT_LINE_WIDTH,
    MAX_LINE_WIDTH,
    TERMINATION_LINE,
    SRecEncoder,
    format_s1_line,
    validate_line_width,
)
from xrec_tools.srec.image import (
    MemoryImage,
    TeeSink,
)

__all__ = [
    "DEFAULT_LINE_WIDTH",
    "MAX_LINE_WIDTH",
    "TERMINATION_LINE",
    "SRecEncoder",
    "format_s1_line",
    "validate_line_width",
    "MemoryImage",
    "TeeSink",
]
