"""
gcodeclean

Streams G-code programs through a fixed sequence of cleaning passes that
shorten them without changing the toolpath.

Key components:
- clean_lines: the complete pipeline, raw text in, cleaned text out
- PipelineOptions: tolerances, pass count and clip envelope of one run
- Coord, Token, Line: the value types every pass works on
"""

from ._version import __version__
from .processing.pipeline import PipelineOptions, clean_lines
from .structure import Coord, CoordSet, Line, Token

__all__ = [
    "__version__",
    "clean_lines",
    "PipelineOptions",
    "Coord",
    "CoordSet",
    "Line",
    "Token",
]
