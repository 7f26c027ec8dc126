"""
Data model for gcodeclean

- coord.py: Coord value type and CoordSet axis mask
- token.py: letter/number tokens
- line.py: tokenized blocks with derived modal context
"""

from .coord import Coord, CoordSet
from .line import Line
from .token import Token

__all__ = [
    "Coord",
    "CoordSet",
    "Line",
    "Token",
]
