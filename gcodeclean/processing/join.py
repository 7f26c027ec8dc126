"""
Joiner: Lines back to canonical text
"""

import logging
from collections.abc import Iterable, Iterator

from gcodeclean.config import TRACE
from gcodeclean.structure.line import Line

logger = logging.getLogger(__name__)


def join_line(line: Line) -> str:
    """
    Canonical text of one line

    Words are separated by single spaces, each letter directly followed by
    its normalised number; unparsed fragments are written verbatim and the
    comment goes last.
    """
    return str(line)


def join_tokens(lines: Iterable[Line]) -> Iterator[str]:
    """One output text line per Line, in order"""
    for line in lines:
        text = join_line(line)
        logger.log(TRACE, f"joined {line.number}: {text}")
        yield text
