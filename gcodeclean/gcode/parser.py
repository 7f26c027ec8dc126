"""
GCODE tokenizer for gcodeclean

Splits raw text lines into Line objects of Tokens. Comments are separated
from the command words; whitespace is insignificant. A fragment that is not
a letter/number word turns the rest of the block into one opaque token and
the line is flagged, never dropped.
"""

import logging
import re
from collections.abc import Iterable, Iterator

from gcodeclean.config import TRACE
from gcodeclean.structure.line import Line
from gcodeclean.structure.token import SPECIAL_CODES, Token
from gcodeclean.utils.errors import TokenError

logger = logging.getLogger(__name__)


class GcodeTokenizer:
    """Tokenizes G-code lines and records the malformed ones"""

    # Regex patterns for parsing
    COMMENT_PATTERN = re.compile(r"\((.*?)\)|;(.*)$")
    WHITESPACE_PATTERN = re.compile(r"\s+")
    WORD_PATTERN = re.compile(r"[A-Za-z][+-]?(?:\d+\.?\d*|\.\d+)")

    def __init__(self):
        self.line_count = 0
        self.errors: list[str] = []

    def parse_line(self, line: str, number: int | None = None) -> Line | None:
        """
        Parse a single line of GCODE

        Args:
            line: Raw GCODE line
            number: 1-based position in the file (defaults to the running count)

        Returns:
            Line, or None for blank input
        """
        self.line_count += 1
        if number is None:
            number = self.line_count

        raw_line = line.rstrip("\r\n")
        if not raw_line.strip():
            return None

        # Extract and remove comments
        comments = []
        for match in self.COMMENT_PATTERN.finditer(raw_line):
            text = match.group(1) if match.group(1) is not None else match.group(2)
            text = text.strip()
            if text:
                comments.append(text)
        code_text = self.COMMENT_PATTERN.sub(" ", raw_line)
        code_text = self.WHITESPACE_PATTERN.sub("", code_text)
        comment = " ".join(comments) if comments else None
        if comment is None and not code_text and self.COMMENT_PATTERN.search(raw_line):
            # Empty comment such as "()" or ";" - keep the line as a comment
            comment = ""

        tokens, malformed = self._scan(code_text)
        result = Line(tokens=tuple(tokens), comment=comment, number=number)
        if malformed is not None:
            message = f"Line {number}: unparsed text {malformed!r} kept verbatim"
            self.errors.append(message)
            logger.warning(message)
            result = result.flag(message)
        elif result.is_noop:
            return None
        return result

    def _scan(self, code_text: str) -> tuple[list[Token], str | None]:
        tokens: list[Token] = []
        pos = 0
        while pos < len(code_text):
            char = code_text[pos]
            if char in SPECIAL_CODES and (char == "%" or pos == 0):
                tokens.append(Token.parse(char))
                pos += 1
                continue
            match = self.WORD_PATTERN.match(code_text, pos)
            if match is None:
                break
            try:
                tokens.append(Token.parse(match.group(0)))
            except TokenError:
                break
            pos = match.end()

        if pos < len(code_text):
            remainder = code_text[pos:]
            tokens.append(Token.opaque(remainder))
            return tokens, remainder
        return tokens, None

    def parse_program(self, program: str | Iterable[str]) -> Iterator[Line]:
        """
        Lazily parse a complete GCODE program

        Args:
            program: Either a string with newlines or an iterable of lines

        Yields:
            One Line per non-blank input line, in input order
        """
        if isinstance(program, str):
            program = program.splitlines()

        self.errors = []
        self.line_count = 0

        for raw in program:
            line = self.parse_line(raw)
            if line is not None:
                logger.log(TRACE, f"tokenized {line.number}: {line}")
                yield line

    def get_errors(self) -> list[str]:
        """Get list of tokenizing errors"""
        return self.errors


def tokenize(lines: str | Iterable[str]) -> Iterator[Line]:
    """Tokenize raw text lines into Lines"""
    return GcodeTokenizer().parse_program(lines)
