"""
G-code token: one letter code and its decimal value.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from gcodeclean.utils.errors import TokenError

# Word patterns: X100, X-100, X100.5, X.5, X-.5, G01
WORD_PATTERN = re.compile(r"^([A-Za-z])([+-]?(?:\d+\.?\d*|\.\d+))$")

# Single-character tokens that carry no number
SPECIAL_CODES = ("%", "/")

COMMAND_CODES = ("G", "M")


def format_number(number: Decimal) -> str:
    """
    Canonical text for a decimal: no exponent, no trailing zeros, no '-0'.
    """
    if number == 0:
        return "0"
    text = format(number.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass(frozen=True, eq=False)
class Token:
    """A single letter-code/value pair (G1, X12.5, F300) or an opaque fragment"""

    code: str
    number: Decimal | None = None
    source: str = ""

    @classmethod
    def parse(cls, text: str) -> "Token":
        """
        Parse a word such as ``G01`` or ``x-.5``

        Raises:
            TokenError: if the text is not a letter followed by a number
        """
        text = text.strip()
        if text in SPECIAL_CODES:
            return cls(text, None, text)
        match = WORD_PATTERN.match(text)
        if not match:
            raise TokenError(f"Not a G-code word: {text!r}")
        try:
            number = Decimal(match.group(2))
        except InvalidOperation as e:
            raise TokenError(f"Invalid number in {text!r}") from e
        return cls(match.group(1).upper(), number, text)

    @classmethod
    def of(cls, code: str, number) -> "Token":
        number = Decimal(number)
        return cls(code.upper(), number, f"{code.upper()}{format_number(number)}")

    @classmethod
    def opaque(cls, text: str) -> "Token":
        """Unparseable fragment, carried through verbatim"""
        return cls("", None, text)

    @property
    def is_valid(self) -> bool:
        return self.number is not None or self.code in SPECIAL_CODES

    @property
    def is_command(self) -> bool:
        return self.code in COMMAND_CODES and self.number is not None

    @property
    def is_argument(self) -> bool:
        return self.number is not None and self.code not in COMMAND_CODES

    @property
    def is_special(self) -> bool:
        return self.code in SPECIAL_CODES

    @property
    def is_line_number(self) -> bool:
        return self.code == "N" and self.number is not None

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        if self.is_valid and other.is_valid:
            return self.code == other.code and self.number == other.number
        if not self.is_valid and not other.is_valid:
            return self.source == other.source
        return False

    def __hash__(self):
        if self.is_valid:
            return hash((self.code, self.number))
        return hash(("", self.source))

    def __str__(self):
        if self.number is None:
            return self.code if self.is_special else self.source
        return f"{self.code}{format_number(self.number)}"

    def __repr__(self):
        return f"Token({str(self)!r})"
