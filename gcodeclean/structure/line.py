"""
Line: one logical G-code block with its derived modal context.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal

from .coord import Coord
from .token import Token

AXIS_LETTERS = ("X", "Y", "Z", "A", "B", "C", "U", "V", "W")


@dataclass(frozen=True)
class Line:
    """
    Ordered tokens of one block plus the context the augmenter resolves.

    ``motion`` is only set on lines that actually move; ``origin`` and
    ``coord`` are the positions before and after the line. Both may be
    partially set, check ``Coord.set`` before using an axis.
    """

    tokens: tuple[Token, ...] = ()
    comment: str | None = None
    number: int | None = None

    motion: str | None = None
    plane: str = "G17"
    absolute: bool = True
    feed: Decimal | None = None
    origin: Coord = field(default_factory=Coord)
    coord: Coord = field(default_factory=Coord)
    augmented: bool = False
    issues: tuple[str, ...] = ()
    # Vertices dedup_linear removed between origin and coord
    skipped: tuple[Coord, ...] = ()

    @property
    def is_valid(self) -> bool:
        return all(token.is_valid for token in self.tokens)

    @property
    def is_comment(self) -> bool:
        return not self.tokens and self.comment is not None

    @property
    def is_noop(self) -> bool:
        return not self.tokens and self.comment is None

    @property
    def is_motion(self) -> bool:
        return self.motion is not None

    @property
    def letters(self) -> set[str]:
        return {token.code for token in self.tokens if token.number is not None}

    @property
    def commands(self) -> list[Token]:
        return [token for token in self.tokens if token.is_command]

    def has_code(self, code: str) -> bool:
        """Whether the line carries the command word ``code`` (e.g. 'G1', 'M6')"""
        return any(str(token) == code for token in self.tokens if token.is_command)

    def get(self, letter: str) -> Token | None:
        for token in self.tokens:
            if token.code == letter and token.number is not None:
                return token
        return None

    def with_tokens(self, tokens, **changes) -> "Line":
        return replace(self, tokens=tuple(tokens), **changes)

    def flag(self, issue: str) -> "Line":
        """Copy of the line with ``issue`` recorded"""
        return replace(self, issues=self.issues + (issue,))

    def __str__(self):
        text = " ".join(str(token) for token in self.tokens)
        if self.comment is not None:
            comment = f";{self.comment}" if ("(" in self.comment or ")" in self.comment) else f"({self.comment})"
            text = f"{text} {comment}" if text else comment
        return text
