"""
GCODE modal state for gcodeclean

Tracks the modal context a block inherits from the blocks before it:
- Motion mode (G0/G1/G2/G3, probing and canned cycles)
- Positioning mode (G90/G91)
- Active plane (G17/G18/G19)
- Feed rate
- Current position, with unknown axes left unset

The state is an immutable value. ``apply`` returns the state after a line
instead of mutating, so the augmenter can thread it as a fold accumulator.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal

from gcodeclean.structure.coord import AXES, Coord, CoordSet, merge
from gcodeclean.structure.line import Line

from .codes import CANNED_CODES, MODAL_GROUPS, POSITION_RESET_CODES


@dataclass(frozen=True)
class ModalState:
    """Modal GCODE state between two blocks"""

    motion: str | None = None
    plane: str = "G17"
    absolute: bool = True
    feed: Decimal | None = None
    position: Coord = field(default_factory=Coord)

    def target_position(self, explicit: Coord) -> Coord:
        """
        Position reached by moving to the explicit axes of a block

        Absolute mode overwrites the given axes. Incremental mode adds to
        known axes; an increment on an unknown axis stays unknown.
        """
        if self.absolute:
            return merge(self.position, explicit, overwrite=True)

        values = {}
        mask = self.position.set
        for letter, bit in AXES:
            if not explicit.set & bit:
                continue
            if self.position.set & bit:
                values[letter] = self.position.get(letter) + explicit.get(letter)
            else:
                mask &= CoordSet.ALL ^ bit
        return self.position.with_axes(values, mask)

    def apply(self, line: Line) -> "ModalState":
        """
        State after executing ``line``

        Args:
            line: Tokenized block

        Returns:
            New ModalState; ``self`` is left untouched
        """
        if not line.is_valid:
            # The effect of unparsed text cannot be known
            return replace(self, position=Coord())

        motion = self.motion
        plane = self.plane
        absolute = self.absolute
        feed = self.feed
        codes = [str(token) for token in line.commands]

        for code in codes:
            if code in MODAL_GROUPS["motion"]:
                motion = None if code == "G80" else code
            elif code in MODAL_GROUPS["plane"]:
                plane = code
            elif code == "G90":
                absolute = True
            elif code == "G91":
                absolute = False

        token = line.get("F")
        if token is not None:
            feed = token.number

        updated = ModalState(motion, plane, absolute, feed, self.position)
        explicit = Coord.from_axes(
            {letter: line.get(letter).number for letter, _ in AXES if line.get(letter) is not None}
        )

        if any(code in POSITION_RESET_CODES for code in codes):
            return replace(updated, position=Coord())
        if "G92" in codes:
            return replace(updated, position=merge(self.position, explicit, overwrite=True))
        if "G10" in codes:
            return updated
        if explicit.set == CoordSet.NONE:
            return updated

        position = updated.target_position(explicit)
        if motion in CANNED_CODES:
            # Canned cycles finish at the retract plane, not at the stated Z
            position = position.with_axes({}, position.set & (CoordSet.ALL ^ CoordSet.Z))
        return replace(updated, position=position)
