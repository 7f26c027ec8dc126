"""
Modal augmentation

Walks the line stream with a ModalState accumulator and resolves every line
against it: motion lines get their modal motion command and, in absolute
mode, every known axis written out. The derived fields set here (motion,
plane, distance mode, feed, origin, coord) are what all later passes reason
about.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace

from gcodeclean.config import TRACE
from gcodeclean.gcode.codes import ARC_CODES, MODAL_GROUPS, MOTION_CODES
from gcodeclean.gcode.state import ModalState
from gcodeclean.structure.coord import AXES
from gcodeclean.structure.line import AXIS_LETTERS, Line
from gcodeclean.structure.token import Token

logger = logging.getLogger(__name__)

# Commands that take axis words without producing a modal motion
_NON_MOTION_AXIS_CODES = {"G10", "G28", "G30", "G53", "G92"}


def _moves(line: Line, mode: str | None) -> bool:
    if mode not in MOTION_CODES:
        return False
    codes = {str(token) for token in line.commands}
    if codes & _NON_MOTION_AXIS_CODES:
        return False
    letters = line.letters
    if letters & set(AXIS_LETTERS):
        return True
    return mode in ARC_CODES and bool(letters & {"I", "J", "K", "R"})


def _expand(line: Line, mode: str, state: ModalState) -> list[Token]:
    tokens = list(line.tokens)

    if not any(str(token) in MODAL_GROUPS["motion"] for token in line.commands):
        # Keep a leading line number first
        index = 1 if tokens and tokens[0].is_line_number else 0
        tokens.insert(index, Token.of(mode[0], mode[1:]))

    if not state.absolute:
        return tokens

    present = line.letters
    missing = [
        Token.of(letter, state.position.get(letter))
        for letter, bit in AXES
        if state.position.set & bit and letter not in present
    ]
    if not missing:
        return tokens

    # Missing axes go right after the last axis word, or after the motion command
    anchor = max(
        (i for i, token in enumerate(tokens) if token.code in AXIS_LETTERS and token.number is not None),
        default=None,
    )
    if anchor is None:
        anchor = max(i for i, token in enumerate(tokens) if str(token) in MOTION_CODES)
    merged = tokens[: anchor + 1]
    for token in missing:
        # Keep X, Y, Z order relative to the axis words already there
        position = next(
            (
                i
                for i, existing in enumerate(merged)
                if existing.code in ("X", "Y", "Z") and existing.number is not None and existing.code > token.code
            ),
            len(merged),
        )
        merged.insert(position, token)
    return merged + tokens[anchor + 1 :]


def augment_line(state: ModalState, line: Line) -> tuple[ModalState, Line]:
    """
    Resolve one line against the modal state

    Args:
        state: State before the line
        line: Tokenized line

    Returns:
        (state after the line, annotated line)
    """
    after = state.apply(line)

    if not line.is_valid:
        annotated = replace(
            line,
            plane=after.plane,
            absolute=after.absolute,
            feed=after.feed,
            origin=state.position,
            coord=after.position,
            augmented=True,
        )
        return after, annotated

    mode = after.motion
    moving = _moves(line, mode)
    tokens = _expand(line, mode, after) if moving else list(line.tokens)

    annotated = replace(
        line,
        tokens=tuple(tokens),
        motion=mode if moving else None,
        plane=after.plane,
        absolute=after.absolute,
        feed=after.feed,
        origin=state.position,
        coord=after.position,
        augmented=True,
    )
    return after, annotated


def augment(lines: Iterable[Line], state: ModalState | None = None) -> Iterator[Line]:
    """Augment a line stream, threading the modal state from line to line"""
    state = state or ModalState()
    for line in lines:
        state, annotated = augment_line(state, line)
        if annotated.tokens != line.tokens:
            logger.log(TRACE, f"augmented {line.number}: {line} -> {annotated}")
        yield annotated
