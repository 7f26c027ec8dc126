"""
Deduplication passes

Each pass is a generator transform over Lines with its own small look-back:
- dedup_repeated_tokens: repeated words inside one block
- single_command_per_line: blocks carrying several commands
- dedup_line: consecutive blocks with identical text
- dedup_linear: intermediate points collinear within tolerance
- dedup_select_tokens: modal restatements of selected letters

Lines carrying opaque (unparsed) tokens pass every stage untouched.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace
from decimal import Decimal

from gcodeclean import config
from gcodeclean.config import TRACE
from gcodeclean.gcode.codes import (
    ARGUMENTS,
    CANNED_CODES,
    ONE_SHOT_CODES,
    POSITION_RESET_CODES,
    STANDALONE_LETTERS,
    execution_rank,
    is_supported,
    modal_group,
)
from gcodeclean.gcode.utils import point_segment_distance, to_decimal
from gcodeclean.structure.coord import AXES, CoordSet
from gcodeclean.structure.line import AXIS_LETTERS, Line
from gcodeclean.structure.token import Token

logger = logging.getLogger(__name__)

# Words that belong to the modal motion when no command on the block takes them
_MOTION_WORDS = set(AXIS_LETTERS) | {"I", "J", "K", "R"}

# Only these letters may appear on a point dedup_linear is allowed to drop
_LINEAR_LETTERS = {"G", "X", "Y", "Z", "F"}

# Commands whose axis words are not a move to that position
_NON_MOVE_CODES = {"G10", "G28", "G30", "G53", "G92"}


def dedup_repeated_tokens(lines: Iterable[Line]) -> Iterator[Line]:
    """
    Drop repeated words within each line

    A word equal to an earlier word on the same line is dropped, and a G/M
    command overridden by a later command of the same modal group is dropped.
    Two different values for one argument letter leave the line unmodified
    and flag it.
    """
    for line in lines:
        if not line.is_valid or len(line.tokens) < 2:
            yield line
            continue

        conflict = _conflicting_letter(line)
        if conflict is not None:
            message = f"Line {line.number}: conflicting values for {conflict}"
            if message not in line.issues:
                logger.warning(message)
                line = line.flag(message)
            yield line
            continue

        # Index of the last command in each modal group
        last_in_group = {}
        for i, token in enumerate(line.tokens):
            group = modal_group(str(token)) if token.is_command else None
            if group is not None:
                last_in_group[group] = i

        kept: list[Token] = []
        for i, token in enumerate(line.tokens):
            if token in kept:
                continue
            group = modal_group(str(token)) if token.is_command else None
            if group is not None and last_in_group[group] != i:
                continue
            kept.append(token)

        if len(kept) != len(line.tokens):
            logger.debug(f"Line {line.number}: dropped {len(line.tokens) - len(kept)} repeated word(s)")
            line = line.with_tokens(kept)
        yield line


def _conflicting_letter(line: Line) -> str | None:
    seen: dict[str, Decimal] = {}
    for token in line.tokens:
        if not token.is_argument:
            continue
        if token.code in seen and seen[token.code] != token.number:
            return token.code
        seen[token.code] = token.number
    return None


def _split(line: Line) -> list[Line] | None:
    """
    One line per command, or None when the block has to stay whole
    """
    if any(token.is_special for token in line.tokens):
        return None

    commands = [(i, str(token)) for i, token in enumerate(line.tokens) if token.is_command]
    codes = [code for _, code in commands]
    if any(not is_supported(code) for code in codes) or "G53" in codes:
        return None

    # segment head position -> tokens; commands head their own segment
    segments: dict[int, list[Token]] = {i: [line.tokens[i]] for i, _ in commands}
    ranks: dict[int, int] = {i: execution_rank(code) for i, code in commands}
    motion_head = None

    for i, token in enumerate(line.tokens):
        if not token.is_argument or token.is_line_number:
            continue
        owner = None
        for j, code in reversed(commands):
            if token.code in ARGUMENTS.get(code, ()):
                owner = j
                break
        if owner is not None:
            segments[owner].append(token)
        elif token.code in STANDALONE_LETTERS:
            segments[i] = [token]
            ranks[i] = execution_rank(token.code)
        elif token.code in _MOTION_WORDS:
            if motion_head is None:
                motion_head = i
                segments[i] = []
                ranks[i] = execution_rank("G1")
            segments[motion_head].append(token)
        else:
            return None

    order = sorted(segments)
    if [ranks[i] for i in order] != sorted(ranks[i] for i in order):
        return None

    number_tokens = [token for token in line.tokens if token.is_line_number]
    result = []
    for n, head in enumerate(order):
        tokens = segments[head]
        if n == 0:
            tokens = number_tokens + tokens
        comment = line.comment if n == len(order) - 1 else None
        result.append(Line(tokens=tuple(tokens), comment=comment, number=line.number))
    return result


def single_command_per_line(lines: Iterable[Line]) -> Iterator[Line]:
    """
    Split blocks that carry several commands into one block per command

    Argument words go with the last command on the block that accepts them.
    Unclaimed F/S/T words become blocks of their own, and unclaimed axis or
    arc words form one block for the modal motion. Blocks are only split when
    their syntax order is also their execution order.
    """
    for line in lines:
        if not line.is_valid or line.issues or len(line.commands) < 2:
            yield line
            continue

        parts = _split(line)
        if parts is None:
            logger.log(TRACE, f"Line {line.number}: kept whole: {line}")
            yield line
            continue

        logger.debug(f"Line {line.number}: split into {len(parts)} lines")
        yield from parts


def _one_shot(line: Line) -> bool:
    return any(str(token) in ONE_SHOT_CODES for token in line.commands)


def dedup_line(lines: Iterable[Line]) -> Iterator[Line]:
    """
    Drop a line whose text equals the line emitted just before it

    Incremental moves, arcs, one-shot commands and unparsed lines are always
    kept, since repeating them has an effect of its own.
    """
    previous = None
    for line in lines:
        text = str(line)
        droppable = line.is_valid and line.absolute and line.motion not in ("G2", "G3") and not _one_shot(line)
        if droppable and text == previous:
            logger.debug(f"Line {line.number}: duplicate of previous line dropped")
            continue
        previous = text
        yield line


def _linear_point(line: Line) -> bool:
    return line.motion == "G1" and line.absolute and line.is_valid


def _droppable(line: Line) -> bool:
    return (
        line.comment is None
        and not line.issues
        and line.letters <= _LINEAR_LETTERS
        and len(line.commands) == 1
    )


def _follows(previous: Line, line: Line) -> bool:
    return (
        line.feed == previous.feed
        and line.origin == previous.coord
        and line.coord.set == previous.coord.set
        and line.coord.set != CoordSet.NONE
    )


def _collapsible(anchor: Line, pending: Line, line: Line, tolerance: Decimal) -> bool:
    """
    Whether anchor->line stays within tolerance of pending and of every
    vertex already dropped on either side of it
    """
    points = pending.skipped + (pending.coord,) + line.skipped
    if len(points) > config.LINEAR_MAX_SKIPPED:
        return False
    for point in points:
        dist, t = point_segment_distance(point, anchor.coord, line.coord)
        if to_decimal(dist, config.MEASURE_PLACES) > tolerance or not 0.0 <= t <= 1.0:
            return False
    return True


def dedup_linear(lines: Iterable[Line], tolerance: Decimal) -> Iterator[Line]:
    """
    Drop intermediate G1 points that lie on the segment joining their neighbours

    A dropped point is remembered on its successor's ``skipped``, and later
    drops, in this pass or a repeated one, are checked against all of them,
    so no input vertex ends up further than ``tolerance`` from the output.

    Args:
        lines: Augmented lines
        tolerance: Largest distance from the neighbouring segment that still
            counts as collinear

    Yields:
        Lines; a dropped point's successor starts where the point's
        predecessor ended
    """
    anchor: Line | None = None
    pending: Line | None = None

    for line in lines:
        if not _linear_point(line):
            if pending is not None:
                yield pending
            anchor, pending = None, None
            yield line
            continue

        if pending is not None:
            if _follows(pending, line) and _collapsible(anchor, pending, line, tolerance):
                logger.log(TRACE, f"Line {pending.number}: collinear point dropped")
                skipped = pending.skipped + (pending.coord,) + line.skipped
                line = replace(line, origin=anchor.coord, skipped=skipped)
                pending = None
            else:
                yield pending
                anchor, pending = pending, None

        if anchor is not None and _droppable(line) and _follows(anchor, line):
            pending = line
        else:
            yield line
            anchor = line

    if pending is not None:
        yield pending


def _resets_memory(line: Line) -> bool:
    if not line.is_valid:
        return True
    codes = {str(token) for token in line.commands}
    if codes & (POSITION_RESET_CODES | _NON_MOVE_CODES | set(CANNED_CODES)):
        return True
    # The line made a known axis unknown (e.g. a modal canned cycle)
    return bool(line.origin.set & (CoordSet.ALL ^ line.coord.set))


def dedup_select_tokens(lines: Iterable[Line], letters: Iterable[str]) -> Iterator[Line]:
    """
    Drop selected words that restate the value already in effect

    X/Y/Z words are compared against the tracked position and only dropped
    from absolute moves; other letters are compared against the value last
    stated for them. Lines that invalidate that knowledge clear it.

    Args:
        lines: Augmented lines
        letters: Letters to deduplicate, e.g. "FZ"

    Yields:
        Lines, without a line left holding nothing at all
    """
    selected = {letter.upper() for letter in letters}
    axis_bits = dict(AXES)
    last: dict[str, Decimal] = {}
    inverse_time = False

    for line in lines:
        if _resets_memory(line):
            last.clear()
            yield line
            continue

        if line.has_code("G93"):
            inverse_time = True
        elif line.has_code("G94"):
            inverse_time = False

        kept: list[Token] = []
        for token in line.tokens:
            letter = token.code
            if letter not in selected or not token.is_argument:
                kept.append(token)
                continue

            if letter in axis_bits:
                bit = axis_bits[letter]
                if line.is_motion and line.absolute and line.origin.has(bit) and line.origin.get(letter) == token.number:
                    continue
                kept.append(token)
            elif letter == "F" and inverse_time:
                # Inverse time feed must be stated on every move
                kept.append(token)
            elif letter in AXIS_LETTERS and not line.absolute:
                last.pop(letter, None)
                kept.append(token)
            elif last.get(letter) == token.number:
                continue
            else:
                last[letter] = token.number
                kept.append(token)

        if len(kept) == len(line.tokens):
            yield line
            continue
        if not kept and line.comment is None:
            logger.debug(f"Line {line.number}: nothing left after dropping restated words")
            continue
        logger.log(TRACE, f"Line {line.number}: dropped {len(line.tokens) - len(kept)} restated word(s)")
        yield line.with_tokens(kept)
