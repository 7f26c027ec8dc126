"""
Arc passes

- convert_arc_radius_to_center: rewrite R-form G2/G3 blocks with centre offsets
- dedup_linear_to_arc: replace runs of short G1 segments that follow a circle
  with a single G2/G3
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace
from decimal import Decimal

import numpy as np

from gcodeclean import config
from gcodeclean.gcode.codes import ARC_CODES, OFFSET_LETTERS
from gcodeclean.gcode.utils import (
    center_offsets,
    fit_arc,
    plane_axes,
    plane_mask,
    plane_point,
    radius_to_center,
    validate_arc,
)
from gcodeclean.structure.coord import CoordSet, ortho
from gcodeclean.structure.line import Line
from gcodeclean.structure.token import Token
from gcodeclean.utils.errors import ArcGeometryError

logger = logging.getLogger(__name__)

_AXIS_BITS = {"X": CoordSet.X, "Y": CoordSet.Y, "Z": CoordSet.Z}


def convert_line_radius_to_center(
    line: Line,
    tolerance: Decimal | None = None,
    invert: bool | None = None,
) -> Line:
    """
    Replace the R word of an arc line with the plane's centre offsets

    Lines that are not R-form arcs come back unchanged. Impossible arcs come
    back unchanged with an issue recorded.
    """
    if line.motion not in ARC_CODES or not line.is_valid:
        return line
    radius_token = line.get("R")
    if radius_token is None:
        return line

    tolerance = config.ARC_RADIUS_TOLERANCE if tolerance is None else tolerance
    invert = config.ARC_INVERT if invert is None else invert

    try:
        center = radius_to_center(
            line.origin,
            line.coord,
            radius_token.number,
            clockwise=line.motion == "G2",
            plane=line.plane,
            tolerance=tolerance,
            invert=invert,
        )
    except ArcGeometryError as e:
        message = f"Line {line.number}: {e.original_message}; arc left in radius form"
        logger.warning(message)
        return line.flag(message)

    offsets = center_offsets(line.origin, center, line.plane, config.DECIMAL_PLACES)
    # Check the centre as it will be written, after rounding
    start = plane_point(line.origin, line.plane)
    first, second, _ = plane_axes(line.plane)
    written = (
        start[0] + float(offsets[OFFSET_LETTERS[first]]),
        start[1] + float(offsets[OFFSET_LETTERS[second]]),
    )
    if not validate_arc(line.origin, line.coord, written, line.plane, tolerance=float(tolerance)):
        message = f"Line {line.number}: converted centre is not equidistant from start and end; arc left in radius form"
        logger.warning(message)
        return line.flag(message)

    tokens = []
    for token in line.tokens:
        if token.code == "R" and token.number is not None:
            tokens.extend(Token.of(letter, value) for letter, value in offsets.items())
        elif token.code in offsets and token.number is not None:
            # Stale offset words are superseded by the computed ones
            continue
        else:
            tokens.append(token)
    return line.with_tokens(tokens)


def convert_arc_radius_to_center(lines: Iterable[Line]) -> Iterator[Line]:
    """Rewrite every R-form arc with explicit centre offsets"""
    for line in lines:
        yield convert_line_radius_to_center(line)


def _arc_candidate(line: Line) -> bool:
    if line.motion != "G1" or not line.absolute or not line.is_valid:
        return False
    if line.comment is not None or line.issues:
        return False
    if not line.letters <= {"G", "X", "Y", "Z", "F"}:
        return False
    if len(line.commands) != 1:
        return False
    mask = plane_mask(line.plane)
    return line.origin.has(mask) and line.coord.has(mask)


def _continues(previous: Line, line: Line) -> bool:
    return (
        line.feed == previous.feed
        and line.plane == previous.plane
        and line.origin == previous.coord
        and line.coord.set == previous.coord.set
    )


def _fit(run: list[Line], tolerance: float):
    plane = run[0].plane
    coords = [run[0].origin] + [line.coord for line in run]
    _, _, normal = plane_axes(plane)
    if not ortho(coords) & _AXIS_BITS[normal]:
        return None
    points = np.array([plane_point(coord, plane) for coord in coords])
    return fit_arc(points, tolerance)


def _arc_line(run: list[Line], arc) -> Line:
    first, last = run[0], run[-1]
    code = "G2" if arc.clockwise else "G3"
    tokens = [Token.of("G", code[1:])]
    tokens.extend(Token.of(letter, value) for letter, value in last.coord.axes().items())
    tokens.extend(
        Token.of(letter, value)
        for letter, value in center_offsets(first.origin, (arc.cx, arc.cy), first.plane, config.DECIMAL_PLACES).items()
    )
    feed = first.get("F")
    if feed is not None:
        tokens.append(feed)
    return replace(
        last,
        tokens=tuple(tokens),
        number=first.number,
        motion=code,
        origin=first.origin,
    )


def dedup_linear_to_arc(
    lines: Iterable[Line],
    tolerance: Decimal,
    min_segments: int | None = None,
    max_segments: int | None = None,
) -> Iterator[Line]:
    """
    Replace runs of G1 segments lying on a common circle with one arc

    Args:
        lines: Augmented lines
        tolerance: Largest allowed deviation of any vertex or chord from the arc
        min_segments: Shortest run worth converting
        max_segments: Longest run held before it is emitted

    Yields:
        Lines, with qualifying runs replaced by G2/G3 lines
    """
    min_segments = config.ARC_MIN_SEGMENTS if min_segments is None else min_segments
    max_segments = config.ARC_MAX_SEGMENTS if max_segments is None else max_segments
    tol = float(tolerance)
    run: list[Line] = []
    fitted = None

    def flush():
        if len(run) >= min_segments and fitted is not None:
            arc_line = _arc_line(run, fitted)
            logger.debug(f"Lines {run[0].number}-{run[-1].number}: {len(run)} segments welded into {arc_line}")
            return [arc_line]
        return list(run)

    for line in lines:
        if not _arc_candidate(line):
            yield from flush()
            run, fitted = [], None
            yield line
            continue

        if run and not _continues(run[-1], line):
            yield from flush()
            run, fitted = [], None

        candidate = run + [line]
        if len(candidate) < min_segments:
            run = candidate
            continue

        arc = _fit(candidate, tol) if len(candidate) <= max_segments else None
        if arc is not None:
            run, fitted = candidate, arc
            continue

        if len(run) >= min_segments and fitted is not None:
            yield from flush()
            run, fitted = [line], None
        else:
            # Slide the window forward one segment
            yield run[0]
            run = candidate[1:]
            fitted = None

    yield from flush()

