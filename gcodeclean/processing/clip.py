"""
Working-envelope clipping

Absolute G0/G1 segments are clipped against the envelope with the
Liang-Barsky algorithm; arcs are checked by sampling. The position tracking
done upstream is left alone: a clipped line's successors keep their
unclipped origin and coord, and a connecting move is emitted whenever the
machine would otherwise start a kept segment from the wrong place.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from decimal import Decimal

import numpy as np

from gcodeclean import config
from gcodeclean.gcode.codes import ARC_CODES, OFFSET_LETTERS
from gcodeclean.gcode.utils import plane_axes, plane_mask, plane_point, sample_arc
from gcodeclean.structure.coord import AXES, Coord, CoordSet
from gcodeclean.structure.line import Line
from gcodeclean.structure.token import Token

logger = logging.getLogger(__name__)

_AXIS_BITS = dict(AXES)

# Words that go with a dropped move
_DROPPED_LETTERS = {"X", "Y", "Z", "F", "I", "J", "K", "R"}

_FEED_MOTION = ("G1",) + ARC_CODES


@dataclass
class Envelope:
    """Per-axis (min, max) working volume; a missing axis or bound is unbounded"""

    bounds: dict[str, tuple[Decimal | None, Decimal | None]] = field(default_factory=dict)

    @classmethod
    def from_config(cls) -> "Envelope":
        return cls(dict(config.CLIP_ENVELOPE))

    @property
    def mask(self) -> CoordSet:
        """Axes carrying at least one bound"""
        mask = CoordSet.NONE
        for letter, (low, high) in self.bounds.items():
            if low is not None or high is not None:
                mask |= _AXIS_BITS[letter]
        return mask

    def __bool__(self):
        return self.mask != CoordSet.NONE

    def contains_value(self, letter: str, value) -> bool:
        low, high = self.bounds.get(letter, (None, None))
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True

    def contains(self, coord: Coord) -> bool:
        """Whether every known axis of ``coord`` is inside the envelope"""
        return all(
            self.contains_value(letter, coord.get(letter)) for letter, bit in AXES if coord.set & bit
        )

    def clamp(self, letter: str, value: Decimal) -> Decimal:
        low, high = self.bounds.get(letter, (None, None))
        if low is not None and value < low:
            return low
        if high is not None and value > high:
            return high
        return value


def liang_barsky(start: Coord, end: Coord, envelope: Envelope) -> tuple[Decimal, Decimal] | None:
    """
    Parameter range of the segment start->end that lies inside the envelope

    Args:
        start: Segment start, known on every bounded axis
        end: Segment end, known on every bounded axis
        envelope: Working volume

    Returns:
        (t0, t1) with 0 <= t0 <= t1 <= 1, or None when the segment is outside
    """
    t0, t1 = Decimal(0), Decimal(1)
    for letter, (low, high) in envelope.bounds.items():
        p0 = start.get(letter)
        delta = end.get(letter) - p0
        edges = []
        if low is not None:
            edges.append((-delta, p0 - low))
        if high is not None:
            edges.append((delta, high - p0))
        for p, q in edges:
            if p == 0:
                if q < 0:
                    return None
                continue
            r = q / p
            if p < 0:
                t0 = max(t0, r)
            else:
                t1 = min(t1, r)
            if t0 > t1:
                return None
    return t0, t1


def _interpolate(start: Coord, end: Coord, t: Decimal, envelope: Envelope) -> Coord:
    if t == 0:
        return start
    if t == 1:
        return end
    step = Decimal(1).scaleb(-config.DECIMAL_PLACES)
    values = {}
    for letter, bit in AXES:
        if end.set & bit:
            a, b = start.get(letter), end.get(letter)
            value = (a + (b - a) * t).quantize(step)
            values[letter] = envelope.clamp(letter, value)
    return end.with_axes(values, end.set)


def _with_axes(line: Line, coord: Coord) -> tuple[Token, ...]:
    """Tokens of ``line`` with its X/Y/Z words replaced by ``coord``"""
    tokens = []
    for token in line.tokens:
        if token.code in _AXIS_BITS and token.number is not None:
            if coord.set & _AXIS_BITS[token.code]:
                tokens.append(Token.of(token.code, coord.get(token.code)))
            continue
        tokens.append(token)
    return tuple(tokens)


def _connector(line: Line, start: Coord | None, entry: Coord) -> Line:
    tokens = [Token.of(line.motion[0], line.motion[1:])]
    tokens.extend(Token.of(letter, value) for letter, value in entry.axes().items())
    return Line(
        tokens=tuple(tokens),
        number=line.number,
        motion=line.motion,
        plane=line.plane,
        absolute=True,
        feed=line.feed,
        origin=start if start is not None else Coord(),
        coord=entry,
        augmented=True,
    )


def _remainder(line: Line) -> Line | None:
    """What is left of a dropped move: its non-motion words and comment"""
    tokens = [
        token
        for token in line.tokens
        if not (token.code in _DROPPED_LETTERS or str(token) == line.motion)
    ]
    if not [token for token in tokens if not token.is_line_number] and line.comment is None:
        return None
    return replace(line, tokens=tuple(tokens), motion=None, coord=line.origin)


def _arc_inside(line: Line, envelope: Envelope, samples: int) -> bool:
    plane = line.plane
    first, second, normal = plane_axes(plane)
    start = plane_point(line.origin, plane)
    end = plane_point(line.coord, plane)

    offsets = []
    for letter in (first, second):
        token = line.get(OFFSET_LETTERS[letter])
        offsets.append(float(token.number) if token is not None else 0.0)
    if line.get("R") is not None:
        points = np.array([start, end])
    else:
        center = (start[0] + offsets[0], start[1] + offsets[1])
        points = sample_arc(start, end, center, line.motion == "G2", samples)

    normal_bit = _AXIS_BITS[normal]
    if line.origin.set & normal_bit and line.coord.set & normal_bit:
        heights = np.linspace(float(line.origin.get(normal)), float(line.coord.get(normal)), len(points))
    else:
        heights = None

    for i, (a, b) in enumerate(points):
        if not envelope.contains_value(first, Decimal(repr(float(a)))):
            return False
        if not envelope.contains_value(second, Decimal(repr(float(b)))):
            return False
        if heights is not None and not envelope.contains_value(normal, Decimal(repr(float(heights[i])))):
            return False
    return True


def clip(lines: Iterable[Line], envelope: Envelope | None = None) -> Iterator[Line]:
    """
    Drop or truncate motion outside the working envelope

    Args:
        lines: Augmented lines
        envelope: Working volume; defaults to the configured one. An empty
            envelope passes every line through.

    Yields:
        Lines, with connecting moves inserted where clipping left a gap
    """
    envelope = Envelope.from_config() if envelope is None else envelope
    if not envelope:
        yield from lines
        return

    mask = envelope.mask
    emitted: Coord | None = None
    feed: Decimal | None = None
    dropped = 0

    def out(line: Line) -> Line:
        nonlocal emitted, feed
        if line.motion in _FEED_MOTION and line.feed is not None and line.feed != feed and line.get("F") is None:
            line = line.with_tokens(line.tokens + (Token.of("F", line.feed),))
        token = line.get("F")
        if token is not None:
            feed = token.number
        if line.is_motion or line.coord != line.origin:
            emitted = line.coord
        return line

    for line in lines:
        if not line.is_motion or not line.absolute or not line.is_valid:
            yield out(line)
            continue

        if line.motion in ARC_CODES:
            known = plane_mask(line.plane)
            if not line.origin.has(known) or not line.coord.has(known):
                yield out(line)
            elif emitted == line.origin and _arc_inside(line, envelope, config.ARC_SAMPLES):
                yield out(line)
            else:
                dropped += 1
                logger.warning(f"Line {line.number}: arc leaves the working envelope and was dropped")
                rest = _remainder(line)
                if rest is not None:
                    yield out(rest.flag("arc dropped by clipping"))
            continue

        if not line.origin.has(mask) or not line.coord.has(mask):
            # Without a known start only the end point can be judged
            if envelope.contains(line.coord):
                yield out(line)
            else:
                dropped += 1
                logger.debug(f"Line {line.number}: end point outside the working envelope, dropped")
                rest = _remainder(line)
                if rest is not None:
                    yield out(rest)
            continue

        span = liang_barsky(line.origin, line.coord, envelope)
        if span is None:
            dropped += 1
            logger.debug(f"Line {line.number}: outside the working envelope, dropped")
            rest = _remainder(line)
            if rest is not None:
                yield out(rest)
            continue

        t0, t1 = span
        entry = _interpolate(line.origin, line.coord, t0, envelope)
        exit_ = _interpolate(line.origin, line.coord, t1, envelope)

        if emitted != entry and (emitted is not None or t0 > 0):
            yield out(_connector(line, emitted, entry))

        if t0 > 0 or t1 < 1:
            logger.debug(f"Line {line.number}: clipped to {entry} -> {exit_}")
            line = replace(line, tokens=_with_axes(line, exit_), origin=entry, coord=exit_)
        yield out(line)

    if dropped:
        logger.info(f"Clipping dropped {dropped} move(s) outside the working envelope")
