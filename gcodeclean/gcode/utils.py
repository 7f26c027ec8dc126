"""
Geometry helpers for GCODE cleaning

Float arithmetic is confined to this module. Inputs arrive as Coord/Decimal
values, and anything that flows back into a program or a tolerance check is
rounded back to a Decimal with ``to_decimal``.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal

import numpy as np

from gcodeclean.structure.coord import Coord, CoordSet
from gcodeclean.utils.errors import ArcGeometryError

from .codes import OFFSET_LETTERS, PLANE_AXES

_AXIS_BITS = {"X": CoordSet.X, "Y": CoordSet.Y, "Z": CoordSet.Z}


def to_decimal(value: float, places: int) -> Decimal:
    """
    Round a float back to a Decimal with a fixed number of places

    Args:
        value: Float result of a geometric formula
        places: Decimal places kept

    Returns:
        Decimal rounded half-even, without a negative zero
    """
    result = Decimal(repr(float(value))).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_EVEN)
    return result if result != 0 else Decimal(0)


def plane_axes(plane: str) -> tuple[str, str, str]:
    """(first, second, normal) axis letters of a plane, right-handed"""
    return PLANE_AXES.get(plane, PLANE_AXES["G17"])


def plane_mask(plane: str) -> CoordSet:
    first, second, _ = plane_axes(plane)
    return _AXIS_BITS[first] | _AXIS_BITS[second]


def plane_point(coord: Coord, plane: str) -> np.ndarray:
    """Project a coord onto the plane's (first, second) axes"""
    first, second, _ = plane_axes(plane)
    return np.array([float(coord.get(first)), float(coord.get(second))])


def radius_to_center(
    start: Coord,
    end: Coord,
    radius: Decimal,
    clockwise: bool = True,
    plane: str = "G17",
    tolerance: Decimal = Decimal("0.0005"),
    invert: bool = False,
) -> tuple[float, float]:
    """
    Calculate arc center from radius

    The centre lies on the perpendicular bisector of the chord. Clockwise
    arcs with a positive radius put it to the right of the chord direction,
    counter-clockwise arcs to the left; a negative radius asks for the
    major arc and flips the side.

    Args:
        start: Starting position
        end: Ending position
        radius: Arc radius (positive for <180°, negative for >180°)
        clockwise: True for G2, False for G3
        plane: Active plane
        tolerance: How far the radius may fall short of half the chord
        invert: Use the opposite side convention

    Returns:
        Centre as (first, second) plane coordinates

    Raises:
        ArcGeometryError: if no circle of that radius joins start and end
    """
    mask = plane_mask(plane)
    if not start.has(mask) or not end.has(mask):
        raise ArcGeometryError("arc start or end is not known in the active plane")

    p1 = plane_point(start, plane)
    p2 = plane_point(end, plane)
    r = float(radius)

    chord = p2 - p1
    d = float(np.hypot(chord[0], chord[1]))
    if d < 1e-10:
        raise ArcGeometryError("radius form cannot describe an arc whose start and end coincide")

    half = d / 2
    if abs(r) < half:
        if half - abs(r) > float(tolerance):
            raise ArcGeometryError(f"Arc radius {radius} too small for distance {d:.6f}")
        h = 0.0
    else:
        h = math.sqrt(r * r - half * half)

    # Left-hand perpendicular of the chord direction
    normal = np.array([-chord[1], chord[0]]) / d
    side = 1.0 if not clockwise else -1.0
    if r < 0:
        side = -side
    if invert:
        side = -side

    center = (p1 + p2) / 2 + side * h * normal
    return float(center[0]), float(center[1])


def center_offsets(start: Coord, center: tuple[float, float], plane: str, places: int) -> dict[str, Decimal]:
    """
    IJK offsets from start to centre, keyed by offset letter

    Args:
        start: Arc start
        center: Centre as (first, second) plane coordinates
        plane: Active plane
        places: Decimal places of the offsets

    Returns:
        Two offsets, e.g. {'I': ..., 'J': ...} for G17
    """
    first, second, _ = plane_axes(plane)
    offsets = {
        OFFSET_LETTERS[first]: to_decimal(center[0] - float(start.get(first)), places),
        OFFSET_LETTERS[second]: to_decimal(center[1] - float(start.get(second)), places),
    }
    # I, J, K order
    return {letter: offsets[letter] for letter in ("I", "J", "K") if letter in offsets}


def validate_arc(start: Coord, end: Coord, center: tuple[float, float], plane: str = "G17", tolerance: float = 0.01) -> bool:
    """
    Validate arc parameters

    Returns:
        True if start and end sit at the same distance from the centre
    """
    c = np.asarray(center, dtype=float)
    r_start = float(np.linalg.norm(plane_point(start, plane) - c))
    r_end = float(np.linalg.norm(plane_point(end, plane) - c))
    return abs(r_start - r_end) < tolerance


def circle_through(p1, p2, p3) -> tuple[float, float, float] | None:
    """
    Circle through three 2D points

    Returns:
        (cx, cy, r), or None if the points are collinear
    """
    a = np.array(
        [
            [p2[0] - p1[0], p2[1] - p1[1]],
            [p3[0] - p1[0], p3[1] - p1[1]],
        ],
        dtype=float,
    )
    if abs(np.linalg.det(a)) < 1e-12:
        return None
    b = 0.5 * np.array(
        [
            (p2[0] ** 2 - p1[0] ** 2) + (p2[1] ** 2 - p1[1] ** 2),
            (p3[0] ** 2 - p1[0] ** 2) + (p3[1] ** 2 - p1[1] ** 2),
        ],
        dtype=float,
    )
    cx, cy = np.linalg.solve(a, b)
    r = math.hypot(p1[0] - cx, p1[1] - cy)
    return float(cx), float(cy), float(r)


@dataclass
class ArcFit:
    """Circle that a polyline follows within tolerance"""

    cx: float
    cy: float
    radius: float
    clockwise: bool


def fit_arc(points: np.ndarray, tolerance: float) -> ArcFit | None:
    """
    Fit one arc to a polyline

    The circle passes through the first, middle and last point. It is
    accepted when every vertex lies within ``tolerance`` of it, every chord
    bulges from it by no more than ``tolerance``, the polyline turns the same
    way at every vertex and the sweep stays short of a full turn.

    Args:
        points: (N, 2) array of plane points, N >= 3
        tolerance: Maximum deviation

    Returns:
        ArcFit, or None when the polyline is not an arc
    """
    points = np.asarray(points, dtype=float)
    if len(points) < 3:
        return None

    # Collinear runs belong to the linear pass
    chord = points[-1] - points[0]
    chord_length = float(np.hypot(chord[0], chord[1]))
    if chord_length > 0:
        offsets = points - points[0]
        deviation = np.abs(chord[0] * offsets[:, 1] - chord[1] * offsets[:, 0]) / chord_length
        if float(deviation.max()) <= tolerance:
            return None

    circle = circle_through(points[0], points[len(points) // 2], points[-1])
    if circle is None:
        return None
    cx, cy, r = circle

    radial = np.hypot(points[:, 0] - cx, points[:, 1] - cy) - r
    if float(np.abs(radial).max()) > tolerance:
        return None

    steps = np.diff(points, axis=0)
    lengths = np.hypot(steps[:, 0], steps[:, 1])
    if np.any(lengths < 1e-12) or np.any(lengths > 2 * r):
        return None
    sagitta = r - np.sqrt(r * r - (lengths / 2) ** 2)
    if float(sagitta.max()) > tolerance:
        return None

    turns = steps[:-1, 0] * steps[1:, 1] - steps[:-1, 1] * steps[1:, 0]
    if np.all(turns > 0):
        clockwise = False
    elif np.all(turns < 0):
        clockwise = True
    else:
        return None

    angles = np.unwrap(np.arctan2(points[:, 1] - cy, points[:, 0] - cx))
    sweep = angles[-1] - angles[0]
    if abs(sweep) >= 2 * math.pi - 1e-6:
        return None

    return ArcFit(cx, cy, r, clockwise)


def point_segment_distance(point: Coord, start: Coord, end: Coord) -> tuple[float, float]:
    """
    Distance from a point to a segment over all three axes

    Returns:
        (distance, t) where t is the projection parameter along start->end
    """
    p = np.array([float(point.x), float(point.y), float(point.z)])
    a = np.array([float(start.x), float(start.y), float(start.z)])
    b = np.array([float(end.x), float(end.y), float(end.z)])
    ab = b - a
    length_sq = float(np.dot(ab, ab))
    if length_sq == 0.0:
        return float(np.linalg.norm(p - a)), 0.0
    t = float(np.dot(p - a, ab)) / length_sq
    closest = a + min(max(t, 0.0), 1.0) * ab
    return float(np.linalg.norm(p - closest)), t


def sample_arc(
    start: np.ndarray,
    end: np.ndarray,
    center: tuple[float, float],
    clockwise: bool,
    samples: int,
) -> np.ndarray:
    """
    Points along an arc in its plane, start and end included

    A start equal to the end is read as a full circle.

    Returns:
        (samples, 2) array
    """
    c = np.asarray(center, dtype=float)
    r = float(np.linalg.norm(np.asarray(start, dtype=float) - c))
    a0 = math.atan2(start[1] - c[1], start[0] - c[0])
    a1 = math.atan2(end[1] - c[1], end[0] - c[0])
    if clockwise:
        sweep = a1 - a0
        while sweep >= 0:
            sweep -= 2 * math.pi
    else:
        sweep = a1 - a0
        while sweep <= 0:
            sweep += 2 * math.pi
    angles = a0 + np.linspace(0.0, 1.0, samples) * sweep
    return np.column_stack([c[0] + r * np.cos(angles), c[1] + r * np.sin(angles)])
