"""
Coordinate value type for gcodeclean.

A Coord holds X, Y and Z as decimals together with a CoordSet bitmask that
records which axes were explicitly stated. Unset axes hold zero so arithmetic
stays total, but callers must check ``set`` before trusting an axis.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import IntFlag

ZERO = Decimal(0)


class CoordSet(IntFlag):
    """Axes carrying a meaningful value"""

    NONE = 0
    X = 1
    Y = 2
    Z = 4
    ALL = X | Y | Z


AXES: tuple[tuple[str, CoordSet], ...] = (
    ("X", CoordSet.X),
    ("Y", CoordSet.Y),
    ("Z", CoordSet.Z),
)


@dataclass(frozen=True)
class Coord:
    """Immutable 3D point with a per-axis 'explicitly set' mask"""

    x: Decimal = ZERO
    y: Decimal = ZERO
    z: Decimal = ZERO
    set: CoordSet = CoordSet.NONE

    @classmethod
    def of(cls, x, y, z) -> "Coord":
        """Fully set coordinate from three values"""
        return cls(Decimal(x), Decimal(y), Decimal(z), CoordSet.ALL)

    @classmethod
    def from_pair(cls, a, b, add: CoordSet = CoordSet.Z) -> "Coord":
        """
        Coordinate from two values; ``add`` names the axis that is left out.

        Args:
            a: First in-plane value
            b: Second in-plane value
            add: Axis dropped from the pair (stays zero and unset)
        """
        a, b = Decimal(a), Decimal(b)
        if add == CoordSet.X:
            return cls(ZERO, a, b, CoordSet.Y | CoordSet.Z)
        if add == CoordSet.Y:
            return cls(a, ZERO, b, CoordSet.X | CoordSet.Z)
        return cls(a, b, ZERO, CoordSet.X | CoordSet.Y)

    @classmethod
    def from_point(cls, point: Sequence[float], add: CoordSet = CoordSet.Z) -> "Coord":
        return cls.from_pair(Decimal(repr(float(point[0]))), Decimal(repr(float(point[1]))), add)

    @classmethod
    def from_axes(cls, values: dict[str, Decimal]) -> "Coord":
        """Coordinate holding only the axes present in ``values``"""
        mask = CoordSet.NONE
        for letter, bit in AXES:
            if letter in values:
                mask |= bit
        return cls(
            values.get("X", ZERO),
            values.get("Y", ZERO),
            values.get("Z", ZERO),
            mask,
        )

    def get(self, axis: str) -> Decimal:
        return getattr(self, axis.lower())

    def has(self, axis: CoordSet) -> bool:
        return (self.set & axis) == axis

    def has_coord_pair(self) -> bool:
        """True when at least two of the three axes are set"""
        return sum(1 for _, bit in AXES if self.set & bit) >= 2

    def axes(self) -> dict[str, Decimal]:
        """Set axes keyed by letter"""
        return {letter: self.get(letter) for letter, bit in AXES if self.set & bit}

    def with_axes(self, values: dict[str, Decimal], mask: CoordSet) -> "Coord":
        """Copy with ``values`` written in and the given set mask"""
        return Coord(
            values.get("X", self.x),
            values.get("Y", self.y),
            values.get("Z", self.z),
            mask,
        )

    def to_point(self, drop: CoordSet = CoordSet.Z) -> tuple[float, float]:
        """Project onto the plane that excludes ``drop``"""
        if drop == CoordSet.X:
            return float(self.y), float(self.z)
        if drop == CoordSet.Y:
            return float(self.x), float(self.z)
        return float(self.x), float(self.y)

    def to_xy(self) -> str:
        return f"X{self.x}Y{self.y}"

    def __str__(self):
        return " ".join(f"{letter}{value}" for letter, value in self.axes().items())


def merge(coords1: Coord, coords2: Coord, overwrite: bool = False) -> Coord:
    """
    Start from coords1 and merge coords2 into it.

    Axes not set in coords2 are never copied. Axes already set in coords1
    are only replaced when overwrite is true.
    """
    values = {}
    mask = coords1.set
    for letter, bit in AXES:
        if (not coords1.set & bit or overwrite) and coords2.set & bit:
            values[letter] = coords2.get(letter)
            mask |= bit
    return coords1.with_axes(values, mask)


def add(coords1: Coord, coords2: Coord) -> Coord:
    return Coord(
        coords1.x + coords2.x,
        coords1.y + coords2.y,
        coords1.z + coords2.z,
        coords1.set | coords2.set,
    )


def subtract(coords1: Coord, coords2: Coord) -> Coord:
    """coords1 - coords2 over all three axes"""
    return Coord(
        coords1.x - coords2.x,
        coords1.y - coords2.y,
        coords1.z - coords2.z,
        coords1.set | coords2.set,
    )


def difference(coords1: Coord, coords2: Coord) -> Coord:
    """Absolute per-axis difference, fully set"""
    delta = subtract(coords1, coords2)
    return Coord(abs(delta.x), abs(delta.y), abs(delta.z), CoordSet.ALL)


def distance(coords1: Coord, coords2: Coord) -> Decimal:
    """The distance between two coords (all three axes)"""
    a = abs(coords1.x - coords2.x)
    b = abs(coords1.y - coords2.y)
    c = abs(coords1.z - coords2.z)

    ab = math.sqrt(float(a * a + b * b))
    abc = math.sqrt(ab * ab + float(c * c))

    return Decimal(repr(abc))


def coplanar(coords: Sequence[Coord]) -> bool:
    """
    Whether all coords share one orthogonal plane (same X, same Y or same Z).

    False when no coords are supplied, True for a single coord.
    """
    if len(coords) <= 1:
        return len(coords) > 0

    return ortho(coords) != CoordSet.NONE


def ortho(coords: Sequence[Coord]) -> CoordSet:
    """
    Axes whose value is identical across all coords.

    NONE when no coords are supplied, ALL for a single coord.
    """
    if len(coords) < 2:
        return CoordSet.NONE if not coords else CoordSet.ALL

    shared = CoordSet.NONE
    for letter, bit in AXES:
        if len({c.get(letter) for c in coords}) == 1:
            shared |= bit
    return shared
