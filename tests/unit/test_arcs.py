import math
from decimal import Decimal

import numpy as np
import pytest
from gcodeclean import config
from gcodeclean.gcode.utils import (
    circle_through,
    fit_arc,
    radius_to_center,
    sample_arc,
    to_decimal,
    validate_arc,
)
from gcodeclean.processing.arcs import convert_arc_radius_to_center, dedup_linear_to_arc
from gcodeclean.structure.coord import Coord
from gcodeclean.utils.errors import ArcGeometryError

pytestmark = [pytest.mark.unit, pytest.mark.gcode]


def _polyline(radius, start_deg, end_deg, steps, feed="F100"):
    """Program tracing an arc around the origin with G1 segments"""
    angles = np.linspace(math.radians(start_deg), math.radians(end_deg), steps + 1)
    points = [(radius * math.cos(a), radius * math.sin(a)) for a in angles]
    program = [f"G0 X{points[0][0]:.4f} Y{points[0][1]:.4f}"]
    for i, (x, y) in enumerate(points[1:]):
        program.append(f"G1 X{x:.4f} Y{y:.4f}" + (f" {feed}" if i == 0 else ""))
    return "\n".join(program)


@pytest.mark.parametrize(
    "clockwise,radius,expected_y",
    [
        (True, 10, -8.660254),
        (False, 10, 8.660254),
        (True, -10, 8.660254),
        (False, -10, -8.660254),
    ],
)
def test_radius_to_center_side(clockwise, radius, expected_y):
    cx, cy = radius_to_center(Coord.of(0, 0, 0), Coord.of(10, 0, 0), Decimal(radius), clockwise=clockwise)

    assert cx == pytest.approx(5.0)
    assert cy == pytest.approx(expected_y, abs=1e-6)


def test_radius_to_center_invert_flips_side():
    _, cy = radius_to_center(Coord.of(0, 0, 0), Coord.of(10, 0, 0), Decimal(10), clockwise=True, invert=True)
    assert cy == pytest.approx(8.660254, abs=1e-6)


def test_radius_to_center_other_planes():
    # G18 works in (Z, X)
    cz, cx = radius_to_center(Coord.of(0, 0, 0), Coord.of(0, 0, 10), Decimal(5), clockwise=True, plane="G18")
    assert (cz, cx) == pytest.approx((5.0, 0.0))


def test_radius_to_center_rejects_impossible_arcs():
    with pytest.raises(ArcGeometryError):
        radius_to_center(Coord.of(0, 0, 0), Coord.of(10, 0, 0), Decimal(2))
    with pytest.raises(ArcGeometryError):
        radius_to_center(Coord.of(1, 1, 0), Coord.of(1, 1, 0), Decimal(2))
    with pytest.raises(ArcGeometryError):
        radius_to_center(Coord(), Coord.of(1, 1, 0), Decimal(2))


def test_radius_slightly_short_uses_chord_midpoint():
    cx, cy = radius_to_center(Coord.of(0, 0, 0), Coord.of(10, 0, 0), Decimal("4.9998"), tolerance=Decimal("0.0005"))
    assert (cx, cy) == pytest.approx((5.0, 0.0))


def test_converted_arcs(augmented, texts):
    lines = list(convert_arc_radius_to_center(augmented("G0 X0 Y0\nG2 X10 Y0 R5\nG3 X0 Y0 R-5 F200")))

    assert texts(lines) == ["G0 X0 Y0", "G2 X10 Y0 I5 J0", "G3 X0 Y0 I-5 J0 F200"]
    assert not any(line.issues for line in lines)


def test_converted_centre_is_equidistant(augmented):
    lines = list(convert_arc_radius_to_center(augmented("G0 X1 Y2\nG3 X4 Y6 R3.5")))
    arc = lines[1]
    center = (1 + float(arc.get("I").number), 2 + float(arc.get("J").number))

    assert arc.get("R") is None
    assert validate_arc(arc.origin, arc.coord, center, tolerance=1e-3)


def test_impossible_radius_is_flagged_not_changed(augmented, texts):
    lines = list(convert_arc_radius_to_center(augmented("G0 X0 Y0\nG2 X10 Y0 R2")))

    assert texts(lines)[1] == "G2 X10 Y0 R2"
    assert lines[1].issues


def test_rounded_centre_off_the_arc_is_flagged_not_changed(augmented, texts, monkeypatch):
    # Whole-unit offsets put the centre (1.5, -1.3229) at (2, -1)
    monkeypatch.setattr(config, "DECIMAL_PLACES", 0)
    lines = list(convert_arc_radius_to_center(augmented("G0 X0 Y0\nG2 X3 Y0 R2")))

    assert texts(lines)[1] == "G2 X3 Y0 R2"
    assert "not equidistant" in lines[1].issues[0]


def test_circle_through_and_collinear():
    cx, cy, r = circle_through((1, 0), (0, 1), (-1, 0))
    assert (cx, cy, r) == pytest.approx((0.0, 0.0, 1.0))
    assert circle_through((0, 0), (1, 1), (2, 2)) is None


def test_fit_arc_rejects_collinear_and_corners():
    assert fit_arc(np.array([[0, 0], [1, 0], [2, 0], [3, 0]]), 0.005) is None
    assert fit_arc(np.array([[0, 0], [1, 0], [1, 1], [0, 1]]), 0.005) is None


def test_sample_arc_endpoints():
    points = sample_arc(np.array([0.0, 0.0]), np.array([10.0, 0.0]), (5.0, 0.0), True, 9)

    assert points.shape == (9, 2)
    assert np.allclose(points[0], [0, 0])
    assert np.allclose(points[-1], [10, 0])
    # Clockwise from the left goes over the top
    assert points[4][1] == pytest.approx(5.0)


def test_to_decimal_rounds_and_drops_negative_zero():
    assert to_decimal(1.23456, 4) == Decimal("1.2346")
    assert str(to_decimal(-0.00001, 4)) == "0"


def test_linear_to_arc_welds_counter_clockwise_run(augmented):
    lines = list(dedup_linear_to_arc(augmented(_polyline(10, 0, 30, 12)), Decimal("0.005")))

    assert len(lines) == 2
    arc = lines[1]
    assert arc.motion == "G3"
    assert str(arc.tokens[0]) == "G3"
    assert arc.get("X").number == Decimal("8.6603")
    assert arc.get("Y").number == Decimal("5.0000")
    assert float(arc.get("I").number) == pytest.approx(-10, abs=1e-2)
    assert float(arc.get("J").number) == pytest.approx(0, abs=1e-2)
    assert arc.get("F").number == Decimal(100)
    assert arc.origin == lines[0].coord


def test_linear_to_arc_clockwise(augmented):
    lines = list(dedup_linear_to_arc(augmented(_polyline(10, 30, 0, 12)), Decimal("0.005")))

    assert len(lines) == 2
    assert lines[1].motion == "G2"


def test_linear_to_arc_leaves_straight_and_cornered_paths(augmented):
    straight = augmented("G0 X0 Y0\nG1 X1 Y0\nG1 X2 Y0\nG1 X3 Y0\nG1 X4 Y0")
    square = augmented("G0 X0 Y0\nG1 X1 Y0\nG1 X1 Y1\nG1 X0 Y1\nG1 X0 Y0")

    assert list(dedup_linear_to_arc(straight, Decimal("0.005"))) == straight
    assert list(dedup_linear_to_arc(square, Decimal("0.005"))) == square


def test_linear_to_arc_too_coarse_is_left_alone(augmented):
    coarse = augmented(_polyline(10, 0, 90, 4))
    assert list(dedup_linear_to_arc(coarse, Decimal("0.005"))) == coarse
