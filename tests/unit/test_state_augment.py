from decimal import Decimal

import pytest
from gcodeclean.gcode.parser import tokenize
from gcodeclean.gcode.state import ModalState
from gcodeclean.processing.augment import augment, augment_line
from gcodeclean.structure.coord import Coord, CoordSet

pytestmark = [pytest.mark.unit, pytest.mark.gcode]


def test_state_is_not_mutated():
    state = ModalState()
    (line,) = tokenize("G91 G1 X1 F200")

    after = state.apply(line)

    assert state == ModalState()
    assert after.absolute is False
    assert after.motion == "G1"
    assert after.feed == Decimal(200)


def test_incremental_adds_to_known_axes_only():
    state = ModalState(absolute=False, position=Coord.from_axes({"X": Decimal(1)}))
    (line,) = tokenize("X2 Y3")

    assert state.target_position(Coord.from_axes({"X": Decimal(2), "Y": Decimal(3)})) == Coord(
        Decimal(3), Decimal(0), Decimal(0), CoordSet.X
    )
    assert state.apply(line).position.set == CoordSet.X


def test_modal_motion_and_known_axes_are_written_out(augmented, texts):
    lines = augmented("G90\nG0 X1 Y2 Z3\nX4\nG1 Y5 F100\nZ-1")

    assert texts(lines) == [
        "G90",
        "G0 X1 Y2 Z3",
        "G0 X4 Y2 Z3",
        "G1 X4 Y5 Z3 F100",
        "G1 X4 Y5 Z-1",
    ]
    assert lines[2].origin == Coord.of(1, 2, 3)
    assert lines[2].coord == Coord.of(4, 2, 3)
    assert lines[4].feed == Decimal(100)
    assert [line.motion for line in lines] == [None, "G0", "G0", "G1", "G1"]
    assert all(line.augmented for line in lines)


def test_unknown_axes_are_never_invented(augmented, texts):
    lines = augmented("G0 X1\nY2")

    assert texts(lines) == ["G0 X1", "G0 X1 Y2"]
    assert lines[1].coord.set == CoordSet.X | CoordSet.Y


def test_line_number_stays_first(augmented, texts):
    lines = augmented("G0 X0 Y0\nN10 X5")
    assert texts(lines)[1] == "N10 G0 X5 Y0"


def test_incremental_lines_are_not_expanded(augmented, texts):
    lines = augmented("G90 G0 X1 Y1\nG91\nG1 X1\nX1")

    assert texts(lines)[2:] == ["G1 X1", "G1 X1"]
    assert lines[2].coord == Coord(Decimal(2), Decimal(1), Decimal(0), CoordSet.X | CoordSet.Y)
    assert lines[3].coord.x == 3
    assert lines[3].absolute is False


def test_homing_forgets_position(augmented, texts):
    lines = augmented("G0 X1 Y1 Z1\nG28\nG0 X2")

    assert lines[1].coord.set == CoordSet.NONE
    assert texts(lines)[2] == "G0 X2"
    assert lines[2].coord.set == CoordSet.X


def test_g92_overwrites_position(augmented):
    lines = augmented("G0 X1 Y1\nG92 X0")

    assert lines[1].coord == Coord(Decimal(0), Decimal(1), Decimal(0), CoordSet.X | CoordSet.Y)
    assert lines[1].motion is None
    assert str(lines[1]) == "G92 X0"


def test_canned_cycle_leaves_z_unknown(augmented):
    lines = augmented("G0 X0 Y0 Z5\nG81 X1 Y1 Z-2 R1")

    assert lines[1].coord.set == CoordSet.X | CoordSet.Y
    assert str(lines[1]) == "G81 X1 Y1 Z-2 R1"


def test_unparsed_line_forgets_position(augmented, texts):
    lines = augmented("G0 X1 Y1\nG1 X#1\nG1 X5")

    assert texts(lines)[1] == "G1 X#1"
    assert lines[1].coord.set == CoordSet.NONE
    assert lines[2].coord.set == CoordSet.X


def test_arc_with_offsets_only_gets_its_end_point(augmented, texts):
    lines = augmented("G0 X0 Y0\nG2 I1 J0")
    assert texts(lines)[1] == "G2 X0 Y0 I1 J0"


def test_plane_is_carried(augmented):
    lines = augmented("G18\nG0 X0 Z0")
    assert lines[1].plane == "G18"


def test_augment_line_is_a_fold_step():
    (line,) = tokenize("G0 X1")
    state, annotated = augment_line(ModalState(), line)

    assert state.position == Coord.from_axes({"X": Decimal(1)})
    assert annotated.origin == Coord()
    assert list(augment([line]))[0] == annotated
