import pytest
from gcodeclean.gcode.parser import tokenize
from gcodeclean.lineio import clean_file, derive_output_path, read_lines, write_lines_async
from gcodeclean.processing.clip import Envelope
from gcodeclean.processing.pipeline import PipelineOptions

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "path,expected",
    [
        ("part.nc", "part-gcc.nc"),
        ("dir/part.tap", "dir/part-gcc.tap"),
        ("part", "part-gcc.nc"),
        ("a.b/part", "a.b/part-gcc.nc"),
    ],
)
def test_derive_output_path(path, expected):
    assert derive_output_path(path) == expected


def test_read_lines_strips_terminators(tmp_path):
    path = tmp_path / "in.nc"
    path.write_bytes(b"G0 X1\r\nG1 X2\n\nM30")

    assert list(read_lines(str(path))) == ["G0 X1", "G1 X2", "", "M30"]


@pytest.mark.asyncio
async def test_write_lines_async_reports_running_count(tmp_path):
    path = tmp_path / "out.nc"

    counts = [count async for count in write_lines_async(str(path), ["G0 X1", "M30"])]

    assert counts == [1, 2]
    assert path.read_text(encoding="utf-8") == "G0 X1\nM30\n"


def test_invalid_utf8_passes_through_unchanged(tmp_path):
    path = tmp_path / "latin1.nc"
    path.write_bytes(b"G0 X0 Y0\nG1 X1 (caf\xe9)\nG1 X\xe92\nG1 X3\n")

    written = clean_file(str(path), options=PipelineOptions(envelope=Envelope()))

    output = (tmp_path / "latin1-gcc.nc").read_bytes().splitlines()
    assert written == 4
    assert output[:3] == [b"G0 X0 Y0", b"G1 X1 Y0 (caf\xe9)", b"G1 X\xe92"]


def test_invalid_utf8_in_code_is_flagged(tmp_path):
    path = tmp_path / "bad.nc"
    path.write_bytes(b"G1 X\xe92\n")

    (line,) = tokenize(read_lines(str(path)))

    assert not line.is_valid
    assert line.issues
