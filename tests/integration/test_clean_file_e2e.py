"""
End-to-end cleaning of whole files through the async line sink.
"""

import math

import pytest
from gcodeclean.lineio import clean_file, clean_file_async, derive_output_path
from gcodeclean.processing.clip import Envelope
from gcodeclean.processing.pipeline import PipelineOptions

PROGRAM = """%
(pocket test)
G17 G21 G90
M3 S12000
G0 X0 Y0 Z5
G1 Z-1 F300
G1 X10 Y0 F600
G1 X20 Y0
G1 X30 Y0
G1 X30 Y10
G1 X30 Y10
G2 X40 Y20 R10
G0 Z5
M5
M30
%
"""


def _arc_program(radius=20.0, steps=30, sweep_deg=60.0):
    lines = ["G90 G17", "G0 X20 Y0 Z0"]
    for i in range(1, steps + 1):
        a = math.radians(sweep_deg * i / steps)
        lines.append(f"G1 X{radius * math.cos(a):.4f} Y{radius * math.sin(a):.4f} F500")
    lines.append("M30")
    return "\n".join(lines) + "\n"


@pytest.mark.integration
@pytest.mark.e2e
@pytest.mark.asyncio
async def test_clean_file_async_end_to_end(program_file):
    path = program_file(PROGRAM)

    written = await clean_file_async(path, options=PipelineOptions(envelope=Envelope()))

    with open(derive_output_path(path), encoding="utf-8") as f:
        output = f.read().splitlines()

    assert written == len(output)
    assert output == [
        "%",
        "(pocket test)",
        "G17",
        "G21",
        "G90",
        "M3 S12000",
        "G0 X0 Y0 Z5",
        "G1 X0 Y0 Z-1 F300",
        "G1 X10 Y0 F600",
        "G1 X30 Y0",
        "G1 X30 Y10",
        "G2 X40 Y20 I10 J0",
        "G0 X40 Y20 Z5",
        "M5",
        "M30",
        "%",
    ]


@pytest.mark.integration
@pytest.mark.e2e
@pytest.mark.asyncio
async def test_polyline_arc_becomes_single_arc(program_file):
    path = program_file(_arc_program(), name="arc.nc")
    output = path.replace("arc.nc", "arc-out.nc")

    await clean_file_async(path, output, PipelineOptions(envelope=Envelope()))

    with open(output, encoding="utf-8") as f:
        lines = f.read().splitlines()

    arcs = [line for line in lines if line.startswith("G3")]
    assert len(arcs) == 1
    assert len(lines) < 10
    assert lines[-1] == "M30"


@pytest.mark.integration
def test_clean_file_sync_wrapper(program_file):
    path = program_file("G0 X0 Y0\nG1 X1 Y0 F100\nG1 X2 Y0\nG1 X3 Y0\n")

    assert clean_file(path, options=PipelineOptions(envelope=Envelope())) == 3


@pytest.mark.integration
@pytest.mark.asyncio
async def test_sync_wrapper_refuses_running_loop(program_file):
    path = program_file("G0 X0\n")

    with pytest.raises(RuntimeError):
        clean_file(path)
