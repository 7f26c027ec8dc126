"""
G-code command tables used by the cleaning passes.

Codes are keyed by their canonical text (``G1``, ``G38.2``, ``M6``).
"""

# Valid GCODE commands we recognise
SUPPORTED_G_CODES = {
    "G0": "Rapid positioning",
    "G1": "Linear interpolation",
    "G2": "Clockwise arc",
    "G3": "Counter-clockwise arc",
    "G4": "Dwell",
    "G10": "Set offsets",
    "G17": "XY plane selection",
    "G18": "XZ plane selection",
    "G19": "YZ plane selection",
    "G20": "Inch units",
    "G21": "Millimeter units",
    "G28": "Return to home",
    "G30": "Return to secondary home",
    "G38.2": "Probe toward, error on miss",
    "G38.3": "Probe toward",
    "G38.4": "Probe away, error on miss",
    "G38.5": "Probe away",
    "G40": "Cutter compensation off",
    "G41": "Cutter compensation left",
    "G42": "Cutter compensation right",
    "G43": "Tool length offset",
    "G49": "Cancel tool length offset",
    "G53": "Machine coordinates",
    "G54": "Work coordinate 1",
    "G55": "Work coordinate 2",
    "G56": "Work coordinate 3",
    "G57": "Work coordinate 4",
    "G58": "Work coordinate 5",
    "G59": "Work coordinate 6",
    "G61": "Exact path mode",
    "G61.1": "Exact stop mode",
    "G64": "Path blending",
    "G73": "Drilling cycle, chip breaking",
    "G76": "Threading cycle",
    "G80": "Cancel canned cycle",
    "G81": "Drilling cycle",
    "G82": "Drilling cycle, dwell",
    "G83": "Peck drilling cycle",
    "G84": "Tapping cycle",
    "G85": "Boring cycle, feed out",
    "G86": "Boring cycle, spindle stop",
    "G87": "Back boring cycle",
    "G88": "Boring cycle, manual out",
    "G89": "Boring cycle, dwell",
    "G90": "Absolute positioning",
    "G91": "Incremental positioning",
    "G92": "Coordinate system offset",
    "G93": "Inverse time feed",
    "G94": "Units per minute feed",
    "G98": "Canned cycle return to initial level",
    "G99": "Canned cycle return to R level",
}

SUPPORTED_M_CODES = {
    "M0": "Program stop",
    "M1": "Optional stop",
    "M2": "Program end",
    "M3": "Spindle on CW",
    "M4": "Spindle on CCW",
    "M5": "Spindle off",
    "M6": "Tool change",
    "M7": "Mist coolant on",
    "M8": "Flood coolant on",
    "M9": "Coolant off",
    "M30": "Program end and rewind",
    "M48": "Enable overrides",
    "M49": "Disable overrides",
    "M60": "Pallet change pause",
}

MOTION_CODES = ("G0", "G1", "G2", "G3")
ARC_CODES = ("G2", "G3")
PROBE_CODES = ("G38.2", "G38.3", "G38.4", "G38.5")
CANNED_CODES = ("G73", "G76", "G81", "G82", "G83", "G84", "G85", "G86", "G87", "G88", "G89")

PLANE_AXES = {
    # plane -> (first axis, second axis, normal axis); orientation is right-handed
    "G17": ("X", "Y", "Z"),
    "G18": ("Z", "X", "Y"),
    "G19": ("Y", "Z", "X"),
}

OFFSET_LETTERS = {"X": "I", "Y": "J", "Z": "K"}

# Commands of one modal group are mutually exclusive within a block
MODAL_GROUPS = {
    "motion": set(MOTION_CODES) | set(PROBE_CODES) | set(CANNED_CODES) | {"G80"},
    "plane": {"G17", "G18", "G19"},
    "distance": {"G90", "G91"},
    "units": {"G20", "G21"},
    "feed_mode": {"G93", "G94"},
    "cutter": {"G40", "G41", "G42"},
    "tool_length": {"G43", "G49"},
    "coordinate": {"G54", "G55", "G56", "G57", "G58", "G59"},
    "path": {"G61", "G61.1", "G64"},
    "retract": {"G98", "G99"},
    "spindle": {"M3", "M4", "M5"},
    "stopping": {"M0", "M1", "M2", "M30", "M60"},
}

_AXES = set("XYZABC")

# Argument letters each command consumes when it shares a block with others
ARGUMENTS = {
    "G0": _AXES | {"F"},
    "G1": _AXES | {"F"},
    "G2": _AXES | set("IJKRFP"),
    "G3": _AXES | set("IJKRFP"),
    "G4": {"P"},
    "G10": _AXES | set("LPRIJQ"),
    "G28": set(_AXES),
    "G30": set(_AXES),
    "G41": {"D"},
    "G42": {"D"},
    "G43": {"H"},
    "G64": {"P", "Q"},
    "G92": set(_AXES),
    "M3": {"S"},
    "M4": {"S"},
    "M6": {"T"},
}
for _code in PROBE_CODES:
    ARGUMENTS[_code] = _AXES | {"F"}
for _code in CANNED_CODES:
    ARGUMENTS[_code] = _AXES | set("RQPLFK")

# Words that form a valid block on their own
STANDALONE_LETTERS = {"F", "S", "T"}

# RS274/NGC order of execution within one block
_EXECUTION_ORDER = [
    ({"G93", "G94"}, 2),
    ({"M6"}, 6),
    ({"M3", "M4", "M5"}, 7),
    ({"M7", "M8", "M9"}, 8),
    ({"M48", "M49"}, 9),
    ({"G4"}, 10),
    ({"G17", "G18", "G19"}, 11),
    ({"G20", "G21"}, 12),
    ({"G40", "G41", "G42"}, 13),
    ({"G43", "G49"}, 14),
    ({"G54", "G55", "G56", "G57", "G58", "G59"}, 15),
    ({"G61", "G61.1", "G64"}, 16),
    ({"G90", "G91"}, 17),
    ({"G98", "G99"}, 18),
    ({"G10", "G28", "G30", "G92"}, 19),
    (MODAL_GROUPS["motion"], 20),
    ({"M0", "M1", "M2", "M30", "M60"}, 21),
]
_LETTER_ORDER = {"F": 3, "S": 4, "T": 5}

# Commands whose repetition has an effect of its own
ONE_SHOT_CODES = (
    {"G4", "G10", "G28", "G30", "G92", "M0", "M1", "M6", "M60", "M98", "M99"}
    | set(PROBE_CODES)
    | set(CANNED_CODES)
)

# Commands after which the work position is not known from the program text
POSITION_RESET_CODES = {"G28", "G30", "G53", "M6"} | set(PROBE_CODES)


def is_supported(code: str) -> bool:
    return code in SUPPORTED_G_CODES or code in SUPPORTED_M_CODES


def execution_rank(code: str) -> int:
    """
    Position of a command (or standalone letter) in RS274/NGC execution order

    Args:
        code: Canonical command text, or a single argument letter

    Returns:
        Rank; lower executes first
    """
    if code in _LETTER_ORDER:
        return _LETTER_ORDER[code]
    for codes, rank in _EXECUTION_ORDER:
        if code in codes:
            return rank
    return 20


def modal_group(code: str) -> str | None:
    for name, codes in MODAL_GROUPS.items():
        if code in codes:
            return name
    return None
