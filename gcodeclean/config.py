"""
Central configuration for gcodeclean tunables and shared constants.
"""

import logging
import os
from decimal import Decimal, InvalidOperation

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("GCODECLEAN_TRACE", "0")).lower() in ("1", "true", "yes", "on")

logger = logging.getLogger(__name__)


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return Decimal(default)
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return Decimal(default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return default


def _env_decimal_optional(name: str) -> Decimal | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        logger.warning(f"Ignoring invalid {name}={raw!r}")
        return None


# Tolerances (program units)
ARC_TOLERANCE: Decimal = _env_decimal("GCODECLEAN_ARC_TOLERANCE", "0.005")
LINEAR_TOLERANCE: Decimal = _env_decimal("GCODECLEAN_LINEAR_TOLERANCE", "0.0005")
ARC_RADIUS_TOLERANCE: Decimal = _env_decimal("GCODECLEAN_ARC_RADIUS_TOLERANCE", "0.0005")

# Repeated collinear passes release cascades left by earlier removals
LINEAR_PASSES: int = _env_int("GCODECLEAN_LINEAR_PASSES", 4)
# Most input vertices one collinear segment may stand in for
LINEAR_MAX_SKIPPED: int = max(1, _env_int("GCODECLEAN_LINEAR_MAX_SKIPPED", 64))

# Letters whose unchanged restatements are dropped
SELECT_TOKENS: str = os.getenv("GCODECLEAN_SELECT_TOKENS", "FZ").upper()

# Decimal places for computed output values and for tolerance comparisons
DECIMAL_PLACES: int = _env_int("GCODECLEAN_DECIMAL_PLACES", 4)
MEASURE_PLACES: int = _env_int("GCODECLEAN_MEASURE_PLACES", 6)

# Linear-to-arc run limits (segments)
ARC_MIN_SEGMENTS: int = max(2, _env_int("GCODECLEAN_ARC_MIN_SEGMENTS", 3))
ARC_MAX_SEGMENTS: int = max(ARC_MIN_SEGMENTS, _env_int("GCODECLEAN_ARC_MAX_SEGMENTS", 32))

# Flip the centre side chosen for R-form arcs (controllers with the opposite convention)
ARC_INVERT: bool = _env_bool("GCODECLEAN_ARC_INVERT")

# Points sampled along an arc when checking it against the clip envelope
ARC_SAMPLES: int = max(4, _env_int("GCODECLEAN_ARC_SAMPLES", 16))

# Output file naming
OUTPUT_SUFFIX: str = os.getenv("GCODECLEAN_OUTPUT_SUFFIX", "-gcc")
DEFAULT_EXTENSION: str = os.getenv("GCODECLEAN_DEFAULT_EXTENSION", ".nc")

LOG_LEVEL_DEFAULT: str = os.getenv("GCODECLEAN_LOG_LEVEL", "INFO").upper()


# Working envelope; unset bounds leave the axis unbounded
def _parse_clip_envelope() -> dict[str, tuple[Decimal | None, Decimal | None]]:
    envelope = {}
    for axis in ("X", "Y", "Z"):
        low = _env_decimal_optional(f"GCODECLEAN_CLIP_{axis}_MIN")
        high = _env_decimal_optional(f"GCODECLEAN_CLIP_{axis}_MAX")
        if low is not None or high is not None:
            envelope[axis] = (low, high)
    return envelope


CLIP_ENVELOPE: dict[str, tuple[Decimal | None, Decimal | None]] = _parse_clip_envelope()
