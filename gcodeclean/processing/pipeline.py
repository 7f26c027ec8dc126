"""
Cleaning pipeline

Wires the passes in their fixed order. Every stage is a generator, so the
whole pipeline is pulled one line at a time by whoever consumes it.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from decimal import Decimal

from gcodeclean import config
from gcodeclean.gcode.parser import tokenize

from .arcs import convert_arc_radius_to_center, dedup_linear_to_arc
from .augment import augment
from .clip import Envelope, clip
from .dedup import (
    dedup_line,
    dedup_linear,
    dedup_repeated_tokens,
    dedup_select_tokens,
    single_command_per_line,
)
from .join import join_tokens

logger = logging.getLogger(__name__)


@dataclass
class PipelineOptions:
    """Tunables of one cleaning run, defaulting to the configured values"""

    arc_tolerance: Decimal = field(default_factory=lambda: config.ARC_TOLERANCE)
    linear_tolerance: Decimal = field(default_factory=lambda: config.LINEAR_TOLERANCE)
    linear_passes: int = field(default_factory=lambda: config.LINEAR_PASSES)
    select_tokens: str = field(default_factory=lambda: config.SELECT_TOKENS)
    envelope: Envelope = field(default_factory=Envelope.from_config)


def clean_lines(raw_lines: Iterable[str], options: PipelineOptions | None = None) -> Iterator[str]:
    """
    Clean a G-code program

    Args:
        raw_lines: Program text, one block per item
        options: Pass tunables; configured defaults when omitted

    Yields:
        Cleaned output lines, without line terminators
    """
    options = options or PipelineOptions()
    logger.debug(
        f"Pipeline: arc tolerance {options.arc_tolerance}, linear tolerance {options.linear_tolerance} "
        f"x{options.linear_passes}, select {options.select_tokens!r}, envelope {options.envelope.bounds or 'none'}"
    )

    lines = tokenize(raw_lines)
    lines = dedup_repeated_tokens(lines)
    lines = single_command_per_line(lines)
    lines = augment(lines)
    lines = convert_arc_radius_to_center(lines)
    lines = dedup_linear_to_arc(lines, options.arc_tolerance)
    lines = clip(lines, options.envelope)
    lines = dedup_repeated_tokens(lines)
    lines = dedup_line(lines)
    for _ in range(options.linear_passes):
        lines = dedup_linear(lines, options.linear_tolerance)
    lines = dedup_select_tokens(lines, options.select_tokens)
    return join_tokens(lines)
