"""
Cleaning passes over streams of Lines

- augment.py: modal augmentation (explicit motion command and axes)
- arcs.py: R-form arc conversion and linear-to-arc welding
- dedup.py: token, line and collinear-point deduplication
- clip.py: working-envelope clipping
- join.py: serialisation back to text
- pipeline.py: the fixed pass order
"""

from .arcs import convert_arc_radius_to_center, dedup_linear_to_arc
from .augment import augment, augment_line
from .clip import Envelope, clip
from .dedup import (
    dedup_line,
    dedup_linear,
    dedup_repeated_tokens,
    dedup_select_tokens,
    single_command_per_line,
)
from .join import join_tokens
from .pipeline import PipelineOptions, clean_lines

__all__ = [
    "augment",
    "augment_line",
    "convert_arc_radius_to_center",
    "dedup_linear_to_arc",
    "Envelope",
    "clip",
    "dedup_line",
    "dedup_linear",
    "dedup_repeated_tokens",
    "dedup_select_tokens",
    "single_command_per_line",
    "join_tokens",
    "PipelineOptions",
    "clean_lines",
]
