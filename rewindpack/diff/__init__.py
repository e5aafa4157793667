"""State diff subsystem for RewindKit."""

from rewindpack.diff.engine import (
    DEFAULT_MAX_DEPTH,
    NOISE_PATH_MARKERS,
    StateDiffCalculator,
    diff_states,
    is_significant,
)
from rewindpack.diff.formatting import format_value, render_state_diff
from rewindpack.diff.models import DiffEntry, StateDiff

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "NOISE_PATH_MARKERS",
    "DiffEntry",
    "StateDiff",
    "StateDiffCalculator",
    "diff_states",
    "is_significant",
    "format_value",
    "render_state_diff",
]
