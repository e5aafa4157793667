"""Type definitions for RewindKit core models."""

from typing import Literal

DiffType = Literal["added", "removed", "changed"]

DIFF_TYPES: tuple[str, ...] = (
    "added",
    "removed",
    "changed",
)

# Keys read from a TimelineEvent's data when re-executing it through a router.
GENERATION_PARAM_KEYS: tuple[str, ...] = (
    "model",
    "temperature",
    "max_tokens",
    "top_p",
    "top_k",
)
