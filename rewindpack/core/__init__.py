"""Core models and deterministic primitives for RewindKit."""

from rewindpack.core.canonical import canonical_json, canonicalize
from rewindpack.core.models import ReplayChain, TimelineEvent, coerce_event, now_ms
from rewindpack.core.types import DIFF_TYPES, GENERATION_PARAM_KEYS, DiffType

__all__ = [
    "TimelineEvent",
    "ReplayChain",
    "DIFF_TYPES",
    "DiffType",
    "GENERATION_PARAM_KEYS",
    "canonicalize",
    "canonical_json",
    "coerce_event",
    "now_ms",
]
