"""Deterministic canonicalization helpers for RewindKit."""

from __future__ import annotations

from collections.abc import Mapping
import json
import math
from typing import Any


def canonicalize(value: Any) -> Any:
    """Normalize values to a deterministic JSON-compatible representation.

    Mapping keys are stringified and sorted, tuples become lists, and
    non-finite floats are rejected. Other unsupported values are returned
    unchanged so the JSON encoder reports them.
    """
    return _canonicalize(value, path="")


def canonical_json(value: Any) -> str:
    """Serialize a value to stable canonical JSON."""
    return json.dumps(
        canonicalize(value),
        ensure_ascii=True,
        separators=(",", ":"),
        sort_keys=True,
        allow_nan=False,
    )


def _canonicalize(value: Any, *, path: str) -> Any:
    if isinstance(value, Mapping):
        normalized: dict[str, Any] = {}
        for key in sorted(value.keys(), key=lambda raw: str(raw)):
            key_name = str(key)
            child = f"{path}.{key_name}" if path else key_name
            normalized[key_name] = _canonicalize(value[key], path=child)
        return normalized

    if isinstance(value, (list, tuple)):
        return [
            _canonicalize(item, path=f"{path}[{index}]")
            for index, item in enumerate(value)
        ]

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(
                f"NaN and infinity are not supported in canonical JSON (at {path or '<root>'})"
            )
        return value

    return value
