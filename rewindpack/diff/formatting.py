"""Human-readable rendering for state diffs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rewindpack.diff.engine import is_significant
from rewindpack.diff.models import StateDiff

DEFAULT_MAX_RENDERED_CHANGES = 50

_MARKERS = {"added": "+", "removed": "-", "changed": "~"}


def render_state_diff(diff: StateDiff, *, max_changes: int = DEFAULT_MAX_RENDERED_CHANGES) -> str:
    summary = diff.summary()
    lines: list[str] = [
        "=== State Diff ===",
        f"Identical: {'yes' if diff.is_identical else 'no'}",
        "",
        "Summary:",
        f"  Added: {summary['added']}",
        f"  Removed: {summary['removed']}",
        f"  Changed: {summary['changed']}",
        f"  Total changes: {summary['total']}",
        "",
    ]

    if not diff.changes:
        return "\n".join(lines)

    significant = [change for change in diff.changes if is_significant(change)]
    lines.append("Changes:")
    for change in significant[:max_changes]:
        lines.append(f"  {_MARKERS[change.type]} {change.path}")
        if change.type == "changed":
            lines.append(f"      {format_value(change.old_value)} -> {format_value(change.new_value)}")
        elif change.type == "added":
            lines.append(f"      + {format_value(change.new_value)}")
        else:
            lines.append(f"      - {format_value(change.old_value)}")

    if len(significant) > max_changes:
        lines.append(f"  ... and {len(significant) - max_changes} more changes")

    return "\n".join(lines)


def format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value[:100]}"'
    if isinstance(value, Mapping):
        return f"Object({len(value)} keys)"
    if isinstance(value, (list, tuple)):
        return f"Array({len(value)})"
    return str(value)
