"""Data models for path-addressed state diffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rewindpack.core.types import DIFF_TYPES, DiffType


@dataclass(slots=True)
class DiffEntry:
    """A single change at a dotted/bracketed path such as ``data.messages[0]``."""

    path: str
    type: DiffType
    old_value: Any = None
    new_value: Any = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"path": self.path, "type": self.type}
        if self.type != "added":
            payload["old_value"] = self.old_value
        if self.type != "removed":
            payload["new_value"] = self.new_value
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "DiffEntry":
        entry_type = raw.get("type")
        if entry_type not in DIFF_TYPES:
            raise ValueError(f"Unknown diff entry type: {entry_type!r}")
        return cls(
            path=str(raw.get("path", "")),
            type=entry_type,
            old_value=raw.get("old_value"),
            new_value=raw.get("new_value"),
        )


@dataclass(slots=True)
class StateDiff:
    """Structured diff between two state trees."""

    changes: list[DiffEntry] = field(default_factory=list)

    @property
    def is_identical(self) -> bool:
        return not self.changes

    def summary(self) -> dict[str, int]:
        counts = {name: 0 for name in DIFF_TYPES}
        for change in self.changes:
            counts[change.type] += 1
        counts["total"] = len(self.changes)
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_identical": self.is_identical,
            "summary": self.summary(),
            "changes": [change.to_dict() for change in self.changes],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "StateDiff":
        return cls(changes=[DiffEntry.from_dict(item) for item in raw.get("changes", [])])
