"""Recursive path-addressed state diff with depth and exclusion controls."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from rewindpack.diff.models import DiffEntry, StateDiff
from rewindpack.plugins import DiffEndEvent, DiffStartEvent, get_active_plugin_manager

DEFAULT_MAX_DEPTH = 10

# Paths containing any of these markers are bookkeeping, not behavior.
NOISE_PATH_MARKERS: tuple[str, ...] = ("timestamp", "_id", "replayed")


def diff_states(
    left: Any,
    right: Any,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    ignore_paths: Iterable[str] = (),
) -> StateDiff:
    """Diff two JSON-like trees.

    Mappings are compared key by key (``a.b``), sequences positionally by
    index (``a[0]``) with no alignment, so an insertion shifts every later
    index. Comparisons at ``depth >= max_depth`` are skipped; the root is
    depth 0. Entries whose path equals one of ``ignore_paths`` are dropped;
    a bare string names a single path.
    """
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
        raise ValueError(f"max_depth must be a non-negative integer, got {max_depth!r}")

    if isinstance(ignore_paths, str):
        ignore_paths = (ignore_paths,)
    ignored = [str(path) for path in ignore_paths]
    plugin_manager = get_active_plugin_manager()
    plugin_manager.on_diff_start(DiffStartEvent(max_depth=max_depth, ignore_paths=list(ignored)))

    walker = _DiffWalker(max_depth=max_depth, ignore_paths=frozenset(ignored))
    try:
        walker.compare(left, right, path="", depth=0)
        result = StateDiff(changes=walker.changes)
    except Exception as error:
        plugin_manager.on_diff_end(
            DiffEndEvent(
                status="error",
                error_type=error.__class__.__name__,
                error_message=str(error),
            )
        )
        raise

    plugin_manager.on_diff_end(
        DiffEndEvent(status="ok", identical=result.is_identical, summary=result.summary())
    )
    return result


def is_significant(entry: DiffEntry) -> bool:
    return not any(marker in entry.path for marker in NOISE_PATH_MARKERS)


@dataclass(slots=True)
class StateDiffCalculator:
    """Deep comparison of agent state before and after a replay."""

    max_depth: int = DEFAULT_MAX_DEPTH

    def diff(
        self,
        left: Any,
        right: Any,
        *,
        max_depth: int | None = None,
        ignore_paths: Iterable[str] = (),
    ) -> StateDiff:
        return diff_states(
            left,
            right,
            max_depth=self.max_depth if max_depth is None else max_depth,
            ignore_paths=ignore_paths,
        )

    def get_significant_changes(self, diff: StateDiff) -> list[DiffEntry]:
        """Changes whose path carries no timestamp, id or replay marker."""
        return [change for change in diff.changes if is_significant(change)]

    def format(self, diff: StateDiff) -> str:
        from rewindpack.diff.formatting import render_state_diff

        return render_state_diff(diff)


class _DiffWalker:
    __slots__ = ("max_depth", "ignore_paths", "changes")

    def __init__(self, *, max_depth: int, ignore_paths: frozenset[str]) -> None:
        self.max_depth = max_depth
        self.ignore_paths = ignore_paths
        self.changes: list[DiffEntry] = []

    def compare(self, left: Any, right: Any, *, path: str, depth: int) -> None:
        if depth >= self.max_depth or left is right:
            return

        left_kind = _kind(left)
        right_kind = _kind(right)

        if left_kind != right_kind:
            self._record(DiffEntry(path=path, type="changed", old_value=left, new_value=right))
            return

        if left_kind == "mapping":
            self._compare_mappings(left, right, path=path, depth=depth)
            return

        if left_kind == "sequence":
            self._compare_sequences(left, right, path=path, depth=depth)
            return

        if left != right:
            self._record(DiffEntry(path=path, type="changed", old_value=left, new_value=right))

    def _compare_mappings(
        self,
        left: Mapping[Any, Any],
        right: Mapping[Any, Any],
        *,
        path: str,
        depth: int,
    ) -> None:
        for key in left:
            child = _key_path(path, key)
            if key in right:
                self.compare(left[key], right[key], path=child, depth=depth + 1)
            else:
                self._record(DiffEntry(path=child, type="removed", old_value=left[key]))

        for key in right:
            if key not in left:
                self._record(
                    DiffEntry(path=_key_path(path, key), type="added", new_value=right[key])
                )

    def _compare_sequences(self, left: Any, right: Any, *, path: str, depth: int) -> None:
        for index in range(max(len(left), len(right))):
            child = f"{path}[{index}]"
            if index >= len(left):
                self._record(DiffEntry(path=child, type="added", new_value=right[index]))
            elif index >= len(right):
                self._record(DiffEntry(path=child, type="removed", old_value=left[index]))
            else:
                self.compare(left[index], right[index], path=child, depth=depth + 1)

    def _record(self, entry: DiffEntry) -> None:
        if entry.path in self.ignore_paths:
            return
        self.changes.append(entry)


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "sequence"
    return "other"


def _key_path(parent: str, key: Any) -> str:
    return f"{parent}.{key}" if parent else str(key)
