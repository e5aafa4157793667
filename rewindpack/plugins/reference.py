"""Reference lifecycle plugin implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
import threading

from rewindpack.plugins.base import (
    DiffEndEvent,
    DiffStartEvent,
    LifecyclePlugin,
    ReplayEndEvent,
    ReplayStartEvent,
    SnapshotCleanupEvent,
    SnapshotSaveEvent,
)


@dataclass(slots=True)
class LifecycleTracePlugin(LifecyclePlugin):
    """Writes every lifecycle hook it receives as one NDJSON line.

    Lines are appended under a lock because batch replay fires hooks from
    worker threads.
    """

    output_path: str = "runs/plugins/rewind-trace.ndjson"
    name: str = "rewind-trace"
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def on_replay_start(self, event: ReplayStartEvent) -> None:
        self._append("on_replay_start", event)

    def on_replay_end(self, event: ReplayEndEvent) -> None:
        self._append("on_replay_end", event)

    def on_diff_start(self, event: DiffStartEvent) -> None:
        self._append("on_diff_start", event)

    def on_diff_end(self, event: DiffEndEvent) -> None:
        self._append("on_diff_end", event)

    def on_snapshot_save(self, event: SnapshotSaveEvent) -> None:
        self._append("on_snapshot_save", event)

    def on_snapshot_cleanup(self, event: SnapshotCleanupEvent) -> None:
        self._append("on_snapshot_cleanup", event)

    def _append(self, hook: str, event: object) -> None:
        path = Path(self.output_path)
        payload = {
            "hook": hook,
            "plugin": self.name,
            "event": event.to_dict(),  # type: ignore[attr-defined]
        }
        line = json.dumps(payload, ensure_ascii=True, sort_keys=True, separators=(",", ":"), default=str)
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
