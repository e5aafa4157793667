"""Runtime plugin manager with fault-isolated hook dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
import warnings

from rewindpack.plugins.base import (
    DiffEndEvent,
    DiffStartEvent,
    ReplayEndEvent,
    ReplayStartEvent,
    SnapshotCleanupEvent,
    SnapshotSaveEvent,
)


@dataclass(frozen=True, slots=True)
class PluginDiagnostic:
    plugin_name: str
    hook: str
    event_type: str
    error_type: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "plugin_name": self.plugin_name,
            "hook": self.hook,
            "event_type": self.event_type,
            "error_type": self.error_type,
            "message": self.message,
        }


@dataclass(slots=True)
class PluginManager:
    """Executes lifecycle plugin hooks and captures plugin failures.

    Hooks may fire from batch replay worker threads, so diagnostics are
    appended under a lock.
    """

    plugins: tuple[object, ...] = ()
    diagnostics: list[PluginDiagnostic] = field(default_factory=list)
    _lock: threading.Lock = field(
        default_factory=threading.Lock,
        init=False,
        repr=False,
        compare=False,
    )

    def clear_diagnostics(self) -> None:
        with self._lock:
            self.diagnostics.clear()

    def on_replay_start(self, event: ReplayStartEvent) -> None:
        self._dispatch("on_replay_start", event)

    def on_replay_end(self, event: ReplayEndEvent) -> None:
        self._dispatch("on_replay_end", event)

    def on_diff_start(self, event: DiffStartEvent) -> None:
        self._dispatch("on_diff_start", event)

    def on_diff_end(self, event: DiffEndEvent) -> None:
        self._dispatch("on_diff_end", event)

    def on_snapshot_save(self, event: SnapshotSaveEvent) -> None:
        self._dispatch("on_snapshot_save", event)

    def on_snapshot_cleanup(self, event: SnapshotCleanupEvent) -> None:
        self._dispatch("on_snapshot_cleanup", event)

    def _dispatch(self, hook: str, event: object) -> None:
        for plugin in self.plugins:
            callback = getattr(plugin, hook, None)
            if callback is None:
                continue
            try:
                callback(event)
            except Exception as error:
                self._record_failure(plugin, hook, event, error)

    def _record_failure(self, plugin: object, hook: str, event: object, error: Exception) -> None:
        diagnostic = PluginDiagnostic(
            plugin_name=_plugin_name(plugin),
            hook=hook,
            event_type=type(event).__name__,
            error_type=error.__class__.__name__,
            message=str(error),
        )
        with self._lock:
            self.diagnostics.append(diagnostic)
        warnings.warn(
            (
                f"RewindKit plugin failure: plugin={diagnostic.plugin_name} "
                f"hook={diagnostic.hook} "
                f"error={diagnostic.error_type}: {diagnostic.message}"
            ),
            RuntimeWarning,
            stacklevel=3,
        )


def _plugin_name(plugin: object) -> str:
    name = getattr(plugin, "name", plugin.__class__.__name__)
    return str(name)
