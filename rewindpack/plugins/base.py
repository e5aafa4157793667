"""Versioned plugin interfaces and lifecycle event payloads."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

PLUGIN_API_VERSION = "1.0"
PLUGIN_CONFIG_VERSION = 1
PLUGIN_CONFIG_ENV_VAR = "REWINDKIT_PLUGIN_CONFIG"

LifecycleStatus = Literal["ok", "error"]


@dataclass(frozen=True, slots=True)
class ReplayStartEvent:
    event_id: str
    params: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ReplayEndEvent:
    event_id: str
    status: LifecycleStatus
    replayed_event_count: int | None = None
    original_cost: float | None = None
    replay_cost: float | None = None
    error_type: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DiffStartEvent:
    max_depth: int
    ignore_paths: list[str]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DiffEndEvent:
    status: LifecycleStatus
    identical: bool | None = None
    summary: dict[str, int] | None = None
    error_type: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SnapshotSaveEvent:
    snapshot_id: str
    agent_id: str
    event_id: str
    size: int
    stored_size: int
    compressed: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SnapshotCleanupEvent:
    deleted_count: int
    max_age_days: float
    max_snapshots_per_agent: int | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class LifecyclePlugin:
    """Base no-op lifecycle plugin interface (API v1.x)."""

    api_version = PLUGIN_API_VERSION
    name = "lifecycle-plugin"

    def on_replay_start(self, event: ReplayStartEvent) -> None:
        return None

    def on_replay_end(self, event: ReplayEndEvent) -> None:
        return None

    def on_diff_start(self, event: DiffStartEvent) -> None:
        return None

    def on_diff_end(self, event: DiffEndEvent) -> None:
        return None

    def on_snapshot_save(self, event: SnapshotSaveEvent) -> None:
        return None

    def on_snapshot_cleanup(self, event: SnapshotCleanupEvent) -> None:
        return None
