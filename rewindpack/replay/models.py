"""Data models for replay runs, comparisons and batches."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import math
from typing import Any, Literal

from rewindpack.core.models import TimelineEvent
from rewindpack.core.types import GENERATION_PARAM_KEYS
from rewindpack.cost.comparison import CostComparison
from rewindpack.diff.models import StateDiff
from rewindpack.replay.exceptions import ReplayConfigError

OutcomeStatus = Literal["ok", "error"]

_PARAM_FIELDS = GENERATION_PARAM_KEYS + ("stop_at_event_id",)


@dataclass(frozen=True, slots=True)
class ReplayParams:
    """Generation overrides; ``None`` means "use the recorded value"."""

    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    top_k: int | None = None
    stop_at_event_id: str | None = None

    def __post_init__(self) -> None:
        if self.model is not None and (not isinstance(self.model, str) or not self.model.strip()):
            raise ReplayConfigError("model must be a non-empty string")
        _check_non_negative("temperature", self.temperature)
        _check_non_negative("top_p", self.top_p)
        _check_positive_int("max_tokens", self.max_tokens)
        _check_positive_int("top_k", self.top_k)
        if self.stop_at_event_id is not None and not isinstance(self.stop_at_event_id, str):
            raise ReplayConfigError("stop_at_event_id must be a string")

    def merged_with(self, event: TimelineEvent) -> dict[str, Any]:
        """Generation parameters for ``event``: explicit override wins."""
        merged: dict[str, Any] = {}
        for key in GENERATION_PARAM_KEYS:
            override = getattr(self, key)
            merged[key] = override if override is not None else event.recorded(key)
        return merged

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in _PARAM_FIELDS}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ReplayParams":
        unknown = sorted(str(key) for key in raw if key not in _PARAM_FIELDS)
        if unknown:
            raise ReplayConfigError(f"Unsupported replay parameter(s): {', '.join(unknown)}")
        return cls(**{name: raw.get(name) for name in _PARAM_FIELDS})


def coerce_params(value: ReplayParams | Mapping[str, Any] | None) -> ReplayParams:
    if value is None:
        return ReplayParams()
    if isinstance(value, ReplayParams):
        return value
    if isinstance(value, Mapping):
        return ReplayParams.from_dict(value)
    raise ReplayConfigError(f"Expected ReplayParams or mapping, got {type(value).__name__}")


def _check_non_negative(name: str, value: Any) -> None:
    if value is None:
        return
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value < 0
    ):
        raise ReplayConfigError(f"{name} must be a finite number >= 0, got {value!r}")


def _check_positive_int(name: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ReplayConfigError(f"{name} must be an integer >= 1, got {value!r}")


@dataclass(slots=True)
class ReplayResult:
    original_event: TimelineEvent
    replayed_events: list[TimelineEvent]
    start_state: Any
    end_state: Any
    original_cost: float
    replay_cost: float
    cost_savings: float
    cost_savings_percent: float
    duration_ms: int
    params: ReplayParams
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_event": self.original_event.to_dict(),
            "replayed_events": [event.to_dict() for event in self.replayed_events],
            "start_state": self.start_state,
            "end_state": self.end_state,
            "original_cost": self.original_cost,
            "replay_cost": self.replay_cost,
            "cost_savings": self.cost_savings,
            "cost_savings_percent": self.cost_savings_percent,
            "duration_ms": self.duration_ms,
            "params": self.params.to_dict(),
            "timestamp": self.timestamp,
        }


@dataclass(slots=True)
class ExecutionComparison:
    diff: StateDiff
    cost: CostComparison

    def to_dict(self) -> dict[str, Any]:
        return {"diff": self.diff.to_dict(), "cost": self.cost.to_dict()}


@dataclass(slots=True)
class BatchReplayOutcome:
    """Per-id batch replay result; exactly one of result or error is set."""

    event_id: str
    status: OutcomeStatus
    result: ReplayResult | None = None
    error_type: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, event_id: str, result: ReplayResult) -> "BatchReplayOutcome":
        return cls(event_id=event_id, status="ok", result=result)

    @classmethod
    def failure(cls, event_id: str, error: Exception) -> "BatchReplayOutcome":
        return cls(
            event_id=event_id,
            status="error",
            error_type=error.__class__.__name__,
            error_message=str(error),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "status": self.status,
            "result": self.result.to_dict() if self.result is not None else None,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


@dataclass(slots=True)
class BatchReplayResult:
    outcomes: list[BatchReplayOutcome] = field(default_factory=list)

    @property
    def results(self) -> list[ReplayResult]:
        return [outcome.result for outcome in self.outcomes if outcome.result is not None]

    @property
    def failures(self) -> list[BatchReplayOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "succeeded": len(self.results),
            "failed": len(self.failures),
        }
