"""Core data models for RewindKit timeline events and replay chains."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import time
from typing import Any


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class TimelineEvent:
    """One immutable recorded step of an agent execution."""

    id: str
    agent_id: str
    event_type: str
    timestamp: int
    data: dict[str, Any] = field(default_factory=dict)
    cost: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.data, Mapping):
            object.__setattr__(self, "data", {})
        if not isinstance(self.cost, (int, float)) or isinstance(self.cost, bool):
            object.__setattr__(self, "cost", 0.0)

    def recorded(self, key: str) -> Any:
        """Value recorded under ``key`` in the event payload, if any."""
        return self.data.get(key)

    @property
    def model(self) -> str | None:
        value = self.data.get("model")
        if isinstance(value, str) and value.strip():
            return value
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "data": dict(self.data),
            "cost": self.cost,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TimelineEvent":
        return cls(
            id=str(raw.get("id", "")),
            agent_id=str(raw.get("agent_id", "")),
            event_type=str(raw.get("event_type", "")),
            timestamp=int(raw.get("timestamp") or 0),
            data=dict(raw.get("data") or {}),
            cost=raw.get("cost") or 0.0,
        )


def coerce_event(value: TimelineEvent | Mapping[str, Any]) -> TimelineEvent:
    """Accept either a TimelineEvent or its plain-mapping form."""
    if isinstance(value, TimelineEvent):
        return value
    if isinstance(value, Mapping):
        return TimelineEvent.from_dict(value)
    raise TypeError(f"Expected TimelineEvent or mapping, got {type(value).__name__}")


@dataclass(slots=True)
class ReplayChain:
    """Causal chain of events returned by an event log for replay."""

    events: list[TimelineEvent]
    total_cost: float
    duration: int
    start_state: Any
    end_state: Any

    @classmethod
    def from_events(cls, anchor: TimelineEvent, events: Sequence[TimelineEvent]) -> "ReplayChain":
        ordered = list(events)
        total_cost = 0.0
        for event in ordered:
            total_cost += event.cost
        timestamps = [event.timestamp for event in ordered]
        duration = max(timestamps) - min(timestamps) if len(timestamps) > 1 else 0
        return cls(
            events=ordered,
            total_cost=total_cost,
            duration=duration,
            start_state=anchor.data,
            end_state=ordered[-1].data if ordered else anchor.data,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "events": [event.to_dict() for event in self.events],
            "total_cost": self.total_cost,
            "duration": self.duration,
            "start_state": self.start_state,
            "end_state": self.end_state,
        }
