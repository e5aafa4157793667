"""In-memory reference event log."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import threading
from typing import Any

from rewindpack.core.models import ReplayChain, TimelineEvent, coerce_event
from rewindpack.replay.exceptions import EventNotFoundError


@dataclass(slots=True)
class InMemoryEventLog:
    """Append-only event log keeping insertion order.

    The causal chain of an event is the event itself followed by every event
    of the same agent recorded at or after its timestamp, in timestamp order.
    Events sharing the anchor's timestamp belong to the chain only when they
    were appended after it.
    """

    _events: list[TimelineEvent] = field(default_factory=list, init=False, repr=False)
    _positions: dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: TimelineEvent | Mapping[str, Any]) -> TimelineEvent:
        record = coerce_event(event)
        if not record.id:
            raise ValueError("Timeline events require a non-empty id")
        with self._lock:
            if record.id in self._positions:
                raise ValueError(f"Duplicate timeline event id: {record.id}")
            self._positions[record.id] = len(self._events)
            self._events.append(record)
        return record

    def extend(self, events: Iterable[TimelineEvent | Mapping[str, Any]]) -> None:
        for event in events:
            self.append(event)

    def get(self, event_id: str) -> TimelineEvent | None:
        with self._lock:
            position = self._positions.get(event_id)
            return None if position is None else self._events[position]

    def events_for_agent(self, agent_id: str) -> list[TimelineEvent]:
        with self._lock:
            snapshot = list(self._events)
        return sorted(
            (event for event in snapshot if event.agent_id == agent_id),
            key=lambda event: event.timestamp,
        )

    def replay_from_event(self, event_id: str) -> ReplayChain:
        with self._lock:
            anchor_position = self._positions.get(event_id)
            snapshot = list(self._events)
        if anchor_position is None:
            raise EventNotFoundError(event_id)

        anchor = snapshot[anchor_position]
        later = [
            (event.timestamp, position, event)
            for position, event in enumerate(snapshot)
            if position != anchor_position
            and event.agent_id == anchor.agent_id
            and (
                event.timestamp > anchor.timestamp
                or (event.timestamp == anchor.timestamp and position > anchor_position)
            )
        ]
        later.sort(key=lambda item: (item[0], item[1]))
        return ReplayChain.from_events(anchor, [anchor] + [item[2] for item in later])
