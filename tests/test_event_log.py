import pytest

from rewindpack.core.models import TimelineEvent
from rewindpack.replay import EventNotFoundError, InMemoryEventLog


def _event(event_id: str, timestamp: int, agent_id: str = "agent-1", cost: float = 0.0) -> TimelineEvent:
    return TimelineEvent(
        id=event_id,
        agent_id=agent_id,
        event_type="llm_call",
        timestamp=timestamp,
        data={"step": event_id},
        cost=cost,
    )


def test_chain_contains_anchor_and_later_events_of_same_agent() -> None:
    log = InMemoryEventLog()
    log.extend(
        [
            _event("e1", 100),
            _event("e2", 200, cost=0.1),
            _event("other", 250, agent_id="agent-2"),
            _event("e4", 400, cost=0.2),
            _event("e3", 300, cost=0.3),
        ]
    )

    chain = log.replay_from_event("e2")

    assert [event.id for event in chain.events] == ["e2", "e3", "e4"]
    assert chain.total_cost == pytest.approx(0.6)
    assert chain.duration == 200
    assert chain.start_state == {"step": "e2"}
    assert chain.end_state == {"step": "e4"}


def test_equal_timestamps_follow_append_order() -> None:
    log = InMemoryEventLog()
    log.extend([_event("a", 100), _event("b", 100), _event("c", 100)])

    assert [event.id for event in log.replay_from_event("b").events] == ["b", "c"]
    assert [event.id for event in log.replay_from_event("a").events] == ["a", "b", "c"]


def test_unknown_event_raises_lookup_error() -> None:
    log = InMemoryEventLog()

    with pytest.raises(EventNotFoundError, match="No events found for replay from: nope") as excinfo:
        log.replay_from_event("nope")

    assert isinstance(excinfo.value, LookupError)
    assert excinfo.value.event_id == "nope"


def test_append_rejects_duplicate_and_empty_ids() -> None:
    log = InMemoryEventLog()
    log.append(_event("e1", 1))

    with pytest.raises(ValueError, match="Duplicate timeline event id: e1"):
        log.append(_event("e1", 2))
    with pytest.raises(ValueError, match="non-empty id"):
        log.append({"id": "", "agent_id": "agent-1"})
    assert len(log) == 1


def test_append_accepts_mappings() -> None:
    log = InMemoryEventLog()
    stored = log.append(
        {"id": "e1", "agent_id": "agent-1", "event_type": "tool", "timestamp": 5, "data": {"x": 1}}
    )

    assert log.get("e1") == stored
    assert log.get("missing") is None
    assert log.events_for_agent("agent-1") == [stored]
    assert log.events_for_agent("agent-2") == []
