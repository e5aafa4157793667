import pytest

from rewindpack.core.models import ReplayChain, TimelineEvent, coerce_event


def test_timeline_event_from_dict_tolerates_missing_fields() -> None:
    event = TimelineEvent.from_dict({"id": "evt_1"})

    assert event.id == "evt_1"
    assert event.agent_id == ""
    assert event.timestamp == 0
    assert event.data == {}
    assert event.cost == 0.0


@pytest.mark.parametrize("cost", [None, "0.5", True])
def test_timeline_event_treats_unusable_cost_as_zero(cost: object) -> None:
    event = TimelineEvent(id="evt", agent_id="a", event_type="llm", timestamp=1, cost=cost)

    assert event.cost == 0.0


def test_timeline_event_model_ignores_blank_values() -> None:
    with_model = TimelineEvent(id="e1", agent_id="a", event_type="llm", timestamp=1, data={"model": "gpt-4o"})
    blank = TimelineEvent(id="e2", agent_id="a", event_type="llm", timestamp=1, data={"model": "  "})

    assert with_model.model == "gpt-4o"
    assert blank.model is None


def test_coerce_event_accepts_events_and_mappings_only() -> None:
    event = TimelineEvent(id="e1", agent_id="a", event_type="llm", timestamp=5)

    assert coerce_event(event) is event
    assert coerce_event(event.to_dict()) == event
    with pytest.raises(TypeError, match="Expected TimelineEvent or mapping"):
        coerce_event(["not", "an", "event"])


def test_replay_chain_from_events_aggregates_cost_and_duration() -> None:
    anchor = TimelineEvent(id="e1", agent_id="a", event_type="llm", timestamp=100, data={"step": 1}, cost=0.25)
    later = TimelineEvent(id="e2", agent_id="a", event_type="llm", timestamp=400, data={"step": 2}, cost=0.5)

    chain = ReplayChain.from_events(anchor, [anchor, later])

    assert chain.total_cost == 0.75
    assert chain.duration == 300
    assert chain.start_state == {"step": 1}
    assert chain.end_state == {"step": 2}
    assert chain.to_dict()["events"][1]["id"] == "e2"
