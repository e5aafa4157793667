import inspect
from pathlib import Path

import pytest

import rewindkit


def test_public_api_symbol_list_is_explicit_and_stable() -> None:
    assert rewindkit.__all__ == [
        "__version__",
        "TimelineEvent",
        "ReplayChain",
        "EventLog",
        "ModelRouter",
        "InMemoryEventLog",
        "FakeModelRouter",
        "ReplayEngine",
        "ReplayConfig",
        "ReplayParams",
        "ReplayResult",
        "ExecutionComparison",
        "BatchReplayOutcome",
        "BatchReplayResult",
        "StateDiffCalculator",
        "StateDiff",
        "DiffEntry",
        "CostComparator",
        "CostBreakdown",
        "CostComparison",
        "BatchCostComparison",
        "ModelPricing",
        "PricingTable",
        "UsageCost",
        "SnapshotManager",
        "Snapshot",
        "SnapshotRetentionPolicy",
        "SnapshotStats",
        "InMemorySnapshotStore",
        "DirectorySnapshotStore",
        "ZstdCodec",
        "GzipCodec",
        "ReplayError",
        "ReplayConfigError",
        "EventNotFoundError",
        "ReplayTimeoutError",
        "SnapshotError",
        "InvalidRetentionPolicyError",
        "SnapshotSerializationError",
        "SnapshotCodecError",
        "PricingError",
        "PricingConfigError",
        "diff",
        "compare_costs",
        "replay",
    ]
    for name in rewindkit.__all__:
        assert hasattr(rewindkit, name)


def test_public_api_function_signatures_and_annotations() -> None:
    expected_parameter_order = {
        "diff": ("left", "right", "max_depth", "ignore_paths"),
        "compare_costs": ("original", "replayed", "pricing"),
        "replay": (
            "event_log",
            "router",
            "event_id",
            "model",
            "temperature",
            "max_tokens",
            "top_p",
            "top_k",
            "stop_at_event_id",
            "timeout_seconds",
        ),
    }
    positional_counts = {"diff": 2, "compare_costs": 2, "replay": 3}

    for name, parameters in expected_parameter_order.items():
        function = getattr(rewindkit, name)
        signature = inspect.signature(function)
        assert tuple(signature.parameters.keys()) == parameters
        assert "return" in function.__annotations__
        assert function.__doc__ is not None
        assert function.__doc__.strip() != ""

        for index, parameter in enumerate(signature.parameters.values()):
            if index < positional_counts[name]:
                assert parameter.kind is inspect.Parameter.POSITIONAL_OR_KEYWORD
            else:
                assert parameter.kind is inspect.Parameter.KEYWORD_ONLY


def test_core_workflow_works_via_public_api_only(tmp_path: Path) -> None:
    log = rewindkit.InMemoryEventLog()
    log.extend(
        [
            rewindkit.TimelineEvent(
                id="evt_1",
                agent_id="agent-1",
                event_type="llm_call",
                timestamp=1000,
                data={"model": "claude-opus-4", "messages": [{"role": "user", "content": "hi"}]},
                cost=0.05,
            ),
            rewindkit.TimelineEvent(
                id="evt_2",
                agent_id="agent-1",
                event_type="llm_call",
                timestamp=2000,
                data={"model": "claude-opus-4", "messages": []},
                cost=0.05,
            ),
        ]
    )
    router = rewindkit.FakeModelRouter(usage_by_model={"claude-haiku-4-5": (1000, 500)})

    result = rewindkit.replay(log, router, "evt_1", model="claude-haiku-4-5", timeout_seconds=5)
    assert [event.id for event in result.replayed_events] == ["replay-evt_1", "replay-evt_2"]
    assert result.cost_savings > 0

    original = [log.get("evt_1"), log.get("evt_2")]
    comparison = rewindkit.compare_costs(
        original,
        result.replayed_events,
        pricing=rewindkit.PricingTable(),
    )
    assert comparison.savings == pytest.approx(result.cost_savings)
    assert comparison.recommendations[0].startswith("Using claude-haiku-4-5 saves $")

    state_diff = rewindkit.diff(result.start_state, result.end_state, ignore_paths=["result"])
    assert not state_diff.is_identical
    assert "result" not in {change.path for change in state_diff.changes}

    manager = rewindkit.SnapshotManager(store=rewindkit.DirectorySnapshotStore(tmp_path / "snaps"))
    snapshot_id = manager.save("agent-1", "evt_1", result.end_state)
    snapshot = manager.get(snapshot_id)
    assert snapshot is not None
    assert snapshot.data == result.end_state
    assert manager.get_stats().total == 1


def test_public_errors_share_subsystem_bases() -> None:
    assert issubclass(rewindkit.EventNotFoundError, rewindkit.ReplayError)
    assert issubclass(rewindkit.ReplayTimeoutError, rewindkit.ReplayError)
    assert issubclass(rewindkit.ReplayConfigError, rewindkit.ReplayError)
    assert issubclass(rewindkit.InvalidRetentionPolicyError, rewindkit.SnapshotError)
    assert issubclass(rewindkit.SnapshotSerializationError, rewindkit.SnapshotError)
    assert issubclass(rewindkit.SnapshotCodecError, rewindkit.SnapshotError)
    assert issubclass(rewindkit.PricingConfigError, rewindkit.PricingError)
