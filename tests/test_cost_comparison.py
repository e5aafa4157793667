import pytest

from rewindpack.core.models import TimelineEvent
from rewindpack.cost import CostComparator, PricingTable


def _event(event_id: str, cost: float, model: str | None = None, **data: object) -> TimelineEvent:
    payload = dict(data)
    if model is not None:
        payload["model"] = model
    return TimelineEvent(
        id=event_id,
        agent_id="agent-1",
        event_type="llm_call",
        timestamp=1000,
        data=payload,
        cost=cost,
    )


def _comparator() -> CostComparator:
    return CostComparator(pricing=PricingTable())


def test_opus_to_sonnet_downgrade_headline_and_tier_note() -> None:
    comparison = _comparator().compare(
        [_event("e1", 0.165, "claude-opus-4")],
        [_event("e1", 0.033, "claude-sonnet-4-5")],
    )

    assert comparison.savings == pytest.approx(0.132)
    assert comparison.savings_percent == pytest.approx(80.0)
    assert comparison.recommendations == [
        "Using claude-sonnet-4-5 saves $0.1320 (80.0%)",
        "Opus to Sonnet downgrade saved money; consider Sonnet by default",
    ]


def test_sonnet_to_haiku_downgrade_note() -> None:
    comparison = _comparator().compare(
        [_event("e1", 0.01, "claude-sonnet-4-5")],
        [_event("e1", 0.001, "claude-haiku-4-5")],
    )

    assert "Sonnet to Haiku downgrade saved money; consider it for simple tasks" in (
        comparison.recommendations
    )


def test_more_expensive_replay_reports_negative_savings() -> None:
    comparison = _comparator().compare(
        [_event("e1", 0.01, "claude-haiku-4-5")],
        [_event("e1", 0.05, "claude-opus-4")],
    )

    assert comparison.savings == pytest.approx(-0.04)
    assert comparison.savings_percent == pytest.approx(-400.0)
    assert comparison.recommendations[0] == "Caution: using claude-opus-4 costs $0.0400 more (400.0%)"
    assert not any("downgrade" in note for note in comparison.recommendations)


def test_zero_original_cost_yields_zero_percent() -> None:
    comparison = _comparator().compare([], [_event("e1", 0.5, "gpt-4o")])

    assert comparison.original.total == 0.0
    assert comparison.savings == pytest.approx(-0.5)
    assert comparison.savings_percent == 0.0


def test_identical_costs_report_no_savings() -> None:
    comparison = _comparator().compare(
        [_event("e1", 0.2, "gpt-4o")],
        [_event("e1", 0.2, "gpt-4o")],
    )

    assert comparison.savings == 0.0
    assert comparison.recommendations == ["Caution: no cost savings; costs are identical"]


def test_breakdown_groups_cost_by_model_and_accepts_mappings() -> None:
    replayed = [
        _event("e1", 0.5, "gpt-4o", input_tokens=100, output_tokens=40),
        {"id": "e2", "agent_id": "agent-1", "event_type": "llm_call", "timestamp": 2, "data": {}},
        {"id": "e3", "data": {"model": "claude-haiku-4-5"}},
        _event("e4", 0.5, None, input_tokens="many"),
    ]

    breakdown = _comparator().compare([], replayed).replayed

    assert breakdown.total == pytest.approx(1.0)
    assert breakdown.by_model == {"gpt-4o": 0.5, "claude-haiku-4-5": 0.0}
    assert breakdown.model == "gpt-4o"
    assert breakdown.input_tokens == 100
    assert breakdown.output_tokens == 40
    assert breakdown.event_count == 4


def test_token_and_output_length_heuristics() -> None:
    comparison = _comparator().compare(
        [_event("e1", 0.3, "claude-opus-4", input_tokens=1000, output_tokens=800)],
        [_event("e1", 0.1, "claude-sonnet-4-5", input_tokens=1000, output_tokens=200)],
    )

    assert "claude-sonnet-4-5 uses 600 fewer tokens (more concise)" in comparison.recommendations
    assert (
        "claude-sonnet-4-5 produces significantly shorter output; verify quality"
        in comparison.recommendations
    )


def test_verbose_replay_heuristics() -> None:
    comparison = _comparator().compare(
        [_event("e1", 0.1, "gpt-4o", input_tokens=100, output_tokens=100)],
        [_event("e1", 0.1, "gpt-4o", input_tokens=100, output_tokens=400)],
    )

    assert "gpt-4o uses 300 more tokens (more verbose)" in comparison.recommendations
    assert (
        "gpt-4o produces significantly longer output; may be overly verbose"
        in comparison.recommendations
    )


def test_gemini_flash_note() -> None:
    comparison = _comparator().compare(
        [_event("e1", 0.01, "gpt-4o")],
        [_event("e1", 0.0, "gemini-2.0-flash-exp")],
    )

    assert comparison.recommendations[-1] == (
        "Gemini Flash is free; large savings possible for high-volume tasks"
    )


def test_batch_compare_totals_and_extremes() -> None:
    pairs = [
        ([_event("a", 0.5)], [_event("a", 0.25)]),
        ([_event("b", 1.0)], [_event("b", 0.5)]),
        {"original": [_event("c", 0.75)], "replayed": [_event("c", 0.25)]},
        ([_event("d", 0.25)], [_event("d", 0.5)]),
    ]

    batch = _comparator().batch_compare(pairs)

    assert len(batch.comparisons) == 4
    assert batch.best_savings is batch.comparisons[1]
    assert batch.worst_savings is batch.comparisons[3]
    assert batch.totals == pytest.approx(
        {
            "original_cost": 2.5,
            "replayed_cost": 1.5,
            "savings": 1.0,
            "savings_percent": 40.0,
        }
    )


def test_batch_compare_of_nothing() -> None:
    batch = _comparator().batch_compare([])

    assert batch.comparisons == []
    assert batch.best_savings is None
    assert batch.worst_savings is None
    assert batch.totals["savings_percent"] == 0.0
    assert batch.to_dict()["best_savings"] is None


def test_format_renders_both_sides_and_recommendations() -> None:
    comparator = _comparator()
    comparison = comparator.compare(
        [
            _event("e1", 0.1, "claude-opus-4", input_tokens=10, output_tokens=5),
            _event("e2", 0.2, "gpt-4o"),
        ],
        [_event("e1", 0.05, "claude-sonnet-4-5", input_tokens=10, output_tokens=5)],
    )

    text = comparator.format(comparison)

    assert text.startswith("=== Cost Comparison ===")
    assert "Original (claude-opus-4):" in text
    assert "  Total: $0.300000" in text
    assert "  By model:" in text
    assert "    gpt-4o: $0.200000" in text
    assert "Replayed (claude-sonnet-4-5):" in text
    assert "Savings: $0.250000 (83.3%)" in text
    assert "Recommendations:" in text
    assert "  - Using claude-sonnet-4-5 saves $0.2500 (83.3%)" in text


def test_cost_for_usage_uses_table_and_fallback() -> None:
    comparator = _comparator()

    assert comparator.cost_for_usage("claude-sonnet-4-5", 1_000_000, 1_000_000) == pytest.approx(18.0)
    assert comparator.cost_for_usage("some-new-model", 1_000_000, 1_000_000) == pytest.approx(4.0)
    assert comparator.cost_for_usage(None, 0, 0) == 0.0
