"""Stable public API surface for RewindKit.

This module is the supported import path for library users.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from rewindpack.core.models import ReplayChain, TimelineEvent
from rewindpack.cost import (
    BatchCostComparison,
    CostBreakdown,
    CostComparator,
    CostComparison,
    ModelPricing,
    PricingConfigError,
    PricingError,
    PricingTable,
    UsageCost,
)
from rewindpack.diff import DiffEntry, StateDiff, StateDiffCalculator, diff_states
from rewindpack.replay import (
    BatchReplayOutcome,
    BatchReplayResult,
    EventLog,
    EventNotFoundError,
    ExecutionComparison,
    FakeModelRouter,
    InMemoryEventLog,
    ModelRouter,
    ReplayConfig,
    ReplayConfigError,
    ReplayEngine,
    ReplayError,
    ReplayParams,
    ReplayResult,
    ReplayTimeoutError,
)
from rewindpack.snapshot import (
    DirectorySnapshotStore,
    GzipCodec,
    InMemorySnapshotStore,
    InvalidRetentionPolicyError,
    Snapshot,
    SnapshotCodecError,
    SnapshotError,
    SnapshotManager,
    SnapshotRetentionPolicy,
    SnapshotSerializationError,
    SnapshotStats,
    ZstdCodec,
)

__version__ = "0.1.0"

EventInput = TimelineEvent | Mapping[str, Any]


def diff(
    left: Any,
    right: Any,
    *,
    max_depth: int = 10,
    ignore_paths: Iterable[str] = (),
) -> StateDiff:
    """Structurally diff two JSON-like state trees.

    Args:
        left: Original state.
        right: State to compare against ``left``.
        max_depth: Comparisons at this nesting depth or deeper are skipped.
        ignore_paths: Exact change paths to leave out of the result.

    Returns:
        State diff with path-addressed added/removed/changed entries.

    Raises:
        ValueError: If ``max_depth`` is negative or not an integer.
    """
    return diff_states(left, right, max_depth=max_depth, ignore_paths=ignore_paths)


def compare_costs(
    original: Sequence[EventInput],
    replayed: Sequence[EventInput],
    *,
    pricing: PricingTable | None = None,
) -> CostComparison:
    """Compare what two executions cost.

    Args:
        original: Events of the original execution.
        replayed: Events of the replayed execution.
        pricing: Pricing table; defaults to the built-in table or the file named
            by ``REWINDKIT_PRICING_FILE``.

    Returns:
        Cost comparison with per-side breakdowns, savings and recommendations.
    """
    comparator = CostComparator(pricing=pricing) if pricing is not None else CostComparator()
    return comparator.compare(original, replayed)


def replay(
    event_log: EventLog,
    router: ModelRouter,
    event_id: str,
    *,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    top_p: float | None = None,
    top_k: int | None = None,
    stop_at_event_id: str | None = None,
    timeout_seconds: float | None = None,
) -> ReplayResult:
    """Replay the causal chain starting at ``event_id`` with overrides.

    Args:
        event_log: Source of recorded events.
        router: Model router used to re-execute each event.
        event_id: Anchor event of the replay.
        model: Model override.
        temperature: Temperature override.
        max_tokens: Max tokens override.
        top_p: Top-p override.
        top_k: Top-k override.
        stop_at_event_id: Last event to replay (inclusive).
        timeout_seconds: Per router call timeout; defaults to
            ``REWINDKIT_REPLAY_TIMEOUT_SECONDS`` or 30 seconds.

    Returns:
        Replay result with replayed events and the cost delta.

    Raises:
        EventNotFoundError: If ``event_id`` is not in the event log.
        ReplayTimeoutError: If a router call exceeds the timeout.
        ReplayConfigError: If an override is out of range.
    """
    config = ReplayConfig(timeout_seconds=timeout_seconds) if timeout_seconds is not None else None
    engine = ReplayEngine(event_log=event_log, router=router, config=config)
    params = ReplayParams(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        top_p=top_p,
        top_k=top_k,
        stop_at_event_id=stop_at_event_id,
    )
    return engine.replay(event_id, params)


__all__ = [
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
