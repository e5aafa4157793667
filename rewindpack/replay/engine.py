"""Replay engine: re-run an event chain with overridden generation parameters."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed, wait
import contextvars
from dataclasses import dataclass, field
import math
import os
from typing import Any
import warnings

from rewindpack.core.models import TimelineEvent, coerce_event, now_ms
from rewindpack.cost.comparison import CostComparator
from rewindpack.diff.engine import StateDiffCalculator
from rewindpack.plugins import ReplayEndEvent, ReplayStartEvent, get_active_plugin_manager
from rewindpack.replay.base import EventLog, ModelRouter
from rewindpack.replay.exceptions import EventNotFoundError, ReplayConfigError, ReplayTimeoutError
from rewindpack.replay.models import (
    BatchReplayOutcome,
    BatchReplayResult,
    ExecutionComparison,
    ReplayParams,
    ReplayResult,
    coerce_params,
)

REPLAY_ID_PREFIX = "replay-"

_TIMEOUT_ENV = "REWINDKIT_REPLAY_TIMEOUT_SECONDS"
_DEFAULT_TIMEOUT_SECONDS = 30.0
_MAX_TIMEOUT_SECONDS = 600.0
_MAX_WORKERS_ENV = "REWINDKIT_REPLAY_MAX_WORKERS"
_DEFAULT_MAX_WORKERS = 4

EventInput = TimelineEvent | Mapping[str, Any]


def _resolve_replay_timeout_seconds() -> float:
    raw = os.environ.get(_TIMEOUT_ENV)
    if raw is None:
        return _DEFAULT_TIMEOUT_SECONDS
    try:
        parsed = float(raw)
    except ValueError:
        return _DEFAULT_TIMEOUT_SECONDS
    if not math.isfinite(parsed) or parsed <= 0:
        return _DEFAULT_TIMEOUT_SECONDS
    return min(parsed, _MAX_TIMEOUT_SECONDS)


def _resolve_replay_max_workers() -> int:
    raw = os.environ.get(_MAX_WORKERS_ENV)
    if raw is None:
        return _DEFAULT_MAX_WORKERS
    try:
        parsed = int(raw)
    except ValueError:
        return _DEFAULT_MAX_WORKERS
    if parsed < 1:
        return _DEFAULT_MAX_WORKERS
    return parsed


@dataclass(slots=True)
class ReplayConfig:
    """Limits applied around router calls and batch fan-out."""

    timeout_seconds: float = field(default_factory=_resolve_replay_timeout_seconds)
    max_workers: int = field(default_factory=_resolve_replay_max_workers)

    def __post_init__(self) -> None:
        if (
            isinstance(self.timeout_seconds, bool)
            or not isinstance(self.timeout_seconds, (int, float))
            or not math.isfinite(self.timeout_seconds)
            or self.timeout_seconds <= 0
        ):
            raise ReplayConfigError("timeout_seconds must be a positive number")
        if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int):
            raise ReplayConfigError("max_workers must be an integer")
        if self.max_workers < 1:
            raise ReplayConfigError("max_workers must be >= 1")


@dataclass(slots=True)
class ReplayEngine:
    """Replays causal chains from an event log through a model router."""

    event_log: EventLog
    router: ModelRouter
    comparator: CostComparator | None = None
    diff_calculator: StateDiffCalculator | None = None
    config: ReplayConfig | None = None
    clock: Callable[[], int] = now_ms

    def __post_init__(self) -> None:
        if self.comparator is None:
            self.comparator = CostComparator()
        if self.diff_calculator is None:
            self.diff_calculator = StateDiffCalculator()
        if self.config is None:
            self.config = ReplayConfig()

    def replay(
        self,
        event_id: str,
        params: ReplayParams | Mapping[str, Any] | None = None,
    ) -> ReplayResult:
        """Replay the chain starting at ``event_id`` with ``params`` overrides.

        Replay stops after the event named by ``params.stop_at_event_id``
        (that event is replayed). ``original_cost`` always covers the whole
        original chain while ``replay_cost`` covers only the replayed prefix,
        so a stopped replay reports savings for the events it skipped.
        Router failures propagate unchanged and no partial result is returned.
        """
        replay_params = coerce_params(params)
        plugin_manager = get_active_plugin_manager()
        plugin_manager.on_replay_start(
            ReplayStartEvent(event_id=event_id, params=replay_params.to_dict())
        )

        started = self.clock()
        try:
            chain = self.event_log.replay_from_event(event_id)
            if not chain.events:
                raise EventNotFoundError(event_id)

            replayed_events: list[TimelineEvent] = []
            replay_cost = 0.0
            for event in chain.events:
                replayed = self._replay_event(event, replay_params)
                replayed_events.append(replayed)
                replay_cost += replayed.cost
                if event.id == replay_params.stop_at_event_id:
                    break

            original_cost = chain.total_cost
            cost_savings = original_cost - replay_cost
            finished = self.clock()
            result = ReplayResult(
                original_event=_anchor_event(chain.events, event_id),
                replayed_events=replayed_events,
                start_state=chain.start_state,
                end_state=replayed_events[-1].data,
                original_cost=original_cost,
                replay_cost=replay_cost,
                cost_savings=cost_savings,
                cost_savings_percent=(
                    cost_savings / original_cost * 100 if original_cost != 0 else 0.0
                ),
                duration_ms=finished - started,
                params=replay_params,
                timestamp=finished,
            )
        except Exception as error:
            plugin_manager.on_replay_end(
                ReplayEndEvent(
                    event_id=event_id,
                    status="error",
                    error_type=error.__class__.__name__,
                    error_message=str(error),
                )
            )
            raise

        plugin_manager.on_replay_end(
            ReplayEndEvent(
                event_id=event_id,
                status="ok",
                replayed_event_count=len(result.replayed_events),
                original_cost=result.original_cost,
                replay_cost=result.replay_cost,
            )
        )
        return result

    def compare(
        self,
        original: Sequence[EventInput],
        replayed: Sequence[EventInput],
    ) -> ExecutionComparison:
        """Diff and cost-compare two event lists.

        Events are keyed by id with any ``replay-`` prefix stripped, so an
        original event and its replay line up under the same key.
        """
        diff = self.diff_calculator.diff(_keyed_states(original), _keyed_states(replayed))
        cost = self.comparator.compare(original, replayed)
        return ExecutionComparison(diff=diff, cost=cost)

    def batch_replay(
        self,
        event_ids: Iterable[str],
        params: ReplayParams | Mapping[str, Any] | None = None,
        *,
        max_workers: int | None = None,
    ) -> BatchReplayResult:
        """Replay each id independently; one failure never aborts the batch.

        Outcomes are returned in input order. Every failed id is reported as
        an ``error`` outcome and announced with a ``RuntimeWarning``.
        """
        ids = list(event_ids)
        replay_params = coerce_params(params)
        workers = self.config.max_workers if max_workers is None else max_workers
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ReplayConfigError("max_workers must be an integer >= 1")

        outcomes: list[BatchReplayOutcome | None] = [None] * len(ids)
        if workers == 1 or len(ids) <= 1:
            for index, event_id in enumerate(ids):
                outcomes[index] = self._batch_outcome(event_id, replay_params)
        else:
            with ThreadPoolExecutor(
                max_workers=min(workers, len(ids)),
                thread_name_prefix="rewind-batch",
            ) as executor:
                futures = {
                    executor.submit(
                        contextvars.copy_context().run,
                        self._batch_outcome,
                        event_id,
                        replay_params,
                    ): index
                    for index, event_id in enumerate(ids)
                }
                for future in as_completed(futures):
                    outcomes[futures[future]] = future.result()

        batch = BatchReplayResult(outcomes=[outcome for outcome in outcomes if outcome is not None])
        for failure in batch.failures:
            warnings.warn(
                (
                    f"RewindKit batch replay failure: event={failure.event_id} "
                    f"error={failure.error_type}: {failure.error_message}"
                ),
                RuntimeWarning,
                stacklevel=2,
            )
        return batch

    def _batch_outcome(self, event_id: str, params: ReplayParams) -> BatchReplayOutcome:
        try:
            return BatchReplayOutcome.success(event_id, self.replay(event_id, params))
        except Exception as error:
            return BatchReplayOutcome.failure(event_id, error)

    def _replay_event(self, event: TimelineEvent, params: ReplayParams) -> TimelineEvent:
        merged = params.merged_with(event)
        messages = event.recorded("messages")
        response = self._route_with_timeout(
            event.id,
            messages=list(messages) if isinstance(messages, (list, tuple)) else [],
            **merged,
        )
        if not isinstance(response, Mapping):
            response = {}

        reported_model = response.get("model")
        model = reported_model if isinstance(reported_model, str) and reported_model else merged["model"]
        usage = self.comparator.price_usage(
            model,
            response.get("input_tokens"),
            response.get("output_tokens"),
        )

        data = dict(event.data)
        data.update({key: value for key, value in merged.items() if value is not None})
        if model is not None:
            data["model"] = model
        data.update(
            {
                "result": dict(response),
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                "input_cost": usage.input_cost,
                "output_cost": usage.output_cost,
                "replayed": True,
                "original_event_id": event.id,
            }
        )
        return TimelineEvent(
            id=f"{REPLAY_ID_PREFIX}{event.id}",
            agent_id=event.agent_id,
            event_type=event.event_type,
            timestamp=self.clock(),
            data=data,
            cost=usage.total,
        )

    def _route_with_timeout(self, event_id: str, **request: Any) -> Any:
        # The worker is abandoned on timeout; a running router call cannot be interrupted.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rewind-route")
        try:
            future = executor.submit(contextvars.copy_context().run, self.router.route, **request)
            done, _ = wait([future], timeout=self.config.timeout_seconds)
            if not done:
                future.cancel()
                raise ReplayTimeoutError(event_id, self.config.timeout_seconds)
            return future.result()
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def strip_replay_prefix(event_id: str) -> str:
    if event_id.startswith(REPLAY_ID_PREFIX):
        return event_id[len(REPLAY_ID_PREFIX):]
    return event_id


def _anchor_event(events: Sequence[TimelineEvent], event_id: str) -> TimelineEvent:
    for event in events:
        if event.id == event_id:
            return event
    return events[0]


def _keyed_states(events: Sequence[EventInput]) -> dict[str, dict[str, Any]]:
    keyed: dict[str, dict[str, Any]] = {}
    for index, raw in enumerate(events):
        event = coerce_event(raw)
        key = strip_replay_prefix(event.id)
        if not key or key in keyed:
            key = str(index)
        keyed[key] = {
            "agent_id": event.agent_id,
            "event_type": event.event_type,
            "cost": event.cost,
            "data": dict(event.data),
        }
    return keyed
