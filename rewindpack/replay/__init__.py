"""Replay subsystem for RewindKit."""

from rewindpack.replay.base import EventLog, ModelRouter
from rewindpack.replay.engine import (
    REPLAY_ID_PREFIX,
    ReplayConfig,
    ReplayEngine,
    strip_replay_prefix,
)
from rewindpack.replay.event_log import InMemoryEventLog
from rewindpack.replay.exceptions import (
    EventNotFoundError,
    ReplayConfigError,
    ReplayError,
    ReplayTimeoutError,
)
from rewindpack.replay.fake import FakeModelRouter
from rewindpack.replay.models import (
    BatchReplayOutcome,
    BatchReplayResult,
    ExecutionComparison,
    ReplayParams,
    ReplayResult,
)

__all__ = [
    "EventLog",
    "ModelRouter",
    "REPLAY_ID_PREFIX",
    "ReplayConfig",
    "ReplayEngine",
    "strip_replay_prefix",
    "InMemoryEventLog",
    "FakeModelRouter",
    "ReplayError",
    "ReplayConfigError",
    "EventNotFoundError",
    "ReplayTimeoutError",
    "ReplayParams",
    "ReplayResult",
    "ExecutionComparison",
    "BatchReplayOutcome",
    "BatchReplayResult",
]
