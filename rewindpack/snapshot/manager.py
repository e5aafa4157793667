"""Snapshot manager: save, read, list and evict state snapshots."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
import itertools
import json
import secrets
import threading
from typing import Any

from rewindpack.core.canonical import canonical_json
from rewindpack.core.models import now_ms
from rewindpack.plugins import SnapshotCleanupEvent, SnapshotSaveEvent, get_active_plugin_manager
from rewindpack.snapshot.codec import SnapshotCodec, ZstdCodec, resolve_codec
from rewindpack.snapshot.exceptions import (
    InvalidRetentionPolicyError,
    SnapshotConfigError,
    SnapshotSerializationError,
)
from rewindpack.snapshot.models import (
    Snapshot,
    SnapshotRecord,
    SnapshotRetentionPolicy,
    SnapshotStats,
)
from rewindpack.snapshot.retention import select_expired
from rewindpack.snapshot.store import InMemorySnapshotStore, SnapshotStore

DEFAULT_COMPRESSION_THRESHOLD_BYTES = 1024 * 1024


def default_snapshot_id(created_at: int) -> str:
    return f"snap_{created_at}_{secrets.token_hex(6)}"


@dataclass(slots=True)
class SnapshotManager:
    """Stores snapshots through a ``SnapshotStore`` under a retention policy.

    Payloads larger than ``compression_threshold_bytes`` are compressed with
    ``codec`` at write time. Retention only runs when ``cleanup()`` is called.
    """

    policy: SnapshotRetentionPolicy | None = None
    store: SnapshotStore | None = None
    codec: SnapshotCodec | None = None
    compression_threshold_bytes: int = DEFAULT_COMPRESSION_THRESHOLD_BYTES
    clock: Callable[[], int] = now_ms
    id_factory: Callable[[int], str] = default_snapshot_id
    _sequence: Any = field(init=False, repr=False)
    _sequence_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _cleanup_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.policy = _coerce_policy(self.policy or SnapshotRetentionPolicy())
        if self.store is None:
            self.store = InMemorySnapshotStore()
        if self.codec is None:
            self.codec = ZstdCodec()
        if (
            isinstance(self.compression_threshold_bytes, bool)
            or not isinstance(self.compression_threshold_bytes, int)
            or self.compression_threshold_bytes < 0
        ):
            raise SnapshotConfigError("compression_threshold_bytes must be an integer >= 0")
        start = max((record.sequence for record in self.store.list()), default=-1) + 1
        self._sequence = itertools.count(start)

    def save(
        self,
        agent_id: str,
        event_id: str,
        data: Any,
        metadata: Mapping[str, Any] | None = None,
    ) -> str:
        """Serialize ``data`` and store it; returns the new snapshot id."""
        if not isinstance(agent_id, str) or not agent_id:
            raise SnapshotConfigError("agent_id must be a non-empty string")
        if not isinstance(event_id, str) or not event_id:
            raise SnapshotConfigError("event_id must be a non-empty string")

        raw = _serialize(data, label="snapshot data")
        stored_metadata = None
        if metadata is not None:
            stored_metadata = json.loads(_serialize(metadata, label="snapshot metadata"))

        size = len(raw)
        compressed = size > self.compression_threshold_bytes
        payload = self.codec.compress(raw) if compressed else raw

        created_at = self.clock()
        with self._sequence_lock:
            sequence = next(self._sequence)
        record = SnapshotRecord(
            id=self.id_factory(created_at),
            agent_id=agent_id,
            event_id=event_id,
            created_at=created_at,
            sequence=sequence,
            payload=payload,
            compressed=compressed,
            codec=self.codec.name if compressed else None,
            size=size,
            stored_size=len(payload),
            metadata=stored_metadata,
        )
        self.store.put(record)

        get_active_plugin_manager().on_snapshot_save(
            SnapshotSaveEvent(
                snapshot_id=record.id,
                agent_id=agent_id,
                event_id=event_id,
                size=record.size,
                stored_size=record.stored_size,
                compressed=compressed,
            )
        )
        return record.id

    def get(self, snapshot_id: str) -> Snapshot | None:
        record = self.store.get(snapshot_id)
        if record is None:
            return None
        return self._materialize(record)

    def list(
        self,
        agent_id: str,
        *,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[Snapshot]:
        """Snapshots of ``agent_id``, newest first, within inclusive time bounds."""
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
            raise SnapshotConfigError("limit must be an integer >= 0 or None")

        records = [
            record
            for record in self.store.list(agent_id)
            if (start_time is None or record.created_at >= start_time)
            and (end_time is None or record.created_at <= end_time)
        ]
        records.sort(key=lambda record: record.order_key, reverse=True)
        if limit is not None:
            records = records[:limit]
        return [self._materialize(record) for record in records]

    def delete(self, snapshot_id: str) -> bool:
        return self.store.delete(snapshot_id)

    def get_stats(self) -> SnapshotStats:
        records = self.store.list()
        by_agent: dict[str, int] = {}
        total_size = 0
        total_stored_size = 0
        saved = 0
        for record in records:
            by_agent[record.agent_id] = by_agent.get(record.agent_id, 0) + 1
            total_size += record.size
            total_stored_size += record.stored_size
            if record.compressed:
                saved += record.size - record.stored_size

        any_compressed = any(record.compressed for record in records)
        timestamps = [record.created_at for record in records]
        return SnapshotStats(
            total=len(records),
            by_agent=by_agent,
            compression_ratio=saved / total_size if any_compressed and total_size > 0 else 0.0,
            total_size=total_size,
            total_stored_size=total_stored_size,
            oldest=min(timestamps) if timestamps else None,
            newest=max(timestamps) if timestamps else None,
        )

    def cleanup(self) -> int:
        """Apply the retention policy once; returns how many snapshots were deleted."""
        with self._cleanup_lock:
            policy = self.policy
            expired = select_expired(self.store.list(), policy, self.clock())
            deleted = 0
            for snapshot_id in expired:
                if self.store.delete(snapshot_id):
                    deleted += 1

        get_active_plugin_manager().on_snapshot_cleanup(
            SnapshotCleanupEvent(
                deleted_count=deleted,
                max_age_days=policy.max_age_days,
                max_snapshots_per_agent=policy.max_snapshots_per_agent,
            )
        )
        return deleted

    def set_retention_policy(self, policy: SnapshotRetentionPolicy | Mapping[str, Any]) -> None:
        self.policy = _coerce_policy(policy)

    def _materialize(self, record: SnapshotRecord) -> Snapshot:
        payload = record.payload
        if record.compressed:
            codec = self.codec if record.codec == self.codec.name else resolve_codec(record.codec)
            payload = codec.decompress(payload)
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            raise SnapshotSerializationError(
                f"Snapshot {record.id} payload is not valid JSON: {error}"
            ) from error
        return Snapshot(
            id=record.id,
            agent_id=record.agent_id,
            event_id=record.event_id,
            data=data,
            created_at=record.created_at,
            size=record.size,
            stored_size=record.stored_size,
            compressed=False,
            metadata=record.metadata,
        )


def _serialize(value: Any, *, label: str) -> bytes:
    try:
        return canonical_json(value).encode("utf-8")
    except (TypeError, ValueError) as error:
        raise SnapshotSerializationError(f"{label} is not JSON-representable: {error}") from error


def _coerce_policy(policy: SnapshotRetentionPolicy | Mapping[str, Any]) -> SnapshotRetentionPolicy:
    if isinstance(policy, SnapshotRetentionPolicy):
        return policy
    if isinstance(policy, Mapping):
        return SnapshotRetentionPolicy.from_dict(policy)
    raise InvalidRetentionPolicyError(
        f"Expected SnapshotRetentionPolicy or mapping, got {type(policy).__name__}"
    )
