import math
import re

import pytest

from rewindpack.snapshot import (
    MS_PER_DAY,
    GzipCodec,
    InMemorySnapshotStore,
    InvalidRetentionPolicyError,
    SnapshotCodecError,
    SnapshotConfigError,
    SnapshotManager,
    SnapshotRecord,
    SnapshotRetentionPolicy,
    SnapshotSerializationError,
)

LARGE_STATE = {"transcript": "the quick brown fox " * 100_000, "turn": 12}


class _Clock:
    def __init__(self, now: int = 1000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _manager(clock: _Clock | None = None, **kwargs: object) -> SnapshotManager:
    return SnapshotManager(clock=clock or _Clock(), **kwargs)


def test_small_snapshot_round_trips_uncompressed() -> None:
    manager = _manager()
    state = {"messages": [{"role": "user", "content": "hi"}], "step": 3}

    snapshot_id = manager.save("agent-1", "evt_1", state, metadata={"label": "before-tool"})
    snapshot = manager.get(snapshot_id)

    assert snapshot is not None
    assert snapshot.data == state
    assert snapshot.agent_id == "agent-1"
    assert snapshot.event_id == "evt_1"
    assert snapshot.created_at == 1000
    assert snapshot.compressed is False
    assert snapshot.size == snapshot.stored_size
    assert snapshot.metadata == {"label": "before-tool"}
    assert manager.store.get(snapshot_id).compressed is False


def test_large_snapshot_is_compressed_at_rest() -> None:
    manager = _manager()

    snapshot_id = manager.save("agent-1", "evt_1", LARGE_STATE)
    record = manager.store.get(snapshot_id)
    snapshot = manager.get(snapshot_id)

    assert record.compressed is True
    assert record.codec == "zstd"
    assert record.stored_size < record.size
    assert snapshot.compressed is False
    assert snapshot.data == LARGE_STATE


def test_gzip_codec_and_cross_codec_reads() -> None:
    store = InMemorySnapshotStore()
    writer = _manager(store=store, codec=GzipCodec())
    reader = _manager(store=store)

    snapshot_id = writer.save("agent-1", "evt_1", LARGE_STATE)

    assert store.get(snapshot_id).codec == "gzip"
    assert reader.get(snapshot_id).data == LARGE_STATE


def test_unknown_codec_on_read_raises() -> None:
    manager = _manager()
    manager.store.put(
        SnapshotRecord(
            id="snap_x",
            agent_id="agent-1",
            event_id="evt_1",
            created_at=1,
            sequence=0,
            payload=b"\x00\x01",
            compressed=True,
            size=10,
            stored_size=2,
            codec="lz4",
        )
    )

    with pytest.raises(SnapshotCodecError, match="Unknown snapshot codec: 'lz4'"):
        manager.get("snap_x")


@pytest.mark.parametrize("state", [{"handle": object()}, {"ratio": math.nan}])
def test_unrepresentable_state_is_rejected(state: dict) -> None:
    manager = _manager()

    with pytest.raises(SnapshotSerializationError, match="not JSON-representable"):
        manager.save("agent-1", "evt_1", state)
    assert manager.list("agent-1") == []


def test_tuples_are_stored_as_lists() -> None:
    manager = _manager()

    snapshot_id = manager.save("agent-1", "evt_1", {"pair": (1, 2)})

    assert manager.get(snapshot_id).data == {"pair": [1, 2]}


def test_default_snapshot_ids_are_unique_and_timestamped() -> None:
    manager = _manager()

    ids = {manager.save("agent-1", f"evt_{index}", {"i": index}) for index in range(20)}

    assert len(ids) == 20
    assert all(re.fullmatch(r"snap_1000_[0-9a-f]{12}", snapshot_id) for snapshot_id in ids)


def test_custom_id_factory() -> None:
    counter = iter(range(100))
    manager = _manager(id_factory=lambda created_at: f"s{created_at}-{next(counter)}")

    assert manager.save("agent-1", "evt_1", {}) == "s1000-0"


@pytest.mark.parametrize(("agent_id", "event_id"), [("", "evt_1"), ("agent-1", ""), (None, "evt_1")])
def test_save_requires_agent_and_event_ids(agent_id: object, event_id: str) -> None:
    with pytest.raises(SnapshotConfigError):
        _manager().save(agent_id, event_id, {})


def test_get_and_delete_missing_snapshot() -> None:
    manager = _manager()

    assert manager.get("snap_missing") is None
    assert manager.delete("snap_missing") is False


def test_list_is_newest_first_with_bounds_and_limit() -> None:
    clock = _Clock()
    manager = _manager(clock)
    ids = []
    for timestamp in (100, 200, 300, 400):
        clock.now = timestamp
        ids.append(manager.save("agent-1", f"evt_{timestamp}", {"t": timestamp}))
    manager.save("agent-2", "evt_other", {})

    assert [snapshot.id for snapshot in manager.list("agent-1")] == ids[::-1]
    assert [snapshot.created_at for snapshot in manager.list("agent-1", start_time=200, end_time=300)] == [
        300,
        200,
    ]
    assert [snapshot.id for snapshot in manager.list("agent-1", limit=2)] == [ids[3], ids[2]]
    assert manager.list("agent-1", limit=0) == []
    assert manager.list("nobody") == []


def test_same_timestamp_snapshots_list_in_reverse_save_order() -> None:
    manager = _manager()
    first = manager.save("agent-1", "evt_1", {"n": 1})
    second = manager.save("agent-1", "evt_2", {"n": 2})

    assert [snapshot.id for snapshot in manager.list("agent-1")] == [second, first]


def test_list_rejects_negative_limit() -> None:
    with pytest.raises(SnapshotConfigError, match="limit"):
        _manager().list("agent-1", limit=-1)


def test_delete_removes_snapshot() -> None:
    manager = _manager()
    snapshot_id = manager.save("agent-1", "evt_1", {})

    assert manager.delete(snapshot_id) is True
    assert manager.get(snapshot_id) is None
    assert manager.delete(snapshot_id) is False


def test_stats_for_empty_manager() -> None:
    stats = _manager().get_stats()

    assert stats.total == 0
    assert stats.by_agent == {}
    assert stats.compression_ratio == 0.0
    assert stats.oldest is None
    assert stats.newest is None


def test_stats_report_counts_sizes_and_compression_ratio() -> None:
    clock = _Clock(500)
    manager = _manager(clock)
    manager.save("agent-1", "evt_1", {"small": True})
    clock.now = 900
    manager.save("agent-2", "evt_2", LARGE_STATE)

    stats = manager.get_stats()
    records = manager.store.list()
    total_size = sum(record.size for record in records)
    saved = sum(record.size - record.stored_size for record in records if record.compressed)

    assert stats.total == 2
    assert stats.by_agent == {"agent-1": 1, "agent-2": 1}
    assert stats.total_size == total_size
    assert stats.total_stored_size < stats.total_size
    assert stats.compression_ratio == pytest.approx(saved / total_size)
    assert 0 < stats.compression_ratio < 1
    assert stats.oldest == 500
    assert stats.newest == 900


def test_cleanup_with_zero_max_age_removes_everything() -> None:
    manager = _manager()
    for index in range(3):
        manager.save("agent-1", f"evt_{index}", {"i": index})

    manager.set_retention_policy(SnapshotRetentionPolicy(max_age_days=0))

    assert manager.cleanup() == 3
    assert manager.get_stats().total == 0


def test_cleanup_age_boundary_is_inclusive() -> None:
    clock = _Clock(0)
    manager = _manager(clock, policy=SnapshotRetentionPolicy(max_age_days=1))
    snapshot_id = manager.save("agent-1", "evt_1", {})

    clock.now = MS_PER_DAY - 1
    assert manager.cleanup() == 0
    clock.now = MS_PER_DAY
    assert manager.cleanup() == 1
    assert manager.get(snapshot_id) is None


def test_cleanup_keeps_newest_per_agent() -> None:
    clock = _Clock()
    manager = _manager(clock, policy={"max_snapshots_per_agent": 2})
    kept = []
    for timestamp in (100, 200, 300):
        clock.now = timestamp
        kept.append(manager.save("agent-1", f"evt_{timestamp}", {}))
    manager.save("agent-2", "evt_x", {})

    assert len(manager.list("agent-1")) == 3
    assert manager.cleanup() == 1
    assert [snapshot.id for snapshot in manager.list("agent-1")] == [kept[2], kept[1]]
    assert len(manager.list("agent-2")) == 1


def test_set_retention_policy_accepts_mapping() -> None:
    manager = _manager()

    manager.set_retention_policy({"max_age_days": 3, "auto_delete": False})

    assert manager.policy == SnapshotRetentionPolicy(max_age_days=3, auto_delete=False)


@pytest.mark.parametrize(
    "policy",
    [
        {"max_age_days": -1},
        {"max_age_days": math.inf},
        {"compress_after_days": -2},
        {"auto_delete": "yes"},
        {"max_snapshots_per_agent": 0},
        {"max_snapshots_per_agent": True},
        {"retention": 5},
    ],
)
def test_invalid_retention_policies_are_rejected(policy: dict) -> None:
    manager = _manager()

    with pytest.raises(InvalidRetentionPolicyError):
        manager.set_retention_policy(policy)
    assert manager.policy == SnapshotRetentionPolicy()


def test_invalid_retention_policy_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        SnapshotRetentionPolicy(max_age_days=-5)


def test_negative_compression_threshold_is_rejected() -> None:
    with pytest.raises(SnapshotConfigError, match="compression_threshold_bytes"):
        _manager(compression_threshold_bytes=-1)


def test_zero_max_age_cleanup_removes_snapshots_stamped_after_clock() -> None:
    clock = _Clock(1000)
    manager = _manager(clock)
    manager.save("agent-1", "evt_1", {"n": 1})

    clock.now = 999
    manager.set_retention_policy({"max_age_days": 0})

    assert manager.cleanup() == 1
    assert manager.get_stats().total == 0
