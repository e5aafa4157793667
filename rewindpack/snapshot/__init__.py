"""Snapshot storage subsystem for RewindKit."""

from rewindpack.snapshot.codec import GzipCodec, SnapshotCodec, ZstdCodec, resolve_codec
from rewindpack.snapshot.exceptions import (
    InvalidRetentionPolicyError,
    SnapshotCodecError,
    SnapshotConfigError,
    SnapshotError,
    SnapshotSerializationError,
    SnapshotStoreError,
)
from rewindpack.snapshot.manager import (
    DEFAULT_COMPRESSION_THRESHOLD_BYTES,
    SnapshotManager,
    default_snapshot_id,
)
from rewindpack.snapshot.models import (
    MS_PER_DAY,
    Snapshot,
    SnapshotRecord,
    SnapshotRetentionPolicy,
    SnapshotStats,
)
from rewindpack.snapshot.retention import select_expired
from rewindpack.snapshot.store import DirectorySnapshotStore, InMemorySnapshotStore, SnapshotStore

__all__ = [
    "DEFAULT_COMPRESSION_THRESHOLD_BYTES",
    "MS_PER_DAY",
    "SnapshotCodec",
    "ZstdCodec",
    "GzipCodec",
    "resolve_codec",
    "SnapshotError",
    "SnapshotConfigError",
    "InvalidRetentionPolicyError",
    "SnapshotSerializationError",
    "SnapshotCodecError",
    "SnapshotStoreError",
    "SnapshotManager",
    "default_snapshot_id",
    "Snapshot",
    "SnapshotRecord",
    "SnapshotRetentionPolicy",
    "SnapshotStats",
    "select_expired",
    "SnapshotStore",
    "InMemorySnapshotStore",
    "DirectorySnapshotStore",
]
