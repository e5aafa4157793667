"""Data models for stored state snapshots and their retention policy."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field
import math
from typing import Any

from rewindpack.snapshot.exceptions import InvalidRetentionPolicyError, SnapshotStoreError

MS_PER_DAY = 86_400_000


@dataclass(slots=True)
class SnapshotRetentionPolicy:
    """Age and per-agent count limits applied by ``SnapshotManager.cleanup``.

    ``compress_after_days`` is validated and kept for callers that persist
    policies, but compression only ever happens at write time based on size.
    ``auto_delete`` tells an external scheduler whether to run cleanup.
    """

    max_age_days: float = 30
    compress_after_days: float | None = 7
    auto_delete: bool = True
    max_snapshots_per_agent: int | None = None

    def __post_init__(self) -> None:
        if not _is_non_negative_number(self.max_age_days):
            raise InvalidRetentionPolicyError(
                f"max_age_days must be a finite number >= 0, got {self.max_age_days!r}"
            )
        if self.compress_after_days is not None and not _is_non_negative_number(
            self.compress_after_days
        ):
            raise InvalidRetentionPolicyError(
                "compress_after_days must be a finite number >= 0 or None, "
                f"got {self.compress_after_days!r}"
            )
        if not isinstance(self.auto_delete, bool):
            raise InvalidRetentionPolicyError("auto_delete must be boolean")
        if self.max_snapshots_per_agent is not None and (
            isinstance(self.max_snapshots_per_agent, bool)
            or not isinstance(self.max_snapshots_per_agent, int)
            or self.max_snapshots_per_agent < 1
        ):
            raise InvalidRetentionPolicyError(
                "max_snapshots_per_agent must be an integer >= 1 or None, "
                f"got {self.max_snapshots_per_agent!r}"
            )

    @property
    def max_age_ms(self) -> float:
        return self.max_age_days * MS_PER_DAY

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_age_days": self.max_age_days,
            "compress_after_days": self.compress_after_days,
            "auto_delete": self.auto_delete,
            "max_snapshots_per_agent": self.max_snapshots_per_agent,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SnapshotRetentionPolicy":
        known = {"max_age_days", "compress_after_days", "auto_delete", "max_snapshots_per_agent"}
        unknown = sorted(str(key) for key in raw if key not in known)
        if unknown:
            raise InvalidRetentionPolicyError(
                f"Unsupported retention policy key(s): {', '.join(unknown)}"
            )
        return cls(**{key: raw[key] for key in known if key in raw})


def _is_non_negative_number(value: Any) -> bool:
    return (
        not isinstance(value, bool)
        and isinstance(value, (int, float))
        and math.isfinite(value)
        and value >= 0
    )


@dataclass(slots=True)
class Snapshot:
    """A snapshot as returned to callers: data is always decompressed."""

    id: str
    agent_id: str
    event_id: str
    data: Any
    created_at: int
    size: int
    stored_size: int
    compressed: bool = False
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "event_id": self.event_id,
            "data": self.data,
            "created_at": self.created_at,
            "size": self.size,
            "stored_size": self.stored_size,
            "compressed": self.compressed,
            "metadata": self.metadata,
        }


@dataclass(frozen=True, slots=True)
class SnapshotRecord:
    """Storage form of a snapshot: serialized and possibly compressed payload."""

    id: str
    agent_id: str
    event_id: str
    created_at: int
    sequence: int
    payload: bytes
    compressed: bool
    size: int
    stored_size: int
    codec: str | None = None
    metadata: dict[str, Any] | None = field(default=None)

    @property
    def order_key(self) -> tuple[int, int]:
        return (self.created_at, self.sequence)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "event_id": self.event_id,
            "created_at": self.created_at,
            "sequence": self.sequence,
            "payload": base64.b64encode(self.payload).decode("ascii"),
            "compressed": self.compressed,
            "codec": self.codec,
            "size": self.size,
            "stored_size": self.stored_size,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SnapshotRecord":
        try:
            return cls(
                id=str(raw["id"]),
                agent_id=str(raw["agent_id"]),
                event_id=str(raw["event_id"]),
                created_at=int(raw["created_at"]),
                sequence=int(raw.get("sequence", 0)),
                payload=base64.b64decode(raw["payload"], validate=True),
                compressed=bool(raw["compressed"]),
                codec=raw.get("codec"),
                size=int(raw["size"]),
                stored_size=int(raw["stored_size"]),
                metadata=raw.get("metadata"),
            )
        except (KeyError, TypeError, ValueError, binascii.Error) as error:
            raise SnapshotStoreError(f"Malformed snapshot record: {error}") from error


@dataclass(slots=True)
class SnapshotStats:
    total: int
    by_agent: dict[str, int]
    compression_ratio: float
    total_size: int
    total_stored_size: int
    oldest: int | None = None
    newest: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_agent": dict(self.by_agent),
            "compression_ratio": self.compression_ratio,
            "total_size": self.total_size,
            "total_stored_size": self.total_stored_size,
            "oldest": self.oldest,
            "newest": self.newest,
        }
