"""Pure retention decision over snapshot metadata."""

from __future__ import annotations

from collections.abc import Iterable

from rewindpack.snapshot.models import SnapshotRecord, SnapshotRetentionPolicy


def select_expired(
    records: Iterable[SnapshotRecord],
    policy: SnapshotRetentionPolicy,
    now_ms: int,
) -> list[str]:
    """Ids the policy removes, oldest first.

    A record expires when its age reaches ``max_age_days``; records stamped
    after ``now_ms`` count as age 0. Among the records that survive the age
    rule, each agent keeps only its newest ``max_snapshots_per_agent``.
    """
    expired: list[SnapshotRecord] = []
    survivors_by_agent: dict[str, list[SnapshotRecord]] = {}

    for record in records:
        if max(0, now_ms - record.created_at) >= policy.max_age_ms:
            expired.append(record)
        else:
            survivors_by_agent.setdefault(record.agent_id, []).append(record)

    limit = policy.max_snapshots_per_agent
    if limit is not None:
        for survivors in survivors_by_agent.values():
            survivors.sort(key=lambda record: record.order_key, reverse=True)
            expired.extend(survivors[limit:])

    expired.sort(key=lambda record: record.order_key)
    return [record.id for record in expired]
