"""Snapshot storage backends behind an explicit put/get/list/delete/scan interface."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from pathlib import Path
import tempfile
import threading
from typing import Protocol

from rewindpack.snapshot.exceptions import SnapshotConfigError, SnapshotStoreError
from rewindpack.snapshot.models import SnapshotRecord

RECORD_FORMAT_VERSION = 1


class SnapshotStore(Protocol):
    def put(self, record: SnapshotRecord) -> None:
        ...

    def get(self, snapshot_id: str) -> SnapshotRecord | None:
        ...

    def list(self, agent_id: str | None = None) -> list[SnapshotRecord]:
        ...

    def delete(self, snapshot_id: str) -> bool:
        ...

    def scan_by_age(self, cutoff_ms: int) -> list[SnapshotRecord]:
        """Records created at or before ``cutoff_ms``."""
        ...


@dataclass(slots=True)
class InMemorySnapshotStore:
    """Copy-on-write map: writers swap in a new dict under a lock.

    Readers take the current dict reference without locking and never see a
    half-applied write.
    """

    _records: dict[str, SnapshotRecord] = field(default_factory=dict, init=False, repr=False)
    _write_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __len__(self) -> int:
        return len(self._records)

    def put(self, record: SnapshotRecord) -> None:
        with self._write_lock:
            updated = dict(self._records)
            updated[record.id] = record
            self._records = updated

    def get(self, snapshot_id: str) -> SnapshotRecord | None:
        return self._records.get(snapshot_id)

    def list(self, agent_id: str | None = None) -> list[SnapshotRecord]:
        records = self._records
        return [
            record
            for record in records.values()
            if agent_id is None or record.agent_id == agent_id
        ]

    def delete(self, snapshot_id: str) -> bool:
        with self._write_lock:
            if snapshot_id not in self._records:
                return False
            updated = dict(self._records)
            del updated[snapshot_id]
            self._records = updated
            return True

    def scan_by_age(self, cutoff_ms: int) -> list[SnapshotRecord]:
        return [record for record in self._records.values() if record.created_at <= cutoff_ms]


@dataclass(slots=True)
class DirectorySnapshotStore:
    """One JSON envelope per snapshot under ``root``.

    Each write goes to a hidden temp file in the same directory and is then
    renamed over the target, so readers see either the old or the new file.
    """

    root: Path
    _write_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.root.mkdir(parents=True, exist_ok=True)

    def put(self, record: SnapshotRecord) -> None:
        target = self._path_for(record.id)
        envelope = {"format_version": RECORD_FORMAT_VERSION, "record": record.to_dict()}
        text = json.dumps(envelope, indent=2, ensure_ascii=True, sort_keys=True) + "\n"
        with self._write_lock:
            handle = tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.root,
                prefix=f".{record.id}.",
                suffix=".tmp",
                delete=False,
            )
            try:
                with handle:
                    handle.write(text)
                os.replace(handle.name, target)
            except BaseException:
                Path(handle.name).unlink(missing_ok=True)
                raise

    def get(self, snapshot_id: str) -> SnapshotRecord | None:
        try:
            target = self._path_for(snapshot_id)
        except SnapshotConfigError:
            return None
        return self._read(target)

    def list(self, agent_id: str | None = None) -> list[SnapshotRecord]:
        records: list[SnapshotRecord] = []
        for path in sorted(self.root.glob("*.json")):
            record = self._read(path)
            if record is None:
                continue
            if agent_id is None or record.agent_id == agent_id:
                records.append(record)
        return records

    def delete(self, snapshot_id: str) -> bool:
        try:
            target = self._path_for(snapshot_id)
        except SnapshotConfigError:
            return False
        with self._write_lock:
            try:
                target.unlink()
            except FileNotFoundError:
                return False
        return True

    def scan_by_age(self, cutoff_ms: int) -> list[SnapshotRecord]:
        return [record for record in self.list() if record.created_at <= cutoff_ms]

    def _path_for(self, snapshot_id: str) -> Path:
        if (
            not snapshot_id
            or snapshot_id.startswith(".")
            or "/" in snapshot_id
            or "\\" in snapshot_id
        ):
            raise SnapshotConfigError(f"Snapshot id is not a safe file name: {snapshot_id!r}")
        return self.root / f"{snapshot_id}.json"

    def _read(self, path: Path) -> SnapshotRecord | None:
        try:
            raw_text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            envelope = json.loads(raw_text)
        except json.JSONDecodeError as error:
            raise SnapshotStoreError(f"Snapshot record is not valid JSON: {path} ({error})") from error
        if not isinstance(envelope, dict) or envelope.get("format_version") != RECORD_FORMAT_VERSION:
            raise SnapshotStoreError(f"Unsupported snapshot record format: {path}")
        record = envelope.get("record")
        if not isinstance(record, dict):
            raise SnapshotStoreError(f"Snapshot record envelope has no record object: {path}")
        return SnapshotRecord.from_dict(record)
