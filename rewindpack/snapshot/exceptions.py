"""Snapshot subsystem exceptions."""


class SnapshotError(Exception):
    """Base class for snapshot errors."""


class SnapshotConfigError(SnapshotError, ValueError):
    """Raised when snapshot manager or store input is invalid."""


class InvalidRetentionPolicyError(SnapshotConfigError):
    """Raised when a retention policy has malformed bounds."""


class SnapshotSerializationError(SnapshotError):
    """Raised when state cannot be represented as canonical JSON."""


class SnapshotCodecError(SnapshotError):
    """Raised when a payload cannot be compressed or decompressed."""


class SnapshotStoreError(SnapshotError):
    """Raised when a persisted snapshot record is unreadable."""
