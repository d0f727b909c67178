"""Protocols for dependency injection in the workspace."""

from typing import Protocol, runtime_checkable

from randomitas.models.node import Snapshot


@runtime_checkable
class SnapshotStoreProtocol(Protocol):
    """Protocol for whole-snapshot persistence."""

    def load_snapshot(self) -> Snapshot:
        """Return the stored snapshot (empty if nothing was stored yet)."""
        ...

    def save_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the stored snapshot."""
        ...
