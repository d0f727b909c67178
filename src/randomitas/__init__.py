"""Randomitas: organize nested elements and pick one at random."""

from randomitas.core.store.sqlite_store import SqliteSnapshotStore
from randomitas.models.failure import Failure, FailureKind
from randomitas.models.node import Folder, Snapshot, Tree
from randomitas.protocols import SnapshotStoreProtocol
from randomitas.workspace import Workspace

__all__ = [
    "Failure",
    "FailureKind",
    "Folder",
    "Snapshot",
    "SnapshotStoreProtocol",
    "SqliteSnapshotStore",
    "Tree",
    "Workspace",
]
