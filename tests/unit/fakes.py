"""Fake implementations and builders for testing."""

from datetime import UTC, datetime, timedelta

from randomitas.models.node import Folder, Snapshot

EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


def make(name: str, *children: Folder, node_id: str | None = None, age: int = 0) -> Folder:
    """Build a folder with a readable id and a created_at `age` days after EPOCH."""
    return Folder(
        id=node_id or name.lower().replace(" ", "-"),
        name=name,
        children=children,
        created_at=EPOCH + timedelta(days=age),
    )


class FakeStore:
    """In-memory fake for SqliteSnapshotStore.

    Keeps the last saved snapshot and counts saves for assertions.
    """

    def __init__(self, snapshot: Snapshot | None = None) -> None:
        self.snapshot = snapshot or Snapshot()
        self.saves: list[Snapshot] = []

    def load_snapshot(self) -> Snapshot:
        return self.snapshot

    def save_snapshot(self, snapshot: Snapshot) -> None:
        """Record the snapshot and make it the one returned by the next load."""
        self.saves.append(snapshot)
        self.snapshot = snapshot
