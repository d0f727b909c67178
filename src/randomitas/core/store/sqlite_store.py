"""Persist whole snapshots (tree, favorites, recent, history) to SQLite."""

import json
import sqlite3
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from randomitas.core.database.schema import migrate_schema
from randomitas.core.tree.paths import count_nodes, iter_nodes
from randomitas.models.node import (
    Folder,
    FolderReference,
    HistoryEntry,
    NodePath,
    ReferenceTracker,
    Snapshot,
    Tree,
    utcnow,
)


def _encode_path(path: NodePath) -> str:
    return json.dumps(list(path))


def _decode_path(raw: str) -> NodePath:
    return tuple(int(i) for i in json.loads(raw))


def _node_rows(tree: Tree) -> list[tuple[Any, ...]]:
    rows: list[tuple[Any, ...]] = []
    ids_by_path: dict[NodePath, str] = {}
    for node, path in iter_nodes(tree):
        ids_by_path[path] = node.id
        parent_id = ids_by_path[path[:-1]] if len(path) > 1 else None
        rows.append(
            (
                node.id,
                parent_id,
                path[-1],
                node.name,
                node.image,
                node.created_at.isoformat(),
                int(node.is_hidden),
            )
        )
    return rows


def _build_tree(rows: list[tuple[Any, ...]]) -> Tree:
    """Rebuild the nested tree from (id, parent_id, position, ...) rows."""
    by_parent: dict[str | None, list[tuple[Any, ...]]] = defaultdict(list)
    for row in rows:
        by_parent[row[1]].append(row)
    for siblings in by_parent.values():
        siblings.sort(key=lambda row: row[2])

    seen: set[str] = set()
    built: dict[str | None, list[Folder]] = defaultdict(list)
    # Post-order with an explicit stack: a node is built once all its children are.
    todo: list[tuple[tuple[Any, ...], bool]] = [
        (row, False) for row in reversed(by_parent.get(None, []))
    ]
    while todo:
        row, expanded = todo.pop()
        node_id, parent_id, _position, name, image, created_at, is_hidden = row
        if not expanded:
            if node_id in seen:
                continue
            seen.add(node_id)
            todo.append((row, True))
            todo.extend((child, False) for child in reversed(by_parent.get(node_id, [])))
            continue
        built[parent_id].append(
            Folder(
                id=node_id,
                name=name,
                children=tuple(built.pop(node_id, [])),
                image=image,
                created_at=datetime.fromisoformat(created_at),
                is_hidden=bool(is_hidden),
            )
        )

    tree = Tree(roots=tuple(built.get(None, [])))
    orphans = {row[0] for row in rows} - seen
    if orphans:
        msg = f"Orphaned nodes: {sorted(orphans)!r}"
        raise ValueError(msg)
    return tree


class SqliteSnapshotStore:
    """Load-all / save-all snapshot storage in a single SQLite file."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        migrate_schema(conn)
        return conn

    def load_snapshot(self) -> Snapshot:
        """Read the stored snapshot. A missing database is an empty snapshot."""
        if not self.db_path.exists():
            logger.debug("No database at {}, starting empty", self.db_path)
            return Snapshot()

        conn = self._connect()
        try:
            tree = _build_tree(
                conn.execute(
                    "SELECT id, parent_id, position, name, image, created_at, is_hidden "
                    "FROM nodes"
                ).fetchall()
            )
            favorites = tuple(
                FolderReference(node_id=node_id, path=_decode_path(path))
                for node_id, path in conn.execute(
                    "SELECT node_id, path FROM favorites ORDER BY position"
                ).fetchall()
            )
            recent = tuple(
                FolderReference(node_id=node_id, path=_decode_path(path))
                for node_id, path in conn.execute(
                    "SELECT node_id, path FROM recent ORDER BY position"
                ).fetchall()
            )
            history = tuple(
                HistoryEntry(
                    entry_id=entry_id,
                    node_id=node_id,
                    name=name,
                    breadcrumb=crumb,
                    path=_decode_path(path),
                    timestamp=datetime.fromisoformat(timestamp),
                )
                for entry_id, node_id, name, crumb, path, timestamp in conn.execute(
                    "SELECT entry_id, node_id, name, breadcrumb, path, timestamp "
                    "FROM history ORDER BY timestamp"
                ).fetchall()
            )
        finally:
            conn.close()

        logger.debug(
            "Loaded {} nodes, {} favorites, {} history entries",
            count_nodes(tree),
            len(favorites),
            len(history),
        )
        return Snapshot(
            tree=tree,
            tracker=ReferenceTracker(favorites=favorites, history=history, recent=recent),
        )

    def save_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the stored state with snapshot in one transaction."""
        tracker = snapshot.tracker
        node_rows = _node_rows(snapshot.tree)
        conn = self._connect()
        try:
            conn.execute("DELETE FROM nodes")
            conn.execute("DELETE FROM favorites")
            conn.execute("DELETE FROM recent")
            conn.execute("DELETE FROM history")

            conn.executemany(
                """INSERT INTO nodes
                   (id, parent_id, position, name, image, created_at, is_hidden)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                node_rows,
            )
            conn.executemany(
                "INSERT INTO favorites (position, node_id, path) VALUES (?, ?, ?)",
                [
                    (i, ref.node_id, _encode_path(ref.path))
                    for i, ref in enumerate(tracker.favorites)
                ],
            )
            conn.executemany(
                "INSERT INTO recent (position, node_id, path) VALUES (?, ?, ?)",
                [(i, ref.node_id, _encode_path(ref.path)) for i, ref in enumerate(tracker.recent)],
            )
            conn.executemany(
                """INSERT INTO history
                   (entry_id, node_id, name, breadcrumb, path, timestamp)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                [
                    (
                        e.entry_id,
                        e.node_id,
                        e.name,
                        e.breadcrumb,
                        _encode_path(e.path),
                        e.timestamp.isoformat(),
                    )
                    for e in tracker.history
                ],
            )
            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                ("saved_at", utcnow().isoformat()),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            logger.exception("Failed to save snapshot to {}", self.db_path)
            raise
        finally:
            conn.close()

        logger.debug("Saved {} nodes to {}", len(node_rows), self.db_path)
