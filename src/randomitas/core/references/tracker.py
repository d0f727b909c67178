"""Favorites, recently surfaced elements and pick history.

Every reference stores (id, path). The id is the key; the path is only a
lookup hint. Reads re-check each hint against the current tree: a hint that
still points at the same id is used as is, a hint that went stale because
siblings shifted is re-resolved by id, and references whose node is gone are
left out.
"""

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TypeVar

from loguru import logger

from randomitas.config import HISTORY_RETENTION, RECENT_LIMIT
from randomitas.core.tree.paths import find_path, is_current
from randomitas.models.node import (
    Folder,
    FolderReference,
    HistoryEntry,
    NodePath,
    ReferenceTracker,
    Tree,
    utcnow,
)

_Ref = TypeVar("_Ref", FolderReference, HistoryEntry)


def current_path(tree: Tree, node_id: str, path: NodePath) -> NodePath | None:
    """Where the node remembered as (node_id, path) lives now, or None if it is gone."""
    if is_current(tree, node_id, path):
        return path
    return find_path(tree, node_id)


def _current(refs: Iterable[_Ref], tree: Tree) -> list[_Ref]:
    result: list[_Ref] = []
    for ref in refs:
        path = current_path(tree, ref.node_id, ref.path)
        if path is None:
            continue
        result.append(ref if path == ref.path else replace(ref, path=path))
    return result


def is_favorite(tracker: ReferenceTracker, node_id: str) -> bool:
    return any(ref.node_id == node_id for ref in tracker.favorites)


def toggle_favorite(tracker: ReferenceTracker, node: Folder, path: NodePath) -> ReferenceTracker:
    """Add (node.id, path) to favorites, or remove the entry with that id."""
    if is_favorite(tracker, node.id):
        favorites = tuple(ref for ref in tracker.favorites if ref.node_id != node.id)
        logger.debug("Unfavorited {!r}", node.name)
    else:
        favorites = (*tracker.favorites, FolderReference(node_id=node.id, path=path))
        logger.debug("Favorited {!r}", node.name)
    return replace(tracker, favorites=favorites)


def valid_favorites(tracker: ReferenceTracker, tree: Tree) -> list[FolderReference]:
    """Favorites whose node still exists, with up-to-date paths.

    This is a read-time view; stale entries stay stored.
    """
    return _current(tracker.favorites, tree)


def prune_favorites(tracker: ReferenceTracker, tree: Tree) -> ReferenceTracker:
    """Drop favorites whose node no longer exists."""
    kept = tuple(valid_favorites(tracker, tree))
    if len(kept) != len(tracker.favorites):
        logger.debug("Pruned {} stale favorite(s)", len(tracker.favorites) - len(kept))
    return replace(tracker, favorites=kept)


def record_history(
    tracker: ReferenceTracker,
    node_id: str,
    name: str,
    path: NodePath,
    now: datetime,
    *,
    breadcrumb: str = "",
) -> ReferenceTracker:
    entry = HistoryEntry(
        node_id=node_id, name=name, breadcrumb=breadcrumb, path=path, timestamp=now
    )
    return replace(tracker, history=(*tracker.history, entry))


def prune_history(
    tracker: ReferenceTracker,
    now: datetime,
    retention: timedelta = HISTORY_RETENTION,
) -> ReferenceTracker:
    """Remove entries older than retention."""
    kept = tuple(entry for entry in tracker.history if now - entry.timestamp <= retention)
    if len(kept) != len(tracker.history):
        logger.debug("Dropped {} expired history entries", len(tracker.history) - len(kept))
    return replace(tracker, history=kept)


def valid_history(
    tracker: ReferenceTracker,
    tree: Tree,
    *,
    now: datetime | None = None,
    retention: timedelta = HISTORY_RETENTION,
) -> list[HistoryEntry]:
    """Unexpired history entries whose node still exists, newest first."""
    now = now or utcnow()
    entries = _current(
        (entry for entry in tracker.history if now - entry.timestamp <= retention), tree
    )
    entries.sort(key=lambda entry: entry.timestamp, reverse=True)
    return entries


def surface(tracker: ReferenceTracker, node: Folder, path: NodePath) -> ReferenceTracker:
    """Upsert node at the front of the recently surfaced list."""
    recent = [ref for ref in tracker.recent if ref.node_id != node.id]
    recent.insert(0, FolderReference(node_id=node.id, path=path))
    return replace(tracker, recent=tuple(recent[:RECENT_LIMIT]))


def valid_recent(tracker: ReferenceTracker, tree: Tree) -> list[FolderReference]:
    return _current(tracker.recent, tree)
