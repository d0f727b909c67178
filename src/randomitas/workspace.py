"""The single owned workspace: current snapshot plus the command set."""

import random
from collections.abc import Callable, Collection, Iterable
from datetime import datetime, timedelta

from loguru import logger

from randomitas.config import HISTORY_RETENTION
from randomitas.core.references import tracker as refs
from randomitas.core.search.searcher import search
from randomitas.core.select.selector import pick_random
from randomitas.core.tree import mutator
from randomitas.core.tree.navigation import hidden_folders
from randomitas.core.tree.paths import children_at, find, find_path, parent_path
from randomitas.core.tree.policy import name_taken, validate_name
from randomitas.models.failure import Failure, FailureKind, format_path, path_not_found
from randomitas.models.node import (
    Folder,
    FolderReference,
    HistoryEntry,
    Leaf,
    NodePath,
    ReferenceTracker,
    SearchResult,
    Snapshot,
    Tree,
    utcnow,
)
from randomitas.protocols import SnapshotStoreProtocol


class Workspace:
    """Holds the current tree and references and applies commands to them.

    Commands never mutate a snapshot: each one swaps in the snapshot returned
    by the engine. Domain failures are returned, not raised. Names are checked
    here (non-empty, unique among siblings) before the tree is touched.
    """

    def __init__(
        self,
        snapshot: Snapshot | None = None,
        *,
        store: SnapshotStoreProtocol | None = None,
        autosave: bool = True,
        retention: timedelta = HISTORY_RETENTION,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        snapshot = snapshot or Snapshot()
        self.tree: Tree = snapshot.tree
        self.tracker: ReferenceTracker = snapshot.tracker
        self._store = store
        self._autosave = autosave and store is not None
        self._retention = retention
        self._rng = rng
        self._clock = clock

    @classmethod
    def open(
        cls,
        store: SnapshotStoreProtocol,
        *,
        autosave: bool = True,
        rng: random.Random | None = None,
    ) -> "Workspace":
        """Load the stored snapshot and bind the workspace to the store."""
        return cls(store.load_snapshot(), store=store, autosave=autosave, rng=rng)

    @property
    def snapshot(self) -> Snapshot:
        return Snapshot(tree=self.tree, tracker=self.tracker)

    def save(self) -> None:
        if self._store is None:
            msg = "Workspace has no store to save to"
            raise RuntimeError(msg)
        self._store.save_snapshot(self.snapshot)

    def _changed(self) -> None:
        if self._autosave:
            self.save()

    def _apply(self, result: Tree | Failure, action: str) -> Tree | Failure:
        if isinstance(result, Failure):
            logger.warning("{} rejected: {}", action, result)
            return result
        if result is not self.tree:
            self.tree = result
            self._changed()
        logger.debug("{} done", action)
        return result

    # --- Tree commands ---

    def add_folder(
        self,
        name: str,
        parent: NodePath = (),
        *,
        image: bytes | None = None,
        favorite: bool = False,
    ) -> Folder | Failure:
        """Create a folder under parent, optionally favoriting it right away."""
        if parent and find(self.tree, parent) is None:
            return path_not_found(parent)
        failure = validate_name(self.tree, parent, name)
        if failure is not None:
            logger.warning("Add rejected: {}", failure)
            return failure

        node = Folder(name=name.strip(), image=image, created_at=self._clock())
        result = mutator.insert(self.tree, parent, node)
        if isinstance(result, Failure):
            return result
        self.tree = result
        if favorite:
            path = find_path(self.tree, node.id)
            if path is not None:
                self.tracker = refs.toggle_favorite(self.tracker, node, path)
        self._changed()
        logger.info("Added {!r} under {!r}", node.name, format_path(parent) or "(root)")
        return node

    def rename(self, path: NodePath, new_name: str) -> Tree | Failure:
        node = find(self.tree, path)
        if node is None:
            return path_not_found(path)
        failure = validate_name(self.tree, parent_path(path), new_name, exclude_id=node.id)
        if failure is not None:
            logger.warning("Rename rejected: {}", failure)
            return failure
        return self._apply(mutator.rename(self.tree, node.id, new_name.strip()), "Rename")

    def delete(self, path: NodePath) -> Tree:
        result = mutator.delete(self.tree, path)
        self._apply(result, f"Delete {format_path(path)!r}")
        return result

    def delete_by_id(self, node_id: str) -> Tree:
        result = mutator.delete_by_id(self.tree, node_id)
        self._apply(result, f"Delete {node_id!r}")
        return result

    def _name_clash(self, nodes: Iterable[Folder], destination: NodePath) -> Failure | None:
        for node in nodes:
            if name_taken(self.tree, destination, node.name, exclude_id=node.id):
                return Failure(
                    FailureKind.POLICY_VIOLATION,
                    f"An element named {node.name!r} already exists in "
                    f"{format_path(destination) or '(root)'}",
                )
        return None

    def _place(
        self,
        result: Tree | Failure,
        nodes: Iterable[Folder],
        destination: NodePath,
        action: str,
    ) -> Tree | Failure:
        """Apply a move or copy result unless it would duplicate a sibling name."""
        if not isinstance(result, Failure):
            result = self._name_clash(nodes, destination) or result
        return self._apply(result, action)

    def _at(self, path: NodePath) -> list[Folder]:
        node = find(self.tree, path)
        return [node] if node is not None else []

    def _by_id(self, node_id: str, target_id: str | None) -> tuple[list[Folder], NodePath]:
        source = find_path(self.tree, node_id)
        target = find_path(self.tree, target_id) if target_id is not None else ()
        return self._at(source or ()), target or ()

    def _selected(self, ids: Collection[str], container: NodePath) -> list[Folder]:
        return [child for child in children_at(self.tree, container) or () if child.id in ids]

    def move(self, source: NodePath, destination: NodePath) -> Tree | Failure:
        result = mutator.move(self.tree, source, destination)
        return self._place(result, self._at(source), destination, "Move")

    def copy(self, source: NodePath, destination: NodePath) -> Tree | Failure:
        result = mutator.copy(self.tree, source, destination)
        return self._place(result, self._at(source), destination, "Copy")

    def move_by_id(self, node_id: str, target_id: str | None) -> Tree | Failure:
        nodes, destination = self._by_id(node_id, target_id)
        result = mutator.move_by_id(self.tree, node_id, target_id)
        return self._place(result, nodes, destination, "Move")

    def copy_by_id(self, node_id: str, target_id: str | None) -> Tree | Failure:
        nodes, destination = self._by_id(node_id, target_id)
        result = mutator.copy_by_id(self.tree, node_id, target_id)
        return self._place(result, nodes, destination, "Copy")

    def batch_delete(self, ids: Collection[str], container: NodePath) -> Tree | Failure:
        return self._apply(mutator.batch_delete(self.tree, ids, container), "Batch delete")

    def batch_toggle_hidden(self, ids: Collection[str], container: NodePath) -> Tree | Failure:
        return self._apply(
            mutator.batch_toggle_hidden(self.tree, ids, container), "Batch hide"
        )

    def batch_move(
        self, ids: Collection[str], container: NodePath, destination: NodePath
    ) -> Tree | Failure:
        result = mutator.batch_move(self.tree, ids, container, destination)
        return self._place(result, self._selected(ids, container), destination, "Batch move")

    def batch_copy(
        self, ids: Collection[str], container: NodePath, destination: NodePath
    ) -> Tree | Failure:
        result = mutator.batch_copy(self.tree, ids, container, destination)
        return self._place(result, self._selected(ids, container), destination, "Batch copy")

    def toggle_hidden(self, path: NodePath) -> Tree | Failure:
        return self._apply(mutator.toggle_hidden(self.tree, path), "Toggle hidden")

    def unhide(self, path: NodePath) -> Tree | Failure:
        return self._apply(mutator.set_hidden(self.tree, path, hidden=False), "Unhide")

    def update_image(self, path: NodePath, image: bytes | None) -> Tree | Failure:
        return self._apply(mutator.update_image(self.tree, path, image), "Update image")

    # --- References ---

    def toggle_favorite(self, path: NodePath) -> bool | Failure:
        """Flip the favorite state of the node at path; returns the new state."""
        node = find(self.tree, path)
        if node is None:
            return path_not_found(path)
        self.tracker = refs.toggle_favorite(self.tracker, node, path)
        self._changed()
        return refs.is_favorite(self.tracker, node.id)

    def _resolved(self, references: list[FolderReference]) -> list[tuple[Folder, NodePath]]:
        resolved: list[tuple[Folder, NodePath]] = []
        for ref in references:
            node = find(self.tree, ref.path)
            if node is not None:
                resolved.append((node, ref.path))
        return resolved

    def favorites(self) -> list[tuple[Folder, NodePath]]:
        return self._resolved(refs.valid_favorites(self.tracker, self.tree))

    def recent(self) -> list[tuple[Folder, NodePath]]:
        return self._resolved(refs.valid_recent(self.tracker, self.tree))

    def history(self) -> list[HistoryEntry]:
        """Drop expired entries, then return the current ones newest first."""
        now = self._clock()
        pruned = refs.prune_history(self.tracker, now, self._retention)
        if pruned.history != self.tracker.history:
            self.tracker = pruned
            self._changed()
        return refs.valid_history(self.tracker, self.tree, now=now, retention=self._retention)

    # --- Queries ---

    def pick(self, path: NodePath = (), *, skip_hidden: bool = False) -> Leaf | None | Failure:
        """Pick a random leaf below path and record it in the history."""
        result = pick_random(
            self.tree,
            self.tracker,
            path,
            now=self._clock(),
            rng=self._rng,
            retention=self._retention,
            skip_hidden=skip_hidden,
        )
        if isinstance(result, Failure):
            logger.warning("Pick rejected: {}", result)
            return result
        leaf, tracker = result
        if tracker != self.tracker:
            self.tracker = tracker
            self._changed()
        if leaf is not None:
            logger.info("Picked {}", leaf.breadcrumb)
        return leaf

    def search(self, query: str) -> list[SearchResult]:
        return search(self.tree, query)

    def hidden(self) -> list[tuple[Folder, NodePath]]:
        return hidden_folders(self.tree)
