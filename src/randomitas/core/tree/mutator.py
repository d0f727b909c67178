"""Structural tree edits.

Every operation takes a snapshot and returns either a new snapshot or a
Failure. Snapshots are never modified in place: only the spine from the root
to the edited folder is rebuilt, untouched subtrees are shared.
"""

from collections.abc import Callable, Collection
from dataclasses import replace
from datetime import datetime

from loguru import logger

from randomitas.core.tree.paths import children_at, find, find_path, is_within, parent_path
from randomitas.models.failure import (
    Failure,
    FailureKind,
    format_path,
    node_not_found,
    path_not_found,
)
from randomitas.models.node import Folder, NodePath, Tree, new_id, utcnow

Siblings = tuple[Folder, ...]


def _rebuild(
    siblings: Siblings,
    path: NodePath,
    update: Callable[[Siblings], Siblings | None],
) -> Siblings | None:
    """Apply update to the child list at path and rebuild the ancestors.

    Returns None if path does not resolve or update returns None.
    """
    spine: list[tuple[Siblings, int]] = []
    for index in path:
        if not 0 <= index < len(siblings):
            return None
        spine.append((siblings, index))
        siblings = siblings[index].children
    rebuilt = update(siblings)
    if rebuilt is None:
        return None
    for parent_siblings, index in reversed(spine):
        target = replace(parent_siblings[index], children=rebuilt)
        rebuilt = (*parent_siblings[:index], target, *parent_siblings[index + 1 :])
    return rebuilt


def _update_children(
    tree: Tree,
    container_path: NodePath,
    update: Callable[[Siblings], Siblings | None],
) -> Tree | None:
    roots = _rebuild(tree.roots, container_path, update)
    return Tree(roots=roots) if roots is not None else None


def _update_node(tree: Tree, path: NodePath, update: Callable[[Folder], Folder]) -> Tree | None:
    if not path:
        return None
    index = path[-1]

    def swap(siblings: Siblings) -> Siblings | None:
        if not 0 <= index < len(siblings):
            return None
        return (*siblings[:index], update(siblings[index]), *siblings[index + 1 :])

    return _update_children(tree, path[:-1], swap)


def _without(siblings: Siblings, index: int) -> Siblings | None:
    if not 0 <= index < len(siblings):
        return None
    return (*siblings[:index], *siblings[index + 1 :])


def _shift_after_removal(path: NodePath, removed: Collection[NodePath]) -> NodePath:
    """Re-address path after the given sibling paths were removed from one container."""
    if not removed:
        return path
    depth = len(next(iter(removed))) - 1
    container = next(iter(removed))[:depth]
    if len(path) <= depth or path[:depth] != container:
        return path
    shift = sum(1 for r in removed if r[depth] < path[depth])
    return (*path[:depth], path[depth] - shift, *path[depth + 1 :])


def clone_with_fresh_ids(node: Folder, *, now: datetime | None = None) -> Folder:
    """Deep-copy a subtree, giving every node a new id and creation time."""
    created = now or utcnow()
    # Post-order with an explicit stack: children are cloned before their parent.
    built: list[Folder] = []
    todo: list[tuple[Folder, bool]] = [(node, False)]
    while todo:
        current, expanded = todo.pop()
        if not expanded:
            todo.append((current, True))
            todo.extend((child, False) for child in reversed(current.children))
            continue
        start = len(built) - len(current.children)
        children = tuple(built[start:])
        del built[start:]
        built.append(replace(current, id=new_id(), created_at=created, children=children))
    return built[0]


def insert(tree: Tree, parent_path: NodePath, node: Folder) -> Tree | Failure:
    """Append node to the children at parent_path (the root collection for ())."""
    result = _update_children(tree, parent_path, lambda siblings: (*siblings, node))
    if result is None:
        return path_not_found(parent_path)
    logger.debug("Inserted {!r} under {!r}", node.name, format_path(parent_path))
    return result


def rename(tree: Tree, node_id: str, new_name: str) -> Tree | Failure:
    path = find_path(tree, node_id)
    if path is None:
        return node_not_found(node_id)
    result = _update_node(tree, path, lambda node: replace(node, name=new_name))
    return result if result is not None else node_not_found(node_id)


def delete(tree: Tree, path: NodePath) -> Tree:
    """Remove the node at path with its subtree.

    A path that does not resolve leaves the tree unchanged.
    """
    if not path:
        return tree
    result = _update_children(tree, path[:-1], lambda siblings: _without(siblings, path[-1]))
    if result is None:
        logger.debug("Nothing to delete at {!r}", format_path(path))
        return tree
    return result


def delete_by_id(tree: Tree, node_id: str) -> Tree:
    path = find_path(tree, node_id)
    if path is None:
        logger.debug("Nothing to delete with id {!r}", node_id)
        return tree
    return delete(tree, path)


def _already_in(container: NodePath) -> Failure:
    return Failure(
        FailureKind.CYCLE_REJECTED,
        f"Element is already in {format_path(container)!r}",
    )


def _check_move_target(
    tree: Tree, source_paths: list[NodePath], container: NodePath, destination: NodePath
) -> Failure | None:
    if destination == container:
        return _already_in(destination)
    for source in source_paths:
        if is_within(destination, source):
            return Failure(
                FailureKind.CYCLE_REJECTED,
                f"Cannot move {format_path(source)!r} into its own subtree",
            )
    if destination and find(tree, destination) is None:
        return path_not_found(destination)
    return None


def move(tree: Tree, source_path: NodePath, destination_parent_path: NodePath) -> Tree | Failure:
    """Move the node at source_path (same id, same subtree) under destination_parent_path."""
    node = find(tree, source_path)
    if node is None:
        return path_not_found(source_path)
    failure = _check_move_target(
        tree, [source_path], parent_path(source_path), destination_parent_path
    )
    if failure is not None:
        return failure

    removed = delete(tree, source_path)
    destination = _shift_after_removal(destination_parent_path, [source_path])
    result = insert(removed, destination, node)
    if isinstance(result, Failure):
        return result
    logger.debug(
        "Moved {!r} from {!r} to {!r}",
        node.name,
        format_path(source_path),
        format_path(destination),
    )
    return result


def copy(tree: Tree, source_path: NodePath, destination_parent_path: NodePath) -> Tree | Failure:
    """Append a fresh-id clone of the subtree at source_path under destination_parent_path.

    Copying into the source's own subtree is allowed, the source is untouched.
    Copying into the folder that already holds the source is rejected.
    """
    node = find(tree, source_path)
    if node is None:
        return path_not_found(source_path)
    if destination_parent_path == parent_path(source_path):
        return _already_in(destination_parent_path)
    return insert(tree, destination_parent_path, clone_with_fresh_ids(node))


def move_by_id(tree: Tree, node_id: str, target_id: str | None) -> Tree | Failure:
    """Move a node under the node target_id (the root collection for None)."""
    source = find_path(tree, node_id)
    if source is None:
        return node_not_found(node_id)
    destination: NodePath = ()
    if target_id is not None:
        found = find_path(tree, target_id)
        if found is None:
            return node_not_found(target_id)
        destination = found
    return move(tree, source, destination)


def copy_by_id(tree: Tree, node_id: str, target_id: str | None) -> Tree | Failure:
    source = find_path(tree, node_id)
    if source is None:
        return node_not_found(node_id)
    destination: NodePath = ()
    if target_id is not None:
        found = find_path(tree, target_id)
        if found is None:
            return node_not_found(target_id)
        destination = found
    return copy(tree, source, destination)


def _selected(siblings: Siblings, ids: Collection[str]) -> list[int]:
    return [i for i, child in enumerate(siblings) if child.id in ids]


def batch_delete(tree: Tree, ids: Collection[str], container_path: NodePath) -> Tree | Failure:
    """Delete every direct child of container_path whose id is in ids."""
    result = _update_children(
        tree,
        container_path,
        lambda siblings: tuple(child for child in siblings if child.id not in ids),
    )
    if result is None:
        return path_not_found(container_path)
    return result


def batch_toggle_hidden(
    tree: Tree, ids: Collection[str], container_path: NodePath
) -> Tree | Failure:
    """Flip the hidden flag of every direct child of container_path whose id is in ids."""
    result = _update_children(
        tree,
        container_path,
        lambda siblings: tuple(
            replace(child, is_hidden=not child.is_hidden) if child.id in ids else child
            for child in siblings
        ),
    )
    if result is None:
        return path_not_found(container_path)
    return result


def batch_move(
    tree: Tree,
    ids: Collection[str],
    container_path: NodePath,
    destination_parent_path: NodePath,
) -> Tree | Failure:
    """Move the selected direct children of container_path, keeping their order."""
    siblings = children_at(tree, container_path)
    if siblings is None:
        return path_not_found(container_path)
    indices = _selected(siblings, ids)
    if not indices:
        return tree
    sources = [(*container_path, i) for i in indices]
    failure = _check_move_target(tree, sources, container_path, destination_parent_path)
    if failure is not None:
        return failure

    moving = tuple(siblings[i] for i in indices)
    removed = batch_delete(tree, ids, container_path)
    if isinstance(removed, Failure):
        return removed
    destination = _shift_after_removal(destination_parent_path, sources)
    result = _update_children(removed, destination, lambda existing: (*existing, *moving))
    if result is None:
        return path_not_found(destination_parent_path)
    logger.debug(
        "Moved {} element(s) from {!r} to {!r}",
        len(moving),
        format_path(container_path),
        format_path(destination),
    )
    return result


def batch_copy(
    tree: Tree,
    ids: Collection[str],
    container_path: NodePath,
    destination_parent_path: NodePath,
) -> Tree | Failure:
    """Append fresh-id clones of the selected direct children of container_path."""
    siblings = children_at(tree, container_path)
    if siblings is None:
        return path_not_found(container_path)
    clones = tuple(clone_with_fresh_ids(siblings[i]) for i in _selected(siblings, ids))
    if clones and destination_parent_path == container_path:
        return _already_in(container_path)
    result = _update_children(tree, destination_parent_path, lambda existing: (*existing, *clones))
    if result is None:
        return path_not_found(destination_parent_path)
    return result


def set_hidden(tree: Tree, path: NodePath, *, hidden: bool) -> Tree | Failure:
    result = _update_node(tree, path, lambda node: replace(node, is_hidden=hidden))
    if result is None:
        return path_not_found(path)
    return result


def toggle_hidden(tree: Tree, path: NodePath) -> Tree | Failure:
    result = _update_node(tree, path, lambda node: replace(node, is_hidden=not node.is_hidden))
    if result is None:
        return path_not_found(path)
    return result


def update_image(tree: Tree, path: NodePath, image: bytes | None) -> Tree | Failure:
    """Store (or clear) the image blob of the node at path."""
    result = _update_node(tree, path, lambda node: replace(node, image=image))
    if result is None:
        return path_not_found(path)
    return result
