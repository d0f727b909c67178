"""Random pick of a leaf below a folder."""

import random
from datetime import datetime, timedelta

from loguru import logger

from randomitas.config import BREADCRUMB_SEPARATOR, HISTORY_RETENTION
from randomitas.core.references.tracker import prune_history, record_history, surface
from randomitas.core.tree.paths import children_at, find
from randomitas.models.failure import Failure, format_path, path_not_found
from randomitas.models.node import Folder, Leaf, NodePath, ReferenceTracker, Tree, utcnow


def collect_leaves(
    tree: Tree,
    root_path: NodePath,
    *,
    skip_hidden: bool = False,
    separator: str = BREADCRUMB_SEPARATOR,
) -> list[Leaf] | Failure:
    """Collect every childless node below root_path, depth-first.

    The folder at root_path itself is never a candidate; () collects over the
    whole tree. Each leaf comes with its full breadcrumb, leaf name included.
    With skip_hidden, hidden nodes and everything below them are left out.
    """
    siblings = children_at(tree, root_path)
    if siblings is None:
        return path_not_found(root_path)

    prefix: list[str] = []
    for depth in range(1, len(root_path) + 1):
        ancestor = find(tree, root_path[:depth])
        if ancestor is not None:
            prefix.append(ancestor.name)

    leaves: list[Leaf] = []
    todo: list[tuple[Folder, NodePath, list[str]]] = [
        (child, (*root_path, i), prefix) for i, child in reversed(list(enumerate(siblings)))
    ]
    while todo:
        node, path, names = todo.pop()
        if skip_hidden and node.is_hidden:
            continue
        names = [*names, node.name]
        if node.is_leaf:
            leaves.append(Leaf(node=node, path=path, breadcrumb=separator.join(names)))
            continue
        todo.extend(
            (child, (*path, i), names) for i, child in reversed(list(enumerate(node.children)))
        )
    return leaves


def pick_random(
    tree: Tree,
    tracker: ReferenceTracker,
    root_path: NodePath,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
    retention: timedelta = HISTORY_RETENTION,
    skip_hidden: bool = False,
) -> tuple[Leaf | None, ReferenceTracker] | Failure:
    """Pick one leaf below root_path uniformly at random.

    Every leaf is equally likely, however deep it sits or however many
    siblings it has. Expired history is pruned first; a successful pick is
    appended to the history and surfaced in the recent list.

    Returns:
        (leaf, tracker) with leaf None when there is nothing to pick, or a
        Failure if root_path does not resolve.
    """
    now = now or utcnow()
    leaves = collect_leaves(tree, root_path, skip_hidden=skip_hidden)
    if isinstance(leaves, Failure):
        return leaves

    tracker = prune_history(tracker, now, retention)
    if not leaves:
        logger.debug("Nothing to pick below {!r}", format_path(root_path))
        return None, tracker

    leaf = (rng or random).choice(leaves)
    tracker = record_history(
        tracker, leaf.node.id, leaf.node.name, leaf.path, now, breadcrumb=leaf.breadcrumb
    )
    tracker = surface(tracker, leaf.node, leaf.path)
    logger.debug("Picked {!r} out of {} leaves", leaf.breadcrumb, len(leaves))
    return leaf, tracker
