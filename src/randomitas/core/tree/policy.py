"""Predicates callers check before mutating: element kinds, names, move targets."""

from enum import StrEnum

from randomitas.core.tree.paths import children_at, find, is_within
from randomitas.models.failure import Failure, FailureKind
from randomitas.models.node import Folder, NodePath, Tree


class NodeKind(StrEnum):
    LEAF = "leaf"
    CONTAINER = "container"


def node_kind(node: Folder) -> NodeKind:
    return NodeKind.CONTAINER if node.children else NodeKind.LEAF


def can_accept_child(parent: Folder | None, moving_kind: NodeKind) -> bool:
    """Check the one-kind-per-folder policy.

    A folder holding leaves must not receive containers and vice versa. The
    root collection (parent=None) and empty folders accept anything.
    """
    if parent is None:
        return True
    return all(node_kind(child) == moving_kind for child in parent.children)


def can_add_subfolder(tree: Tree, path: NodePath) -> bool:
    """True if a container may be placed under path."""
    if not path:
        return True
    node = find(tree, path)
    return node is not None and can_accept_child(node, NodeKind.CONTAINER)


def can_add_items(tree: Tree, path: NodePath) -> bool:
    """True if a leaf may be placed under path."""
    if not path:
        return True
    node = find(tree, path)
    return node is not None and can_accept_child(node, NodeKind.LEAF)


def is_move_target_disabled(tree: Tree, moving_path: NodePath, target_path: NodePath) -> bool:
    """Whether target_path must be greyed out as a destination for the node at moving_path."""
    moving = find(tree, moving_path)
    if moving is None:
        return True
    if is_within(target_path, moving_path):
        return True
    if not target_path:
        return False
    target = find(tree, target_path)
    return target is None or not can_accept_child(target, node_kind(moving))


def _normalize(name: str) -> str:
    return name.strip().casefold()


def name_taken(
    tree: Tree, parent_path: NodePath, name: str, *, exclude_id: str | None = None
) -> bool:
    """True if a sibling under parent_path already uses name (ignoring case and padding)."""
    siblings = children_at(tree, parent_path) or ()
    wanted = _normalize(name)
    return any(
        _normalize(child.name) == wanted and child.id != exclude_id for child in siblings
    )


def validate_name(
    tree: Tree, parent_path: NodePath, name: str, *, exclude_id: str | None = None
) -> Failure | None:
    """Reject empty names and duplicates among the would-be siblings."""
    if not name.strip():
        return Failure(FailureKind.POLICY_VIOLATION, "Name must not be empty")
    if name_taken(tree, parent_path, name, exclude_id=exclude_id):
        return Failure(
            FailureKind.POLICY_VIOLATION,
            f"An element named {name.strip()!r} already exists here",
        )
    return None
