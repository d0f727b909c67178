"""Path addressing: resolve index paths to nodes and build breadcrumbs."""

from collections.abc import Iterator

from randomitas.config import BREADCRUMB_SEPARATOR
from randomitas.models.failure import Failure, path_not_found
from randomitas.models.node import Folder, NodePath, Tree


def children_at(tree: Tree, path: NodePath) -> tuple[Folder, ...] | None:
    """Return the child list at a container path (the root collection for ())."""
    if not path:
        return tree.roots
    node = find(tree, path)
    return node.children if node is not None else None


def find(tree: Tree, path: NodePath) -> Folder | None:
    """Walk the path one index at a time, returning None when it falls off the tree."""
    if not path:
        return None
    siblings = tree.roots
    node: Folder | None = None
    for index in path:
        if not 0 <= index < len(siblings):
            return None
        node = siblings[index]
        siblings = node.children
    return node


def resolve(tree: Tree, path: NodePath) -> Folder | Failure:
    """Resolve a non-empty path to its folder.

    The empty path is the root collection, which is not a folder, so it fails
    like any other path that does not resolve.
    """
    node = find(tree, path)
    if node is None:
        return path_not_found(path)
    return node


def is_valid(tree: Tree, path: NodePath) -> bool:
    return find(tree, path) is not None


def is_current(tree: Tree, node_id: str, path: NodePath) -> bool:
    """Check that the node remembered at path still lives there."""
    node = find(tree, path)
    return node is not None and node.id == node_id


def parent_path(path: NodePath) -> NodePath:
    """Drop the last index. The root collection has no parent."""
    if not path:
        msg = "The root collection has no parent"
        raise ValueError(msg)
    return path[:-1]


def is_within(path: NodePath, ancestor: NodePath) -> bool:
    """True if path equals ancestor or lies in its subtree."""
    return path[: len(ancestor)] == ancestor


def breadcrumb(
    tree: Tree,
    path: NodePath,
    *,
    include_self: bool = True,
    separator: str = BREADCRUMB_SEPARATOR,
) -> str | Failure:
    """Join the names along path, outermost ancestor first.

    With include_self=False only the ancestors are joined, so a top-level
    node yields an empty string.
    """
    names: list[str] = []
    siblings = tree.roots
    for index in path:
        if not 0 <= index < len(siblings):
            return path_not_found(path)
        node = siblings[index]
        names.append(node.name)
        siblings = node.children
    if not include_self:
        names = names[:-1]
    return separator.join(names)


def iter_nodes(tree: Tree, start: NodePath = ()) -> Iterator[tuple[Folder, NodePath]]:
    """Yield every node below start (pre-order) with its path.

    The node at start itself is not yielded. An invalid start yields nothing.
    """
    siblings = children_at(tree, start)
    if siblings is None:
        return
    todo: list[tuple[Folder, NodePath]] = [
        (child, (*start, i)) for i, child in enumerate(siblings)
    ]
    todo.reverse()
    while todo:
        node, path = todo.pop()
        yield node, path
        todo.extend(reversed([(child, (*path, i)) for i, child in enumerate(node.children)]))


def find_path(tree: Tree, node_id: str) -> NodePath | None:
    """Depth-first search for a node by id."""
    for node, path in iter_nodes(tree):
        if node.id == node_id:
            return path
    return None


def count_nodes(tree: Tree) -> int:
    return sum(1 for _ in iter_nodes(tree))
