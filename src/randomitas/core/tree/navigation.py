"""Tree navigation views: sorted siblings and hidden elements."""

from enum import StrEnum

from randomitas.core.tree.paths import iter_nodes
from randomitas.models.node import Folder, NodePath, Tree


class SortOrder(StrEnum):
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    DATE_NEWEST = "newest"
    DATE_OLDEST = "oldest"


def sorted_children(children: tuple[Folder, ...], order: SortOrder) -> list[tuple[int, Folder]]:
    """Sort siblings for display, keeping each child's stored index.

    The stored order is the addressing basis and is never changed; callers
    navigate with the returned index.
    """
    indexed = list(enumerate(children))
    if order in (SortOrder.NAME_ASC, SortOrder.NAME_DESC):
        indexed.sort(key=lambda pair: pair[1].name.casefold(), reverse=order == SortOrder.NAME_DESC)
    else:
        indexed.sort(key=lambda pair: pair[1].created_at, reverse=order == SortOrder.DATE_NEWEST)
    return indexed


def hidden_folders(tree: Tree) -> list[tuple[Folder, NodePath]]:
    """Every hidden node in pre-order, including ones below hidden ancestors."""
    return [(node, path) for node, path in iter_nodes(tree) if node.is_hidden]
