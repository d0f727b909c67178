"""Name search over the element tree."""

from randomitas.core.tree.paths import breadcrumb, iter_nodes
from randomitas.models.node import SearchResult, Tree


def search(tree: Tree, query: str) -> list[SearchResult]:
    """Case-insensitive substring match against every name, in pre-order.

    An empty (or blank) query matches nothing.
    """
    if not query.strip():
        return []
    needle = query.casefold()

    results: list[SearchResult] = []
    for node, path in iter_nodes(tree):
        if needle not in node.name.casefold():
            continue
        parents = breadcrumb(tree, path, include_self=False)
        results.append(SearchResult(node=node, path=path, parent_breadcrumb=str(parents)))
    return results
