"""Render element subtrees as markdown."""

import io

from randomitas.core.tree.paths import children_at, find
from randomitas.models.failure import format_path
from randomitas.models.node import Folder, NodePath, Tree


def render_tree_as_markdown(
    tree: Tree,
    path: NodePath = (),
    *,
    max_depth: int | None = None,
    include_hidden: bool = True,
    show_paths: bool = False,
) -> str:
    """Render the elements below path as an indented bullet list.

    Args:
        tree: Snapshot to render.
        path: Folder whose children are rendered (() renders the whole tree).
        max_depth: Max levels below path to include (None = unlimited). With 0 only
            the truncation line for the children of path is rendered.
        include_hidden: Whether hidden elements (and their subtrees) are shown.
        show_paths: Append each element's dotted path.

    Returns:
        Markdown string with bullet-list hierarchy, empty if path does not resolve.
    """
    siblings = children_at(tree, path)
    if siblings is None:
        return ""
    if max_depth is not None and max_depth < 1:
        return _more(siblings, "")

    out = io.StringIO()
    todo: list[tuple[Folder, NodePath, int]] = [
        (child, (*path, i), 0) for i, child in reversed(list(enumerate(siblings)))
    ]
    while todo:
        node, node_path, depth = todo.pop()
        if node.is_hidden and not include_hidden:
            continue
        indent = "    " * depth

        line = f"{indent}- {node.name}"
        if node.is_hidden:
            line += " (hidden)"
        if show_paths:
            line += f"  [{format_path(node_path)}]"
        out.write(line + "\n")

        if max_depth is not None and depth + 1 >= max_depth:
            # Truncation indicator when children are cut off by max_depth
            out.write(_more(node.children, indent + "    "))
            continue

        todo.extend(
            (child, (*node_path, i), depth + 1)
            for i, child in reversed(list(enumerate(node.children)))
        )

    return out.getvalue()


def _more(children: tuple[Folder, ...], indent: str) -> str:
    if not children:
        return ""
    noun = "child" if len(children) == 1 else "children"
    return f"{indent}- ... ({len(children)} more {noun})\n"


def render_node_title(tree: Tree, path: NodePath) -> str:
    """One-line title for the folder at path, or the root collection."""
    node = find(tree, path)
    if node is None:
        return "(root)"
    return node.name
