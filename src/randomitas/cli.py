"""CLI for randomitas: organize nested elements and pick one at random."""

import json
import random
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from randomitas.config import DATABASE_FILENAME, resolve_data_directory
from randomitas.core.store.sqlite_store import SqliteSnapshotStore
from randomitas.core.tree.markdown import render_node_title, render_tree_as_markdown
from randomitas.core.tree.paths import find
from randomitas.logging_config import configure_logging
from randomitas.models.failure import Failure, format_path
from randomitas.models.node import NodePath
from randomitas.workspace import Workspace

app = typer.Typer(help="Randomitas: nested elements, picked at random.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Directory holding the database"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write debug logs to this file"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)


def parse_path(text: str) -> NodePath:
    """Parse dotted indices ("0.2.1"); an empty string is the root collection."""
    text = text.strip()
    if not text:
        return ()
    try:
        path = tuple(int(part) for part in text.split("."))
    except ValueError:
        msg = f"Invalid path {text!r}, expected dotted indices like 0.2.1"
        raise typer.BadParameter(msg) from None
    if any(i < 0 for i in path):
        msg = f"Invalid path {text!r}, indices must not be negative"
        raise typer.BadParameter(msg)
    return path


def _open_workspace(data_dir: Path | None, *, seed: int | None = None) -> Workspace:
    dst = data_dir or resolve_data_directory()
    store = SqliteSnapshotStore(dst / DATABASE_FILENAME)
    rng = random.Random(seed) if seed is not None else None
    return Workspace.open(store, rng=rng)


def _check(result: object) -> None:
    """Exit with an error message if result is a Failure."""
    if isinstance(result, Failure):
        typer.echo(f"Error: {result}", err=True)
        raise typer.Exit(1)


def _label(path: NodePath) -> str:
    return format_path(path) or "(root)"


@app.command()
def add(
    name: str = typer.Argument(..., help="Name of the new element"),
    parent: str = typer.Option("", "--parent", "-p", help="Parent path (empty = root)"),
    favorite: bool = typer.Option(False, "--favorite", "-f", help="Also add to favorites"),
    image: Annotated[
        Path | None,
        typer.Option("--image", "-i", help="Image file to attach"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Add an element."""
    ws = _open_workspace(data_dir)
    blob = image.read_bytes() if image else None
    result = ws.add_folder(name, parse_path(parent), image=blob, favorite=favorite)
    _check(result)
    typer.echo(f"Added {name.strip()!r} under {_label(parse_path(parent))}")


@app.command()
def rename(
    path: str = typer.Argument(..., help="Path of the element"),
    name: str = typer.Argument(..., help="New name"),
    data_dir: DataDirOption = None,
) -> None:
    """Rename an element."""
    ws = _open_workspace(data_dir)
    _check(ws.rename(parse_path(path), name))
    typer.echo(f"Renamed {path} to {name.strip()!r}")


@app.command()
def delete(
    path: str = typer.Argument(..., help="Path of the element"),
    data_dir: DataDirOption = None,
) -> None:
    """Delete an element and everything below it."""
    ws = _open_workspace(data_dir)
    node_path = parse_path(path)
    if not node_path:
        typer.echo("Error: the root collection cannot be deleted", err=True)
        raise typer.Exit(1)
    before = ws.tree
    if ws.delete(node_path) is before:
        typer.echo(f"Nothing at {path}")
    else:
        typer.echo(f"Deleted {path}")


@app.command()
def move(
    source: str = typer.Argument(..., help="Path of the element to move"),
    destination: str = typer.Argument(..., help="New parent path (empty = root)"),
    data_dir: DataDirOption = None,
) -> None:
    """Move an element under another parent."""
    ws = _open_workspace(data_dir)
    _check(ws.move(parse_path(source), parse_path(destination)))
    typer.echo(f"Moved {source} to {_label(parse_path(destination))}")


@app.command()
def copy(
    source: str = typer.Argument(..., help="Path of the element to copy"),
    destination: str = typer.Argument(..., help="Parent path for the copy (empty = root)"),
    data_dir: DataDirOption = None,
) -> None:
    """Copy an element (with fresh ids) under another parent."""
    ws = _open_workspace(data_dir)
    _check(ws.copy(parse_path(source), parse_path(destination)))
    typer.echo(f"Copied {source} to {_label(parse_path(destination))}")


@app.command()
def hide(
    path: str = typer.Argument(..., help="Path of the element"),
    data_dir: DataDirOption = None,
) -> None:
    """Toggle the hidden flag of an element."""
    ws = _open_workspace(data_dir)
    _check(ws.toggle_hidden(parse_path(path)))
    typer.echo(f"Toggled hidden on {path}")


@app.command()
def hidden(data_dir: DataDirOption = None) -> None:
    """List hidden elements."""
    ws = _open_workspace(data_dir)
    rows = ws.hidden()
    if not rows:
        typer.echo("No hidden elements.")
    for node, path in rows:
        typer.echo(f"  {node.name}  [{format_path(path)}]")


@app.command()
def favorite(
    path: str = typer.Argument(..., help="Path of the element"),
    data_dir: DataDirOption = None,
) -> None:
    """Toggle an element in the favorites."""
    ws = _open_workspace(data_dir)
    result = ws.toggle_favorite(parse_path(path))
    _check(result)
    typer.echo(f"{'Added' if result else 'Removed'} {path} {'to' if result else 'from'} favorites")


@app.command()
def favorites(data_dir: DataDirOption = None) -> None:
    """List favorite elements."""
    ws = _open_workspace(data_dir)
    rows = ws.favorites()
    if not rows:
        typer.echo("No favorites.")
    for node, path in rows:
        typer.echo(f"  {node.name}  [{format_path(path)}]")


@app.command()
def pick(
    path: str = typer.Argument("", help="Folder to pick from (empty = everything)"),
    skip_hidden: bool = typer.Option(False, "--skip-hidden", help="Ignore hidden elements"),
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Seed the random generator"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Pick a random element below a folder."""
    ws = _open_workspace(data_dir, seed=seed)
    leaf = ws.pick(parse_path(path), skip_hidden=skip_hidden)
    if isinstance(leaf, Failure):
        _check(leaf)
    elif leaf is None:
        typer.echo("Nothing to pick.")
        raise typer.Exit(1)
    else:
        typer.echo(leaf.breadcrumb)


@app.command()
def history(data_dir: DataDirOption = None) -> None:
    """Show picks from the retention window, newest first."""
    ws = _open_workspace(data_dir)
    entries = ws.history()
    if not entries:
        typer.echo("No history.")
    for entry in entries:
        typer.echo(f"  {entry.timestamp:%Y-%m-%d %H:%M}  {entry.name}")
        typer.echo(f"    {entry.breadcrumb}  [{format_path(entry.path)}]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to look for in names"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    data_dir: DataDirOption = None,
) -> None:
    """Search elements by name."""
    ws = _open_workspace(data_dir)
    results = ws.search(query)
    if output_json:
        data = {
            "results": [
                {
                    "id": r.node.id,
                    "name": r.node.name,
                    "path": list(r.path),
                    "parents": r.parent_breadcrumb,
                }
                for r in results
            ],
            "total": len(results),
        }
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"Found {len(results)} results:\n")
    for r in results:
        typer.echo(f"  {r.node.name}  [{format_path(r.path)}]")
        if r.parent_breadcrumb:
            typer.echo(f"    in {r.parent_breadcrumb}")


@app.command()
def show(
    path: str = typer.Argument("", help="Folder to show (empty = everything)"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    show_paths: bool = typer.Option(False, "--paths", help="Show element paths"),
    data_dir: DataDirOption = None,
) -> None:
    """Show a folder and its subtree as markdown."""
    ws = _open_workspace(data_dir)
    node_path = parse_path(path)
    if node_path and find(ws.tree, node_path) is None:
        logger.error("No element at path {}", path)
        raise typer.Exit(1)
    typer.echo(f"# {render_node_title(ws.tree, node_path)}")
    md = render_tree_as_markdown(ws.tree, node_path, max_depth=max_depth, show_paths=show_paths)
    typer.echo(md or "(empty)")
