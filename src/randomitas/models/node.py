"""Domain models for the Randomitas element tree."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

# Ordered child indices from the root collection; () is the root collection itself.
NodePath = tuple[int, ...]


def new_id() -> str:
    """Return a fresh node identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, kw_only=True)
class Folder:
    """A single element in the tree.

    A folder without children is a leaf and can be picked at random.
    """

    id: str = field(default_factory=new_id)
    name: str
    children: tuple["Folder", ...] = ()
    image: bytes | None = field(default=None, repr=False)
    created_at: datetime = field(default_factory=utcnow)
    is_hidden: bool = False

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class Tree:
    """An immutable snapshot of the whole element tree."""

    roots: tuple[Folder, ...] = ()


@dataclass(frozen=True)
class FolderReference:
    """A remembered node: the id is the key, the path is only a lookup hint."""

    node_id: str
    path: NodePath


@dataclass(frozen=True)
class HistoryEntry:
    """A leaf that was picked at random, as it looked at pick time."""

    node_id: str
    name: str
    breadcrumb: str
    path: NodePath
    timestamp: datetime
    entry_id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class ReferenceTracker:
    """Favorites, recently surfaced nodes and the pick history."""

    favorites: tuple[FolderReference, ...] = ()
    history: tuple[HistoryEntry, ...] = ()
    recent: tuple[FolderReference, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Everything the store persists: the tree plus its references."""

    tree: Tree = field(default_factory=Tree)
    tracker: ReferenceTracker = field(default_factory=ReferenceTracker)


@dataclass(frozen=True)
class Leaf:
    """A pick candidate with its location."""

    node: Folder
    path: NodePath
    breadcrumb: str


@dataclass(frozen=True)
class SearchResult:
    """A search hit with context."""

    node: Folder
    path: NodePath
    parent_breadcrumb: str
