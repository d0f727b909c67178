"""Failure values returned by tree operations."""

from dataclasses import dataclass
from enum import StrEnum


class FailureKind(StrEnum):
    PATH_NOT_FOUND = "path_not_found"
    NODE_NOT_FOUND = "node_not_found"
    CYCLE_REJECTED = "cycle_rejected"
    POLICY_VIOLATION = "policy_violation"


@dataclass(frozen=True)
class Failure:
    """Why an operation did not produce a new snapshot."""

    kind: FailureKind
    message: str

    def __str__(self) -> str:
        return self.message


def path_not_found(path: tuple[int, ...]) -> Failure:
    return Failure(FailureKind.PATH_NOT_FOUND, f"No element at path {format_path(path)!r}")


def node_not_found(node_id: str) -> Failure:
    return Failure(FailureKind.NODE_NOT_FOUND, f"No element with id {node_id!r}")


def format_path(path: tuple[int, ...]) -> str:
    """Render a path as dotted indices (the root collection is an empty string)."""
    return ".".join(str(i) for i in path)
