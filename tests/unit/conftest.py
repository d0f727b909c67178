"""Shared test fixtures."""

import pytest

from randomitas.models.node import Tree
from tests.unit.fakes import make


@pytest.fixture
def sample_tree() -> Tree:
    """Three top-level folders.

    0 Movies
        0.0 Comedy
            0.0.0 Airplane
            0.0.1 Hot Fuzz
        0.1 Drama
            0.1.0 Heat
    1 Books
        1.0 Dune
        1.1 Emma
    2 Inbox
    """
    return Tree(
        roots=(
            make(
                "Movies",
                make("Comedy", make("Airplane", age=3), make("Hot Fuzz", age=1), age=2),
                make("Drama", make("Heat", age=4), age=5),
            ),
            make("Books", make("Dune", age=2), make("Emma", age=1)),
            make("Inbox", age=9),
        )
    )


@pytest.fixture
def fruit_tree() -> Tree:
    return Tree(
        roots=(
            make("Fruit", make("Apple"), make("apple pie"), make("Banana")),
        )
    )
