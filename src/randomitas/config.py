"""Configuration constants for randomitas."""

import os
from datetime import timedelta
from pathlib import Path

# Directory with the database. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/randomitas").expanduser(),
    Path("~/.randomitas").expanduser(),
    Path("~/.config/randomitas").expanduser(),
]

# Used when none of DATA_DIRECTORIES exists yet.
DEFAULT_DATA_DIR: Path = DATA_DIRECTORIES[0]

DATABASE_FILENAME: str = "randomitas.db"

# Picks older than this are dropped from the history.
HISTORY_RETENTION: timedelta = timedelta(hours=24)

# How many recently surfaced elements are remembered.
RECENT_LIMIT: int = 20

BREADCRUMB_SEPARATOR: str = " > "


def resolve_data_directory() -> Path:
    """Return the data directory: $RANDOMITAS_DATA_DIR, else the first existing candidate."""
    override = os.environ.get("RANDOMITAS_DATA_DIR")
    if override:
        return Path(override).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DEFAULT_DATA_DIR
