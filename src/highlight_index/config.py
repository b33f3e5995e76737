"""Configuration constants for the highlight index."""

import os
from pathlib import Path

# Directory with the index database. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/highlight-index").expanduser(),
    Path("~/.highlight-index").expanduser(),
    Path("~/.config/highlight-index").expanduser(),
]

DB_FILENAME: str = "highlight-index.db"

# Where document paths ("/books/a.pdf") are resolved. A base URL wins over a root dir.
PDF_ROOT: Path | None = Path(os.environ["PDF_ROOT"]).expanduser() if os.environ.get("PDF_ROOT") else None
PDF_BASE_URL: str | None = os.environ.get("PDF_BASE_URL") or None

# Timeout (seconds) for HEAD requests against PDF_BASE_URL.
RESOLVE_TIMEOUT: float = 5.0

# Topic tree layout grid, in canvas pixels.
LAYOUT_SPACING_X: int = 220
LAYOUT_SPACING_Y: int = 140

# Draft boxes at or below this size (in both dimensions) are discarded by callers.
MIN_BOX_SIZE: float = 4.0


def resolve_data_directory() -> Path:
    """Return the directory holding the index database.

    ``HIGHLIGHT_INDEX_DATA_DIR`` wins; otherwise the first existing entry of
    DATA_DIRECTORIES, falling back to the first candidate.
    """
    env_dir = os.environ.get("HIGHLIGHT_INDEX_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]


def resolve_db_path(data_dir: Path | None = None) -> Path:
    """Return the database file path inside ``data_dir`` (or the default directory)."""
    return (data_dir or resolve_data_directory()) / DB_FILENAME
