"""
Project root detection utility.

The project root is the nearest directory, searching upward, that holds a
.gov_codes/ config directory. The search stops at the first enclosing
project boundary (a pyproject.toml or .git), so a config in some unrelated
parent directory is never picked up.
"""

from pathlib import Path
from typing import Optional

CONFIG_DIR = ".gov_codes"

# Files or directories that mark the top of a project
BOUNDARY_MARKERS = ("pyproject.toml", ".git")


def find_project_root(start: Optional[Path] = None) -> Path:
    """
    Find the directory whose .gov_codes/config.yaml applies to start.

    Args:
        start: Starting directory (default: cwd)

    Returns:
        The nearest directory containing .gov_codes/, else the nearest
        project boundary, else the starting directory. In the last two
        cases no config exists there and defaults apply.
    """
    origin = (start or Path.cwd()).resolve()

    for directory in (origin, *origin.parents):
        if (directory / CONFIG_DIR).is_dir():
            return directory
        if any((directory / marker).exists() for marker in BOUNDARY_MARKERS):
            return directory

    return origin
