# ==============================================================================
# Path Utilities
# ==============================================================================
"""
Project root detection for resolving relative data paths.
"""

from pathlib import Path


def get_project_root() -> Path:
    """
    Get the project root directory.

    Looks for pyproject.toml next to the package first, then in the current
    working directory. Falls back to the current working directory.

    Returns:
        Path to the project root directory
    """
    # utils/paths.py -> session_analysis -> project
    current = Path(__file__).parent.parent.parent
    if (current / "pyproject.toml").exists():
        return current

    return Path.cwd()

