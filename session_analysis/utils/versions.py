# ==============================================================================
# Version Utilities
# ==============================================================================
"""
Utilities for retrieving package versions.
"""

from importlib.metadata import PackageNotFoundError, version


def get_session_analysis_version() -> str:
    """
    Get the session-analysis package version.

    Returns:
        Version string (e.g., "0.1.0")
    """
    try:
        return version("session-analysis")
    except PackageNotFoundError:
        return "0.1.0"
