# ==============================================================================
# Session Analysis Utilities
# ==============================================================================
"""
Shared utilities for the session analysis pipeline.

This module exports configuration helpers for use throughout the pipeline.
"""

from session_analysis.utils.config import (
    DataSettings,
    JobSettings,
    PostgresSettings,
    Settings,
    SinkSettings,
    get_settings,
)

__all__ = [
    "DataSettings",
    "JobSettings",
    "PostgresSettings",
    "Settings",
    "SinkSettings",
    "get_settings",
]
