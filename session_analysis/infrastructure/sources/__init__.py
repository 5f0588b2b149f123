# ==============================================================================
# Row Sources
# ==============================================================================
"""
Row source implementations.
"""

from session_analysis.base.sources import InMemoryActionSource, InMemoryUserSource
from session_analysis.infrastructure.sources.csv_files import CSVActionSource, CSVUserSource

__all__ = [
    "CSVActionSource",
    "CSVUserSource",
    "InMemoryActionSource",
    "InMemoryUserSource",
]
