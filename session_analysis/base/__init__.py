# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes for the ports-and-adapters architecture.

The core pipeline only talks to these interfaces. Concrete row sources and
result sinks live in infrastructure/.
"""

from session_analysis.base.runner import BaseRunner
from session_analysis.base.sinks import ResultSink
from session_analysis.base.sources import ActionSource, UserDimensionSource

__all__ = [
    "ActionSource",
    "BaseRunner",
    "ResultSink",
    "UserDimensionSource",
]
