# ==============================================================================
# Result Sink Abstract Base Class
# ==============================================================================
"""
Base class for result sinks.

A sink receives the finished AnalysisResult of a job (aggregate stat plus
sampled sessions with their action details) and persists it. The job only
calls save() after every stage completed, so a sink never sees partial
results.
"""

from abc import ABC, abstractmethod

from session_analysis.core.models import AnalysisResult


class ResultSink(ABC):
    """Base class for result sinks."""

    @abstractmethod
    def connect(self) -> None:
        """
        Initialize sink resources.

        Called once before save(). Use this to open connections or files.
        """
        ...

    @abstractmethod
    def save(self, result: AnalysisResult) -> int:
        """
        Persist a job result.

        Args:
            result: The finished analysis result

        Returns:
            Count of sampled sessions written
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release sink resources."""
        ...
