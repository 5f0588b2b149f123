# ==============================================================================
# Result Sinks
# ==============================================================================
"""
Result sink implementations and factory.
"""

from session_analysis.base.sinks import ResultSink
from session_analysis.infrastructure.sinks.json_file import JSONFileSink
from session_analysis.infrastructure.sinks.postgresql import PostgreSQLResultSink
from session_analysis.utils.config import Settings


def get_sink(settings: Settings) -> ResultSink:
    """
    Create the result sink selected by SINK_IMPL.

    Args:
        settings: Application settings

    Returns:
        An unconnected ResultSink
    """
    if settings.sink.impl == "postgresql":
        return PostgreSQLResultSink(settings.postgres)
    return JSONFileSink(settings.data.resolve(settings.data.output_file))


__all__ = [
    "JSONFileSink",
    "PostgreSQLResultSink",
    "get_sink",
]
