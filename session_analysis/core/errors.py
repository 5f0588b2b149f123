# ==============================================================================
# Session Analysis Errors
# ==============================================================================
"""
Exception types raised by the session analysis pipeline.

Only fatal conditions are exceptions. Sessions without a matching user
dimension row are dropped and counted, and sampling quotas larger than a
bucket are capped, so neither has an exception type.
"""


class SessionAnalysisError(Exception):
    """Base class for all session analysis errors."""


class MalformedFieldError(SessionAnalysisError):
    """
    A field could not be parsed into its declared type.

    Fatal to the containing record. The job aborts instead of substituting
    a default value.

    Attributes:
        field: Name of the offending field
        value: Raw value that failed to parse
        reason: Short human-readable explanation
    """

    def __init__(self, field: str, value: object, reason: str = "unparseable value"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Malformed field '{field}' ({reason}): {value!r}")


class JobCancelledError(SessionAnalysisError):
    """Raised when a job is cancelled. All partial state is discarded."""
