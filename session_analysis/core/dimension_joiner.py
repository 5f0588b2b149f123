# ==============================================================================
# Dimension Joiner
# ==============================================================================
"""
Inner join of session summaries to user dimension rows by user id.

The user table is indexed once and shared read-only with every worker
(a map-side join). Sessions whose user id has no dimension row are dropped
and counted; they are not an error.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from session_analysis.core.models import FullSessionRecord, SessionSummary, UserDimension

logger = logging.getLogger(__name__)


def build_user_index(users: Iterable[UserDimension]) -> Mapping[int, UserDimension]:
    """
    Index users by id as a read-only mapping.

    A later row for the same user id replaces an earlier one.
    """
    index: dict[int, UserDimension] = {}
    for user in users:
        index[user.user_id] = user
    return MappingProxyType(index)


class DimensionJoiner:
    """Joins SessionSummary to UserDimension on user id."""

    def __init__(self, users: Mapping[int, UserDimension]):
        """
        Args:
            users: Read-only user-id index, see build_user_index()
        """
        self._users = users
        self.dropped = 0

    def join(self, summary: SessionSummary) -> FullSessionRecord | None:
        """Return the joined record, or None if the user is unknown."""
        user = self._users.get(summary.user_id)
        if user is None:
            self.dropped += 1
            logger.debug(
                "No user dimension row for user %d, dropping session %s",
                summary.user_id,
                summary.session_id,
            )
            return None
        return FullSessionRecord.from_parts(summary, user)

    def join_all(self, summaries: Iterable[SessionSummary]) -> Iterator[FullSessionRecord]:
        """Yield joined records, skipping sessions without a user row."""
        for summary in summaries:
            record = self.join(summary)
            if record is not None:
                yield record
