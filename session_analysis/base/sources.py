# ==============================================================================
# Row Source Abstract Base Classes
# ==============================================================================
"""
Row source ABCs for the two pipeline inputs.

- ActionSource: user visit actions within a date range
- UserDimensionSource: the full user dimension table

Sources yield validated domain records. A row that cannot be parsed raises
MalformedFieldError from the iterator, which aborts the job.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import date

from session_analysis.core.models import ActionRecord, UserDimension


class ActionSource(ABC):
    """Source of user visit actions."""

    @abstractmethod
    def iter_actions(self, start_date: date, end_date: date) -> Iterator[ActionRecord]:
        """
        Yield every action whose date lies in [start_date, end_date].

        Args:
            start_date: Inclusive first date
            end_date: Inclusive last date

        Yields:
            ActionRecord instances, in no particular order
        """
        ...


class UserDimensionSource(ABC):
    """Source of user dimension rows."""

    @abstractmethod
    def iter_users(self) -> Iterator[UserDimension]:
        """Yield every user dimension row."""
        ...


class InMemoryActionSource(ActionSource):
    """ActionSource over an in-memory list. Used by tests and mock runs."""

    def __init__(self, actions: list[ActionRecord]):
        self._actions = list(actions)

    def iter_actions(self, start_date: date, end_date: date) -> Iterator[ActionRecord]:
        for action in self._actions:
            if start_date <= action.action_time.date() <= end_date:
                yield action


class InMemoryUserSource(UserDimensionSource):
    """UserDimensionSource over an in-memory list."""

    def __init__(self, users: list[UserDimension]):
        self._users = list(users)

    def iter_users(self) -> Iterator[UserDimension]:
        yield from self._users
