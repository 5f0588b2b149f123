# ==============================================================================
# Session Aggregator - Pure Domain Logic
# ==============================================================================
"""
Pure session aggregation logic with no external dependencies.

Folds every action of a session into one SessionSummary:
- Start and end time (running min / max of action time)
- Distinct search keywords and clicked category ids
- Step count (one per action)

The fold only uses min, max, count and set union, so the summary does not
depend on the order in which a session's actions arrive.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from session_analysis.core.errors import MalformedFieldError
from session_analysis.core.models import ActionRecord, SessionSummary


class SessionAggregator:
    """
    Pure session aggregation logic.

    Works on ActionRecord groups that share a session id. Grouping itself is
    done by group_by_session() or by the caller's partitioning.
    """

    def aggregate(self, actions: Iterable[ActionRecord]) -> SessionSummary:
        """
        Fold the actions of one session into a summary.

        Args:
            actions: All actions of a single session, in any order

        Returns:
            The session summary

        Raises:
            ValueError: If actions is empty or mixes session ids
            MalformedFieldError: If the session's actions carry different user ids
        """
        session_id: str | None = None
        user_id: int | None = None
        start_time: datetime | None = None
        end_time: datetime | None = None
        keywords: set[str] = set()
        category_ids: set[int] = set()
        step_length = 0

        for action in actions:
            if session_id is None:
                session_id = action.session_id
                user_id = action.user_id
            elif action.session_id != session_id:
                raise ValueError(
                    f"Cannot aggregate mixed sessions: {session_id!r} and {action.session_id!r}"
                )
            elif action.user_id != user_id:
                raise MalformedFieldError(
                    "userId",
                    action.user_id,
                    f"session {session_id!r} already belongs to user {user_id}",
                )

            if action.search_keyword:
                keywords.add(action.search_keyword)
            if action.click_category_id is not None:
                category_ids.add(action.click_category_id)

            if start_time is None or action.action_time < start_time:
                start_time = action.action_time
            if end_time is None or action.action_time > end_time:
                end_time = action.action_time

            step_length += 1

        if session_id is None:
            raise ValueError("Cannot aggregate a session without actions")

        return SessionSummary(
            session_id=session_id,
            user_id=user_id,
            search_keywords=frozenset(keywords),
            click_category_ids=frozenset(category_ids),
            start_time=start_time,
            end_time=end_time,
            visit_length=int((end_time - start_time).total_seconds()),
            step_length=step_length,
        )

    @staticmethod
    def group_by_session(actions: Iterable[ActionRecord]) -> dict[str, list[ActionRecord]]:
        """Group actions by session id, preserving arrival order within a group."""
        groups: dict[str, list[ActionRecord]] = defaultdict(list)
        for action in actions:
            groups[action.session_id].append(action)
        return dict(groups)

    def aggregate_all(self, actions: Iterable[ActionRecord]) -> list[SessionSummary]:
        """Group actions by session and aggregate every group."""
        return [self.aggregate(group) for group in self.group_by_session(actions).values()]
