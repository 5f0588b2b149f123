# ==============================================================================
# Tests for DimensionJoiner - dimension_joiner.py
# ==============================================================================
"""
Tests for the user-id inner join and the shared user index.
"""

import pytest

from conftest import make_action, make_user
from session_analysis.core.dimension_joiner import DimensionJoiner, build_user_index
from session_analysis.core.session_aggregator import SessionAggregator


class TestBuildUserIndex:
    def test_index_by_user_id(self):
        index = build_user_index([make_user(1), make_user(2, age=40)])
        assert set(index) == {1, 2}
        assert index[2].age == 40

    def test_index_is_read_only(self):
        index = build_user_index([make_user(1)])
        with pytest.raises(TypeError):
            index[3] = make_user(3)

    def test_later_row_wins(self):
        index = build_user_index([make_user(1, city="A"), make_user(1, city="B")])
        assert index[1].city == "B"


class TestDimensionJoiner:
    """Tests for DimensionJoiner.join() / join_all()."""

    def test_join_copies_user_attributes(self, s1_actions, s1_user):
        summary = SessionAggregator().aggregate(s1_actions)
        record = DimensionJoiner(build_user_index([s1_user])).join(summary)

        assert record is not None
        assert record.session_id == "s1"
        assert record.visit_length == 12
        assert record.step_length == 4
        assert (record.age, record.professional, record.city, record.sex) == (
            25,
            "IT",
            "Beijing",
            "M",
        )

    def test_unknown_user_dropped_and_counted(self, s1_actions):
        summary = SessionAggregator().aggregate(s1_actions)
        joiner = DimensionJoiner(build_user_index([make_user(99)]))

        assert joiner.join(summary) is None
        assert joiner.dropped == 1

    def test_join_all_skips_unknown_users(self, s1_actions, s1_user):
        actions = s1_actions + [make_action("s2", user_id=99)]
        summaries = SessionAggregator().aggregate_all(actions)
        joiner = DimensionJoiner(build_user_index([s1_user]))

        records = list(joiner.join_all(summaries))
        assert [r.session_id for r in records] == ["s1"]
        assert joiner.dropped == 1
