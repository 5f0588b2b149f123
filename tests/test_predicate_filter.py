# ==============================================================================
# Tests for PredicateFilter - predicate_filter.py
# ==============================================================================
"""
Tests for the session filter and its histogram side effects.
"""

import pytest

from conftest import make_record
from session_analysis.core.dimension_joiner import DimensionJoiner, build_user_index
from session_analysis.core.models import FilterCriteria
from session_analysis.core.predicate_filter import PredicateFilter
from session_analysis.core.session_aggregator import SessionAggregator
from session_analysis.core.stats import SESSION_COUNT, StatsAccumulator


# ==============================================================================
# End-to-end s1 scenario
# ==============================================================================


class TestS1Scenario:
    """Aggregate -> join -> filter for the four-action s1 session."""

    def test_accepted_and_counted(self, s1_actions, s1_user):
        summary = SessionAggregator().aggregate(s1_actions)
        record = DimensionJoiner(build_user_index([s1_user])).join(summary)
        criteria = FilterCriteria(
            start_age=20,
            end_age=30,
            professionals=frozenset({"IT"}),
            cities=frozenset({"Beijing", "Shanghai"}),
        )
        predicate = PredicateFilter(criteria)

        assert predicate.accept(record)
        assert record.visit_length == 12
        assert record.step_length == 4
        assert predicate.accumulator.snapshot() == {SESSION_COUNT: 1, "10s_30s": 1, "4_6": 1}

    def test_wildcard_accepts_everything(self):
        predicate = PredicateFilter(FilterCriteria())
        records = [make_record(f"s{i}", age=i, city=f"c{i}") for i in range(5)]

        assert list(predicate.filter(records)) == records
        assert predicate.accumulator.snapshot()[SESSION_COUNT] == 5


# ==============================================================================
# Individual criteria
# ==============================================================================


class TestMatches:
    """Each criterion in isolation."""

    @pytest.mark.parametrize(
        "age, expected",
        [(19, False), (20, True), (25, True), (30, True), (31, False)],
    )
    def test_age_range_inclusive(self, age, expected):
        predicate = PredicateFilter(FilterCriteria(start_age=20, end_age=30))
        assert predicate.matches(make_record(age=age)) is expected

    def test_open_ended_age_range(self):
        predicate = PredicateFilter(FilterCriteria(start_age=20))
        assert predicate.matches(make_record(age=90))
        assert not predicate.matches(make_record(age=19))

    def test_professional(self):
        predicate = PredicateFilter(FilterCriteria(professionals=frozenset({"Teacher"})))
        assert not predicate.matches(make_record(professional="IT"))
        assert predicate.matches(make_record(professional="Teacher"))

    def test_city_any_of(self):
        predicate = PredicateFilter(FilterCriteria(cities=frozenset({"Beijing", "Shanghai"})))
        assert predicate.matches(make_record(city="Shanghai"))
        assert not predicate.matches(make_record(city="Shenzhen"))

    def test_sex(self):
        predicate = PredicateFilter(FilterCriteria(sex="F"))
        assert not predicate.matches(make_record(sex="M"))
        assert predicate.matches(make_record(sex="F"))

    def test_keywords_any_shared(self):
        predicate = PredicateFilter(FilterCriteria(keywords=frozenset({"cake", "shoes"})))
        assert predicate.matches(make_record(search_keywords=frozenset({"shoes", "tv"})))
        assert not predicate.matches(make_record(search_keywords=frozenset({"tv"})))
        assert not predicate.matches(make_record(search_keywords=frozenset()))

    def test_keywords_exact_match_only(self):
        predicate = PredicateFilter(FilterCriteria(keywords=frozenset({"pot"})))
        assert not predicate.matches(make_record(search_keywords=frozenset({"hotpot"})))

    def test_categories_any_shared(self):
        predicate = PredicateFilter(FilterCriteria(category_ids=frozenset({10})))
        assert not predicate.matches(make_record(click_category_ids=frozenset({110})))
        assert predicate.matches(make_record(click_category_ids=frozenset({10, 110})))

    @pytest.mark.parametrize("field", ["professionals", "cities", "keywords", "category_ids"])
    def test_empty_set_is_wildcard(self, field):
        predicate = PredicateFilter(FilterCriteria(**{field: frozenset()}))
        assert predicate.matches(make_record())
        assert predicate.matches(
            make_record(search_keywords=frozenset(), click_category_ids=frozenset())
        )

    def test_criteria_combine_with_and(self):
        predicate = PredicateFilter(FilterCriteria(sex="M", cities=frozenset({"Shanghai"})))
        assert not predicate.matches(make_record(sex="M", city="Beijing"))


# ==============================================================================
# Histogram side effects
# ==============================================================================


class TestAccept:
    def test_rejected_session_not_counted(self):
        predicate = PredicateFilter(FilterCriteria(sex="F"))
        assert not predicate.accept(make_record(sex="M"))
        assert predicate.accumulator.snapshot() == {}

    def test_matches_has_no_side_effect(self):
        predicate = PredicateFilter(FilterCriteria())
        predicate.matches(make_record())
        assert predicate.accumulator.snapshot() == {}

    def test_counts_into_given_accumulator(self):
        acc = StatsAccumulator()
        predicate = PredicateFilter(FilterCriteria(), acc)
        predicate.accept(make_record(visit_length=0, step_length=1))
        predicate.accept(make_record("s2", visit_length=2000, step_length=100))

        assert predicate.accumulator is acc
        assert acc.snapshot() == {
            SESSION_COUNT: 2,
            "1s_3s": 1,
            "30m": 1,
            "1_3": 1,
            "60": 1,
        }
