# ==============================================================================
# Tests for StratifiedSampler - sampler.py
# ==============================================================================
"""
Tests for the Count / Plan / Select phases of time-stratified sampling.
"""

import pickle
import random
from datetime import datetime, timedelta

import pytest

from conftest import make_record
from session_analysis.core.sampler import SamplingPlan, StratifiedSampler

DATE_A = "2024-01-15"
DATE_B = "2024-01-16"

TWO_DATE_COUNTS = {
    DATE_A: {"10": 10, "11": 40, "12": 50},
    DATE_B: {"09": 5},
}


def _records_in_hour(day: datetime, hour: int, n: int, prefix: str) -> list:
    start = day.replace(hour=hour)
    return [
        make_record(f"{prefix}-{i:03d}", start_time=start + timedelta(seconds=i))
        for i in range(n)
    ]


# ==============================================================================
# Plan
# ==============================================================================


class TestPlan:
    """Tests for quota computation and index draws."""

    def test_two_date_scenario_quotas(self):
        plan = StratifiedSampler(total_quota=100, seed=1).plan(TWO_DATE_COUNTS)

        assert len(plan.indices_for(DATE_A, "10")) == 5
        assert len(plan.indices_for(DATE_A, "11")) == 20
        assert len(plan.indices_for(DATE_A, "12")) == 25
        # 50 planned for a 5-session hour is capped at 5
        assert len(plan.indices_for(DATE_B, "09")) == 5
        assert plan.total == 55

    def test_indices_distinct_and_in_range(self):
        plan = StratifiedSampler(seed=3).plan(TWO_DATE_COUNTS)
        for date, hours in TWO_DATE_COUNTS.items():
            for hour, count in hours.items():
                indices = plan.indices_for(date, hour)
                assert all(0 <= i < count for i in indices)

    def test_day_total_never_exceeds_day_quota(self):
        rng = random.Random(0)
        for _ in range(20):
            counts = {
                f"2024-01-{d:02d}": {f"{h:02d}": rng.randint(1, 40) for h in range(24)}
                for d in range(1, rng.randint(2, 6))
            }
            sampler = StratifiedSampler(total_quota=100, seed=rng.randrange(1000))
            plan = sampler.plan(counts)
            day_quota = sampler.day_quota(len(counts))
            for date in plan.dates:
                assert sum(len(idx) for idx in plan.hours(date).values()) <= day_quota

    def test_zero_dates_gives_empty_plan(self):
        sampler = StratifiedSampler()
        plan = sampler.plan({})
        assert plan.total == 0
        assert plan.dates == []
        assert sampler.day_quota(0) == 0

    def test_same_seed_same_plan(self):
        a = StratifiedSampler(seed=42).plan(TWO_DATE_COUNTS)
        b = StratifiedSampler(seed=42).plan(TWO_DATE_COUNTS)
        assert a == b

    def test_zero_quota(self):
        plan = StratifiedSampler(total_quota=0).plan(TWO_DATE_COUNTS)
        assert plan.total == 0

    def test_negative_quota_rejected(self):
        with pytest.raises(ValueError):
            StratifiedSampler(total_quota=-1)

    @pytest.mark.parametrize(
        "hour_count, day_total, day_quota, expected",
        [
            (10, 100, 50, 5),
            (1, 3, 50, 1),
            (30, 90, 50, 16),
            (5, 5, 50, 5),
            (0, 10, 50, 0),
            (3, 0, 50, 0),
        ],
    )
    def test_hour_quota(self, hour_count, day_total, day_quota, expected):
        assert StratifiedSampler.hour_quota(hour_count, day_total, day_quota) == expected

    def test_draw_all_indices_when_quota_covers_bucket(self):
        assert StratifiedSampler(seed=5).draw_indices(10, 4) == frozenset(range(4))


# ==============================================================================
# SamplingPlan
# ==============================================================================


class TestSamplingPlan:
    def test_unplanned_bucket_is_empty(self):
        plan = SamplingPlan({DATE_A: {"10": [1, 2]}})
        assert plan.indices_for(DATE_A, "11") == frozenset()
        assert plan.indices_for(DATE_B, "10") == frozenset()

    def test_read_only(self):
        plan = SamplingPlan({DATE_A: {"10": [1]}})
        with pytest.raises(TypeError):
            plan.hours(DATE_A)["11"] = frozenset({0})

    def test_to_dict_sorted(self):
        plan = SamplingPlan({DATE_A: {"10": {3, 1, 2}}})
        assert plan.to_dict() == {DATE_A: {"10": [1, 2, 3]}}

    def test_pickles(self):
        plan = StratifiedSampler(seed=1).plan(TWO_DATE_COUNTS)
        assert pickle.loads(pickle.dumps(plan)) == plan


# ==============================================================================
# Count and Select
# ==============================================================================


class TestCountAndSelect:
    """Tests for bucketing and ordinal selection."""

    def test_bucket_and_count(self):
        day = datetime(2024, 1, 15)
        records = _records_in_hour(day, 10, 3, "a") + _records_in_hour(day, 23, 2, "b")

        buckets = StratifiedSampler.bucket(records)
        assert StratifiedSampler.count(buckets) == {DATE_A: {"10": 3, "23": 2}}

    def test_bucket_groups_sorted_by_start_time_then_id(self):
        start = datetime(2024, 1, 15, 10)
        records = [
            make_record("z", start_time=start),
            make_record("b", start_time=start + timedelta(minutes=1)),
            make_record("a", start_time=start),
        ]
        (group,) = StratifiedSampler.bucket(records).values()
        assert [r.session_id for r in group] == ["a", "z", "b"]

    def test_select_independent_of_arrival_order(self):
        records = _records_in_hour(datetime(2024, 1, 15), 10, 6, "s")
        shuffled = list(records)
        random.Random(9).shuffle(shuffled)

        selected = StratifiedSampler.select_bucket(shuffled, frozenset({0, 2, 5}))
        assert [r.session_id for r in selected] == ["s-000", "s-002", "s-005"]

    def test_select_with_no_indices(self):
        records = _records_in_hour(datetime(2024, 1, 15), 10, 3, "s")
        assert StratifiedSampler.select_bucket(records, frozenset()) == []

    def test_sample_respects_plan(self):
        day_a = datetime(2024, 1, 15)
        day_b = datetime(2024, 1, 16)
        records = (
            _records_in_hour(day_a, 10, 10, "a10")
            + _records_in_hour(day_a, 11, 40, "a11")
            + _records_in_hour(day_a, 12, 50, "a12")
            + _records_in_hour(day_b, 9, 5, "b09")
        )
        selected = StratifiedSampler(total_quota=100, seed=7).sample(records)

        assert len(selected) == 55
        assert len({r.session_id for r in selected}) == 55
        assert sum(1 for r in selected if r.session_id.startswith("a11")) == 20
        assert sum(1 for r in selected if r.session_id.startswith("b09")) == 5

    def test_sample_empty_input(self):
        assert StratifiedSampler().sample([]) == []
