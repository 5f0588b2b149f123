# ==============================================================================
# Stratified Sampler
# ==============================================================================
"""
Time-proportional random session sampling.

The sampler runs in three phases:

1. Count  - bucket sessions by (date, hour) of their start time
2. Plan   - split the total quota evenly across dates, then across each
            date's hours in proportion to the hour's share of the day, and
            draw distinct random ordinal indices per hour
3. Select - number each bucket's sessions and keep those whose ordinal was
            drawn

Ordinals are positions in the bucket sorted by (start_time, session_id).
Count and Select both use that order, so a planned index always refers to
the same session no matter how records were partitioned upstream.
"""

import logging
import random
from collections import defaultdict
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from session_analysis.core.models import FullSessionRecord

logger = logging.getLogger(__name__)

# Sessions to sample per job, split evenly across dates
TOTAL_QUOTA = 100

DateHour = tuple[str, str]


class SamplingPlan:
    """
    Read-only mapping of date -> hour -> planned ordinal indices.

    Built once by StratifiedSampler.plan() and shared with every Select
    task. There is no mutating API.
    """

    def __init__(self, plan: Mapping[str, Mapping[str, Iterable[int]]] | None = None):
        self._plan = MappingProxyType(
            {
                date: MappingProxyType({hour: frozenset(idx) for hour, idx in hours.items()})
                for date, hours in (plan or {}).items()
            }
        )

    def indices_for(self, date: str, hour: str) -> frozenset[int]:
        """Planned indices for one bucket (empty when nothing is planned)."""
        return self._plan.get(date, MappingProxyType({})).get(hour, frozenset())

    @property
    def dates(self) -> list[str]:
        return sorted(self._plan)

    def hours(self, date: str) -> Mapping[str, frozenset[int]]:
        return self._plan.get(date, MappingProxyType({}))

    @property
    def total(self) -> int:
        """Number of sessions the plan will select."""
        return sum(len(idx) for hours in self._plan.values() for idx in hours.values())

    def to_dict(self) -> dict[str, dict[str, list[int]]]:
        """Plain nested dict with sorted index lists."""
        return {
            date: {hour: sorted(idx) for hour, idx in sorted(hours.items())}
            for date, hours in sorted(self._plan.items())
        }

    def __reduce__(self):
        # MappingProxyType does not pickle; rebuild from plain dicts
        return (SamplingPlan, (self.to_dict(),))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SamplingPlan):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"SamplingPlan({self.to_dict()!r})"


class StratifiedSampler:
    """Counts, plans and selects a time-stratified session sample."""

    def __init__(self, total_quota: int = TOTAL_QUOTA, seed: int | None = None):
        """
        Args:
            total_quota: Sessions to sample across all dates
            seed: Optional seed for reproducible index draws
        """
        if total_quota < 0:
            raise ValueError(f"total_quota must not be negative: {total_quota}")
        self.total_quota = total_quota
        self._rng = random.Random(seed)

    # ==========================================================================
    # Count
    # ==========================================================================

    @staticmethod
    def bucket(records: Iterable[FullSessionRecord]) -> dict[DateHour, list[FullSessionRecord]]:
        """Group records by (date, hour), each group sorted by the ordinal key."""
        buckets: dict[DateHour, list[FullSessionRecord]] = defaultdict(list)
        for record in records:
            buckets[record.date_hour].append(record)
        return {key: sorted(group, key=lambda r: r.sort_key) for key, group in buckets.items()}

    @staticmethod
    def count(buckets: Mapping[DateHour, list[FullSessionRecord]]) -> dict[str, dict[str, int]]:
        """Session count per date and hour."""
        counts: dict[str, dict[str, int]] = defaultdict(dict)
        for (date, hour), group in buckets.items():
            counts[date][hour] = len(group)
        return dict(counts)

    # ==========================================================================
    # Plan
    # ==========================================================================

    def day_quota(self, num_dates: int) -> int:
        """Sessions to sample per date; 0 when there are no dates."""
        if num_dates <= 0:
            return 0
        return self.total_quota // num_dates

    @staticmethod
    def hour_quota(hour_count: int, day_total: int, day_quota: int) -> int:
        """
        floor(hour_count / day_total * day_quota), capped at hour_count.

        Integer arithmetic avoids float rounding at exact boundaries.
        """
        if day_total <= 0 or hour_count <= 0:
            return 0
        return min(hour_count * day_quota // day_total, hour_count)

    def draw_indices(self, quota: int, hour_count: int) -> frozenset[int]:
        """Draw `quota` distinct indices in [0, hour_count) by rejection sampling."""
        quota = min(quota, hour_count)
        chosen: set[int] = set()
        for _ in range(quota):
            index = self._rng.randrange(hour_count)
            while index in chosen:
                index = self._rng.randrange(hour_count)
            chosen.add(index)
        return frozenset(chosen)

    def plan(self, counts: Mapping[str, Mapping[str, int]]) -> SamplingPlan:
        """
        Compute the sampling plan from per date-hour counts.

        Args:
            counts: date -> hour -> session count, see count()

        Returns:
            Frozen SamplingPlan (empty when counts is empty)
        """
        day_quota = self.day_quota(len(counts))
        plan: dict[str, dict[str, frozenset[int]]] = {}

        for date in sorted(counts):
            hour_counts = counts[date]
            day_total = sum(hour_counts.values())
            plan[date] = {}
            for hour in sorted(hour_counts):
                hour_count = hour_counts[hour]
                quota = self.hour_quota(hour_count, day_total, day_quota)
                if day_total and hour_count * day_quota // day_total > hour_count:
                    logger.debug("Quota for %s %s capped at %d sessions", date, hour, hour_count)
                plan[date][hour] = self.draw_indices(quota, hour_count)

            logger.debug(
                "Planned %d of %d sessions for %s (day quota %d)",
                sum(len(idx) for idx in plan[date].values()),
                day_total,
                date,
                day_quota,
            )

        return SamplingPlan(plan)

    # ==========================================================================
    # Select
    # ==========================================================================

    @staticmethod
    def select_bucket(
        records: Iterable[FullSessionRecord], indices: frozenset[int]
    ) -> list[FullSessionRecord]:
        """
        Keep the records of one bucket whose ordinal is in indices.

        Records are numbered in (start_time, session_id) order, the same
        order bucket() uses, regardless of the order they arrive in.
        """
        if not indices:
            return []
        ordered = sorted(records, key=lambda r: r.sort_key)
        return [record for ordinal, record in enumerate(ordered) if ordinal in indices]

    def sample(self, records: Iterable[FullSessionRecord]) -> list[FullSessionRecord]:
        """Run Count, Plan and Select sequentially in this process."""
        buckets = self.bucket(records)
        plan = self.plan(self.count(buckets))
        selected: list[FullSessionRecord] = []
        for (date, hour), group in sorted(buckets.items()):
            selected.extend(self.select_bucket(group, plan.indices_for(date, hour)))
        return selected
