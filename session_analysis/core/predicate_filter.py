# ==============================================================================
# Predicate Filter
# ==============================================================================
"""
Session filtering with histogram side effects.

A session passes when it satisfies every set criterion, checked in order:
age range, professional, city, sex, search keywords, clicked categories.
Each accepted session is counted once in the session total, once in a
visit-length bucket and once in a step-length bucket.
"""

from collections.abc import Iterable, Iterator

from session_analysis.core.models import FilterCriteria, FullSessionRecord
from session_analysis.core.stats import StatsAccumulator


class PredicateFilter:
    """
    Evaluates a FilterCriteria against full session records.

    Accepted sessions are counted into the accumulator passed at
    construction. Each worker should own its filter and accumulator.
    """

    def __init__(self, criteria: FilterCriteria, accumulator: StatsAccumulator | None = None):
        self._criteria = criteria
        self.accumulator = accumulator if accumulator is not None else StatsAccumulator()

    def matches(self, record: FullSessionRecord) -> bool:
        """Pure predicate; no histogram update."""
        c = self._criteria

        if c.start_age is not None and record.age < c.start_age:
            return False
        if c.end_age is not None and record.age > c.end_age:
            return False

        if c.professionals and record.professional not in c.professionals:
            return False

        if c.cities and record.city not in c.cities:
            return False

        if c.sex is not None and record.sex != c.sex:
            return False

        # Any one shared keyword or category is enough; an empty set is unset
        if c.keywords and c.keywords.isdisjoint(record.search_keywords):
            return False
        if c.category_ids and c.category_ids.isdisjoint(record.click_category_ids):
            return False

        return True

    def accept(self, record: FullSessionRecord) -> bool:
        """Evaluate the criteria and count the session if it passes."""
        if not self.matches(record):
            return False
        self.accumulator.add_session(record.visit_length, record.step_length)
        return True

    def filter(self, records: Iterable[FullSessionRecord]) -> Iterator[FullSessionRecord]:
        """Yield the accepted records."""
        for record in records:
            if self.accept(record):
                yield record
