# ==============================================================================
# Session Statistics Accumulator
# ==============================================================================
"""
Visit-length and step-length histograms for filtered sessions.

A StatsAccumulator is a key-wise additive counter. Each worker fills its own
accumulator while filtering; the job merges the partial accumulators after
every worker has finished and seals the result. Merging is associative and
commutative with the empty accumulator as identity, so the merged value does
not depend on merge order or the number of workers.
"""

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

# ==============================================================================
# Bucket Names
# ==============================================================================

SESSION_COUNT = "session_count"

TIME_PERIOD_1s_3s = "1s_3s"
TIME_PERIOD_4s_6s = "4s_6s"
TIME_PERIOD_7s_9s = "7s_9s"
TIME_PERIOD_10s_30s = "10s_30s"
TIME_PERIOD_30s_60s = "30s_60s"
TIME_PERIOD_1m_3m = "1m_3m"
TIME_PERIOD_3m_10m = "3m_10m"
TIME_PERIOD_10m_30m = "10m_30m"
TIME_PERIOD_30m = "30m"

STEP_PERIOD_1_3 = "1_3"
STEP_PERIOD_4_6 = "4_6"
STEP_PERIOD_7_9 = "7_9"
STEP_PERIOD_10_30 = "10_30"
STEP_PERIOD_30_60 = "30_60"
STEP_PERIOD_60 = "60"

VISIT_LENGTH_BUCKETS = (
    TIME_PERIOD_1s_3s,
    TIME_PERIOD_4s_6s,
    TIME_PERIOD_7s_9s,
    TIME_PERIOD_10s_30s,
    TIME_PERIOD_30s_60s,
    TIME_PERIOD_1m_3m,
    TIME_PERIOD_3m_10m,
    TIME_PERIOD_10m_30m,
    TIME_PERIOD_30m,
)

STEP_LENGTH_BUCKETS = (
    STEP_PERIOD_1_3,
    STEP_PERIOD_4_6,
    STEP_PERIOD_7_9,
    STEP_PERIOD_10_30,
    STEP_PERIOD_30_60,
    STEP_PERIOD_60,
)

ALL_KEYS = (SESSION_COUNT, *VISIT_LENGTH_BUCKETS, *STEP_LENGTH_BUCKETS)


# ==============================================================================
# Classification
# ==============================================================================


def visit_length_bucket(seconds: int) -> str:
    """
    Classify a visit length in seconds.

    Zero-length sessions (a single action, or all actions in the same
    second) fall into the first bucket.
    """
    if seconds < 0:
        raise ValueError(f"visit length cannot be negative: {seconds}")
    if seconds <= 3:
        return TIME_PERIOD_1s_3s
    if seconds <= 6:
        return TIME_PERIOD_4s_6s
    if seconds <= 9:
        return TIME_PERIOD_7s_9s
    if seconds <= 30:
        return TIME_PERIOD_10s_30s
    if seconds <= 60:
        return TIME_PERIOD_30s_60s
    if seconds <= 180:
        return TIME_PERIOD_1m_3m
    if seconds <= 600:
        return TIME_PERIOD_3m_10m
    if seconds <= 1800:
        return TIME_PERIOD_10m_30m
    return TIME_PERIOD_30m


def step_length_bucket(steps: int) -> str:
    """Classify a session step count (always >= 1)."""
    if steps < 1:
        raise ValueError(f"step length must be at least 1: {steps}")
    if steps <= 3:
        return STEP_PERIOD_1_3
    if steps <= 6:
        return STEP_PERIOD_4_6
    if steps <= 9:
        return STEP_PERIOD_7_9
    if steps <= 30:
        return STEP_PERIOD_10_30
    if steps <= 60:
        return STEP_PERIOD_30_60
    return STEP_PERIOD_60


# ==============================================================================
# Accumulator
# ==============================================================================


class StatsAccumulator:
    """
    Key-wise additive histogram counter.

    Workers call add_session() on their private accumulator. The owner of
    the merged accumulator calls seal() once every contributing worker has
    finished; only then may value be read.
    """

    def __init__(self, counts: Mapping[str, int] | None = None):
        self._counts: dict[str, int] = dict(counts or {})
        self._sealed = False

    def add(self, key: str, amount: int = 1) -> None:
        """Increment a single counter."""
        if self._sealed:
            raise RuntimeError("Accumulator is sealed; no further updates allowed")
        self._counts[key] = self._counts.get(key, 0) + amount

    def add_session(self, visit_length: int, step_length: int) -> None:
        """Count one accepted session in both histograms."""
        self.add(SESSION_COUNT)
        self.add(visit_length_bucket(visit_length))
        self.add(step_length_bucket(step_length))

    def merge(self, other: "StatsAccumulator") -> "StatsAccumulator":
        """Return a new unsealed accumulator holding the key-wise sum."""
        merged = dict(self._counts)
        for key, count in other._counts.items():
            merged[key] = merged.get(key, 0) + count
        return StatsAccumulator(merged)

    @classmethod
    def merge_all(cls, partials: Iterable["StatsAccumulator"]) -> "StatsAccumulator":
        """Fold any number of partial accumulators, starting from the identity."""
        result = cls()
        for partial in partials:
            result = result.merge(partial)
        return result

    def seal(self) -> "StatsAccumulator":
        """Mark the value final. Returns self for chaining."""
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def value(self) -> dict[str, int]:
        """
        Final counts for every known bucket (missing buckets are 0).

        Raises:
            RuntimeError: If read before seal()
        """
        if not self._sealed:
            raise RuntimeError("Accumulator read before all contributing work finished")
        return {key: self._counts.get(key, 0) for key in ALL_KEYS}

    def snapshot(self) -> dict[str, int]:
        """Counts recorded so far, sealed or not."""
        return dict(self._counts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatsAccumulator):
            return NotImplemented
        return {k: v for k, v in self._counts.items() if v} == {
            k: v for k, v in other._counts.items() if v
        }

    def __repr__(self) -> str:
        return f"StatsAccumulator({self._counts!r}, sealed={self._sealed})"


# ==============================================================================
# Aggregate Stat
# ==============================================================================


class AggregateStat(BaseModel):
    """
    Final histogram of one task with per-bucket ratios.

    Ratios are bucket count / session_count rounded to 2 decimals, and 0.0
    when no session passed the filter.
    """

    task_id: int
    session_count: int
    counts: dict[str, int] = Field(default_factory=dict)
    ratios: dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_accumulator(cls, task_id: int, accumulator: StatsAccumulator) -> "AggregateStat":
        counts = accumulator.value
        session_count = counts[SESSION_COUNT]
        ratios = {
            key: round(counts[key] / session_count, 2) if session_count else 0.0
            for key in (*VISIT_LENGTH_BUCKETS, *STEP_LENGTH_BUCKETS)
        }
        return cls(task_id=task_id, session_count=session_count, counts=counts, ratios=ratios)

    def to_db_record(self) -> dict:
        """Convert to the session_aggr_stat row format."""
        record = {"task_id": self.task_id, "session_count": self.session_count}
        for key in VISIT_LENGTH_BUCKETS:
            record[f"visit_length_{key}_ratio"] = self.ratios.get(key, 0.0)
        for key in STEP_LENGTH_BUCKETS:
            record[f"step_length_{key}_ratio"] = self.ratios.get(key, 0.0)
        return record
