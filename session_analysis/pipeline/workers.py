# ==============================================================================
# Worker Tasks
# ==============================================================================
"""
Units of parallel work submitted to the worker pool.

Every function here is a pure transform of its arguments and lives at
module level so it can run in a thread or a process pool. Re-running a task
with the same input gives the same output.

- partition_actions(): regroup actions into shards by session id
- process_shard():     aggregate -> join -> filter one shard
- select_bucket():     pick the planned sessions of one (date, hour) bucket
"""

import logging
import zlib
from collections.abc import Iterable
from dataclasses import dataclass, field

from session_analysis.core.dimension_joiner import DimensionJoiner
from session_analysis.core.models import (
    ActionRecord,
    FilterCriteria,
    FullSessionRecord,
    UserDimension,
)
from session_analysis.core.predicate_filter import PredicateFilter
from session_analysis.core.sampler import SamplingPlan, StratifiedSampler
from session_analysis.core.session_aggregator import SessionAggregator
from session_analysis.core.stats import StatsAccumulator
from session_analysis.pipeline.broadcast import Broadcast

logger = logging.getLogger(__name__)


def partition_key(session_id: str, partitions: int) -> int:
    """
    Shard index for a session id.

    Uses crc32 rather than hash() so the assignment is stable across
    processes and interpreter runs.
    """
    return zlib.crc32(session_id.encode("utf-8")) % partitions


def partition_actions(
    actions: Iterable[ActionRecord], partitions: int
) -> list[list[ActionRecord]]:
    """Split actions into shards so each session lives in exactly one shard."""
    if partitions < 1:
        raise ValueError(f"partitions must be at least 1: {partitions}")
    shards: list[list[ActionRecord]] = [[] for _ in range(partitions)]
    for action in actions:
        shards[partition_key(action.session_id, partitions)].append(action)
    return shards


@dataclass
class ShardResult:
    """
    Output of one filter task.

    Attributes:
        shard_id: Index of the shard
        records: Wire-encoded FullSessionRecord of every accepted session
        accumulator: Histogram partial of the accepted sessions (unsealed)
        sessions: Sessions aggregated in the shard
        dropped: Sessions dropped for lack of a user dimension row
    """

    shard_id: int
    records: list[str] = field(default_factory=list)
    accumulator: StatsAccumulator = field(default_factory=StatsAccumulator)
    sessions: int = 0
    dropped: int = 0


def process_shard(
    shard_id: int,
    actions: list[ActionRecord],
    users: Broadcast[int, UserDimension],
    criteria: FilterCriteria,
) -> ShardResult:
    """
    Aggregate, join and filter one shard of actions.

    Args:
        shard_id: Index of the shard
        actions: Every action of the shard's sessions
        users: Broadcast user-id index
        criteria: Session filter

    Returns:
        ShardResult with the accepted sessions and this shard's histogram
    """
    aggregator = SessionAggregator()
    joiner = DimensionJoiner(users.value)
    predicate = PredicateFilter(criteria, StatsAccumulator())

    summaries = aggregator.aggregate_all(actions)
    accepted = [record.to_wire() for record in predicate.filter(joiner.join_all(summaries))]
    if joiner.dropped:
        logger.info(
            "Shard %d: dropped %d of %d sessions without a user dimension row",
            shard_id,
            joiner.dropped,
            len(summaries),
        )

    return ShardResult(
        shard_id=shard_id,
        records=accepted,
        accumulator=predicate.accumulator,
        sessions=len(summaries),
        dropped=joiner.dropped,
    )


def select_bucket(
    date: str,
    hour: str,
    records: list[FullSessionRecord],
    plan: SamplingPlan,
) -> list[FullSessionRecord]:
    """Select the planned sessions of one (date, hour) bucket."""
    return StratifiedSampler.select_bucket(records, plan.indices_for(date, hour))
