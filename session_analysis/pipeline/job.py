# ==============================================================================
# Session Analysis Job
# ==============================================================================
"""
Runs the full session analysis pipeline on a local worker pool.

Stages:

    1. load       - read actions in the task's date range and the user table
    2. partition  - shard actions by session id (stable crc32 partitioning)
    3. filter     - per shard in parallel: aggregate -> join -> filter,
                    each shard counting into its own histogram partial
    4. barrier    - wait for every shard, merge and seal the histogram
    5. sample     - count sessions per (date, hour), plan centrally, then
                    select each bucket in parallel against the frozen plan
    6. detail     - attach the raw actions of every sampled session

A worker task that fails for any reason other than bad input is recomputed
from the same arguments, up to JOB_MAX_TASK_ATTEMPTS times. Any other
failure aborts the job: pending tasks are cancelled and nothing is returned.
cancel() aborts the job the same way from another thread (e.g. a signal
handler).
"""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import (
    FIRST_EXCEPTION,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)

from session_analysis.base.sources import ActionSource, UserDimensionSource
from session_analysis.core.dimension_joiner import build_user_index
from session_analysis.core.errors import JobCancelledError, SessionAnalysisError
from session_analysis.core.models import (
    ActionRecord,
    AnalysisResult,
    FullSessionRecord,
    SampledSession,
)
from session_analysis.core.sampler import SamplingPlan, StratifiedSampler
from session_analysis.core.stats import AggregateStat, StatsAccumulator
from session_analysis.core.task import TaskParams
from session_analysis.pipeline.broadcast import Broadcast
from session_analysis.pipeline.metrics import JobMetrics
from session_analysis.pipeline.workers import (
    ShardResult,
    partition_actions,
    partition_key,
    process_shard,
    select_bucket,
)
from session_analysis.utils.config import JobSettings

logger = logging.getLogger(__name__)

# How often a blocked wait re-checks the cancel flag
CANCEL_POLL_SECONDS = 0.5


def create_executor(settings: JobSettings) -> Executor:
    """Create the worker pool selected by JOB_EXECUTOR."""
    if settings.executor == "process":
        return ProcessPoolExecutor(max_workers=settings.workers)
    return ThreadPoolExecutor(max_workers=settings.workers, thread_name_prefix="session-worker")


class SessionAnalysisJob:
    """
    One configured pipeline, runnable for any number of tasks.

    Args:
        settings: Worker pool and sampling settings
        action_source: Source of user visit actions
        user_source: Source of user dimension rows
    """

    def __init__(
        self,
        settings: JobSettings,
        action_source: ActionSource,
        user_source: UserDimensionSource,
    ):
        self._settings = settings
        self._action_source = action_source
        self._user_source = user_source
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Request whole-job cancellation. Safe to call from any thread."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(self, task: TaskParams) -> AnalysisResult:
        """
        Run the pipeline for one task.

        Returns:
            The complete AnalysisResult

        Raises:
            MalformedFieldError: If an input row cannot be parsed
            JobCancelledError: If cancel() was called
        """
        settings = self._settings
        metrics = JobMetrics()
        logger.info(
            "Task %d: %s..%s | executor=%s workers=%d partitions=%d",
            task.task_id,
            task.start_date,
            task.end_date,
            settings.executor,
            settings.workers,
            settings.partitions,
        )

        with metrics.stage("load") as stage:
            actions = list(self._action_source.iter_actions(task.start_date, task.end_date))
            users = Broadcast(build_user_index(self._user_source.iter_users()))
            stage.records = len(actions)
        self._check_cancelled()

        with metrics.stage("partition") as stage:
            shards = partition_actions(actions, settings.partitions)
            stage.records = sum(1 for shard in shards if shard)
        self._check_cancelled()

        with create_executor(settings) as executor:
            with metrics.stage("filter") as stage:
                shard_results = self._run_filter_stage(executor, shards, users, task)
                stage.records = sum(len(r.records) for r in shard_results)

            # Every shard has finished: the merged histogram is final
            accumulator = StatsAccumulator.merge_all(r.accumulator for r in shard_results).seal()
            self._check_cancelled()

            with metrics.stage("sample") as stage:
                selected = self._run_sampling_stage(executor, shard_results)
                stage.records = len(selected)

        with metrics.stage("detail") as stage:
            samples = self._attach_details(selected, shards)
            stage.records = sum(len(s.actions) for s in samples)

        total_sessions = sum(r.sessions for r in shard_results)
        dropped = sum(r.dropped for r in shard_results)
        if dropped:
            logger.info(
                "Dropped %s of %s sessions without a user dimension row",
                f"{dropped:,}",
                f"{total_sessions:,}",
            )

        stat = AggregateStat.from_accumulator(task.task_id, accumulator)
        metrics.log_final_summary()
        logger.info(
            "Task %d: %s sessions passed the filter, %d sampled",
            task.task_id,
            f"{stat.session_count:,}",
            len(samples),
        )

        return AnalysisResult(
            task_id=task.task_id,
            stat=stat,
            samples=samples,
            total_sessions=total_sessions,
            dropped_sessions=dropped,
        )

    # ==========================================================================
    # Stages
    # ==========================================================================

    def _run_filter_stage(
        self,
        executor: Executor,
        shards: list[list[ActionRecord]],
        users: Broadcast,
        task: TaskParams,
    ) -> list[ShardResult]:
        """Submit one filter task per non-empty shard and wait for all of them."""
        tasks = [
            (process_shard, shard_id, shard, users, task.criteria)
            for shard_id, shard in enumerate(shards)
            if shard
        ]
        results = self._gather(executor, tasks)
        return sorted(results, key=lambda r: r.shard_id)

    def _run_sampling_stage(
        self, executor: Executor, shard_results: list[ShardResult]
    ) -> list[FullSessionRecord]:
        """Count and plan centrally, then select every bucket in parallel."""
        sampler = StratifiedSampler(self._settings.total_quota, self._settings.random_seed)

        records = [
            FullSessionRecord.from_wire(encoded)
            for result in shard_results
            for encoded in result.records
        ]
        buckets = sampler.bucket(records)
        plan: SamplingPlan = sampler.plan(sampler.count(buckets))
        logger.info(
            "Sampling plan: %d of %d sessions across %d dates",
            plan.total,
            len(records),
            len(plan.dates),
        )
        self._check_cancelled()

        # The plan is frozen before any select task starts
        tasks = [
            (select_bucket, date, hour, group, plan)
            for (date, hour), group in sorted(buckets.items())
            if plan.indices_for(date, hour)
        ]
        selected = [record for chunk in self._gather(executor, tasks) for record in chunk]
        return sorted(selected, key=lambda r: r.sort_key)

    def _attach_details(
        self, selected: Iterable[FullSessionRecord], shards: list[list[ActionRecord]]
    ) -> list[SampledSession]:
        """Join sampled sessions back to their raw actions."""
        partitions = len(shards)
        samples = []
        for record in selected:
            shard = shards[partition_key(record.session_id, partitions)]
            actions = sorted(
                (a for a in shard if a.session_id == record.session_id),
                key=lambda a: a.action_time,
            )
            samples.append(SampledSession(record=record, actions=actions))
        return samples

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _gather(self, executor: Executor, tasks: list[tuple]) -> list:
        """
        Run tasks on the pool and wait for all of them, the synchronization
        point between stages.

        Each task is ``(fn, *args)``. A task failing with anything other than
        a SessionAnalysisError is resubmitted with the same arguments, up to
        max_task_attempts in total. On a fatal failure or on cancellation,
        pending futures are cancelled and the error is raised; no partial
        results escape.
        """
        max_attempts = self._settings.max_task_attempts
        results: list = [None] * len(tasks)
        pending: dict[Future, tuple[int, int]] = {
            executor.submit(*task): (i, 1) for i, task in enumerate(tasks)
        }
        try:
            while pending:
                if self.cancelled:
                    raise JobCancelledError("Job cancelled while waiting for workers")
                done, _ = wait(pending, timeout=CANCEL_POLL_SECONDS, return_when=FIRST_EXCEPTION)
                for future in done:
                    index, attempt = pending.pop(future)
                    error = future.exception()
                    if error is None:
                        results[index] = future.result()
                    elif isinstance(error, SessionAnalysisError) or attempt >= max_attempts:
                        raise error
                    else:
                        logger.warning(
                            "Task %s failed (attempt %d/%d), recomputing: %s",
                            tasks[index][0].__name__,
                            attempt,
                            max_attempts,
                            error,
                        )
                        pending[executor.submit(*tasks[index])] = (index, attempt + 1)
        except BaseException:
            for future in pending:
                future.cancel()
            raise
        return results

    def _check_cancelled(self) -> None:
        if self.cancelled:
            raise JobCancelledError("Job cancelled")
