# ==============================================================================
# Job Stage Metrics
# ==============================================================================
"""
Stage timing instrumentation for a job run.

Wraps each pipeline stage with time.monotonic() timing and provides:

- Per-stage INFO log with elapsed time and record counts
- Final summary with every stage's share of the total

Usage:
    metrics = JobMetrics()
    with metrics.stage("filter") as stage:
        ...
        stage.records = len(accepted)
    metrics.log_final_summary()
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class StageTiming:
    """Elapsed time and output size of one stage."""

    name: str
    elapsed_ms: float = 0.0
    records: int | None = None


class JobMetrics:
    """Collects per-stage timings of one job run."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger
        self._stages: list[StageTiming] = []
        self._start_time = time.monotonic()

    @contextmanager
    def stage(self, name: str) -> Iterator[StageTiming]:
        """
        Time a stage.

        The stage is logged and recorded only if the block completes.
        """
        timing = StageTiming(name=name)
        t0 = time.monotonic()
        yield timing
        timing.elapsed_ms = (time.monotonic() - t0) * 1000
        self._stages.append(timing)

        if timing.records is None:
            self._log.info(
                "Stage %s: %.*fms", name, _precision(timing.elapsed_ms), timing.elapsed_ms
            )
        else:
            self._log.info(
                "Stage %s: %s records | %.*fms",
                name,
                f"{timing.records:,}",
                _precision(timing.elapsed_ms),
                timing.elapsed_ms,
            )

    @property
    def stages(self) -> list[StageTiming]:
        return list(self._stages)

    def log_final_summary(self) -> None:
        """Log total runtime and each stage's share of it."""
        total_ms = (time.monotonic() - self._start_time) * 1000
        if not self._stages:
            self._log.info("Final: no stages completed (%.1fs elapsed)", total_ms / 1000)
            return

        breakdown = " ".join(
            f"{s.name}={s.elapsed_ms:.{_precision(s.elapsed_ms)}f}ms"
            f"({int(s.elapsed_ms / total_ms * 100) if total_ms > 0 else 0}%)"
            for s in self._stages
        )
        self._log.info(
            "Final: %d stages in %.*fms | %s",
            len(self._stages),
            _precision(total_ms),
            total_ms,
            breakdown,
        )


def _precision(ms: float) -> int:
    """Return decimal precision for millisecond values.

    >= 10ms  → 0 decimals (e.g., 85ms)
    >= 1ms   → 1 decimal  (e.g., 3.2ms)
    < 1ms    → 2 decimals (e.g., 0.45ms)
    """
    if ms >= 10:
        return 0
    elif ms >= 1:
        return 1
    else:
        return 2
