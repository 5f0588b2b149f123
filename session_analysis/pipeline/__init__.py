# ==============================================================================
# Pipeline Orchestration
# ==============================================================================
"""
Parallel execution of the core pipeline on a local worker pool.

- job.py:       SessionAnalysisJob, stage orchestration and the histogram barrier
- workers.py:   picklable per-shard and per-bucket tasks
- broadcast.py: read-only values shared with every worker
- metrics.py:   stage timing
- runner.py:    signal-aware runner that persists results
"""

from session_analysis.pipeline.broadcast import Broadcast
from session_analysis.pipeline.job import SessionAnalysisJob, create_executor
from session_analysis.pipeline.runner import JobRunner

__all__ = [
    "Broadcast",
    "JobRunner",
    "SessionAnalysisJob",
    "create_executor",
]
