# ==============================================================================
# Job Runner
# ==============================================================================
"""
Runs one SessionAnalysisJob task with signal handling and result persistence.

SIGTERM / SIGINT cancel the whole job. Nothing is written to the sink unless
every stage completed.
"""

import logging

from session_analysis.base.runner import BaseRunner
from session_analysis.base.sinks import ResultSink
from session_analysis.core.models import AnalysisResult
from session_analysis.core.task import TaskParams
from session_analysis.pipeline.job import SessionAnalysisJob
from session_analysis.utils.versions import get_session_analysis_version

logger = logging.getLogger(__name__)


class JobRunner(BaseRunner):
    """Runs a task and hands the result to a sink."""

    def __init__(
        self,
        job: SessionAnalysisJob,
        task: TaskParams,
        sink: ResultSink,
        log_level: str = "INFO",
    ):
        super().__init__(log_level=log_level)
        self._job = job
        self._task = task
        self._sink = sink
        self.result: AnalysisResult | None = None

    def _run(self) -> None:
        logger.info(
            "Session analysis started | task %d | session-analysis v%s",
            self._task.task_id,
            get_session_analysis_version(),
        )
        result = self._job.run(self._task)

        self._sink.connect()
        self._sink.save(result)
        self.result = result
        logger.info("Session analysis complete | task %d", self._task.task_id)

    def _on_shutdown_requested(self) -> None:
        self._job.cancel()

    def _cleanup(self) -> None:
        self._sink.close()
