# ==============================================================================
# JSON File Result Sink
# ==============================================================================
"""
Writes an AnalysisResult as a single JSON document.
"""

import json
import logging
from pathlib import Path

from session_analysis.base.sinks import ResultSink
from session_analysis.core.models import AnalysisResult

logger = logging.getLogger(__name__)


class JSONFileSink(ResultSink):
    """ResultSink writing one JSON file per job run."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def connect(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def save(self, result: AnalysisResult) -> int:
        document = result.model_dump(mode="json")
        # Write to a temp file first so a failed write never leaves a partial result
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, indent=2, sort_keys=True))
        tmp_path.replace(self._path)
        logger.info(
            "Wrote task %d result (%d sampled sessions) to %s",
            result.task_id,
            len(result.samples),
            self._path,
        )
        return len(result.samples)

    def close(self) -> None:
        pass
