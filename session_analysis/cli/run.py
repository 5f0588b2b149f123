# ==============================================================================
# Run Command
# ==============================================================================
"""
Run command for the session analysis CLI.

Runs one analysis task over CSV inputs, persists the result through the
configured sink and prints the visit-length / step-length report.
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from session_analysis.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
)
from session_analysis.core.errors import SessionAnalysisError
from session_analysis.core.models import AnalysisResult
from session_analysis.core.stats import STEP_LENGTH_BUCKETS, VISIT_LENGTH_BUCKETS
from session_analysis.utils.config import get_settings

VISIT_LENGTH_LABELS = {
    "1s_3s": "0s - 3s",
    "4s_6s": "4s - 6s",
    "7s_9s": "7s - 9s",
    "10s_30s": "10s - 30s",
    "30s_60s": "30s - 60s",
    "1m_3m": "1m - 3m",
    "3m_10m": "3m - 10m",
    "10m_30m": "10m - 30m",
    "30m": "> 30m",
}

STEP_LENGTH_LABELS = {
    "1_3": "1 - 3",
    "4_6": "4 - 6",
    "7_9": "7 - 9",
    "10_30": "10 - 30",
    "30_60": "31 - 60",
    "60": "> 60",
}


# ==============================================================================
# Commands
# ==============================================================================


def run_task(
    task_file: Annotated[Path, typer.Argument(help="Task parameter JSON file")],
    task_id: Annotated[
        Optional[int], typer.Option("--task-id", "-t", help="Override the task id")
    ] = None,
    actions_file: Annotated[
        Optional[Path], typer.Option("--actions", help="Actions CSV (default: DATA_ACTIONS_FILE)")
    ] = None,
    users_file: Annotated[
        Optional[Path], typer.Option("--users", help="Users CSV (default: DATA_USERS_FILE)")
    ] = None,
    output_file: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Write the result to this JSON file")
    ] = None,
    workers: Annotated[
        Optional[int], typer.Option("--workers", "-w", help="Number of parallel workers")
    ] = None,
    seed: Annotated[
        Optional[int], typer.Option("--seed", help="Random seed for reproducible sampling")
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Run a session analysis task.

    Reads actions and users from CSV, filters sessions by the task's criteria,
    computes the visit-length and step-length histograms, samples sessions in
    proportion to their time of day and saves the result.

    Examples:
        session-analysis run task.json
        session-analysis run task.json --seed 42 --output result.json
        session-analysis run task.json --json
    """
    from session_analysis.core.task import TaskParams
    from session_analysis.infrastructure.sinks import JSONFileSink, get_sink
    from session_analysis.infrastructure.sources import CSVActionSource, CSVUserSource
    from session_analysis.pipeline import JobRunner, SessionAnalysisJob

    settings = get_settings()

    overrides = {}
    if workers is not None:
        overrides["workers"] = workers
    if seed is not None:
        overrides["random_seed"] = seed
    job_settings = settings.job.model_copy(update=overrides)

    try:
        task = TaskParams.from_json_file(task_file, task_id=task_id)
    except (OSError, ValueError, SessionAnalysisError) as e:
        _fail(f"Invalid task file {task_file}: {e}", json_output)

    actions_path = actions_file or settings.data.resolve(settings.data.actions_file)
    users_path = users_file or settings.data.resolve(settings.data.users_file)
    for path in (actions_path, users_path):
        if not Path(path).exists():
            _fail(f"Input file not found: {path}", json_output)

    job = SessionAnalysisJob(
        job_settings,
        CSVActionSource(actions_path, job_settings.time_format),
        CSVUserSource(users_path),
    )
    sink = JSONFileSink(output_file) if output_file else get_sink(settings)
    log_level = "DEBUG" if settings.debug else settings.log_level
    runner = JobRunner(job, task, sink, log_level=log_level)

    try:
        runner.run()
    except SessionAnalysisError as e:
        _fail(f"Task {task.task_id} failed: {e}", json_output)

    result = runner.result
    if json_output:
        print(json.dumps(_summary(result), indent=2))
        return

    _print_report(result)


# ==============================================================================
# Output Helpers
# ==============================================================================


def _fail(message: str, json_output: bool) -> None:
    if json_output:
        print(json.dumps({"error": message}))
    else:
        print(f"\n{C.BRIGHT_RED}{I.CROSS} {message}{C.RESET}\n")
    raise typer.Exit(1)


def _summary(result: AnalysisResult) -> dict:
    return {
        "task_id": result.task_id,
        "total_sessions": result.total_sessions,
        "dropped_sessions": result.dropped_sessions,
        "session_count": result.stat.session_count,
        "counts": result.stat.counts,
        "ratios": result.stat.ratios,
        "sampled_sessions": [s.record.session_id for s in result.samples],
    }


def _print_report(result: AnalysisResult) -> None:
    W = BOX_WIDTH
    INNER = W - 2  # inner width
    stat = result.stat

    print()
    print(_box_header(f"SESSION ANALYSIS - TASK {result.task_id}", W))
    print(_empty_line(W))
    print(_box_line(f"  {'Sessions in range':<26}{result.total_sessions:>12,}", W))
    print(_box_line(f"  {'Without user row':<26}{result.dropped_sessions:>12,}", W))
    print(_box_line(f"  {'Passed filter':<26}{stat.session_count:>12,}", W))
    print(_box_line(f"  {'Sampled':<26}{len(result.samples):>12,}", W))
    print(_empty_line(W))

    for title, buckets, labels in (
        ("Visit Length", VISIT_LENGTH_BUCKETS, VISIT_LENGTH_LABELS),
        ("Step Length", STEP_LENGTH_BUCKETS, STEP_LENGTH_LABELS),
    ):
        print(_section_header(title, W))
        header = f"  {'':26}{'Sessions':>12}  {'Ratio':>10}"
        print(_box_line(header, W))
        sep = "  " + "─" * (INNER - 4)  # -4 for leading/trailing padding
        print(_box_line(sep, W))
        for key in buckets:
            row = f"  {labels[key]:<26}{stat.counts.get(key, 0):>12,}  {stat.ratios.get(key, 0.0):>10.2f}"
            print(_box_line(row, W))
        print(_empty_line(W))

    print(_box_bottom(W))
    print()
