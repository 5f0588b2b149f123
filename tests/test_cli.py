# ==============================================================================
# Tests for CLI Commands
# ==============================================================================
"""
Tests for the session-analysis CLI.

These tests use the real app from session_analysis.app (not minimal Typer
apps) to ensure the full command tree is wired up correctly and that Typer
can introspect all command function signatures without errors.
"""

import json
import signal
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from session_analysis.app import app
from session_analysis.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    _visible_len,
)

runner = CliRunner()


@pytest.fixture()
def mock_csvs(tmp_path):
    """Mock actions and users for one day, written through the CLI."""
    actions_file = tmp_path / "actions.csv"
    users_file = tmp_path / "users.csv"
    result = runner.invoke(
        app,
        [
            "data",
            "mock",
            "--users",
            "8",
            "--sessions",
            "3",
            "--date",
            "2024-01-15",
            "--seed",
            "11",
            "--actions",
            str(actions_file),
            "--users-file",
            str(users_file),
        ],
    )
    assert result.exit_code == 0, result.output
    return actions_file, users_file


@pytest.fixture()
def task_file(tmp_path):
    path = tmp_path / "task.json"
    path.write_text(
        json.dumps({"taskId": 5, "taskParam": {"startDate": "2024-01-15", "endDate": "2024-01-15"}})
    )
    return path


@pytest.fixture(autouse=True)
def _no_signal_handlers(monkeypatch):
    monkeypatch.setattr(signal, "signal", MagicMock())


# ==============================================================================
# Help Output
# ==============================================================================


class TestHelp:
    """Every command and subcommand exits 0 on --help."""

    def test_root_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "User visit session analysis CLI" in result.output
        for command in ("run", "data", "config"):
            assert command in result.output

    @pytest.mark.parametrize(
        "args, expected",
        [
            (["run", "--help"], "Run a session analysis task"),
            (["data", "--help"], "mock"),
            (["data", "mock", "--help"], "Generate mock actions and users"),
            (["config", "--help"], "show"),
            (["config", "show", "--help"], "Display current configuration"),
        ],
    )
    def test_subcommand_help(self, args, expected):
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert expected in result.output


# ==============================================================================
# data mock
# ==============================================================================


class TestDataMock:
    def test_writes_csv_files(self, mock_csvs):
        actions_file, users_file = mock_csvs
        assert actions_file.exists()
        assert len(users_file.read_text().splitlines()) == 9

    def test_invalid_date(self, tmp_path):
        result = runner.invoke(
            app,
            [
                "data",
                "mock",
                "--date",
                "15.01.2024",
                "--actions",
                str(tmp_path / "a.csv"),
                "--users-file",
                str(tmp_path / "u.csv"),
            ],
        )
        assert result.exit_code == 1
        assert "Invalid date" in result.output


# ==============================================================================
# run
# ==============================================================================


class TestRun:
    """Tests for `session-analysis run`."""

    def _invoke(self, task_file, mock_csvs, tmp_path, *extra):
        actions_file, users_file = mock_csvs
        return runner.invoke(
            app,
            [
                "run",
                str(task_file),
                "--actions",
                str(actions_file),
                "--users",
                str(users_file),
                "--output",
                str(tmp_path / "result.json"),
                "--seed",
                "3",
                *extra,
            ],
        )

    def test_json_output(self, task_file, mock_csvs, tmp_path):
        result = self._invoke(task_file, mock_csvs, tmp_path, "--json")
        assert result.exit_code == 0, result.output

        summary = json.loads(result.stdout)
        assert summary["task_id"] == 5
        assert summary["total_sessions"] == 24
        assert summary["dropped_sessions"] == 0
        assert summary["session_count"] == 24
        assert 0 < len(summary["sampled_sessions"]) <= 24

        saved = json.loads((tmp_path / "result.json").read_text())
        assert saved["task_id"] == 5
        assert len(saved["samples"]) == len(summary["sampled_sessions"])

    def test_report_output(self, task_file, mock_csvs, tmp_path):
        result = self._invoke(task_file, mock_csvs, tmp_path, "--workers", "2")
        assert result.exit_code == 0, result.output
        assert "SESSION ANALYSIS - TASK 5" in result.output
        assert "Visit Length" in result.output
        assert "Step Length" in result.output
        assert "> 30m" in result.output

    def test_task_id_override(self, task_file, mock_csvs, tmp_path):
        result = self._invoke(task_file, mock_csvs, tmp_path, "--json", "--task-id", "77")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["task_id"] == 77

    def test_encoded_task_param(self, tmp_path, mock_csvs):
        path = tmp_path / "encoded.json"
        params = json.dumps({"startDate": "2024-01-15", "endDate": "2024-01-15"})
        path.write_text(json.dumps({"taskId": 6, "taskParam": params}))

        result = self._invoke(path, mock_csvs, tmp_path, "--json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["task_id"] == 6

    def test_invalid_task_file(self, tmp_path, mock_csvs):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"startDate": "2024-01-15", "endDate": "2024-01-15", "startAge": "x"}))

        result = self._invoke(path, mock_csvs, tmp_path, "--json")
        assert result.exit_code == 1
        assert "startAge" in json.loads(result.stdout)["error"]

    def test_missing_input_file(self, task_file, tmp_path):
        missing = tmp_path / "missing.csv"
        result = self._invoke(task_file, (missing, missing), tmp_path)
        assert result.exit_code == 1
        assert "Input file not found" in result.output

    def test_malformed_input_fails(self, task_file, mock_csvs, tmp_path):
        actions_file, _ = mock_csvs
        with actions_file.open("a") as f:
            f.write("broken,not-a-user,2024-01-15 10:00:00,,\n")

        result = self._invoke(task_file, mock_csvs, tmp_path, "--json")
        assert result.exit_code == 1
        assert "userId" in json.loads(result.stdout)["error"]
        assert not (tmp_path / "result.json").exists()


# ==============================================================================
# Box helpers
# ==============================================================================


class TestBoxHelpers:
    """Report lines line up at BOX_WIDTH whatever colors they carry."""

    @pytest.mark.parametrize(
        "line",
        [
            _box_header("SESSION ANALYSIS"),
            _section_header("Visit Length"),
            _box_line(f"  {C.BRIGHT_GREEN}{I.CHECK}{C.RESET} saved"),
            _box_line(f"  {C.BRIGHT_RED}{I.CROSS}{C.RESET} failed"),
            _empty_line(),
            _box_bottom(),
        ],
    )
    def test_visible_width(self, line):
        assert _visible_len(line) == BOX_WIDTH

    def test_visible_len_ignores_ansi(self):
        assert _visible_len(f"{C.BOLD}{C.WHITE}abc{C.RESET}") == 3


# ==============================================================================
# config show
# ==============================================================================


class TestConfigShow:
    def test_json(self):
        result = runner.invoke(app, ["config", "show", "--json"])
        assert result.exit_code == 0
        config = json.loads(result.stdout)
        assert set(config) >= {"job", "data", "sink", "postgresql"}
        assert config["job"]["executor"] in ("thread", "process")

    def test_human_readable(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Configuration" in result.output
        assert "PostgreSQL" in result.output
