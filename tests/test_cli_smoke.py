"""
Minimal smoke tests for the gym-planner CLI.

Tests basic functionality:
- App runs without errors
- Programs can be imported and listed
- A session can be started, edited and finished
- History, stats and progress are shown
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gym_planner.cli.main import app
from gym_planner.io.config_loader import HOME_ENV_VAR
from gym_planner.io.gym_store import get_store


runner = CliRunner()

PROGRAM_YAML = """\
id: push-day
title: Push day
notes: Strength block
sections:
  - title: Chest
    items:
      - {title: Bench press, reps: 3, weight: 60}
      - {title: Dips, reps: 2, weight: 0}
"""


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Isolated data directory; settings lookups point at the same place."""
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
    return tmp_path / "data"


@pytest.fixture
def program_file(tmp_path) -> Path:
    path = tmp_path / "push.yaml"
    path.write_text(PROGRAM_YAML)
    return path


def _import(data_dir: Path, program_file: Path):
    return runner.invoke(app, ["import-program", str(program_file), "--data-dir", str(data_dir)])


def _start(data_dir: Path) -> str:
    result = runner.invoke(app, ["start", "push-day", "--data-dir", str(data_dir)])
    assert result.exit_code == 0, result.output
    return get_store(data_dir).load_runs()[-1].id


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that app runs and shows help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "start" in result.output

    def test_import_and_list_programs(self, data_dir, program_file):
        result = _import(data_dir, program_file)
        assert result.exit_code == 0, result.output
        assert "Saved program" in result.output

        result = runner.invoke(app, ["programs", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "Push day" in result.output

    def test_import_invalid_program(self, data_dir, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("title: X\nsections:\n  - title: S\n    items:\n      - {title: Row, reps: 0}\n")
        result = runner.invoke(app, ["import-program", str(bad), "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_start_unknown_program(self, data_dir):
        result = runner.invoke(app, ["start", "nope", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_session_flow(self, data_dir, program_file):
        """Start, tick a set, change its weight, finish, then look at stats."""
        _import(data_dir, program_file)
        run_id = _start(data_dir)

        result = runner.invoke(app, ["runs", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "Push day" in result.output

        result = runner.invoke(app, ["toggle", run_id[:8], "bench press", "1", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["set-weight", run_id, "Bench press", "1", "62.5", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["set-weight", run_id, "Dips", "2", "lots", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output

        run = get_store(data_dir).get_run(run_id)
        bench, dips = run.sections[0].items
        assert bench.done == [True, False, False]
        assert bench.weights == [62.5, 60, 60]
        assert dips.weights == [0, 0.0]

        result = runner.invoke(app, ["show", run_id, "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "1/5" in result.output

        result = runner.invoke(app, ["finish", run_id, "--force", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output
        assert "Finished" in result.output

        result = runner.invoke(app, ["history", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "Push day" in result.output

        result = runner.invoke(app, ["stats", "--json", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output
        stats = json.loads(result.output)
        assert stats["total_workouts"] == 1
        assert stats["this_week"] == 1
        assert stats["streak"] == 1
        assert stats["distinct_exercises"] == 2

        result = runner.invoke(app, ["progress", "Bench press", "--json", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output
        series = json.loads(result.output)
        assert series["Bench press"][0]["weight"] == 62.5

        result = runner.invoke(app, ["progress", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "Bench press" in result.output

    def test_finished_session_cannot_be_edited(self, data_dir, program_file):
        _import(data_dir, program_file)
        run_id = _start(data_dir)
        runner.invoke(app, ["finish", run_id, "--force", "--data-dir", str(data_dir)])

        result = runner.invoke(app, ["toggle", run_id, "Dips", "1", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "finished" in result.output

        result = runner.invoke(app, ["finish", run_id, "--force", "--data-dir", str(data_dir)])
        assert result.exit_code == 1

    def test_exercise_notes(self, data_dir, program_file):
        _import(data_dir, program_file)
        run_id = _start(data_dir)

        result = runner.invoke(app, ["notes", run_id, "Dips", "add a belt", "--data-dir", str(data_dir)])
        assert result.exit_code == 0, result.output
        assert get_store(data_dir).get_run(run_id).sections[0].items[1].notes == "add a belt"

        runner.invoke(app, ["finish", run_id, "--force", "--data-dir", str(data_dir)])
        result = runner.invoke(app, ["notes", run_id, "Dips", "late", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "finished" in result.output

    def test_set_out_of_range(self, data_dir, program_file):
        _import(data_dir, program_file)
        run_id = _start(data_dir)
        result = runner.invoke(app, ["toggle", run_id, "Dips", "3", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "out of range" in result.output

    def test_delete_run_and_program(self, data_dir, program_file):
        _import(data_dir, program_file)
        run_id = _start(data_dir)

        result = runner.invoke(app, ["delete-run", run_id, "--force", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert get_store(data_dir).load_runs() == []

        result = runner.invoke(app, ["delete-program", "push", "--data-dir", str(data_dir)], input="y\n")
        assert result.exit_code == 0, result.output
        assert get_store(data_dir).load_programs() == []

    def test_stats_on_empty_store(self, data_dir):
        result = runner.invoke(app, ["stats", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "Workouts:" in result.output
