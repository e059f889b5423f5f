"""
Minimal smoke tests for the training-tracker CLI.

Tests basic functionality:
- App runs without errors
- Data directory is created
- Athletes and trainings can be added
- Trainings can be assigned, run and tracked
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from training_tracker.cli.main import app

runner = CliRunner()

# Far enough ahead that the lazy-missed rule never kicks in.
FUTURE = "2099-01-15"


@pytest.fixture
def data_dir(tmp_path) -> Path:
    path = tmp_path / "data"
    result = runner.invoke(app, ["init", "--data-dir", str(path)])
    assert result.exit_code == 0, result.output
    return path


def _invoke(data_dir: Path, *args: str, input: str | None = None):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)], input=input)


def _setup_roster(data_dir: Path) -> None:
    for athlete_no, first, last, number in [(1, "Ana", "Lopez", "23"), (2, "Ben", "Okafor", "4")]:
        result = _invoke(
            data_dir, "add-athlete", "--id", str(athlete_no),
            "-f", first, "-l", last, "-n", number, "--position", "Guard",
        )
        assert result.exit_code == 0, result.output


def _add_training(data_dir: Path, training_id: str = "t1", on: str = FUTURE, *exercises: str):
    specs = exercises or ("slides:3:10:300:Defensive Slides",)
    args = ["add-training", "--id", training_id, "--name", "Conditioning", "--date", on]
    for spec in specs:
        args += ["-x", spec]
    result = _invoke(data_dir, *args)
    assert result.exit_code == 0, result.output


def _assign(data_dir: Path, training_id: str = "t1", *athletes: int) -> list[str]:
    args = ["assign", "--training", training_id, "--json"]
    for athlete_no in athletes or (1,):
        args += ["--athlete", str(athlete_no)]
    result = _invoke(data_dir, *args)
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "athletes" in result.output.lower()

    def test_init_creates_files(self, data_dir):
        assert (data_dir / "assignments.jsonl").exists()
        assert (data_dir / "trainings.json").exists()
        assert (data_dir / "athletes.json").exists()

    def test_init_is_repeatable(self, data_dir):
        result = runner.invoke(app, ["init", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "already" in result.output

    def test_commands_need_init(self, tmp_path):
        result = _invoke(tmp_path / "empty", "list-athletes")
        assert result.exit_code == 1
        assert "init" in result.output

    def test_roster(self, data_dir):
        _setup_roster(data_dir)
        result = _invoke(data_dir, "list-athletes", "--json")
        assert result.exit_code == 0
        roster = json.loads(result.output)
        # Ordered by jersey number.
        assert [a["athlete_no"] for a in roster] == [2, 1]

    def test_add_and_show_training(self, data_dir):
        _add_training(
            data_dir, "t1", FUTURE,
            "slides:3:10:300:Defensive Slides", "plank:1:1:600:Plank Hold",
        )
        result = _invoke(data_dir, "show-training", "t1", "--json")
        assert result.exit_code == 0
        training = json.loads(result.output)
        assert training["version"] == 1
        assert [e["exercise_id"] for e in training["exercises"]] == ["slides", "plank"]

    def test_duplicate_training_rejected(self, data_dir):
        _add_training(data_dir)
        result = _invoke(
            data_dir, "add-training", "--id", "t1", "--name", "Again", "--date", FUTURE,
        )
        assert result.exit_code == 1

    def test_bad_exercise_spec(self, data_dir):
        result = _invoke(
            data_dir, "add-training", "--id", "t1", "--name", "X", "--date", FUTURE,
            "-x", "slides:three:10:300",
        )
        assert result.exit_code == 1

    def test_revise_training(self, data_dir):
        _add_training(data_dir)
        result = _invoke(data_dir, "revise-training", "--id", "t1", "--name", "Conditioning II")
        assert result.exit_code == 0
        assert "version 2" in result.output
        result = _invoke(data_dir, "list-trainings", "--json")
        assert json.loads(result.output)[0]["name"] == "Conditioning II"


class TestAssignAndTrack:
    def test_assign_and_tracking(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir)
        assert len(_assign(data_dir, "t1", 1, 2)) == 2

        result = _invoke(data_dir, "tracking", "t1", "--json")
        assert result.exit_code == 0
        report = json.loads(result.output)
        assert report["counts"] == {"assigned": 2, "exempted": 0, "missed": 0, "done": 0}
        assert [row["athlete_no"] for row in report["assigned"]] == [2, 1]

    def test_duplicate_assignment_names_pair(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir)
        _assign(data_dir, "t1", 1)
        result = _invoke(data_dir, "assign", "--training", "t1", "--athlete", "1", "--athlete", "2")
        assert result.exit_code == 1
        assert "athlete #1" in result.output
        assert "athlete #2" not in result.output

    def test_assign_unknown_athlete(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir)
        result = _invoke(data_dir, "assign", "--training", "t1", "--athlete", "9")
        assert result.exit_code == 1

    def test_past_training_reads_missed(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir, "old", "2000-01-10")
        (aid,) = _assign(data_dir, "old", 1)
        result = _invoke(data_dir, "status", aid)
        assert result.output.strip() == "missed"
        result = _invoke(data_dir, "tracking", "old", "--json")
        assert json.loads(result.output)["counts"]["missed"] == 1

    def test_exempt(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir)
        (aid,) = _assign(data_dir)
        result = _invoke(data_dir, "exempt", aid, "--force")
        assert result.exit_code == 0
        assert _invoke(data_dir, "status", aid).output.strip() == "exempted"
        # Terminal: cannot be run or exempted again.
        assert _invoke(data_dir, "run", aid).exit_code == 1
        assert _invoke(data_dir, "exempt", aid, "--force").exit_code == 1

    def test_athlete_history(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir)
        _add_training(data_dir, "t2", "2099-02-01")
        _assign(data_dir, "t1", 1)
        _assign(data_dir, "t2", 1)
        result = _invoke(data_dir, "athlete", "1", "--json")
        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert [r["training_id"] for r in rows] == ["t2", "t1"]

    def test_unknown_assignment(self, data_dir):
        assert _invoke(data_dir, "status", "nope").exit_code == 1
        assert _invoke(data_dir, "summary", "nope").exit_code == 1


class TestRun:
    def test_run_to_completion(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir, "t1", FUTURE, "slides:3:10:300", "plank:1:1:600")
        (aid,) = _assign(data_dir)

        # Exercise 1: start, then "2 8" done; exercise 2: start, targets.
        result = _invoke(data_dir, "run", aid, input="\n2 8\n\n\n")
        assert result.exit_code == 0, result.output
        # Session stopwatch against the planned hour, and the exercise countdown.
        assert "/ 1:00:00" in result.output
        assert "left" in result.output
        assert _invoke(data_dir, "status", aid).output.strip() == "done"

        summary = json.loads(_invoke(data_dir, "summary", aid, "--json").output)
        assert summary["status"] == "done"
        assert summary["date_executed"] is not None
        first, second = summary["exercises"]
        assert (first["sets_finished"], first["reps_finished"]) == (2, 8)
        assert (second["sets_finished"], second["reps_finished"]) == (1, 1)

    def test_skip_and_stop(self, data_dir):
        _setup_roster(data_dir)
        _add_training(data_dir, "t1", FUTURE, "slides:3:10:300", "plank:1:1:600")
        (aid,) = _assign(data_dir)

        result = _invoke(data_dir, "run", aid, input="s\nq\n")
        assert result.exit_code == 0, result.output
        assert _invoke(data_dir, "status", aid).output.strip() == "in_progress"

        # Picks up at the second exercise.
        result = _invoke(data_dir, "run", aid, input="\n\n")
        assert result.exit_code == 0, result.output
        summary = json.loads(_invoke(data_dir, "summary", aid, "--json").output)
        assert summary["status"] == "done"
        assert summary["exercises"][0]["exempted"] is True
