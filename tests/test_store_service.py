"""
Tests for the JSON tracking store, the settings loader and the
TrainingTracker facade wired to a real store.
"""

import json
from datetime import date

import pytest

from training_tracker.core.engine import config_loader
from training_tracker.core.errors import (
    DuplicateAssignmentError,
    InvalidStateError,
    NotFoundError,
    OutOfOrderError,
)
from training_tracker.core.models import (
    AssignmentStatus,
    Athlete,
    ExerciseReference,
    Training,
)
from training_tracker.core.service import Outcome, TrainingTracker
from training_tracker.io.serializers import (
    ValidationError,
    assignment_to_json_line,
    dict_to_assignment,
    parse_exercise_spec,
)
from training_tracker.io.tracking_store import JsonTrackingStore, get_default_data_dir

TODAY = date(2026, 9, 15)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _training(training_id: str = "t1", on: str = "2026-09-15") -> Training:
    return Training(
        training_id=training_id,
        name="Conditioning",
        date=on,
        time="07:00",
        duration_seconds=3600,
        exercises=(
            ExerciseReference("slides", "Defensive Slides", 3, 10, 300),
            ExerciseReference("plank", "Plank Hold", 1, 1, 600),
        ),
    )


@pytest.fixture
def store(tmp_path):
    s = JsonTrackingStore(tmp_path / "data")
    s.init()
    s.save_athlete(Athlete(1, "Ana", "Lopez", position="Guard", player_no=23))
    s.save_athlete(Athlete(2, "Ben", "Okafor", position="Center", player_no=4))
    s.save_training(_training())
    return s


@pytest.fixture
def tracker(store, clock):
    return TrainingTracker(store, clock=clock, today=lambda: TODAY)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TestJsonTrackingStore:
    def test_init_creates_files(self, tmp_path):
        s = JsonTrackingStore(tmp_path / "fresh")
        assert not s.exists()
        s.init()
        assert s.exists()
        assert s.trainings_path.exists()
        assert s.athletes_path.exists()
        assert s.load_athletes() == {}
        assert s.load_all_assignments() == []

    def test_athlete_upsert(self, store):
        store.save_athlete(Athlete(1, "Ana", "Lopez", position="Forward", player_no=23))
        assert len(store.load_athletes()) == 2
        assert store.load_athlete(1).position == "Forward"

    def test_missing_athlete(self, store):
        with pytest.raises(NotFoundError):
            store.load_athlete(42)

    def test_training_versions(self, store):
        store.save_training(_training().revise(name="Conditioning II"))
        assert store.load_training("t1").version == 2
        assert store.load_training("t1").name == "Conditioning II"
        assert store.load_training("t1", version=1).name == "Conditioning"
        assert store.load_trainings()["t1"].version == 2

    def test_version_is_append_only(self, store):
        with pytest.raises(ValueError):
            store.save_training(_training())

    def test_missing_training(self, store):
        with pytest.raises(NotFoundError):
            store.load_training("nope")
        with pytest.raises(NotFoundError):
            store.load_training("t1", version=9)

    def test_create_assignments_is_all_or_nothing(self, store, tracker):
        tracker.generate_assignments("t1", [1], ["2026-09-15"])
        before = store.assignments_path.read_text()
        with pytest.raises(DuplicateAssignmentError) as exc:
            tracker.generate_assignments("t1", [1, 2], ["2026-09-15"])
        assert exc.value.pairs == [(1, "2026-09-15")]
        assert store.assignments_path.read_text() == before

    def test_save_unknown_assignment(self, store, tracker):
        created = tracker.generate_assignments("t1", [1])
        store.assignments_path.write_text("")
        with pytest.raises(NotFoundError):
            store.save_assignment(created[0])

    def test_terminal_record_is_not_overwritten(self, store, tracker):
        a = tracker.generate_assignments("t1", [1])[0]
        stale = store.load_assignment(a.assignment_id)
        tracker.exempt_assignment(a.assignment_id).unwrap()

        stale.status = AssignmentStatus.IN_PROGRESS
        with pytest.raises(InvalidStateError):
            store.save_assignment(stale)
        assert store.load_assignment(a.assignment_id).status is AssignmentStatus.EXEMPTED

    def test_corrupt_line_reports_line_number(self, store):
        store.assignments_path.write_text("{not json}\n")
        with pytest.raises(ValidationError, match="line 1"):
            store.load_all_assignments()

    def test_jsonl_record_keeps_progress(self, store, tracker):
        a = tracker.generate_assignments("t1", [1])[0]
        a.status = AssignmentStatus.DONE
        a.elapsed_seconds = 550
        a.date_executed = "2026-09-15"
        a.cursor = 2
        a.exercises[0].completed = True
        a.exercises[0].elapsed_seconds = 280
        a.exercises[1].exempted = True

        line = assignment_to_json_line(a)
        record = json.loads(line)
        assert record["status"] == "done"
        assert record["time_elapsed"] == 550
        assert record["exercises"][0]["time_elapsed"] == 280
        assert dict_to_assignment(record) == a

    def test_bad_status_is_a_validation_error(self, store, tracker):
        a = tracker.generate_assignments("t1", [1])[0]
        record = json.loads(assignment_to_json_line(a))
        record["status"] = "finished"
        with pytest.raises(ValidationError):
            dict_to_assignment(record)

    def test_default_data_dir_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TRAINING_TRACKER_HOME", str(tmp_path / "custom"))
        assert get_default_data_dir() == tmp_path / "custom"


class TestParseExerciseSpec:
    def test_full_spec(self):
        ref = parse_exercise_spec("slides:3:10:300:Defensive Slides")
        assert ref == ExerciseReference("slides", "Defensive Slides", 3, 10, 300)

    def test_name_defaults_to_id(self):
        assert parse_exercise_spec("plank:1:1:600").name == "plank"

    @pytest.mark.parametrize("spec", ["slides:3:10", "slides:x:10:300", "slides:0:10:300"])
    def test_invalid(self, spec):
        with pytest.raises(ValidationError):
            parse_exercise_spec(spec)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_bundled_defaults(self):
        assert config_loader.get_setting("monitoring", "elapsed_tolerance_seconds", 0) == 5
        assert config_loader.get_setting("timers", "default_exercise_seconds", 0) == 60

    def test_user_override_is_merged_and_coerced(self, isolated_home):
        user_dir = isolated_home / ".training-tracker"
        user_dir.mkdir()
        (user_dir / "tracker.yaml").write_text('timers:\n  default_exercise_seconds: "90"\n')
        assert config_loader.get_setting("timers", "default_exercise_seconds", 60) == 90
        assert config_loader.get_setting("monitoring", "elapsed_tolerance_seconds", 0) == 5

    def test_broken_user_file_is_ignored(self, isolated_home, caplog):
        user_dir = isolated_home / ".training-tracker"
        user_dir.mkdir()
        (user_dir / "tracker.yaml").write_text("timers: [unclosed\n")
        assert config_loader.get_setting("timers", "default_exercise_seconds", 0) == 60
        assert "Ignoring settings file" in caplog.text

    def test_missing_key_uses_default(self):
        assert config_loader.get_setting("nope", "nothing", 7) == 7


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------


class TestOutcome:
    def test_ok_value(self):
        assert Outcome(value=3).ok
        assert Outcome(value=3).unwrap() == 3

    def test_error_reraised(self):
        outcome = Outcome(error=InvalidStateError("nope"))
        assert not outcome.ok
        with pytest.raises(InvalidStateError):
            outcome.unwrap()


class TestTrainingTracker:
    def test_generate_defaults_to_training_date(self, tracker):
        created = tracker.generate_assignments("t1", [1, 2])
        assert [a.scheduled_date for a in created] == ["2026-09-15", "2026-09-15"]

    def test_generate_unknown_athlete_or_training(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.generate_assignments("t1", [99])
        with pytest.raises(NotFoundError):
            tracker.generate_assignments("nope", [1])

    def test_full_session_is_persisted(self, tracker, store, clock):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id

        assert tracker.begin_exercise(aid, 0).ok
        assert store.load_assignment(aid).status is AssignmentStatus.IN_PROGRESS

        clock.advance(250)
        assert tracker.record_progress(aid, 0, 3, 10).ok
        assert tracker.complete_exercise(aid, 0).unwrap().elapsed_seconds == 250
        assert store.load_assignment(aid).cursor == 1

        tracker.begin_exercise(aid, 1).unwrap()
        clock.advance(300)
        tracker.complete_exercise(aid, 1).unwrap()

        stored = store.load_assignment(aid)
        assert stored.status is AssignmentStatus.DONE
        assert stored.elapsed_seconds == 550
        assert stored.date_executed == "2026-09-15"
        assert tracker.active_session(aid) is None

    def test_expected_errors_come_back_as_outcomes(self, tracker):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id
        outcome = tracker.begin_exercise(aid, 1)
        assert isinstance(outcome.error, OutOfOrderError)
        tracker.exempt_assignment(aid).unwrap()
        outcome = tracker.begin_exercise(aid, 0)
        assert isinstance(outcome.error, InvalidStateError)

    def test_returned_values_are_copies(self, tracker):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id
        exercise = tracker.begin_exercise(aid, 0).unwrap()
        exercise.sets_finished = 99
        assert tracker.get_assignment(aid).exercises[0].sets_finished == 0

    def test_unknown_assignment_raises(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.begin_exercise("missing", 0)

    def test_suspend_and_resume_with_new_tracker(self, tracker, store, clock):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id
        tracker.begin_exercise(aid, 0).unwrap()
        clock.advance(120)
        tracker.complete_exercise(aid, 0).unwrap()
        tracker.begin_exercise(aid, 1).unwrap()
        clock.advance(30)
        assert tracker.suspend_session(aid) == 150

        stored = store.load_assignment(aid)
        assert stored.status is AssignmentStatus.IN_PROGRESS
        assert stored.elapsed_seconds == 150
        assert stored.exercises[0].elapsed_seconds == 120

        clock.advance(5000)
        resumed = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        resumed.begin_exercise(aid, 1).unwrap()
        clock.advance(100)
        resumed.complete_exercise(aid, 1).unwrap()
        assert store.load_assignment(aid).elapsed_seconds == 250

    def test_tracking_buckets_and_history(self, tracker):
        a1, a2 = tracker.generate_assignments("t1", [1, 2])
        tracker.exempt_assignment(a2.assignment_id).unwrap()
        buckets = tracker.get_tracking_buckets("t1")
        assert buckets.counts() == {"assigned": 1, "exempted": 1, "missed": 0, "done": 0}

        history = tracker.get_athlete_history(1)
        assert [r.assignment_id for r in history] == [a1.assignment_id]
        with pytest.raises(NotFoundError):
            tracker.get_athlete_history(99)

    def test_missed_next_day(self, store, clock):
        early = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        aid = early.generate_assignments("t1", [1])[0].assignment_id
        late = TrainingTracker(store, clock=clock, today=lambda: date(2026, 9, 16))
        assert late.assignment_status(aid) is AssignmentStatus.MISSED
        assert late.get_tracking_buckets("t1").counts()["missed"] == 1
        assert isinstance(late.begin_exercise(aid, 0).error, InvalidStateError)

    def test_get_assignment_applies_missed(self, store, clock):
        early = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        aid = early.generate_assignments("t1", [1])[0].assignment_id
        late = TrainingTracker(store, clock=clock, today=lambda: date(2026, 9, 16))
        assert late.get_assignment(aid).status is AssignmentStatus.MISSED
        assert late.get_assignment(aid).status is late.assignment_status(aid)
        # Reading does not write.
        assert store.load_assignment(aid).status is AssignmentStatus.ASSIGNED

    def test_out_of_range_index_comes_back_as_outcome(self, tracker):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id
        assert isinstance(tracker.begin_exercise(aid, 99).error, InvalidStateError)
        assert isinstance(tracker.exempt_exercise(aid, -1).error, InvalidStateError)

    def test_timer_readout(self, tracker, clock):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id
        assert tracker.timer_readout(aid) == (0, None)
        tracker.begin_exercise(aid, 0).unwrap()
        clock.advance(40)
        assert tracker.timer_readout(aid) == (40, 260)
        tracker.complete_exercise(aid, 0).unwrap()
        assert tracker.timer_readout(aid) == (40, None)

    def test_revision_leaves_existing_assignments(self, tracker, store):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id
        revised = tracker.revise_training(
            "t1", exercises=(ExerciseReference("slides", "Defensive Slides", 5, 20, 900),)
        )
        assert revised.version == 2
        stored = store.load_assignment(aid)
        assert stored.training_version == 1
        assert len(stored.exercises) == 2
        new = tracker.generate_assignments("t1", [2])[0]
        assert new.training_version == 2
        assert len(new.exercises) == 1

    def test_session_summary(self, tracker, clock):
        aid = tracker.generate_assignments("t1", [1])[0].assignment_id
        tracker.exempt_exercise(aid, 0).unwrap()
        tracker.begin_exercise(aid, 1).unwrap()
        clock.advance(45)
        tracker.complete_exercise(aid, 1).unwrap()
        summary = tracker.session_summary(aid)
        assert summary.status is AssignmentStatus.DONE
        assert summary.exercises[0].exempted
        assert summary.exercises[1].elapsed_seconds == 45


class TestConcurrentTrackers:
    """Two processes working on the same store."""

    def test_exemption_survives_live_session(self, store, clock):
        athlete_side = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        coach_side = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        aid = athlete_side.generate_assignments("t1", [1])[0].assignment_id

        athlete_side.begin_exercise(aid, 0).unwrap()
        clock.advance(60)
        assert coach_side.exempt_assignment(aid).ok
        assert store.load_assignment(aid).status is AssignmentStatus.EXEMPTED

        outcome = athlete_side.complete_exercise(aid, 0)
        assert isinstance(outcome.error, InvalidStateError)
        assert store.load_assignment(aid).status is AssignmentStatus.EXEMPTED
        assert athlete_side.active_session(aid) is None
        assert athlete_side.assignment_status(aid) is AssignmentStatus.EXEMPTED

    def test_suspend_after_settled_elsewhere_keeps_stored_record(self, store, clock):
        athlete_side = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        coach_side = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        aid = athlete_side.generate_assignments("t1", [1])[0].assignment_id

        athlete_side.begin_exercise(aid, 0).unwrap()
        clock.advance(30)
        coach_side.exempt_assignment(aid).unwrap()
        assert athlete_side.suspend_session(aid) == 0
        stored = store.load_assignment(aid)
        assert stored.status is AssignmentStatus.EXEMPTED
        assert stored.cursor == 0

    def test_completion_elsewhere_is_final(self, store, clock):
        first = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        second = TrainingTracker(store, clock=clock, today=lambda: TODAY)
        aid = first.generate_assignments("t1", [1])[0].assignment_id

        first.begin_exercise(aid, 0).unwrap()
        second.exempt_exercise(aid, 0).unwrap()
        second.exempt_exercise(aid, 1).unwrap()
        assert store.load_assignment(aid).status is AssignmentStatus.EXEMPTED

        assert not first.complete_exercise(aid, 0).ok
        assert store.load_assignment(aid).status is AssignmentStatus.EXEMPTED
