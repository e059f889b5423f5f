"""
File-based storage for trainings, athletes and assignments.

Implements the TrackingStore interface consumed by the core service.
"""

import json
import logging
import os
from pathlib import Path

from ..core.config import (
    ASSIGNMENTS_FILE,
    ATHLETES_FILE,
    DATA_DIR_ENV_VAR,
    DEFAULT_DATA_DIR_NAME,
    TRAININGS_FILE,
)
from ..core.errors import DuplicateAssignmentError, InvalidStateError, NotFoundError
from ..core.models import Athlete, Training, TrainingAssignment
from .serializers import (
    ValidationError,
    assignment_to_json_line,
    athlete_to_dict,
    dict_to_assignment,
    dict_to_athlete,
    dict_to_training,
    training_to_dict,
)

logger = logging.getLogger(__name__)


class JsonTrackingStore:
    """
    Manages tracking data in a directory of JSON files.

    - trainings.json:    list of every version of every training template
    - athletes.json:     list of roster entries
    - assignments.jsonl: one JSON object per line, one line per assignment

    Records are rewritten whole on change; the store holds no state between
    calls, so every read sees what is on disk.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the data files
        """
        self.data_dir = Path(data_dir)
        self.trainings_path = self.data_dir / TRAININGS_FILE
        self.athletes_path = self.data_dir / ATHLETES_FILE
        self.assignments_path = self.data_dir / ASSIGNMENTS_FILE

    def exists(self) -> bool:
        """Check if the store has been initialized."""
        return self.assignments_path.exists()

    def init(self) -> None:
        """
        Create the data directory and empty files that don't exist yet.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.trainings_path, self.athletes_path):
            if not path.exists():
                path.write_text("[]\n")
        if not self.assignments_path.exists():
            self.assignments_path.touch()

    # ------------------------------------------------------------------
    # Athletes
    # ------------------------------------------------------------------

    def load_athletes(self) -> dict[int, Athlete]:
        """Return the roster keyed by athlete_no."""
        records = self._read_json_list(self.athletes_path)
        athletes = [dict_to_athlete(r) for r in records]
        return {a.athlete_no: a for a in athletes}

    def load_athlete(self, athlete_no: int) -> Athlete:
        athletes = self.load_athletes()
        if athlete_no not in athletes:
            raise NotFoundError("Athlete", athlete_no)
        return athletes[athlete_no]

    def save_athlete(self, athlete: Athlete) -> None:
        """Add or replace a roster entry."""
        athletes = self.load_athletes()
        athletes[athlete.athlete_no] = athlete
        ordered = sorted(athletes.values(), key=lambda a: a.athlete_no)
        self._write_json(self.athletes_path, [athlete_to_dict(a) for a in ordered])

    # ------------------------------------------------------------------
    # Trainings
    # ------------------------------------------------------------------

    def _load_training_versions(self) -> list[Training]:
        return [dict_to_training(r) for r in self._read_json_list(self.trainings_path)]

    def load_trainings(self) -> dict[str, Training]:
        """Latest version of every training, keyed by training_id."""
        latest: dict[str, Training] = {}
        for t in self._load_training_versions():
            if t.training_id not in latest or t.version > latest[t.training_id].version:
                latest[t.training_id] = t
        return latest

    def load_training(self, training_id: str, version: int | None = None) -> Training:
        """
        Load a training template.

        Args:
            training_id: Template id
            version: Specific version; latest when None

        Raises:
            NotFoundError: If no such training (or version) is stored
        """
        versions = [t for t in self._load_training_versions() if t.training_id == training_id]
        if version is not None:
            versions = [t for t in versions if t.version == version]
        if not versions:
            label = training_id if version is None else f"{training_id} v{version}"
            raise NotFoundError("Training", label)
        return max(versions, key=lambda t: t.version)

    def save_training(self, training: Training) -> None:
        """
        Store a new training template or a new version of one.

        Versions are append-only.

        Raises:
            ValueError: If this (training_id, version) is already stored
        """
        versions = self._load_training_versions()
        if any(
            t.training_id == training.training_id and t.version == training.version
            for t in versions
        ):
            raise ValueError(
                f"Training {training.training_id} v{training.version} already exists"
            )
        versions.append(training)
        self._write_json(self.trainings_path, [training_to_dict(t) for t in versions])

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def load_all_assignments(self) -> list[TrainingAssignment]:
        """
        Load every assignment from the JSONL file.

        Raises:
            FileNotFoundError: If the store hasn't been initialized
            ValidationError: If a line cannot be parsed
        """
        if not self.assignments_path.exists():
            raise FileNotFoundError(
                f"Assignments file not found: {self.assignments_path}. Run 'init' first."
            )

        assignments: list[TrainingAssignment] = []
        with open(self.assignments_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    assignments.append(dict_to_assignment(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.assignments_path}: {e}"
                    ) from e
        return assignments

    def load_assignments(self, training_id: str, date: str | None = None) -> list[TrainingAssignment]:
        """Assignments of one training, optionally restricted to one date."""
        return [
            a for a in self.load_all_assignments()
            if a.training_id == training_id and (date is None or a.scheduled_date == date)
        ]

    def load_athlete_assignments(self, athlete_no: int) -> list[TrainingAssignment]:
        return [a for a in self.load_all_assignments() if a.athlete_no == athlete_no]

    def load_assignment(self, assignment_id: str) -> TrainingAssignment:
        """
        Raises:
            NotFoundError: If no assignment has this id
        """
        for a in self.load_all_assignments():
            if a.assignment_id == assignment_id:
                return a
        raise NotFoundError("Assignment", assignment_id)

    def existing_keys(self) -> set[tuple[int, str, str]]:
        """(athlete_no, training_id, date) of every stored assignment."""
        return {a.key for a in self.load_all_assignments()}

    def save_assignment(self, assignment: TrainingAssignment) -> None:
        """
        Replace a stored assignment with ``assignment``.

        A record stored as done, missed or exempted is final; another
        process may have settled it while ``assignment`` was held in memory.

        Raises:
            NotFoundError: If the assignment was never created
            InvalidStateError: If the stored record is already terminal
        """
        assignments = self.load_all_assignments()
        for i, existing in enumerate(assignments):
            if existing.assignment_id == assignment.assignment_id:
                if existing.status.is_terminal:
                    raise InvalidStateError(
                        f"Assignment {existing.assignment_id} is already "
                        f"{existing.status}; not overwriting it"
                    )
                assignments[i] = assignment
                break
        else:
            raise NotFoundError("Assignment", assignment.assignment_id)
        self._write_assignments(assignments)

    def create_assignments(self, new: list[TrainingAssignment]) -> None:
        """
        Append new assignments; all-or-nothing.

        Raises:
            DuplicateAssignmentError: If any (athlete, training, date) key
                already exists, or repeats within ``new``
        """
        assignments = self.load_all_assignments()
        seen = {a.key for a in assignments}
        collisions: dict[str, list[tuple[int, str]]] = {}
        for a in new:
            if a.key in seen:
                collisions.setdefault(a.training_id, []).append(
                    (a.athlete_no, a.scheduled_date)
                )
            seen.add(a.key)
        if collisions:
            training_id, pairs = next(iter(collisions.items()))
            raise DuplicateAssignmentError(training_id, pairs)

        assignments.extend(new)
        self._write_assignments(assignments)
        logger.debug("Stored %d new assignments", len(new))

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------

    def _write_assignments(self, assignments: list[TrainingAssignment]) -> None:
        with open(self.assignments_path, "w") as f:
            for a in assignments:
                f.write(assignment_to_json_line(a) + "\n")

    @staticmethod
    def _read_json_list(path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {path}: {e}") from e
        if not isinstance(data, list):
            raise ValidationError(f"Expected a JSON list in {path}")
        return data

    @staticmethod
    def _write_json(path: Path, data: list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    ``$TRAINING_TRACKER_HOME`` when set, otherwise ``~/.training-tracker``.
    """
    override = os.environ.get(DATA_DIR_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_DATA_DIR_NAME


def get_default_store() -> JsonTrackingStore:
    """
    Get a JsonTrackingStore at the default location.

    Returns:
        JsonTrackingStore instance
    """
    return JsonTrackingStore(get_default_data_dir())
