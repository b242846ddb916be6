"""Exercise library cache and name resolution."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from hybrid_coach import config
from hybrid_coach.actions.types import NewExercise
from hybrid_coach.libs.tools_workouts.client import WorkoutStoreClient

logger = logging.getLogger(__name__)


def match_exercise(name: str, exercises: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Find an exercise by name: case-insensitive exact match first, then a
    substring match in either direction ("Bench" finds "Bench Press",
    "Barbell Bench Press" finds "Bench Press").
    """
    wanted = name.strip().lower()
    if not wanted:
        return None
    candidates = [e for e in exercises if isinstance(e.get("name"), str)]
    for ex in candidates:
        if ex["name"].lower() == wanted:
            return ex
    for ex in candidates:
        have = ex["name"].lower()
        if wanted in have or have in wanted:
            return ex
    return None


class ExerciseLibrary:
    """Default and user-created exercises, kept in sync with the remote store."""

    def __init__(self, client: WorkoutStoreClient):
        self.client = client
        self._lock = threading.Lock()
        self._exercises: List[Dict[str, Any]] = []

    @property
    def exercises(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._exercises)

    def refresh(self) -> List[Dict[str, Any]]:
        records = self.client.list_exercises()
        with self._lock:
            self._exercises = sorted(records, key=lambda e: str(e.get("name", "")).lower())
        return self.exercises

    def find(self, name: str) -> Optional[Dict[str, Any]]:
        return match_exercise(name, self.exercises)

    def create(self, exercise: NewExercise) -> Dict[str, Any]:
        record = self.client.create_exercise(
            exercise.name,
            exercise.muscle_group or config.DEFAULT_MUSCLE_GROUP,
            exercise.description or None,
        )
        with self._lock:
            self._exercises = sorted(
                self._exercises + [record], key=lambda e: str(e.get("name", "")).lower()
            )
        logger.info("Created exercise '%s' (%s)", exercise.name, record.get("id"))
        return record

    def resolve_or_create(self, name: str) -> str:
        """Return the ID of the exercise called ``name``, creating it if unknown."""
        existing = self.find(name)
        if existing is not None:
            return str(existing["id"])
        record = self.create(NewExercise(name=name))
        return str(record["id"])
