"""
Optimistic Workout Store - local cache of the user's workouts.

Creates and deletes are applied to the local list before the remote call
returns, then reconciled:

- create: a ``temp-<ns>`` placeholder is inserted (sorted by date) and later
  replaced in place by the durable record, or removed if the remote call
  fails.
- delete: the record is removed at once; if the remote delete fails the list
  is restored to the snapshot taken just before the removal. Interim local
  changes are discarded, not merged.

At any point every record is either durable or the placeholder of a create
still in flight.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from hybrid_coach import config
from hybrid_coach.libs.tools_workouts.client import WorkoutStoreClient

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "temp-"

_temp_id_lock = threading.Lock()
_last_temp_ns = 0


def new_temp_id() -> str:
    """Generate a placeholder ID from a strictly increasing monotonic clock."""
    global _last_temp_ns
    with _temp_id_lock:
        now = time.monotonic_ns()
        if now <= _last_temp_ns:
            now = _last_temp_ns + 1
        _last_temp_ns = now
    return f"{TEMP_ID_PREFIX}{now}"


@dataclass
class Workout:
    id: str
    name: str
    scheduled_date: str
    color: str = config.DEFAULT_WORKOUT_COLOR
    notes: Optional[str] = None
    exercises: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_temporary(self) -> bool:
        return self.id.startswith(TEMP_ID_PREFIX)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workout":
        exercises = data.get("workout_exercises")
        if exercises is None:
            exercises = data.get("exercises") or []
        exercises = sorted(exercises, key=lambda we: we.get("order_index", 0))
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            scheduled_date=data.get("scheduled_date", ""),
            color=data.get("color") or config.DEFAULT_WORKOUT_COLOR,
            notes=data.get("notes"),
            exercises=exercises,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "scheduled_date": self.scheduled_date,
            "color": self.color,
            "notes": self.notes,
            "exercises": list(self.exercises),
        }


def _sorted(workouts: List[Workout]) -> List[Workout]:
    return sorted(workouts, key=lambda w: w.scheduled_date)


class OptimisticWorkoutStore:
    """The only writer of the local workout list."""

    def __init__(
        self,
        client: WorkoutStoreClient,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.client = client
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="workout-store")
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._workouts: List[Workout] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def workouts(self) -> List[Workout]:
        with self._lock:
            return list(self._workouts)

    def get(self, workout_id: str) -> Optional[Workout]:
        with self._lock:
            for w in self._workouts:
                if w.id == workout_id:
                    return w
        return None

    def name_index(self) -> Dict[str, str]:
        """Workout id -> display name, for labelling confirmations."""
        with self._lock:
            return {w.id: w.name for w in self._workouts}

    def refresh(self) -> List[Workout]:
        """Replace the local list with the remote one."""
        records = self.client.list_workouts()
        fresh = _sorted([Workout.from_dict(r) for r in records])
        with self._lock:
            self._workouts = fresh
        logger.debug("STORE: refreshed %d workouts", len(fresh))
        return list(fresh)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_workout(
        self,
        fields: Dict[str, Any],
        exercise_ids: Optional[List[str]] = None,
        sets_by_exercise_id: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> "Future[Workout]":
        """
        Insert a placeholder now and create the workout remotely.

        Returns:
            Future resolving to the durable Workout; on failure the future
            raises the remote error and the placeholder is already gone.
        """
        temp_id = new_temp_id()
        placeholder = Workout(
            id=temp_id,
            name=fields.get("name", ""),
            scheduled_date=fields.get("scheduled_date", ""),
            color=fields.get("color") or config.DEFAULT_WORKOUT_COLOR,
            notes=fields.get("notes"),
        )
        with self._lock:
            self._workouts = _sorted(self._workouts + [placeholder])
        logger.debug("STORE: placeholder %s inserted for '%s'", temp_id, placeholder.name)

        remote_fields = {
            "name": placeholder.name,
            "scheduled_date": placeholder.scheduled_date,
            "color": placeholder.color,
            "notes": placeholder.notes,
        }
        return self._executor.submit(
            self._finish_create, temp_id, remote_fields, list(exercise_ids or []), sets_by_exercise_id or {}
        )

    def _finish_create(
        self,
        temp_id: str,
        fields: Dict[str, Any],
        exercise_ids: List[str],
        sets_by_exercise_id: Dict[str, List[Dict[str, Any]]],
    ) -> Workout:
        try:
            record = self.client.create_workout(fields, exercise_ids, sets_by_exercise_id)
        except Exception:
            with self._lock:
                self._workouts = [w for w in self._workouts if w.id != temp_id]
            logger.warning("STORE: create failed, placeholder %s removed", temp_id)
            raise

        durable = Workout.from_dict(record)
        with self._lock:
            replaced = False
            updated: List[Workout] = []
            for w in self._workouts:
                if w.id == temp_id:
                    updated.append(durable)
                    replaced = True
                else:
                    updated.append(w)
            # A refresh may have dropped the placeholder while the call was in flight
            if not replaced and not any(w.id == durable.id for w in updated):
                updated = _sorted(updated + [durable])
            self._workouts = updated
        logger.info("STORE: created workout %s ('%s')", durable.id, durable.name)
        return durable

    def delete_workout(self, workout_id: str) -> "Future[None]":
        """
        Remove the workout now and delete it remotely.

        Returns:
            Future resolving to None; on failure the future raises the remote
            error and the list is already restored.
        """
        with self._lock:
            snapshot = list(self._workouts)
            self._workouts = [w for w in self._workouts if w.id != workout_id]
        return self._executor.submit(self._finish_delete, workout_id, snapshot)

    def _finish_delete(self, workout_id: str, snapshot: List[Workout]) -> None:
        try:
            self.client.delete_workout(workout_id)
        except Exception:
            with self._lock:
                self._workouts = snapshot
            logger.warning("STORE: delete of %s failed, list restored", workout_id)
            raise
        logger.info("STORE: deleted workout %s", workout_id)

    def update_workout(self, workout_id: str, fields: Dict[str, Any]) -> Optional[Workout]:
        """Update remotely, then refresh so the list reflects the new ordering."""
        self.client.update_workout(workout_id, fields)
        self.refresh()
        return self.get(workout_id)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "OptimisticWorkoutStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
