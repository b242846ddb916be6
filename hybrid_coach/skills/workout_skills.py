"""
Workout Skills - execution of coach actions against the data store.

Pending actions reach ``ActionExecutor.execute`` only after the user
confirmed them; immediate actions (new exercise definitions, memory notes)
run straight from the orchestrator.

Remote calls inside one action run sequentially: later steps need IDs that
earlier steps produce (an exercise must exist before sets reference it).
Nothing is retried; a failure is reported once and the user asks again, so
a confirmation can never produce duplicate writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

import requests

from hybrid_coach import config
from hybrid_coach.actions.types import (
    AddExercises,
    CreateExercises,
    DeleteWorkouts,
    LogWorkout,
    PendingAction,
    RemoveExercise,
    UpdateMemory,
    UpdateWorkout,
    WorkoutPlan,
    leading_number,
)
from hybrid_coach.store.exercises import ExerciseLibrary, match_exercise
from hybrid_coach.store.memory import CoachMemory
from hybrid_coach.store.workout_store import OptimisticWorkoutStore

logger = logging.getLogger(__name__)

DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass
class SkillResult:
    """Result from a skill execution."""

    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"success": self.success, "message": self.message}
        if self.data:
            result["data"] = self.data
        if self.error:
            result["error"] = self.error
        return result


def next_weekday_date(day_name: str, today: date) -> Optional[date]:
    """Next date (strictly after ``today``) falling on ``day_name``."""
    try:
        target = DAYS_OF_WEEK.index(day_name.strip().lower())
    except ValueError:
        return None
    days_until = (target - today.weekday()) % 7 or 7
    return today + timedelta(days=days_until)


class ActionExecutor:
    """Runs coach actions through the store, the exercise library and memory."""

    def __init__(
        self,
        store: OptimisticWorkoutStore,
        library: ExerciseLibrary,
        memory: CoachMemory,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.library = library
        self.memory = memory
        self.today = today
        self._handlers: Dict[type, Callable[[Any], SkillResult]] = {
            DeleteWorkouts: self._delete,
            UpdateWorkout: self._update,
            LogWorkout: self._log_workout,
            AddExercises: self._add_exercises,
            RemoveExercise: self._remove_exercise,
        }

    # =========================================================================
    # CONFIRMED ACTIONS
    # =========================================================================

    def execute(self, action: PendingAction) -> SkillResult:
        """Run a confirmed action, then refresh the workout list."""
        handler = self._handlers.get(type(action))
        if handler is None:
            raise TypeError(f"Not a confirmable action: {type(action).__name__}")

        logger.info("EXECUTOR: running %s", action.type.value)
        label = action.type.value.replace("_", " ")
        try:
            return handler(action)
        except requests.RequestException as e:
            logger.error("EXECUTOR: %s failed: %s", action.type.value, e)
            return SkillResult(success=False, message=f"Couldn't {label}: {e}", error=str(e))
        except Exception as e:
            # Malformed remote replies (a record without an id and the like)
            logger.error("EXECUTOR: %s error: %s", action.type.value, e)
            return SkillResult(success=False, message=f"Couldn't {label}", error=repr(e))
        finally:
            self._refresh_workouts()

    def _delete(self, action: DeleteWorkouts) -> SkillResult:
        # Best effort: one failed delete does not stop the others
        deleted: List[str] = []
        failed: List[str] = []
        for workout_id, name in zip(action.workout_ids, action.workout_names):
            try:
                self.store.delete_workout(workout_id).result()
                deleted.append(workout_id)
            except requests.RequestException as e:
                logger.error("EXECUTOR: delete %s failed: %s", workout_id, e)
                failed.append(name)

        if failed:
            return SkillResult(
                success=False,
                message=f"Deleted {len(deleted)} of {len(action.workout_ids)} workouts; failed: {', '.join(failed)}",
                data={"deleted": deleted},
                error="partial_delete",
            )
        noun = "workout" if len(deleted) == 1 else "workouts"
        return SkillResult(success=True, message=f"Deleted {len(deleted)} {noun}", data={"deleted": deleted})

    def _update(self, action: UpdateWorkout) -> SkillResult:
        workout = self.store.update_workout(action.workout_id, action.updates)
        name = workout.name if workout is not None else action.workout_name
        return SkillResult(success=True, message=f"Updated {name}", data={"workout_id": action.workout_id})

    def _log_workout(self, action: LogWorkout) -> SkillResult:
        exercise_ids: List[str] = []
        sets: Dict[str, List[Dict[str, Any]]] = {}
        for entry in action.exercises:
            exercise_id = self.library.resolve_or_create(entry.name)
            if exercise_id not in sets:
                exercise_ids.append(exercise_id)
            sets.setdefault(exercise_id, []).append(
                {"weight": entry.weight, "reps": entry.reps, "is_completed": True}
            )

        fields = {
            "name": action.name,
            "scheduled_date": action.date or self.today().isoformat(),
            "color": config.DEFAULT_WORKOUT_COLOR,
        }
        workout = self.store.create_workout(fields, exercise_ids, sets).result()
        return SkillResult(
            success=True,
            message=f"Logged {workout.name} on {workout.scheduled_date}",
            data={"workout_id": workout.id},
        )

    def _add_exercises(self, action: AddExercises) -> SkillResult:
        exercise_ids: List[str] = []
        sets: Dict[str, List[Dict[str, Any]]] = {}
        for entry in action.exercises:
            exercise_id = self.library.resolve_or_create(entry.name)
            if exercise_id not in sets:
                exercise_ids.append(exercise_id)
            sets.setdefault(exercise_id, []).extend(
                {"weight": entry.weight, "reps": entry.reps, "is_completed": False}
                for _ in range(entry.sets)
            )

        self.store.client.add_exercises_to_workout(action.workout_id, exercise_ids, sets)
        noun = "exercise" if len(exercise_ids) == 1 else "exercises"
        return SkillResult(
            success=True,
            message=f"Added {len(exercise_ids)} {noun} to {action.workout_name}",
            data={"exercise_ids": exercise_ids},
        )

    def _remove_exercise(self, action: RemoveExercise) -> SkillResult:
        exercise = self._find_in_workout(action.workout_id, action.exercise_name)
        if exercise is None:
            exercise = self.library.find(action.exercise_name)
        if exercise is None:
            logger.info("EXECUTOR: '%s' not found, nothing to remove", action.exercise_name)
            return SkillResult(success=True, message=f"{action.exercise_name} isn't in {action.workout_name}")

        self.store.client.remove_exercise_from_workout(action.workout_id, str(exercise["id"]))
        return SkillResult(success=True, message=f"Removed {exercise['name']} from {action.workout_name}")

    def _find_in_workout(self, workout_id: str, name: str) -> Optional[Dict[str, Any]]:
        workout = self.store.get(workout_id)
        if workout is None:
            return None
        exercises = [we.get("exercise") or we for we in workout.exercises]
        return match_exercise(name, exercises)

    def _refresh_workouts(self) -> None:
        try:
            self.store.refresh()
        except requests.RequestException as e:
            logger.warning("EXECUTOR: workout refresh failed: %s", e)

    # =========================================================================
    # IMMEDIATE ACTIONS
    # =========================================================================

    def create_exercises(self, action: CreateExercises) -> SkillResult:
        created: List[str] = []
        try:
            for exercise in action.exercises:
                record = self.library.create(exercise)
                created.append(str(record.get("id")))
        except requests.RequestException as e:
            logger.error("EXECUTOR: create_exercise failed: %s", e)
            return SkillResult(
                success=False,
                message="Couldn't create exercise",
                data={"created": created},
                error=str(e),
            )
        names = ", ".join(e.name for e in action.exercises)
        return SkillResult(success=True, message=f"Added to your library: {names}", data={"created": created})

    def update_memory(self, action: UpdateMemory) -> SkillResult:
        try:
            self.memory.append(action.text)
        except requests.RequestException as e:
            logger.error("EXECUTOR: update_memory failed: %s", e)
            return SkillResult(success=False, message="Couldn't save that note", error=str(e))
        return SkillResult(success=True, message="Noted")

    # =========================================================================
    # PLAN SCHEDULING
    # =========================================================================

    def schedule_plan(self, plan: WorkoutPlan) -> SkillResult:
        """
        Put ``plan.weeks`` copies of the weekly template on the calendar.

        Each planned workout lands on the next occurrence of its weekday after
        today, plus seven days per week index. Workouts with an unknown day
        label and exercises missing from the library are skipped.
        """
        today = self.today()
        created: List[str] = []
        try:
            for week in range(plan.weeks):
                for planned in plan.workouts:
                    first = next_weekday_date(planned.day_of_week, today)
                    if first is None:
                        logger.info("EXECUTOR: unknown day '%s' for %s", planned.day_of_week, planned.name)
                        continue

                    exercise_ids: List[str] = []
                    sets: Dict[str, List[Dict[str, Any]]] = {}
                    for ex in planned.exercises:
                        found = self.library.find(ex.name)
                        if found is None:
                            continue
                        exercise_id = str(found["id"])
                        if exercise_id in sets:
                            continue
                        exercise_ids.append(exercise_id)
                        reps = leading_number(ex.reps)
                        sets[exercise_id] = [
                            {"weight": 0, "reps": int(reps) if reps is not None else 10, "is_completed": False}
                            for _ in range(ex.sets or 3)
                        ]

                    fields = {
                        "name": planned.name,
                        "scheduled_date": (first + timedelta(weeks=week)).isoformat(),
                        "color": planned.color or config.DEFAULT_WORKOUT_COLOR,
                    }
                    workout = self.store.create_workout(fields, exercise_ids, sets).result()
                    created.append(workout.id)
        except Exception as e:
            logger.error("EXECUTOR: plan scheduling stopped after %d workouts: %s", len(created), e)
            self._refresh_workouts()
            return SkillResult(
                success=False,
                message=f"Added {len(created)} workouts before an error: {e}",
                data={"created": created},
                error=str(e),
            )

        self._refresh_workouts()
        return SkillResult(
            success=True,
            message=(
                f"✅ Done! I've added {plan.weeks} weeks of workouts to your calendar. "
                "Check your Home screen to see them!"
            ),
            data={"created": created},
        )


__all__ = [
    "ActionExecutor",
    "SkillResult",
    "next_weekday_date",
]
