"""
Action taxonomy - the vocabulary of coach mutation intents.

Payloads are validated once, here, when they are parsed; everything
downstream works with these dataclasses instead of raw dicts.

Pending variants (need user confirmation before running):
    DeleteWorkouts, UpdateWorkout, LogWorkout, AddExercises, RemoveExercise
Immediate-effect variants (additive, run without confirmation):
    UpdateMemory, CreateExercises
Proposal (surfaced for the user to add to the calendar):
    ProposePlan
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from hybrid_coach import config


class ActionType(str, Enum):
    """Discriminator values of the ``action`` field."""
    DELETE = "delete"
    UPDATE = "update"
    LOG_WORKOUT = "log_workout"
    ADD_EXERCISE = "add_exercise"
    REMOVE_EXERCISE = "remove_exercise"
    CREATE_EXERCISE = "create_exercise"
    UPDATE_MEMORY = "update_memory"
    PROPOSE_PLAN = "PROPOSE_PLAN"


CONFIRMED_ACTIONS = frozenset([
    ActionType.DELETE,
    ActionType.UPDATE,
    ActionType.LOG_WORKOUT,
    ActionType.ADD_EXERCISE,
    ActionType.REMOVE_EXERCISE,
])

IMMEDIATE_ACTIONS = frozenset([
    ActionType.CREATE_EXERCISE,
    ActionType.UPDATE_MEMORY,
])

UNKNOWN_WORKOUT_NAME = "Unknown workout"


class PayloadError(ValueError):
    """A structured payload does not have the shape its discriminator needs."""


# =============================================================================
# FIELD COERCION
# =============================================================================

def require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise PayloadError(f"'{key}' must be a non-empty string")
    return value.strip()


def optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise PayloadError(f"'{key}' must be a string")
    return value.strip() or None


_LEADING_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def leading_number(value: Any) -> Optional[float]:
    """Leading number of a loose label ("8-10" -> 8.0, "135 lbs" -> 135.0)."""
    match = _LEADING_NUMBER_RE.match(str(value).strip())
    return float(match.group()) if match else None


def _int(value: Any, key: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise PayloadError(f"'{key}' must be a number")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        number = leading_number(value)
        return int(number) if number is not None else default
    raise PayloadError(f"'{key}' must be a number")


def _float(value: Any, key: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise PayloadError(f"'{key}' must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        number = leading_number(value)
        return number if number is not None else default
    raise PayloadError(f"'{key}' must be a number")


def dict_list(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list) or not value:
        raise PayloadError(f"'{key}' must be a non-empty list")
    if not all(isinstance(item, dict) for item in value):
        raise PayloadError(f"'{key}' must contain objects")
    return value


# =============================================================================
# PLAN TYPES
# =============================================================================

@dataclass
class PlannedExercise:
    name: str
    sets: int = 3
    reps: str = "10"
    weight: Optional[str] = None
    tempo: Optional[str] = None
    rest_seconds: Optional[int] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannedExercise":
        reps = data.get("reps")
        return cls(
            name=require_str(data, "name"),
            sets=max(1, _int(data.get("sets"), "sets", 3)),
            reps=str(reps).strip() if reps is not None else "10",
            weight=optional_str(data, "weight"),
            tempo=optional_str(data, "tempo"),
            rest_seconds=_int(data.get("rest_seconds"), "rest_seconds", 0) or None,
            notes=optional_str(data, "notes"),
        )


@dataclass
class PlannedWorkout:
    name: str
    day_of_week: str
    color: str = config.DEFAULT_WORKOUT_COLOR
    exercises: List[PlannedExercise] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannedWorkout":
        exercises = data.get("exercises") or []
        if not isinstance(exercises, list):
            raise PayloadError("'exercises' must be a list")
        return cls(
            name=require_str(data, "name"),
            day_of_week=optional_str(data, "day_of_week") or "",
            color=optional_str(data, "color") or config.DEFAULT_WORKOUT_COLOR,
            exercises=[PlannedExercise.from_dict(e) for e in exercises if isinstance(e, dict)],
        )


@dataclass
class WorkoutPlan:
    """A proposed weekly template, repeated ``weeks`` times when scheduled."""
    name: str
    summary: str
    weeks: int
    workouts: List[PlannedWorkout]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutPlan":
        workouts = dict_list(data, "workouts")
        weeks = _int(data.get("weeks"), "weeks", config.DEFAULT_PLAN_WEEKS)
        return cls(
            name=optional_str(data, "plan_name") or optional_str(data, "name") or "Your Workout Plan",
            summary=optional_str(data, "summary") or "",
            weeks=weeks if weeks >= 1 else config.DEFAULT_PLAN_WEEKS,
            workouts=[PlannedWorkout.from_dict(w) for w in workouts],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_name": self.name,
            "summary": self.summary,
            "weeks": self.weeks,
            "workouts": [
                {
                    "name": w.name,
                    "day_of_week": w.day_of_week,
                    "color": w.color,
                    "exercises": [
                        {k: v for k, v in vars(e).items() if v is not None}
                        for e in w.exercises
                    ],
                }
                for w in self.workouts
            ],
        }


# =============================================================================
# ENTRY TYPES
# =============================================================================

@dataclass
class ExerciseEntry:
    """An exercise named by the coach, with its target or performed load."""
    name: str
    sets: int = 1
    reps: int = 10
    weight: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_sets: int = 1) -> "ExerciseEntry":
        return cls(
            name=require_str(data, "name"),
            sets=max(1, _int(data.get("sets"), "sets", default_sets)),
            reps=_int(data.get("reps"), "reps", 10),
            weight=_float(data.get("weight"), "weight", 0.0),
        )

    def describe(self) -> str:
        load = f" @ {self.weight:g}" if self.weight else ""
        return f"{self.name} {self.sets}x{self.reps}{load}"


@dataclass
class NewExercise:
    name: str
    muscle_group: str = config.DEFAULT_MUSCLE_GROUP
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewExercise":
        return cls(
            name=require_str(data, "name"),
            muscle_group=optional_str(data, "muscle_group") or config.DEFAULT_MUSCLE_GROUP,
            description=optional_str(data, "description") or "",
        )


# =============================================================================
# PENDING VARIANTS
# =============================================================================

@dataclass
class DeleteWorkouts:
    type: ClassVar[ActionType] = ActionType.DELETE
    workout_ids: List[str]
    workout_names: List[str]

    def describe(self) -> str:
        names = ", ".join(self.workout_names)
        noun = "workout" if len(self.workout_ids) == 1 else "workouts"
        return f"Delete {len(self.workout_ids)} {noun}: {names}"


@dataclass
class UpdateWorkout:
    type: ClassVar[ActionType] = ActionType.UPDATE
    workout_id: str
    updates: Dict[str, Any]
    workout_name: str = UNKNOWN_WORKOUT_NAME

    def describe(self) -> str:
        changes = ", ".join(f"{k} → {v}" for k, v in self.updates.items())
        return f"Update {self.workout_name}: {changes}"


@dataclass
class LogWorkout:
    """Record a workout the athlete already did; sets are stored completed."""
    type: ClassVar[ActionType] = ActionType.LOG_WORKOUT
    name: str
    exercises: List[ExerciseEntry]
    date: Optional[str] = None

    def describe(self) -> str:
        when = self.date or "today"
        return f"Log {self.name} ({when}): " + "; ".join(e.describe() for e in self.exercises)


@dataclass
class AddExercises:
    """Attach exercises to an existing workout; sets are stored not completed."""
    type: ClassVar[ActionType] = ActionType.ADD_EXERCISE
    workout_id: str
    exercises: List[ExerciseEntry]
    workout_name: str = UNKNOWN_WORKOUT_NAME

    def describe(self) -> str:
        return f"Add to {self.workout_name}: " + "; ".join(e.describe() for e in self.exercises)


@dataclass
class RemoveExercise:
    type: ClassVar[ActionType] = ActionType.REMOVE_EXERCISE
    workout_id: str
    exercise_name: str
    workout_name: str = UNKNOWN_WORKOUT_NAME

    def describe(self) -> str:
        return f"Remove {self.exercise_name} from {self.workout_name}"


# =============================================================================
# IMMEDIATE VARIANTS
# =============================================================================

@dataclass
class UpdateMemory:
    type: ClassVar[ActionType] = ActionType.UPDATE_MEMORY
    text: str

    def describe(self) -> str:
        return f"Remember: {self.text}"


@dataclass
class CreateExercises:
    type: ClassVar[ActionType] = ActionType.CREATE_EXERCISE
    exercises: List[NewExercise]

    def describe(self) -> str:
        return "Create exercises: " + ", ".join(e.name for e in self.exercises)


@dataclass
class ProposePlan:
    type: ClassVar[ActionType] = ActionType.PROPOSE_PLAN
    plan: WorkoutPlan

    def describe(self) -> str:
        return f"Add {self.plan.name} ({self.plan.weeks} weeks) to the calendar"


PendingAction = Union[DeleteWorkouts, UpdateWorkout, LogWorkout, AddExercises, RemoveExercise]
ImmediateAction = Union[UpdateMemory, CreateExercises]
CoachAction = Union[PendingAction, ImmediateAction, ProposePlan]
