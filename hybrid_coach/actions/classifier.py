"""
Action Classifier - turns payload strings into taxonomy variants.

A payload that is not valid JSON, is not an object, has an unknown
discriminator, or lacks the fields its discriminator needs is dropped with a
log line. Classification never raises.

When a response carries several plans or several pending actions the first
valid one wins; immediate actions are all kept, in response order.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from hybrid_coach.actions.types import (
    UNKNOWN_WORKOUT_NAME,
    ActionType,
    AddExercises,
    CoachAction,
    CreateExercises,
    DeleteWorkouts,
    ExerciseEntry,
    ImmediateAction,
    LogWorkout,
    NewExercise,
    PayloadError,
    PendingAction,
    ProposePlan,
    RemoveExercise,
    UpdateMemory,
    UpdateWorkout,
    WorkoutPlan,
    dict_list,
    optional_str,
    require_str,
)

logger = logging.getLogger(__name__)


@dataclass
class ClassifiedResponse:
    plan: Optional[WorkoutPlan] = None
    pending_action: Optional[PendingAction] = None
    immediate_actions: List[ImmediateAction] = field(default_factory=list)
    valid_count: int = 0
    # payloads that were well-formed JSON, classified or not
    parsed_count: int = 0


def classify_payload(payload: str, workout_names: Optional[Mapping[str, str]] = None) -> Optional[CoachAction]:
    """
    Parse one closed payload into an action variant.

    Args:
        payload: Text between a pair of fences
        workout_names: Known workouts, id -> display name, used to label
            confirmation text

    Returns:
        The classified variant, or None if the payload is dropped
    """
    try:
        data = json.loads(payload)
    except ValueError as e:
        logger.debug("CLASSIFIER: dropping malformed payload: %s", e)
        return None

    if not isinstance(data, dict):
        logger.debug("CLASSIFIER: dropping non-object payload")
        return None

    names = workout_names or {}
    discriminator = data.get("action")

    try:
        if discriminator is None:
            if isinstance(data.get("workouts"), list):
                return ProposePlan(plan=WorkoutPlan.from_dict(data))
            logger.debug("CLASSIFIER: payload has no discriminator and no workouts")
            return None

        try:
            if not isinstance(discriminator, str):
                raise ValueError(discriminator)
            action_type = ActionType(discriminator)
        except ValueError:
            logger.info("CLASSIFIER: unknown action '%s' dropped", discriminator)
            return None

        return _PARSERS[action_type](data, names)
    except PayloadError as e:
        logger.info("CLASSIFIER: invalid '%s' payload dropped: %s", discriminator or "plan", e)
        return None


def classify_payloads(
    payloads: Sequence[str],
    workout_names: Optional[Mapping[str, str]] = None,
) -> ClassifiedResponse:
    """Classify every payload of one response (first plan and first pending action win)."""
    result = ClassifiedResponse()
    for payload in payloads:
        if _is_json(payload):
            result.parsed_count += 1
        action = classify_payload(payload, workout_names)
        if action is None:
            continue
        result.valid_count += 1

        if isinstance(action, ProposePlan):
            if result.plan is None:
                result.plan = action.plan
            else:
                logger.info("CLASSIFIER: extra plan ignored (first wins)")
        elif isinstance(action, (UpdateMemory, CreateExercises)):
            result.immediate_actions.append(action)
        elif result.pending_action is None:
            result.pending_action = action
        else:
            logger.info("CLASSIFIER: extra %s ignored (first wins)", action.type.value)
    return result


def _is_json(payload: str) -> bool:
    try:
        json.loads(payload)
    except ValueError:
        return False
    return True


# =============================================================================
# PER-DISCRIMINATOR PARSERS
# =============================================================================

def _name_for(workout_id: str, names: Mapping[str, str]) -> str:
    return names.get(workout_id) or UNKNOWN_WORKOUT_NAME


def _parse_delete(data: Dict[str, Any], names: Mapping[str, str]) -> DeleteWorkouts:
    ids = data.get("workout_ids")
    if not isinstance(ids, list) or not ids:
        raise PayloadError("'workout_ids' must be a non-empty list")
    workout_ids = [str(i) for i in ids if isinstance(i, (str, int)) and str(i)]
    if not workout_ids:
        raise PayloadError("'workout_ids' has no usable ids")
    return DeleteWorkouts(
        workout_ids=workout_ids,
        workout_names=[_name_for(i, names) for i in workout_ids],
    )


def _parse_update(data: Dict[str, Any], names: Mapping[str, str]) -> UpdateWorkout:
    workout_id = require_str(data, "workout_id")
    updates = data.get("updates")
    if not isinstance(updates, dict) or not updates:
        raise PayloadError("'updates' must be a non-empty object")
    return UpdateWorkout(workout_id=workout_id, updates=dict(updates), workout_name=_name_for(workout_id, names))


def _parse_log_workout(data: Dict[str, Any], names: Mapping[str, str]) -> LogWorkout:
    return LogWorkout(
        name=optional_str(data, "name") or "Logged Workout",
        date=optional_str(data, "date"),
        exercises=[ExerciseEntry.from_dict(e) for e in dict_list(data, "exercises")],
    )


def _parse_add_exercise(data: Dict[str, Any], names: Mapping[str, str]) -> AddExercises:
    workout_id = require_str(data, "workout_id")
    return AddExercises(
        workout_id=workout_id,
        exercises=[ExerciseEntry.from_dict(e, default_sets=3) for e in dict_list(data, "exercises")],
        workout_name=_name_for(workout_id, names),
    )


def _parse_remove_exercise(data: Dict[str, Any], names: Mapping[str, str]) -> RemoveExercise:
    workout_id = require_str(data, "workout_id")
    return RemoveExercise(
        workout_id=workout_id,
        exercise_name=require_str(data, "exercise_name"),
        workout_name=_name_for(workout_id, names),
    )


def _parse_create_exercise(data: Dict[str, Any], names: Mapping[str, str]) -> CreateExercises:
    return CreateExercises(exercises=[NewExercise.from_dict(e) for e in dict_list(data, "exercises")])


def _parse_update_memory(data: Dict[str, Any], names: Mapping[str, str]) -> UpdateMemory:
    text = data.get("text", data.get("memory"))
    if not isinstance(text, str) or not text.strip():
        raise PayloadError("'text' must be a non-empty string")
    return UpdateMemory(text=text.strip())


def _parse_propose_plan(data: Dict[str, Any], names: Mapping[str, str]) -> ProposePlan:
    plan = data.get("plan")
    if not isinstance(plan, dict):
        raise PayloadError("'plan' must be an object")
    return ProposePlan(plan=WorkoutPlan.from_dict(plan))


_PARSERS: Dict[ActionType, Callable[[Dict[str, Any], Mapping[str, str]], CoachAction]] = {
    ActionType.DELETE: _parse_delete,
    ActionType.UPDATE: _parse_update,
    ActionType.LOG_WORKOUT: _parse_log_workout,
    ActionType.ADD_EXERCISE: _parse_add_exercise,
    ActionType.REMOVE_EXERCISE: _parse_remove_exercise,
    ActionType.CREATE_EXERCISE: _parse_create_exercise,
    ActionType.UPDATE_MEMORY: _parse_update_memory,
    ActionType.PROPOSE_PLAN: _parse_propose_plan,
}
