from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..tools_common.http import HttpClient
from ..tools_common.response_helpers import extract_list_from_response, unwrap


@dataclass
class WorkoutStoreClient:
    """HTTP client for the workout data-store functions.

    Every call is scoped to ``user_id``; records are keyed by opaque IDs
    generated server side. Failures raise ``requests.HTTPError`` (transport)
    or ``RemoteCallError`` (``success: false`` envelope).
    """

    base_url: str
    user_id: str
    api_key: Optional[str] = None
    bearer_token: Optional[str] = None
    timeout_seconds: int = 30

    def __post_init__(self) -> None:
        self._http = HttpClient(
            base_url=self.base_url,
            api_key=self.api_key,
            bearer_token=self.bearer_token,
            user_id=self.user_id,
            timeout_seconds=self.timeout_seconds,
        )

    def _call(self, function: str, body: Dict[str, Any]) -> Any:
        payload = {"userId": self.user_id}
        payload.update(body)
        return unwrap(self._http.post(function, payload))

    # ============================================================================
    # Workouts
    # ============================================================================

    def list_workouts(
        self,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Get the user's workouts ordered by scheduled date."""
        body: Dict[str, Any] = {}
        if start_date:
            body["startDate"] = start_date
        if end_date:
            body["endDate"] = end_date
        data = self._call("getUserWorkouts", body)
        return extract_list_from_response(data, "workouts", "items", "data")

    def create_workout(
        self,
        fields: Dict[str, Any],
        exercise_ids: Optional[List[str]] = None,
        sets_by_exercise_id: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> Dict[str, Any]:
        """Create a workout with its exercises and sets in one call.

        Exercises without an entry in ``sets_by_exercise_id`` get the
        server's default sets.
        """
        data = self._call("createWorkout", {
            "workout": fields,
            "exerciseIds": list(exercise_ids or []),
            "sets": sets_by_exercise_id or {},
        })
        return data.get("workout", data) if isinstance(data, dict) else data

    def update_workout(self, workout_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        data = self._call("updateWorkout", {"workoutId": workout_id, "updates": fields})
        return data.get("workout", data) if isinstance(data, dict) else data

    def delete_workout(self, workout_id: str) -> None:
        self._call("deleteWorkout", {"workoutId": workout_id})

    def add_exercises_to_workout(
        self,
        workout_id: str,
        exercise_ids: List[str],
        sets_by_exercise_id: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> Dict[str, Any]:
        """Append exercises (with their sets) to an existing workout."""
        return self._call("addExercisesToWorkout", {
            "workoutId": workout_id,
            "exerciseIds": list(exercise_ids),
            "sets": sets_by_exercise_id or {},
        })

    def remove_exercise_from_workout(self, workout_id: str, exercise_id: str) -> None:
        self._call("removeExerciseFromWorkout", {
            "workoutId": workout_id,
            "exerciseId": exercise_id,
        })

    # ============================================================================
    # Exercise library
    # ============================================================================

    def list_exercises(self) -> List[Dict[str, Any]]:
        """Get default and user-created exercises, ordered by name."""
        data = self._call("getExercises", {})
        return extract_list_from_response(data, "exercises", "items", "data")

    def create_exercise(
        self,
        name: str,
        muscle_group: str,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a private exercise for the user."""
        data = self._call("createExercise", {
            "name": name,
            "muscleGroup": muscle_group,
            "description": description or None,
        })
        return data.get("exercise", data) if isinstance(data, dict) else data

    # ============================================================================
    # Coach memory (athlete profile)
    # ============================================================================

    def get_coach_memory(self) -> str:
        data = self._call("getCoachMemory", {})
        if isinstance(data, dict):
            return data.get("memory") or ""
        return data or ""

    def save_coach_memory(self, memory: str) -> None:
        self._call("saveCoachMemory", {"memory": memory})
