"""Shared fakes: an in-memory workout store client and a scripted LLM."""
from __future__ import annotations

import itertools
import threading
from datetime import date
from typing import Any, Callable, Dict, List, Union

import pytest

from hybrid_coach.libs.llm import LLMClient, Turn
from hybrid_coach.libs.tools_common import RemoteCallError
from hybrid_coach.store import CoachMemory, ExerciseLibrary, OptimisticWorkoutStore

TODAY = date(2024, 1, 10)  # a Wednesday


class FakeStoreClient:
    """
    Stands in for WorkoutStoreClient.

    ``failures`` maps a method name to the error it raises; ``fail_ids`` makes
    delete_workout fail for specific workouts only. ``gates`` maps a method
    name to an Event the call waits on before touching any data, so tests can
    observe the optimistic state while a remote call is in flight.
    """

    def __init__(self, workouts=None, exercises=None, memory: str = ""):
        self.workouts: List[Dict[str, Any]] = [dict(w) for w in (workouts or [])]
        self.exercises: List[Dict[str, Any]] = [dict(e) for e in (exercises or [])]
        self.memory = memory
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.fail_ids: Dict[str, Exception] = {}
        self.gates: Dict[str, threading.Event] = {}
        self._workout_ids = itertools.count(100)
        self._exercise_ids = itertools.count(100)

    def _enter(self, method: str, *args) -> None:
        self.calls.append((method,) + args)
        gate = self.gates.get(method)
        if gate is not None:
            assert gate.wait(timeout=5), f"{method} gate never opened"
        if method in self.failures:
            raise self.failures[method]

    def calls_to(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]

    # Workouts

    def list_workouts(self, *, start_date=None, end_date=None):
        self._enter("list_workouts")
        return [dict(w) for w in self.workouts]

    def create_workout(self, fields, exercise_ids=None, sets_by_exercise_id=None):
        self._enter("create_workout", fields, exercise_ids, sets_by_exercise_id)
        record = dict(fields)
        record["id"] = f"w{next(self._workout_ids)}"
        record["workout_exercises"] = [
            {
                "exercise": self._exercise(eid),
                "order_index": i,
                "sets": list((sets_by_exercise_id or {}).get(eid, [])),
            }
            for i, eid in enumerate(exercise_ids or [])
        ]
        self.workouts.append(record)
        return dict(record)

    def update_workout(self, workout_id, fields):
        self._enter("update_workout", workout_id, fields)
        record = self._workout(workout_id)
        record.update(fields)
        return dict(record)

    def delete_workout(self, workout_id):
        self._enter("delete_workout", workout_id)
        if workout_id in self.fail_ids:
            raise self.fail_ids[workout_id]
        self.workouts = [w for w in self.workouts if w["id"] != workout_id]

    def add_exercises_to_workout(self, workout_id, exercise_ids, sets_by_exercise_id=None):
        self._enter("add_exercises_to_workout", workout_id, exercise_ids, sets_by_exercise_id)
        record = self._workout(workout_id)
        existing = record.setdefault("workout_exercises", [])
        for eid in exercise_ids:
            existing.append({
                "exercise": self._exercise(eid),
                "order_index": len(existing),
                "sets": list((sets_by_exercise_id or {}).get(eid, [])),
            })
        return {"workoutId": workout_id}

    def remove_exercise_from_workout(self, workout_id, exercise_id):
        self._enter("remove_exercise_from_workout", workout_id, exercise_id)
        record = self._workout(workout_id)
        record["workout_exercises"] = [
            we for we in record.get("workout_exercises", []) if we["exercise"]["id"] != exercise_id
        ]

    # Exercise library

    def list_exercises(self):
        self._enter("list_exercises")
        return [dict(e) for e in self.exercises]

    def create_exercise(self, name, muscle_group, description=None):
        self._enter("create_exercise", name, muscle_group, description)
        record = {"id": f"e{next(self._exercise_ids)}", "name": name, "muscle_group": muscle_group}
        self.exercises.append(record)
        return dict(record)

    # Coach memory

    def get_coach_memory(self):
        self._enter("get_coach_memory")
        return self.memory

    def save_coach_memory(self, memory):
        self._enter("save_coach_memory", memory)
        self.memory = memory

    def _workout(self, workout_id):
        for w in self.workouts:
            if w["id"] == workout_id:
                return w
        raise RemoteCallError(f"Workout {workout_id} not found", code="NOT_FOUND")

    def _exercise(self, exercise_id):
        for e in self.exercises:
            if e["id"] == exercise_id:
                return dict(e)
        return {"id": exercise_id, "name": exercise_id}


Scripted = Union[str, Exception, Callable[[str, List[Turn]], str]]


class ScriptedLLM(LLMClient):
    """Answers each generate() call with the next scripted item."""

    def __init__(self, *responses: Scripted):
        self.responses = list(responses)
        self.requests: List[tuple] = []

    def generate(self, system_instruction: str, conversation: List[Turn]) -> str:
        self.requests.append((system_instruction, list(conversation)))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(system_instruction, conversation)
        return item


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def bench_library():
    return [
        {"id": "e1", "name": "Bench Press", "muscle_group": "Chest"},
        {"id": "e2", "name": "Back Squat", "muscle_group": "Legs"},
        {"id": "e3", "name": "Barbell Curl", "muscle_group": "Arms"},
    ]


@pytest.fixture
def three_workouts():
    return [
        {"id": "w1", "name": "Leg Day", "scheduled_date": "2024-01-01"},
        {"id": "w2", "name": "Push Day", "scheduled_date": "2024-01-02"},
        {"id": "w3", "name": "Pull Day", "scheduled_date": "2024-01-03"},
    ]


@pytest.fixture
def make_stack():
    """Build (client, store, library, memory) loaded from a FakeStoreClient."""
    stores: List[OptimisticWorkoutStore] = []

    def _make(workouts=None, exercises=None, memory: str = "", load: bool = True):
        client = FakeStoreClient(workouts=workouts, exercises=exercises, memory=memory)
        store = OptimisticWorkoutStore(client)
        stores.append(store)
        library = ExerciseLibrary(client)
        coach_memory = CoachMemory(client)
        if load:
            store.refresh()
            library.refresh()
            coach_memory.refresh()
            client.calls.clear()
        return client, store, library, coach_memory

    yield _make
    for store in stores:
        store.close()


def today() -> date:
    return TODAY


def remote_error(message: str = "backend unavailable") -> RemoteCallError:
    return RemoteCallError(message, code="UNAVAILABLE")


def gate(client: FakeStoreClient, method: str) -> threading.Event:
    event = threading.Event()
    client.gates[method] = event
    return event
