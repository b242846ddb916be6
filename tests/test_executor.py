"""Tests for running confirmed and immediate coach actions."""
from __future__ import annotations

from datetime import date

import pytest

from hybrid_coach.actions.types import (
    AddExercises,
    CreateExercises,
    DeleteWorkouts,
    ExerciseEntry,
    LogWorkout,
    NewExercise,
    PlannedExercise,
    PlannedWorkout,
    RemoveExercise,
    UpdateMemory,
    UpdateWorkout,
    WorkoutPlan,
)
from hybrid_coach.skills.workout_skills import ActionExecutor, next_weekday_date

from conftest import TODAY, remote_error, today


@pytest.fixture
def executor_for(make_stack):
    def _make(**kwargs):
        client, store, library, memory = make_stack(**kwargs)
        return client, store, ActionExecutor(store, library, memory, today=today)
    return _make


class TestNextWeekdayDate:
    def test_later_this_week(self):
        assert next_weekday_date("Friday", TODAY) == date(2024, 1, 12)

    def test_same_weekday_goes_to_next_week(self):
        assert next_weekday_date("wednesday", TODAY) == date(2024, 1, 17)

    def test_earlier_weekday_wraps(self):
        assert next_weekday_date("Monday", TODAY) == date(2024, 1, 15)

    def test_unknown_label(self):
        assert next_weekday_date("Funday", TODAY) is None


class TestDelete:
    def test_deletes_all_and_refreshes(self, executor_for, three_workouts):
        client, store, executor = executor_for(workouts=three_workouts)
        result = executor.execute(DeleteWorkouts(["w1", "w3"], ["Leg Day", "Pull Day"]))
        assert result.success
        assert [w.id for w in store.workouts] == ["w2"]
        assert client.calls_to("list_workouts")

    def test_best_effort_when_one_fails(self, executor_for, three_workouts):
        client, store, executor = executor_for(workouts=three_workouts)
        client.fail_ids["w1"] = remote_error()

        result = executor.execute(DeleteWorkouts(["w1", "w2"], ["Leg Day", "Push Day"]))

        assert not result.success
        assert [c[1] for c in client.calls_to("delete_workout")] == ["w1", "w2"]
        assert [w.id for w in store.workouts] == ["w1", "w3"]
        assert "Leg Day" in result.message


class TestUpdate:
    def test_update(self, executor_for, three_workouts):
        client, store, executor = executor_for(workouts=three_workouts)
        result = executor.execute(UpdateWorkout("w2", {"name": "Chest Day"}, "Push Day"))
        assert result.success
        assert result.message == "Updated Chest Day"
        assert store.get("w2").name == "Chest Day"

    def test_remote_failure_is_reported(self, executor_for, three_workouts):
        client, store, executor = executor_for(workouts=three_workouts)
        client.failures["update_workout"] = remote_error("quota exceeded")
        result = executor.execute(UpdateWorkout("w2", {"name": "Chest Day"}, "Push Day"))
        assert not result.success
        assert "quota exceeded" in result.message
        assert store.get("w2").name == "Push Day"


class TestLogWorkout:
    def test_one_completed_set_per_exercise(self, executor_for, bench_library):
        client, store, executor = executor_for(exercises=bench_library)
        action = LogWorkout(
            name="Chest Day",
            exercises=[
                ExerciseEntry("bench press", sets=3, reps=10, weight=135),
                ExerciseEntry("Zercher Squat", sets=2, reps=5, weight=95),
            ],
        )

        result = executor.execute(action)

        assert result.success
        assert client.calls_to("create_exercise") == [("create_exercise", "Zercher Squat", "Other", None)]
        _, fields, exercise_ids, sets = client.calls_to("create_workout")[0]
        assert fields["scheduled_date"] == "2024-01-10"
        assert fields["name"] == "Chest Day"
        assert exercise_ids[0] == "e1"
        assert sets["e1"] == [{"weight": 135, "reps": 10, "is_completed": True}]
        assert sets[exercise_ids[1]] == [{"weight": 95, "reps": 5, "is_completed": True}]
        assert [w.name for w in store.workouts] == ["Chest Day"]

    def test_explicit_date(self, executor_for, bench_library):
        client, _, executor = executor_for(exercises=bench_library)
        executor.execute(LogWorkout("Bench", [ExerciseEntry("Bench Press")], date="2024-01-08"))
        fields = client.calls_to("create_workout")[0][1]
        assert fields["scheduled_date"] == "2024-01-08"

    def test_substring_match_avoids_creation(self, executor_for, bench_library):
        client, _, executor = executor_for(exercises=bench_library)
        executor.execute(LogWorkout("Arms", [ExerciseEntry("Curl")]))
        assert client.calls_to("create_exercise") == []
        assert client.calls_to("create_workout")[0][2] == ["e3"]

    def test_create_failure_leaves_no_placeholder(self, executor_for, bench_library):
        client, store, executor = executor_for(exercises=bench_library)
        client.failures["create_workout"] = remote_error()
        result = executor.execute(LogWorkout("Bench", [ExerciseEntry("Bench Press")]))
        assert not result.success
        assert store.workouts == []


class TestAddAndRemoveExercise:
    def test_add_uses_not_completed_sets(self, executor_for, three_workouts, bench_library):
        client, _, executor = executor_for(workouts=three_workouts, exercises=bench_library)
        action = AddExercises("w1", [ExerciseEntry("Back Squat", sets=3, reps=5, weight=225)], "Leg Day")

        result = executor.execute(action)

        assert result.success
        _, workout_id, exercise_ids, sets = client.calls_to("add_exercises_to_workout")[0]
        assert workout_id == "w1"
        assert exercise_ids == ["e2"]
        assert sets["e2"] == [{"weight": 225, "reps": 5, "is_completed": False}] * 3

    def test_remove_matches_workout_exercise(self, executor_for, bench_library):
        workouts = [{
            "id": "w1", "name": "Push", "scheduled_date": "2024-01-01",
            "workout_exercises": [{"exercise": {"id": "e1", "name": "Bench Press"}, "order_index": 0}],
        }]
        client, store, executor = executor_for(workouts=workouts, exercises=bench_library)

        result = executor.execute(RemoveExercise("w1", "bench", "Push"))

        assert result.success
        assert client.calls_to("remove_exercise_from_workout") == [("remove_exercise_from_workout", "w1", "e1")]
        assert store.get("w1").exercises == []

    def test_remove_unknown_exercise_is_noop(self, executor_for, three_workouts, bench_library):
        client, _, executor = executor_for(workouts=three_workouts, exercises=bench_library)
        result = executor.execute(RemoveExercise("w1", "Burpees", "Leg Day"))
        assert result.success
        assert client.calls_to("remove_exercise_from_workout") == []
        assert client.calls_to("create_exercise") == []


class TestImmediateActions:
    def test_create_exercises(self, executor_for):
        client, _, executor = executor_for()
        result = executor.create_exercises(CreateExercises([
            NewExercise("Sled Push", "Legs", "Drive through the floor"),
            NewExercise("Wall Ball"),
        ]))
        assert result.success
        assert [c[1:] for c in client.calls_to("create_exercise")] == [
            ("Sled Push", "Legs", "Drive through the floor"),
            ("Wall Ball", "Other", None),
        ]
        assert executor.library.find("sled push")["id"] == result.data["created"][0]

    def test_update_memory_appends(self, executor_for):
        client, _, executor = executor_for(memory="- Runs 3x a week")
        result = executor.update_memory(UpdateMemory("Left knee   is sore"))
        assert result.success
        assert client.memory == "- Runs 3x a week\n- Left knee is sore"

    def test_update_memory_failure(self, executor_for):
        client, _, executor = executor_for()
        client.failures["save_coach_memory"] = remote_error()
        result = executor.update_memory(UpdateMemory("note"))
        assert not result.success
        assert executor.memory.text == ""


class TestSchedulePlan:
    def make_plan(self, weeks=2):
        return WorkoutPlan(
            name="Base",
            summary="",
            weeks=weeks,
            workouts=[
                PlannedWorkout("Upper", "Monday", "#3b82f6", [
                    PlannedExercise("Bench Press", sets=4, reps="8-10"),
                    PlannedExercise("Mystery Move"),
                ]),
                PlannedWorkout("Rest", "Someday"),
            ],
        )

    def test_repeats_weekly_template(self, executor_for, bench_library):
        client, store, executor = executor_for(exercises=bench_library)

        result = executor.schedule_plan(self.make_plan())

        assert result.success
        creates = client.calls_to("create_workout")
        assert [c[1]["scheduled_date"] for c in creates] == ["2024-01-15", "2024-01-22"]
        assert all(c[1]["color"] == "#3b82f6" for c in creates)
        assert creates[0][2] == ["e1"]
        assert creates[0][3]["e1"] == [{"weight": 0, "reps": 8, "is_completed": False}] * 4
        assert client.calls_to("create_exercise") == []
        assert len(store.workouts) == 2
        assert result.message.startswith("✅ Done!")

    def test_stops_on_failure(self, executor_for, bench_library):
        client, store, executor = executor_for(exercises=bench_library)
        client.failures["create_workout"] = remote_error()
        result = executor.schedule_plan(self.make_plan())
        assert not result.success
        assert len(client.calls_to("create_workout")) == 1
        assert store.workouts == []
