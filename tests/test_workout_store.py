"""Tests for optimistic create/delete against the local workout list."""
from __future__ import annotations

import pytest

from hybrid_coach.libs.tools_common import RemoteCallError
from hybrid_coach.store.workout_store import TEMP_ID_PREFIX, Workout, new_temp_id

from conftest import gate, remote_error


def ids(store):
    return [w.id for w in store.workouts]


class TestTempIds:
    def test_prefix_and_strictly_increasing(self):
        a, b = new_temp_id(), new_temp_id()
        assert a.startswith(TEMP_ID_PREFIX)
        assert int(b[len(TEMP_ID_PREFIX):]) > int(a[len(TEMP_ID_PREFIX):])

    def test_workout_flags_temporary(self):
        assert Workout(id=new_temp_id(), name="x", scheduled_date="2024-01-01").is_temporary
        assert not Workout(id="w1", name="x", scheduled_date="2024-01-01").is_temporary


class TestOptimisticCreate:
    def test_placeholder_visible_before_remote_resolves(self, make_stack):
        client, store, _, _ = make_stack()
        release = gate(client, "create_workout")

        future = store.create_workout({"name": "Test", "scheduled_date": "2024-01-01"})
        workouts = store.workouts
        assert len(workouts) == 1
        assert workouts[0].is_temporary
        assert workouts[0].name == "Test"

        release.set()
        durable = future.result(timeout=5)
        assert not durable.is_temporary
        assert ids(store) == [durable.id]

    def test_remote_failure_removes_placeholder(self, make_stack):
        client, store, _, _ = make_stack()
        release = gate(client, "create_workout")
        client.failures["create_workout"] = remote_error()

        future = store.create_workout({"name": "Test", "scheduled_date": "2024-01-01"})
        assert len(store.workouts) == 1

        release.set()
        with pytest.raises(RemoteCallError):
            future.result(timeout=5)
        assert store.workouts == []

    def test_placeholder_sorted_by_date(self, make_stack, three_workouts):
        client, store, _, _ = make_stack(workouts=three_workouts)
        release = gate(client, "create_workout")

        future = store.create_workout({"name": "Mid", "scheduled_date": "2024-01-02"})
        names = [w.name for w in store.workouts]
        assert names.index("Mid") in (1, 2)
        assert names[0] == "Leg Day"
        assert names[-1] == "Pull Day"

        release.set()
        durable = future.result(timeout=5)
        assert durable.id in ids(store)
        assert len(store.workouts) == 4

    def test_sends_exercises_and_sets(self, make_stack, bench_library):
        client, store, _, _ = make_stack(exercises=bench_library)
        sets = {"e1": [{"weight": 100, "reps": 5, "is_completed": False}]}

        durable = store.create_workout(
            {"name": "Push", "scheduled_date": "2024-01-05"}, ["e1"], sets
        ).result(timeout=5)

        call = client.calls_to("create_workout")[0]
        assert call[2] == ["e1"]
        assert call[3] == sets
        assert durable.exercises[0]["exercise"]["name"] == "Bench Press"


class TestOptimisticDelete:
    def test_removal_is_immediate(self, make_stack, three_workouts):
        client, store, _, _ = make_stack(workouts=three_workouts)
        release = gate(client, "delete_workout")

        future = store.delete_workout("w2")
        assert ids(store) == ["w1", "w3"]

        release.set()
        future.result(timeout=5)
        assert ids(store) == ["w1", "w3"]
        assert [w["id"] for w in client.workouts] == ["w1", "w3"]

    def test_failure_restores_original_order(self, make_stack, three_workouts):
        client, store, _, _ = make_stack(workouts=three_workouts)
        release = gate(client, "delete_workout")
        client.failures["delete_workout"] = remote_error()

        future = store.delete_workout("w2")
        assert ids(store) == ["w1", "w3"]

        release.set()
        with pytest.raises(RemoteCallError):
            future.result(timeout=5)
        assert ids(store) == ["w1", "w2", "w3"]


class TestRefreshAndUpdate:
    def test_refresh_sorts_by_date(self, make_stack):
        _, store, _, _ = make_stack(workouts=[
            {"id": "b", "name": "Later", "scheduled_date": "2024-03-01"},
            {"id": "a", "name": "Sooner", "scheduled_date": "2024-02-01"},
        ])
        assert ids(store) == ["a", "b"]

    def test_name_index(self, make_stack, three_workouts):
        _, store, _, _ = make_stack(workouts=three_workouts)
        assert store.name_index() == {"w1": "Leg Day", "w2": "Push Day", "w3": "Pull Day"}

    def test_update_refreshes(self, make_stack, three_workouts):
        client, store, _, _ = make_stack(workouts=three_workouts)
        updated = store.update_workout("w1", {"scheduled_date": "2024-01-09"})
        assert updated.scheduled_date == "2024-01-09"
        assert ids(store) == ["w2", "w3", "w1"]
        assert client.calls_to("list_workouts")
