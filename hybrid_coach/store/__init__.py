from .exercises import ExerciseLibrary, match_exercise
from .memory import CoachMemory, merge_memory
from .workout_store import OptimisticWorkoutStore, Workout

__all__ = [
    "ExerciseLibrary",
    "match_exercise",
    "CoachMemory",
    "merge_memory",
    "OptimisticWorkoutStore",
    "Workout",
]
