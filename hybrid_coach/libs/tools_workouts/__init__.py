from .client import WorkoutStoreClient

__all__ = ["WorkoutStoreClient"]
