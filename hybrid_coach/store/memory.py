"""Coach memory - free-text notes the coach keeps about the athlete."""

from __future__ import annotations

import logging
import threading

from hybrid_coach.libs.tools_workouts.client import WorkoutStoreClient

logger = logging.getLogger(__name__)


def merge_memory(existing: str, note: str) -> str:
    """Append ``note`` as a new ``- `` bullet; existing text is never rewritten."""
    note = " ".join(note.split())
    if not note:
        return existing
    existing = (existing or "").rstrip()
    bullet = f"- {note}"
    return f"{existing}\n{bullet}" if existing else bullet


class CoachMemory:
    def __init__(self, client: WorkoutStoreClient):
        self.client = client
        self._lock = threading.Lock()
        self._text = ""

    @property
    def text(self) -> str:
        return self._text

    def refresh(self) -> str:
        text = self.client.get_coach_memory()
        with self._lock:
            self._text = text
        return text

    def append(self, note: str) -> str:
        """Persist ``note`` and return the merged memory."""
        with self._lock:
            merged = merge_memory(self._text, note)
            if merged == self._text:
                return merged
            self.client.save_coach_memory(merged)
            self._text = merged
        logger.info("Coach memory updated (%d chars)", len(merged))
        return merged
