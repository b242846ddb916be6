"""
Confirmation state machine for coach actions.

Every data-mutating action the coach proposes waits for the user:

    PENDING --confirm()--> CONFIRMED --execute()--> SUCCEEDED | FAILED
    PENDING --cancel()---> CANCELLED

No state is revisited and there is no retry edge: a FAILED action stays
failed and the user asks again. ``execute()`` on a completed tracker returns
the recorded outcome without running anything.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ActionState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


COMPLETED_STATES = frozenset([ActionState.SUCCEEDED, ActionState.FAILED])
TERMINAL_STATES = COMPLETED_STATES | {ActionState.CANCELLED}


class InvalidTransitionError(RuntimeError):
    """A transition was requested from a state that does not allow it."""

    def __init__(self, state: ActionState, transition: str):
        super().__init__(f"Cannot {transition} an action that is {state.value}")
        self.state = state
        self.transition = transition


class ActionTracker:
    """Tracks one proposed action through confirmation and execution."""

    def __init__(self, action: Any):
        self.action = action
        self.state = ActionState.PENDING
        self.result: Optional[Any] = None

    def __repr__(self) -> str:
        return f"ActionTracker({type(self.action).__name__}, state={self.state.value})"

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def action_completed(self) -> bool:
        return self.state in COMPLETED_STATES

    @property
    def action_success(self) -> bool:
        return self.state == ActionState.SUCCEEDED

    def confirm(self) -> ActionState:
        if self.state != ActionState.PENDING:
            raise InvalidTransitionError(self.state, "confirm")
        self.state = ActionState.CONFIRMED
        return self.state

    def cancel(self) -> ActionState:
        if self.state != ActionState.PENDING:
            raise InvalidTransitionError(self.state, "cancel")
        self.state = ActionState.CANCELLED
        return self.state

    def execute(self, runner: Callable[[Any], Any]) -> ActionState:
        """
        Run ``runner(action)`` once.

        The runner returns an object with a boolean ``success`` attribute
        (``SkillResult``); an exception from the runner marks the action
        FAILED and propagates.
        """
        if self.state in COMPLETED_STATES:
            return self.state
        if self.state != ActionState.CONFIRMED:
            raise InvalidTransitionError(self.state, "execute")

        try:
            self.result = runner(self.action)
        except Exception:
            self.state = ActionState.FAILED
            raise
        self.state = ActionState.SUCCEEDED if getattr(self.result, "success", False) else ActionState.FAILED
        logger.info("CONFIRMATION: %s -> %s", type(self.action).__name__, self.state.value)
        return self.state
