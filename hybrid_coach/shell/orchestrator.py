"""
Coach Session - one conversation with the coach.

Per user turn:
    user text -> system instruction + conversation -> LLM (one call)
              -> segment -> classify -> run immediate actions
              -> assistant Message (display text, plan, pending action)

Pending actions wait on the Message until the user confirms or cancels
them; plans wait until the user adds them to the calendar. Messages are
append-only: errors add a message, they never remove one.

A session accepts one orchestration call at a time. A call made while
another is in flight raises ConversationBusyError instead of queueing.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

import requests

from hybrid_coach.actions.classifier import ClassifiedResponse, classify_payloads
from hybrid_coach.actions.segmenter import apply_truncation_notice, segment_response
from hybrid_coach.actions.types import (
    CreateExercises,
    ImmediateAction,
    PendingAction,
    UpdateMemory,
    WorkoutPlan,
)
from hybrid_coach.libs.llm import LLMClient, LLMError
from hybrid_coach.shell.confirmation import ActionState, ActionTracker
from hybrid_coach.shell.instruction import build_conversation, build_system_instruction, no_knowledge
from hybrid_coach.skills.workout_skills import ActionExecutor, SkillResult
from hybrid_coach.store.exercises import ExerciseLibrary
from hybrid_coach.store.memory import CoachMemory
from hybrid_coach.store.workout_store import OptimisticWorkoutStore

logger = logging.getLogger(__name__)

CONNECTION_ERROR_TEXT = "I'm having trouble connecting right now. Please try again in a moment."
CANCELLED_SUFFIX = " (Cancelled)"

GREETING_TEXT = """Hey{name}! 👋

I'm your AI fitness coach. I can help you:

• Create personalized workout plans
• Log workouts you've already done
• Adjust the workouts on your calendar
• Answer fitness questions

What would you like to work on today?"""

_message_ids = itertools.count(1)


class ConversationBusyError(RuntimeError):
    """A request for this conversation is already in flight."""


@dataclass
class Message:
    role: str
    content: str
    id: str = field(default_factory=lambda: f"msg-{next(_message_ids)}")
    workout_plan: Optional[WorkoutPlan] = None
    pending: Optional[ActionTracker] = None
    plan_tracker: Optional[ActionTracker] = None

    @property
    def pending_action(self) -> Optional[PendingAction]:
        return self.pending.action if self.pending is not None else None

    @property
    def action_completed(self) -> bool:
        return self.pending is not None and self.pending.action_completed

    @property
    def action_success(self) -> bool:
        return self.pending is not None and self.pending.action_success


class CoachSession:
    def __init__(
        self,
        llm: LLMClient,
        store: OptimisticWorkoutStore,
        library: ExerciseLibrary,
        memory: CoachMemory,
        executor: Optional[ActionExecutor] = None,
        knowledge: Optional[Callable[[str], str]] = None,
        today: Callable[[], date] = date.today,
    ):
        self.llm = llm
        self.store = store
        self.library = library
        self.memory = memory
        self.today = today
        self.executor = executor or ActionExecutor(store, library, memory, today=today)
        self.knowledge = knowledge or no_knowledge
        self.messages: List[Message] = []
        self._busy = threading.Lock()

    # =========================================================================
    # SESSION LIFECYCLE
    # =========================================================================

    def load(self) -> None:
        """Fetch workouts, exercises and memory from the remote store."""
        self.store.refresh()
        self.library.refresh()
        self.memory.refresh()
        logger.info(
            "SESSION: loaded %d workouts, %d exercises",
            len(self.store.workouts), len(self.library.exercises),
        )

    def greeting(self, user_name: Optional[str] = None) -> Message:
        name = f", {user_name}" if user_name else ""
        return self._append(Message(role="assistant", content=GREETING_TEXT.format(name=name)))

    def reset(self, user_name: Optional[str] = None) -> Message:
        """Start a new conversation; only the greeting survives."""
        with self._claim():
            self.messages = []
        return self.greeting(user_name)

    # =========================================================================
    # USER TURN
    # =========================================================================

    def send(self, text: str) -> Message:
        """Send one user message and return the assistant's reply."""
        text = text.strip()
        if not text:
            raise ValueError("Message is empty")

        with self._claim():
            self._append(Message(role="user", content=text))
            system_instruction = build_system_instruction(
                self.today(),
                self.library.exercises,
                self.store.workouts,
                self.memory.text,
                self.knowledge(text),
            )
            conversation = build_conversation(self.messages)

            try:
                raw = self.llm.generate(system_instruction, conversation)
            except (LLMError, requests.RequestException) as e:
                logger.error("SESSION: coach request failed: %s", e)
                return self._append(Message(role="assistant", content=CONNECTION_ERROR_TEXT))

            return self._append(self._handle_response(raw))

    def _handle_response(self, raw: str) -> Message:
        segmented = segment_response(raw)
        classified: ClassifiedResponse = classify_payloads(segmented.payloads, self.store.name_index())

        for action in classified.immediate_actions:
            self._run_immediate(action)

        content = apply_truncation_notice(
            segmented.display_text, segmented.had_truncated_block, classified.parsed_count
        )
        message = Message(role="assistant", content=content)
        if classified.plan is not None:
            message.workout_plan = classified.plan
            message.plan_tracker = ActionTracker(classified.plan)
        if classified.pending_action is not None:
            message.pending = ActionTracker(classified.pending_action)
            logger.info("SESSION: %s awaiting confirmation", classified.pending_action.type.value)
        return message

    def _run_immediate(self, action: ImmediateAction) -> SkillResult:
        if isinstance(action, CreateExercises):
            result = self.executor.create_exercises(action)
        elif isinstance(action, UpdateMemory):
            result = self.executor.update_memory(action)
        else:
            raise TypeError(f"Not an immediate action: {type(action).__name__}")
        if not result.success:
            logger.warning("SESSION: %s failed: %s", action.type.value, result.error)
        return result

    # =========================================================================
    # CONFIRMATION
    # =========================================================================

    def confirm(self, message_id: str) -> SkillResult:
        """Run the pending action of ``message_id`` after user approval."""
        with self._claim():
            message = self._pending_message(message_id)
            tracker = message.pending
            tracker.confirm()
            tracker.execute(self.executor.execute)
            result: SkillResult = tracker.result
            if tracker.state == ActionState.FAILED:
                message.content = f"{message.content}\n\n❌ {result.message}".lstrip()
            return result

    def cancel(self, message_id: str) -> None:
        with self._claim():
            message = self._pending_message(message_id)
            message.pending.cancel()
            message.content = f"{message.content}{CANCELLED_SUFFIX}"

    def accept_plan(self, message_id: str) -> Message:
        """Schedule the plan proposed in ``message_id`` and report back."""
        with self._claim():
            message = self.get_message(message_id)
            if message.plan_tracker is None:
                raise ValueError(f"Message {message_id} has no workout plan")
            tracker = message.plan_tracker
            tracker.confirm()
            tracker.execute(self.executor.schedule_plan)
            result: SkillResult = tracker.result
            if result.success:
                content = f"{result.message}\n\nWould you like me to help with anything else?"
            else:
                content = f"❌ {result.message}"
            return self._append(Message(role="assistant", content=content))

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_message(self, message_id: str) -> Message:
        for message in self.messages:
            if message.id == message_id:
                return message
        raise KeyError(message_id)

    def latest_pending(self) -> Optional[Message]:
        """Most recent message whose action still waits for the user."""
        for message in reversed(self.messages):
            if message.pending is not None and message.pending.state == ActionState.PENDING:
                return message
        return None

    def latest_plan(self) -> Optional[Message]:
        for message in reversed(self.messages):
            if message.plan_tracker is not None and message.plan_tracker.state == ActionState.PENDING:
                return message
        return None

    def _pending_message(self, message_id: str) -> Message:
        message = self.get_message(message_id)
        if message.pending is None:
            raise ValueError(f"Message {message_id} has no pending action")
        return message

    def _append(self, message: Message) -> Message:
        self.messages.append(message)
        return message

    def _claim(self) -> "_Claim":
        return _Claim(self._busy)


class _Claim:
    """Non-blocking hold on the session lock."""

    def __init__(self, lock: threading.Lock):
        self._lock = lock

    def __enter__(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise ConversationBusyError("A request for this conversation is already in flight")

    def __exit__(self, *exc) -> None:
        self._lock.release()


__all__ = [
    "CANCELLED_SUFFIX",
    "CONNECTION_ERROR_TEXT",
    "CoachSession",
    "ConversationBusyError",
    "Message",
]
