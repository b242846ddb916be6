"""Conversation layer: instruction assembly, confirmation, session."""

from .confirmation import ActionState, ActionTracker, InvalidTransitionError
from .orchestrator import CoachSession, ConversationBusyError, Message

__all__ = [
    "ActionState",
    "ActionTracker",
    "CoachSession",
    "ConversationBusyError",
    "InvalidTransitionError",
    "Message",
]
