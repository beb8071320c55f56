"""
Enumeration for the states of a chat conversation.

``CANCELLED`` and ``COMPLETED`` are transient: the conversation controller
collapses them back to ``IDLE`` as soon as it has replied.
"""

from __future__ import annotations

from enum import Enum


class ConversationState(str, Enum):
    """Possible states of a chat session."""

    IDLE = "idle"
    COLLECTING_PARAM = "collecting_param"
    CONFIRMING = "confirming"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
