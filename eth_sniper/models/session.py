"""
Represents the conversation of one chat with the bot.

Only the conversation controller mutates sessions. ``generation`` changes
whenever the session is reset so that work started for an older command can
tell its result is no longer wanted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from eth_sniper.enums.conversation_state import ConversationState
from eth_sniper.models.command import CommandSpec, ParamDescriptor
from eth_sniper.models.trade_intent import TradeIntent


@dataclass
class ChatSession:
    chat_id: int
    created_at: float
    last_activity: float
    state: ConversationState = ConversationState.IDLE
    command: Optional[CommandSpec] = None
    values: List[Any] = field(default_factory=list)
    step: int = 0
    failures: int = 0
    intent: Optional[TradeIntent] = None
    generation: int = 0

    @property
    def is_idle(self) -> bool:
        return self.state is ConversationState.IDLE

    @property
    def current_param(self) -> Optional[ParamDescriptor]:
        if self.command is None or self.step >= len(self.command.params):
            return None
        return self.command.params[self.step]

    def reset(self, state: ConversationState = ConversationState.IDLE) -> None:
        self.state = state
        self.command = None
        self.values = []
        self.step = 0
        self.failures = 0
        self.intent = None
        self.generation += 1
        # CANCELLED / COMPLETED are never observable once the reply is built
        if state in (ConversationState.CANCELLED, ConversationState.COMPLETED):
            self.state = ConversationState.IDLE
