"""
Session repository for the conversation controller.

Stores one ``ChatSession`` per chat in memory. It is only used from the bot's
event loop, through ``ConversationController``, so it needs no locking.
"""

from __future__ import annotations

from typing import Collection, Dict, List

from eth_sniper.models.session import ChatSession


class SessionRepository:
    """Repository for the conversation state of each chat."""

    def __init__(self) -> None:
        self._sessions: Dict[int, ChatSession] = {}

    def get(self, chat_id: int) -> ChatSession | None:
        return self._sessions.get(chat_id)

    def get_or_create(self, chat_id: int, now: float) -> ChatSession:
        session = self._sessions.get(chat_id)
        if session is None:
            session = ChatSession(chat_id=chat_id, created_at=now, last_activity=now)
            self._sessions[chat_id] = session
        return session

    def expire_stale(self, now: float, timeout: float, skip: Collection[int] = ()) -> List[int]:
        """Reset every non-idle session inactive for ``timeout`` seconds, except chats in ``skip``."""
        expired = []
        for chat_id, session in self._sessions.items():
            if chat_id in skip:
                continue
            if not session.is_idle and now - session.last_activity >= timeout:
                session.reset()
                expired.append(chat_id)
        return expired
