# repositories/watch_repository.py
from __future__ import annotations

import threading
from typing import Dict, List, Tuple

from eth_sniper.models.watch import WatchSubscription
from eth_sniper.utils.errors import ValidationError
from eth_sniper.utils.log_config import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)


class WatchRepository:
    """
    In-memory wallet subscriptions, shared by the bot (add/remove) and the
    monitor thread (list). The lock guards membership only; a subscription's
    cursor and seen hashes belong to the monitor poll handling it.
    """

    def __init__(self, max_per_chat: int = 10) -> None:
        self.max_per_chat = max_per_chat
        self._subs: Dict[Tuple[int, str], WatchSubscription] = {}
        self._lock = threading.Lock()

    @log_function
    def add(self, chat_id: int, address: str, cursor: int) -> Tuple[WatchSubscription, bool]:
        """Subscribe ``chat_id`` to ``address``; returns ``(subscription, created)``."""
        key = (chat_id, address.lower())
        with self._lock:
            existing = self._subs.get(key)
            if existing is not None:
                return existing, False
            count = sum(1 for k in self._subs if k[0] == chat_id)
            if count >= self.max_per_chat:
                raise ValidationError(f"This chat already watches {count} wallets (limit {self.max_per_chat}).")
            sub = WatchSubscription(chat_id=chat_id, address=address, cursor=cursor)
            self._subs[key] = sub
        logger.info(f"[watch] chat={chat_id} watching {address} from block {cursor}")
        return sub, True

    def contains(self, chat_id: int, address: str) -> bool:
        with self._lock:
            return (chat_id, address.lower()) in self._subs

    @log_function
    def remove(self, chat_id: int, address: str) -> bool:
        with self._lock:
            removed = self._subs.pop((chat_id, address.lower()), None)
        if removed:
            logger.info(f"[watch] chat={chat_id} stopped watching {address}")
        return removed is not None

    def remove_chat(self, chat_id: int) -> int:
        with self._lock:
            keys = [k for k in self._subs if k[0] == chat_id]
            for k in keys:
                del self._subs[k]
        if keys:
            logger.info(f"[watch] chat={chat_id} removed {len(keys)} subscriptions")
        return len(keys)

    def list_for_chat(self, chat_id: int) -> List[WatchSubscription]:
        with self._lock:
            return [s for k, s in self._subs.items() if k[0] == chat_id]

    def list_active(self) -> List[WatchSubscription]:
        """Snapshot of all subscriptions for one monitor cycle."""
        with self._lock:
            return list(self._subs.values())
