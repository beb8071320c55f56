"""
A chat's subscription to a wallet address.

The cursor is the lowest block that may still hold transactions the
subscription has not seen. It only moves forward. Transactions in the cursor
block are fetched again on the next poll, so ``seen`` filters them out.
``cursor`` and ``seen`` are mutated only by the poll that owns the
subscription during a monitor cycle.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field

DEFAULT_SEEN_CAP = 500


@dataclass
class WatchSubscription:
    chat_id: int
    address: str
    cursor: int = 0
    seen_cap: int = DEFAULT_SEEN_CAP
    seen: "OrderedDict[str, None]" = field(default_factory=OrderedDict)

    @property
    def key(self) -> tuple[int, str]:
        return (self.chat_id, self.address.lower())

    def has_seen(self, tx_hash: str) -> bool:
        return tx_hash.lower() in self.seen

    def mark_seen(self, tx_hash: str) -> None:
        h = tx_hash.lower()
        self.seen[h] = None
        self.seen.move_to_end(h)
        while len(self.seen) > self.seen_cap:
            self.seen.popitem(last=False)

    def advance(self, next_cursor: int | None) -> None:
        if next_cursor is not None and next_cursor > self.cursor:
            self.cursor = next_cursor
