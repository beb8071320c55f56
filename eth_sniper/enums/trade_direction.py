from __future__ import annotations

from enum import Enum


class TradeDirection(str, Enum):
    BUY = "buy"
    SELL = "sell"
