"""
Represents a prepared, never executed, buy or sell of an ERC-20 token.

The intent is an immutable snapshot of the parameters and the price used to
compute the token amount and its slippage bound.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from eth_sniper.enums.trade_direction import TradeDirection


class TradeIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: TradeDirection
    wallet_address: str
    token_address: str = ""
    usd_amount: float
    slippage_percent: float
    token_amount: float
    # buy: minimum tokens out; sell: maximum tokens in
    bound_amount: float
    reference_price: float
    created_at: int
