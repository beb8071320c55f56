# services/trade_intent_service.py
from __future__ import annotations
import math
import time
from typing import Callable

from eth_sniper.enums.trade_direction import TradeDirection
from eth_sniper.models.trade_intent import TradeIntent
from eth_sniper.utils.errors import ValidationError
from eth_sniper.utils.log_config import logger_manager

logger = logger_manager.setup_logger(__name__)


def build_intent(
    direction: TradeDirection,
    wallet: str,
    usd_amount: float,
    slippage_percent: float,
    current_price: float,
    token_address: str = "",
    created_at: int | None = None,
) -> TradeIntent:
    """
    Size a trade in tokens and derive its slippage bound.

    - token amount = usd / price
    - buy: minimum out = amount * (1 - slippage/100)
    - sell: maximum in = amount * (1 + slippage/100)
    """
    if not (isinstance(current_price, (int, float)) and math.isfinite(current_price)) or current_price <= 0:
        raise ValidationError(f"Token price must be positive, got {current_price}")
    if not math.isfinite(usd_amount) or usd_amount <= 0:
        raise ValidationError(f"USD amount must be positive, got {usd_amount}")
    if not math.isfinite(slippage_percent) or not (0 < slippage_percent <= 100):
        raise ValidationError(f"Slippage must be in (0, 100], got {slippage_percent}")

    direction = TradeDirection(direction)
    token_amount = usd_amount / current_price
    factor = slippage_percent / 100.0
    if direction is TradeDirection.BUY:
        bound = token_amount * (1 - factor)
    else:
        bound = token_amount * (1 + factor)
    if not (math.isfinite(token_amount) and math.isfinite(bound)):
        raise ValidationError("Trade size overflows; use a smaller amount")

    return TradeIntent(
        direction=direction,
        wallet_address=wallet,
        token_address=token_address,
        usd_amount=usd_amount,
        slippage_percent=slippage_percent,
        token_amount=token_amount,
        bound_amount=bound,
        reference_price=float(current_price),
        created_at=int(time.time()) if created_at is None else created_at,
    )


class TradeIntentService:
    """
    Prepares trade intents for the operator wallet. Nothing is signed or sent.
    """

    def __init__(self, wallet_address: str, clock: Callable[[], float] = time.time) -> None:
        self.wallet_address = wallet_address
        self._clock = clock

    def build_intent(
        self,
        direction: TradeDirection,
        usd_amount: float,
        slippage_percent: float,
        current_price: float,
        token_address: str = "",
    ) -> TradeIntent:
        intent = build_intent(
            direction,
            self.wallet_address,
            usd_amount,
            slippage_percent,
            current_price,
            token_address=token_address,
            created_at=int(self._clock()),
        )
        logger.info(
            f"📝 [intent] {intent.direction.value} ${intent.usd_amount:.2f} of {token_address or 'token'} "
            f"≈ {intent.token_amount:.6g} @ {intent.reference_price:.6g} (bound {intent.bound_amount:.6g})"
        )
        return intent
