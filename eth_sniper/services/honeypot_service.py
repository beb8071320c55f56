"""
Service for detecting honeypot tokens.

honeypot.is simulates a buy and a sell against the token's main pair. A
honeypot is a token whose contract lets holders buy but blocks or taxes the
sell. The result is best-effort: when the simulation could not run, the
outcome is reported as unknown rather than as a honeypot.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from eth_sniper.utils.http import request_json
from eth_sniper.utils.logger import log_function, logger_manager

logger = logger_manager.setup_logger(__name__)


class SellSimulation(NamedTuple):
    failed: Optional[bool]  # None: simulation gave no verdict
    reason: Optional[str] = None
    buy_tax: Optional[float] = None
    sell_tax: Optional[float] = None


class HoneypotService:
    HONEYPOT_URL = "https://api.honeypot.is/v2/IsHoneypot"

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout

    @log_function
    def simulate_sell(self, address: str) -> SellSimulation:
        data = request_json(
            "GET", self.HONEYPOT_URL, "honeypot.is", self.timeout,
            params={"address": address, "chainID": 1},
        ) or {}

        sim = data.get("simulationResult") or {}
        buy_tax = sim.get("buyTax")
        sell_tax = sim.get("sellTax")

        result = data.get("honeypotResult")
        if not isinstance(result, dict) or "isHoneypot" not in result:
            logger.info(f"honeypot.is gave no verdict for {address}: {data.get('simulationError')}")
            return SellSimulation(None, data.get("simulationError"), buy_tax, sell_tax)

        is_hp = bool(result.get("isHoneypot"))
        return SellSimulation(is_hp, result.get("honeypotReason") if is_hp else None, buy_tax, sell_tax)
