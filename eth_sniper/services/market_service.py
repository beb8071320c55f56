# services/market_service.py
from __future__ import annotations
from typing import FrozenSet, NamedTuple, Optional

from eth_sniper.utils.http import request_json
from eth_sniper.utils.log_config import log_function


class TokenMarket(NamedTuple):
    price_usd: Optional[float]
    liquidity_usd: Optional[float]
    pools: FrozenSet[str]


def _to_float(value) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class MarketService:
    """
    Price and liquidity of an ERC-20 token on Ethereum from DexScreener.
    """
    BASE = "https://api.dexscreener.com/latest/dex/tokens"
    CHAIN = "ethereum"

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout

    @log_function
    def get_token_market(self, contract: str) -> TokenMarket:
        data = request_json("GET", f"{self.BASE}/{contract}", "dexscreener", self.timeout) or {}
        pairs = [p for p in (data.get("pairs") or []) if p.get("chainId") == self.CHAIN]
        if not pairs:
            return TokenMarket(None, None, frozenset())

        contract_lc = contract.lower()
        liquidity = 0.0
        best_price, best_liq = None, -1.0
        for p in pairs:
            liq = _to_float((p.get("liquidity") or {}).get("usd")) or 0.0
            liquidity += liq
            # priceUsd quotes the pair's base token only
            base = (p.get("baseToken") or {}).get("address", "").lower()
            price = _to_float(p.get("priceUsd"))
            if base == contract_lc and price is not None and liq > best_liq:
                best_price, best_liq = price, liq
        pools = frozenset(p["pairAddress"].lower() for p in pairs if p.get("pairAddress"))
        return TokenMarket(best_price, liquidity, pools)
