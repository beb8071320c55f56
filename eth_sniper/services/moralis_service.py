# services/moralis_service.py
from __future__ import annotations
import os
from typing import List

from eth_sniper.models.token import Holder
from eth_sniper.utils.http import request_json
from eth_sniper.utils.log_config import logger_manager

logger = logger_manager.setup_logger(__name__)


class MoralisService:
    """
    Top token holders from the Moralis deep index.

    Config from .env:
      - MORALIS_API (API key; without it holder analysis is skipped)
    """
    BASE = "https://deep-index.moralis.io/api/v2.2"

    def __init__(self, api_key: str | None = None, timeout: float = 5.0) -> None:
        self.api_key = api_key or os.getenv("MORALIS_API") or ""
        self.timeout = timeout
        if not self.api_key:
            logger.warning("MoralisService without MORALIS_API; holder concentration will not be checked.")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def get_top_holders(self, contract: str, limit: int = 10) -> List[Holder]:
        if not self.enabled:
            return []
        data = request_json(
            "GET", f"{self.BASE}/erc20/{contract}/owners", "moralis", self.timeout,
            params={"chain": "eth", "order": "DESC", "limit": limit},
            headers={"X-API-Key": self.api_key, "accept": "application/json"},
        ) or {}
        holders = []
        for row in data.get("result", []) or []:
            try:
                holders.append(Holder(
                    address=row["owner_address"],
                    percentage=float(row.get("percentage_relative_to_total_supply") or 0.0),
                    label=row.get("owner_address_label"),
                    is_contract=bool(row.get("is_contract")),
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"[moralis] holder row skipped: {e}")
        return holders
