# services/etherscan_service.py
from __future__ import annotations
import os
from typing import Any, List, Optional, Tuple

from eth_sniper.models.transaction import TransactionEvent
from eth_sniper.utils.errors import PermanentGatewayError, TransientGatewayError
from eth_sniper.utils.http import request_json
from eth_sniper.utils.log_config import logger_manager
from eth_sniper.utils.web3_utils import scale_amount, wei_to_eth

logger = logger_manager.setup_logger(__name__)

MAX_END_BLOCK = 99_999_999


class EtherscanService:
    """
    Etherscan API (v2, mainnet): ETH/USD price and wallet history, both
    normal transactions and ERC-20 transfers.

    Config from .env:
      - ETHERSCAN_API (API key, required)
      - ETHERSCAN_BASE_URL (default: https://api.etherscan.io/v2/api)
    """

    def __init__(self, api_key: str | None = None, timeout: float = 5.0,
                 base_url: str | None = None, page_size: int = 100) -> None:
        self.api_key = api_key or os.getenv("ETHERSCAN_API") or ""
        self.timeout = timeout
        self.page_size = page_size
        self.base_url = (base_url or os.getenv("ETHERSCAN_BASE_URL")
                         or "https://api.etherscan.io/v2/api").rstrip("/")

    def _get(self, **params: Any) -> Any:
        params.update({"chainid": 1, "apikey": self.api_key})
        data = request_json("GET", self.base_url, "etherscan", self.timeout, params=params) or {}
        if str(data.get("status")) == "1":
            return data.get("result")

        message = str(data.get("message") or "")
        result = data.get("result")
        if message.startswith("No transactions found") or result == []:
            return []
        detail = str(result or message or "unknown error")
        if "rate limit" in detail.lower():
            raise TransientGatewayError(f"etherscan: {detail}", provider="etherscan")
        raise PermanentGatewayError(f"etherscan: {detail}", provider="etherscan")

    def get_eth_price(self) -> float:
        result = self._get(module="stats", action="ethprice")
        try:
            return float(result["ethusd"])
        except (TypeError, KeyError, ValueError) as e:
            raise PermanentGatewayError("etherscan: malformed ethprice result", provider="etherscan") from e

    def _history(self, action: str, address: str, start_block: int) -> list[dict]:
        return self._get(
            module="account", action=action, address=address,
            startblock=start_block, endblock=MAX_END_BLOCK,
            page=1, offset=self.page_size, sort="asc",
        ) or []

    def get_transactions(self, address: str, start_block: int) -> Tuple[List[TransactionEvent], Optional[int]]:
        """
        Normal and ERC-20 transfer transactions from ``start_block`` on, oldest
        first, plus the highest block the caller's cursor may move to.

        Each list is one page. When a page is full, rows past its last block
        were not fetched, so the next poll has to start again at its last block.
        ``None`` means both lists came back short.
        """
        events: List[TransactionEvent] = []
        token_rows = self._history("tokentx", address, start_block)
        native_rows = self._history("txlist", address, start_block)
        bounds = [int(rows[-1]["blockNumber"]) for rows in (token_rows, native_rows) if len(rows) >= self.page_size]
        cursor_limit = min(bounds) if bounds else None
        # token transfers first: when a hash is in both lists the transfer says more
        for tx in token_rows:
            events.append(TransactionEvent(
                hash=tx["hash"],
                from_address=tx.get("from") or "",
                to_address=tx.get("to") or "",
                token_contract=tx.get("contractAddress"),
                token_symbol=tx.get("tokenSymbol") or "?",
                token_name=tx.get("tokenName") or "",
                amount=scale_amount(int(tx.get("value") or 0), int(tx.get("tokenDecimal") or 0)),
                block_number=int(tx["blockNumber"]),
                timestamp=int(tx.get("timeStamp") or 0),
            ))
        for tx in native_rows:
            events.append(TransactionEvent(
                hash=tx["hash"],
                from_address=tx.get("from") or "",
                to_address=tx.get("to") or tx.get("contractAddress") or "",
                amount=wei_to_eth(int(tx.get("value") or 0)),
                block_number=int(tx["blockNumber"]),
                timestamp=int(tx.get("timeStamp") or 0),
                failed=str(tx.get("isError", "0")) == "1",
            ))
        # stable sort keeps transfers ahead of their parent transaction
        events.sort(key=lambda e: (e.block_number, e.timestamp))
        logger.debug(f"[etherscan] {address} since {start_block}: {len(events)} tx")
        if cursor_limit is not None:
            logger.info(f"[etherscan] {address}: full page, cursor held at block {cursor_limit}")
        return events, cursor_limit
