# services/alchemy_service.py
from __future__ import annotations
import os
from typing import Any, List, Tuple

from eth_sniper.models.token import TokenMetadata
from eth_sniper.utils.errors import PermanentGatewayError, TransientGatewayError
from eth_sniper.utils.http import request_json
from eth_sniper.utils.log_config import logger_manager
from eth_sniper.utils.web3_utils import hex_to_int, wei_to_eth, wei_to_gwei

logger = logger_manager.setup_logger(__name__)

# JSON-RPC error codes Alchemy uses for throttling
_RATE_LIMIT_CODES = {429, -32005}


class AlchemyService:
    """
    Ethereum mainnet JSON-RPC through Alchemy: ETH balance, gas price, latest
    block, ERC-20 balances and token metadata.

    Config from .env:
      - ALCHEMY_API (API key, required)
      - ALCHEMY_BASE_URL (default: https://eth-mainnet.g.alchemy.com/v2)
    """

    def __init__(self, api_key: str | None = None, timeout: float = 5.0, base_url: str | None = None) -> None:
        self.api_key = api_key or os.getenv("ALCHEMY_API") or ""
        self.timeout = timeout
        self.base_url = (base_url or os.getenv("ALCHEMY_BASE_URL")
                         or "https://eth-mainnet.g.alchemy.com/v2").rstrip("/")

    def _rpc(self, method: str, params: list | None = None) -> Any:
        payload = {"id": 1, "jsonrpc": "2.0", "method": method, "params": params or []}
        data = request_json("POST", f"{self.base_url}/{self.api_key}", "alchemy", self.timeout, json=payload)
        err = data.get("error") if isinstance(data, dict) else None
        if err:
            code = err.get("code")
            msg = err.get("message") or "unknown error"
            if code in _RATE_LIMIT_CODES:
                raise TransientGatewayError(f"alchemy {method}: {msg}", provider="alchemy")
            raise PermanentGatewayError(f"alchemy {method}: {msg}", provider="alchemy")
        return data.get("result")

    def get_eth_balance(self, address: str) -> float:
        return wei_to_eth(self._rpc("eth_getBalance", [address, "latest"]) or "0x0")

    def get_gas_price_gwei(self) -> float:
        return wei_to_gwei(self._rpc("eth_gasPrice") or "0x0")

    def get_block_number(self) -> int:
        return hex_to_int(self._rpc("eth_blockNumber"))

    def get_token_balances(self, address: str) -> List[Tuple[str, int]]:
        """Non-zero ERC-20 balances as ``(contract, raw_amount)`` pairs."""
        result = self._rpc("alchemy_getTokenBalances", [address, "erc20"]) or {}
        balances = []
        for tb in result.get("tokenBalances", []) or []:
            raw = hex_to_int(tb.get("tokenBalance") or "0x0")
            if raw > 0 and tb.get("contractAddress"):
                balances.append((tb["contractAddress"], raw))
        logger.debug(f"[alchemy] {address}: {len(balances)} non-zero token balances")
        return balances

    def get_token_metadata(self, contract: str) -> TokenMetadata:
        result = self._rpc("alchemy_getTokenMetadata", [contract]) or {}
        decimals = result.get("decimals")
        return TokenMetadata(
            name=result.get("name") or "",
            symbol=result.get("symbol") or "",
            decimals=int(decimals) if decimals is not None else 18,
        )
