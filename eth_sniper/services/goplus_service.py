# services/goplus_service.py
from __future__ import annotations
import os
from typing import Any, Dict, Optional

from goplus.token import Token as GoPlusToken

from eth_sniper.utils.errors import PermanentGatewayError, TransientGatewayError
from eth_sniper.utils.logger import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)

ETHEREUM_CHAIN_ID = "1"
# GoPlus answers 4029 when the caller is throttled
_RATE_LIMIT_CODES = {4029}


def _flag(value: Any) -> Optional[bool]:
    """GoPlus encodes booleans as "1"/"0"; anything else is unknown."""
    if value is None or value == "":
        return None
    return str(value) == "1"


class GoplusService:
    """
    Token security data through the official GoPlus SDK.
    Returns the contract security node for a token on Ethereum mainnet.
    """

    def __init__(self, access_token: str | None = None, timeout: float = 5.0):
        self.access_token = access_token or os.getenv("GOPLUS_ACCESS_TOKEN") or None
        self.timeout = timeout
        self.client = GoPlusToken(access_token=self.access_token)

    @log_function
    def get_token_data(self, address: str) -> Dict[str, Any]:
        """
        Call GoPlus and return the token's security node as a dict.
        """
        try:
            resp = self.client.token_security(
                chain_id=ETHEREUM_CHAIN_ID,
                addresses=[address],
                **{"_request_timeout": self.timeout}
            )
        except Exception as e:
            # SDK surfaces urllib3/HTTP failures as assorted exception types
            raise TransientGatewayError(f"goplus: {type(e).__name__}: {e}", provider="goplus") from e

        code = getattr(resp, "code", 1)
        if code != 1:
            message = getattr(resp, "message", "") or "error"
            if code in _RATE_LIMIT_CODES:
                raise TransientGatewayError(f"goplus: {message}", provider="goplus")
            raise PermanentGatewayError(f"goplus: {message}", provider="goplus")

        result = getattr(resp, "result", None)
        if not isinstance(result, dict):
            raise TransientGatewayError("goplus: unexpected response shape", provider="goplus")

        addr_lower = address.lower()
        for k, v in result.items():
            if k.lower() == addr_lower:
                return v.to_dict() if hasattr(v, "to_dict") else dict(v)

        raise PermanentGatewayError(f"goplus: no security data for {address}", provider="goplus")

    def get_security(self, address: str) -> Dict[str, Any]:
        """Normalised contract signals: verification, owner, mint, blacklist, names."""
        data = self.get_token_data(address)
        return {
            "is_verified": _flag(data.get("is_open_source")),
            "owner_address": data.get("owner_address") or None,
            "is_mintable": _flag(data.get("is_mintable")),
            "has_blacklist": _flag(data.get("is_blacklisted")),
            "name": data.get("token_name") or "",
            "symbol": data.get("token_symbol") or "",
        }
