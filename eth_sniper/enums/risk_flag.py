"""
Risk flags the token scanner can raise for a contract.
"""

from __future__ import annotations

from enum import Enum


class RiskFlag(str, Enum):
    """Discrete heuristic findings about a token contract."""

    HIGH_HOLDER_CONCENTRATION = "HighHolderConcentration"
    UNVERIFIED_CONTRACT = "UnverifiedContract"
    OWNERSHIP_NOT_RENOUNCED = "OwnershipNotRenounced"
    MINT_FUNCTION_PRESENT = "MintFunctionPresent"
    BLACKLIST_FUNCTION_PRESENT = "BlacklistFunctionPresent"
    LOW_LIQUIDITY = "LowLiquidity"
    SUSPECTED_HONEYPOT = "SuspectedHoneypot"
