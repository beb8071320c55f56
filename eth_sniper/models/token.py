"""
Domain models describing ERC-20 tokens.

``TokenMetadata``, ``Holder``, ``ContractMetadata`` and ``TokenBalance`` are
what the data gateway reports. ``TokenProfile`` is the risk scanner's verdict
for a contract and is cached as an immutable snapshot.
"""

from __future__ import annotations

from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from eth_sniper.enums.risk_flag import RiskFlag


class TokenMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    symbol: str = ""
    decimals: int = 18


class Holder(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    percentage: float  # share of total supply, 0..100
    label: Optional[str] = None
    is_contract: bool = False


class ContractMetadata(BaseModel):
    """Contract-level signals; ``None`` means the provider could not tell."""

    model_config = ConfigDict(frozen=True)

    address: str
    token: TokenMetadata = Field(default_factory=TokenMetadata)
    is_verified: Optional[bool] = None
    owner_address: Optional[str] = None
    is_mintable: Optional[bool] = None
    has_blacklist: Optional[bool] = None
    liquidity_usd: Optional[float] = None
    liquidity_pools: FrozenSet[str] = frozenset()
    sell_simulation_failed: Optional[bool] = None
    honeypot_reason: Optional[str] = None
    buy_tax: Optional[float] = None
    sell_tax: Optional[float] = None


class TokenBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    contract: str
    token: TokenMetadata
    balance: float
    balance_usd: Optional[float] = None


class TokenProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    contract: str
    metadata: TokenMetadata
    risk_score: int
    flags: FrozenSet[RiskFlag] = frozenset()
    scanned_at: float
    notes: List[str] = Field(default_factory=list)
    # honeypot.is simulation, percent; None when the simulation gave no figures
    buy_tax: Optional[float] = None
    sell_tax: Optional[float] = None
    honeypot_reason: Optional[str] = None

    @property
    def is_blocking(self) -> bool:
        return RiskFlag.SUSPECTED_HONEYPOT in self.flags
