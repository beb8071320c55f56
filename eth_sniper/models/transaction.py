"""
A transaction observed on a watched wallet.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class TransactionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    from_address: str
    to_address: str
    token_contract: Optional[str] = None  # None for native ETH transfers
    token_symbol: str = "ETH"
    token_name: str = "Ether"
    amount: float = 0.0
    block_number: int
    timestamp: int
    failed: bool = False

    @property
    def is_native(self) -> bool:
        return self.token_contract is None
