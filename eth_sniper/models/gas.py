from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class GasEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    gwei_price: float
    estimated_swap_units: int
    cost_eth: float
    cost_usd: float
