# services/gas_service.py
from __future__ import annotations

from eth_sniper.models.gas import GasEstimate
from eth_sniper.utils.log_config import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)

# Measured gas of a single-hop swap on each router
UNISWAP_V2_SWAP_GAS = 152809
UNISWAP_V3_SWAP_GAS = 184523
GAS_BUFFER = 1.03


def compute_estimate(gwei_price: float, eth_price_usd: float, swap_units: int = UNISWAP_V2_SWAP_GAS) -> GasEstimate:
    cost_eth = gwei_price * swap_units * GAS_BUFFER / 1e9
    return GasEstimate(
        gwei_price=gwei_price,
        estimated_swap_units=swap_units,
        cost_eth=cost_eth,
        cost_usd=cost_eth * eth_price_usd,
    )


class GasService:
    """
    Swap cost in ETH and USD from the current gas price and ETH/USD rate.
    """

    def __init__(self, gateway) -> None:
        self.gateway = gateway

    @log_function
    def estimate(self, swap_units: int = UNISWAP_V2_SWAP_GAS) -> GasEstimate:
        gwei = self.gateway.get_gas_price_gwei()
        eth_usd = self.gateway.get_eth_price_usd()
        return compute_estimate(gwei, eth_usd, swap_units)

    def estimate_both(self) -> tuple[GasEstimate, GasEstimate]:
        """V2 and V3 estimates from one gas price and ETH/USD read."""
        gwei = self.gateway.get_gas_price_gwei()
        eth_usd = self.gateway.get_eth_price_usd()
        return (
            compute_estimate(gwei, eth_usd, UNISWAP_V2_SWAP_GAS),
            compute_estimate(gwei, eth_usd, UNISWAP_V3_SWAP_GAS),
        )
