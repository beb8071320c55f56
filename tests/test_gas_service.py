"""
Tests for swap gas cost estimation.
"""

import pytest

from eth_sniper.services.gas_service import (
    UNISWAP_V2_SWAP_GAS,
    UNISWAP_V3_SWAP_GAS,
    GasService,
    compute_estimate,
)


class TestComputeEstimate:
    def test_v2_cost(self):
        est = compute_estimate(20.0, 2000.0)
        expected_eth = 20.0 * 1e-9 * UNISWAP_V2_SWAP_GAS * 1.03
        assert est.estimated_swap_units == UNISWAP_V2_SWAP_GAS
        assert est.cost_eth == pytest.approx(expected_eth)
        assert est.cost_usd == pytest.approx(expected_eth * 2000.0)

    def test_zero_gas_price(self):
        est = compute_estimate(0.0, 2000.0, UNISWAP_V3_SWAP_GAS)
        assert est.cost_eth == 0.0
        assert est.cost_usd == 0.0


class TestGasService:
    def test_estimate_reads_gateway(self, gateway):
        gateway.gas_gwei = 10.0
        gateway.eth_price = 3000.0
        est = GasService(gateway).estimate()
        assert est.gwei_price == 10.0
        assert est.cost_usd == pytest.approx(10.0 * 1e-9 * UNISWAP_V2_SWAP_GAS * 1.03 * 3000.0)

    def test_estimate_both_shares_one_read(self, gateway):
        v2, v3 = GasService(gateway).estimate_both()
        assert v3.cost_eth > v2.cost_eth
        assert gateway.calls["get_gas_price_gwei"] == 1
        assert gateway.calls["get_eth_price_usd"] == 1
