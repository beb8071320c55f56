"""
Tests for the blockchain gateway: retry policy, caching and metadata assembly.
"""

from unittest.mock import MagicMock

import pytest

from eth_sniper.models.token import TokenMetadata
from eth_sniper.services.gateway_service import MAX_PORTFOLIO_TOKENS, BlockchainGateway
from eth_sniper.services.honeypot_service import SellSimulation
from eth_sniper.services.market_service import TokenMarket
from eth_sniper.utils.errors import PermanentGatewayError, TransientGatewayError

from tests.conftest import TOKEN, WALLET, make_event


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def providers():
    return {name: MagicMock() for name in ("alchemy", "etherscan", "moralis", "market", "goplus", "honeypot")}


@pytest.fixture
def gw(providers, sleeps):
    return BlockchainGateway(**providers, retries=3, backoff=0.5, sleep_fn=sleeps.append)


class TestRetries:
    def test_transient_then_success(self, gw, providers, sleeps):
        providers["alchemy"].get_gas_price_gwei.side_effect = [
            TransientGatewayError("timeout"),
            TransientGatewayError("429"),
            12.5,
        ]
        assert gw.get_gas_price_gwei() == 12.5
        assert sleeps == [0.5, 1.0]

    def test_gives_up_after_all_attempts(self, gw, providers, sleeps):
        providers["alchemy"].get_block_number.side_effect = TransientGatewayError("503")
        with pytest.raises(TransientGatewayError):
            gw.get_latest_block()
        assert providers["alchemy"].get_block_number.call_count == 4
        assert sleeps == [0.5, 1.0, 2.0]

    def test_permanent_not_retried(self, gw, providers, sleeps):
        providers["alchemy"].get_eth_balance.side_effect = PermanentGatewayError("bad address")
        with pytest.raises(PermanentGatewayError):
            gw.get_eth_balance(WALLET)
        assert providers["alchemy"].get_eth_balance.call_count == 1
        assert sleeps == []


class TestPrices:
    def test_eth_price_cached(self, gw, providers):
        providers["etherscan"].get_eth_price.return_value = 2500.0
        assert gw.get_eth_price_usd() == 2500.0
        assert gw.get_eth_price_usd() == 2500.0
        assert providers["etherscan"].get_eth_price.call_count == 1

    def test_token_price(self, gw, providers):
        providers["market"].get_token_market.return_value = TokenMarket(0.25, 50_000.0, frozenset())
        assert gw.get_token_price_usd(TOKEN) == 0.25

    def test_token_without_market_is_permanent(self, gw, providers):
        providers["market"].get_token_market.return_value = TokenMarket(None, None, frozenset())
        with pytest.raises(PermanentGatewayError):
            gw.get_token_price_usd(TOKEN)


class TestHistory:
    def test_next_cursor_is_highest_block(self, gw, providers):
        providers["etherscan"].get_transactions.return_value = ([make_event("0x1", 7), make_event("0x2", 9)], None)
        events, cursor = gw.get_transactions(WALLET, 5)
        assert len(events) == 2
        assert cursor == 9
        providers["etherscan"].get_transactions.assert_called_once_with(WALLET, 5)

    def test_no_events_keeps_cursor(self, gw, providers):
        providers["etherscan"].get_transactions.return_value = ([], None)
        assert gw.get_transactions(WALLET, 42) == ([], 42)

    def test_truncated_page_holds_cursor(self, gw, providers):
        # transfers filled their page at block 11; normal transactions reached block 30
        events = [make_event("0xa", 10), make_event("0xb", 11), make_event("0xc", 30)]
        providers["etherscan"].get_transactions.return_value = (events, 11)
        got, cursor = gw.get_transactions(WALLET, 5)
        assert len(got) == 3
        assert cursor == 11

    def test_truncated_page_never_moves_cursor_back(self, gw, providers):
        providers["etherscan"].get_transactions.return_value = ([make_event("0xa", 8)], 3)
        assert gw.get_transactions(WALLET, 5)[1] == 5


class TestBalances:
    def test_token_balances_scaled_by_decimals(self, gw, providers):
        providers["alchemy"].get_token_balances.return_value = [(TOKEN, 1_500_000)]
        providers["alchemy"].get_token_metadata.return_value = TokenMetadata(name="USD Coin", symbol="USDC", decimals=6)
        balances = gw.get_token_balances(WALLET)
        assert balances[0].balance == pytest.approx(1.5)
        assert balances[0].token.symbol == "USDC"

    def test_token_balances_capped(self, gw, providers):
        rows = [("0x" + f"{i:040x}", 10 ** 18) for i in range(1, 40)]
        providers["alchemy"].get_token_balances.return_value = rows
        providers["alchemy"].get_token_metadata.return_value = TokenMetadata()
        assert len(gw.get_token_balances(WALLET)) == MAX_PORTFOLIO_TOKENS


class TestContractMetadata:
    def _security(self, **overrides):
        data = {
            "is_verified": True, "owner_address": None, "is_mintable": False,
            "has_blacklist": False, "name": "GoPlus Name", "symbol": "GPN",
        }
        data.update(overrides)
        return data

    def test_combines_all_sources(self, gw, providers):
        providers["goplus"].get_security.return_value = self._security(is_mintable=True)
        providers["alchemy"].get_token_metadata.return_value = TokenMetadata(name="Test", symbol="TST", decimals=9)
        providers["market"].get_token_market.return_value = TokenMarket(1.0, 12_345.0, frozenset({"0xpair"}))
        providers["honeypot"].simulate_sell.return_value = SellSimulation(True, "transfer blocked", 0.0, 99.0)

        meta = gw.get_contract_metadata(TOKEN)
        assert meta.token == TokenMetadata(name="Test", symbol="TST", decimals=9)
        assert meta.is_mintable is True
        assert meta.liquidity_usd == 12_345.0
        assert meta.liquidity_pools == frozenset({"0xpair"})
        assert meta.sell_simulation_failed is True
        assert meta.honeypot_reason == "transfer blocked"
        assert meta.sell_tax == 99.0

    def test_optional_sources_degrade_to_unknown(self, gw, providers):
        providers["goplus"].get_security.return_value = self._security()
        providers["alchemy"].get_token_metadata.side_effect = PermanentGatewayError("nope")
        providers["market"].get_token_market.side_effect = TransientGatewayError("down")
        providers["honeypot"].simulate_sell.side_effect = PermanentGatewayError("nope")

        meta = gw.get_contract_metadata(TOKEN)
        assert meta.token.name == "GoPlus Name"
        assert meta.liquidity_usd is None
        assert meta.sell_simulation_failed is None

    def test_goplus_failure_propagates(self, gw, providers):
        providers["goplus"].get_security.side_effect = PermanentGatewayError("unknown token")
        with pytest.raises(PermanentGatewayError):
            gw.get_contract_metadata(TOKEN)
