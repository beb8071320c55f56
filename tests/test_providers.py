"""
Tests for provider clients: HTTP error classification and response parsing.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from eth_sniper.services.alchemy_service import AlchemyService
from eth_sniper.services.etherscan_service import EtherscanService
from eth_sniper.services.goplus_service import GoplusService
from eth_sniper.services.honeypot_service import HoneypotService
from eth_sniper.services.market_service import MarketService
from eth_sniper.services.moralis_service import MoralisService
from eth_sniper.services.telegram_service import TelegramService
from eth_sniper.utils.errors import PermanentGatewayError, TransientGatewayError
from eth_sniper.utils.http import request_json

from tests.conftest import TOKEN, WALLET


def response(status=200, payload=None, bad_json=False):
    r = MagicMock()
    r.status_code = status
    r.ok = status < 400
    r.text = ""
    if bad_json:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = payload
    return r


# =============================================================================
# HTTP classification
# =============================================================================


class TestRequestJson:
    @patch("eth_sniper.utils.http.requests.request")
    def test_ok(self, req):
        req.return_value = response(payload={"a": 1})
        assert request_json("GET", "https://x", "p", 5) == {"a": 1}
        assert req.call_args.kwargs["timeout"] == 5

    @pytest.mark.parametrize("exc", [requests.Timeout("slow"), requests.ConnectionError("down")])
    @patch("eth_sniper.utils.http.requests.request")
    def test_network_errors_are_transient(self, req, exc):
        req.side_effect = exc
        with pytest.raises(TransientGatewayError):
            request_json("GET", "https://x", "p", 5)

    @pytest.mark.parametrize("status", [429, 500, 502, 503])
    @patch("eth_sniper.utils.http.requests.request")
    def test_throttle_and_server_errors_are_transient(self, req, status):
        req.return_value = response(status)
        with pytest.raises(TransientGatewayError):
            request_json("GET", "https://x", "p", 5)

    @pytest.mark.parametrize("status", [400, 401, 404])
    @patch("eth_sniper.utils.http.requests.request")
    def test_client_errors_are_permanent(self, req, status):
        req.return_value = response(status)
        with pytest.raises(PermanentGatewayError):
            request_json("GET", "https://x", "p", 5)

    @patch("eth_sniper.utils.http.requests.request")
    def test_invalid_json_is_permanent(self, req):
        req.return_value = response(bad_json=True)
        with pytest.raises(PermanentGatewayError):
            request_json("GET", "https://x", "p", 5)


# =============================================================================
# Alchemy
# =============================================================================


class TestAlchemy:
    @patch("eth_sniper.services.alchemy_service.request_json")
    def test_eth_balance(self, rj):
        rj.return_value = {"jsonrpc": "2.0", "id": 1, "result": "0xde0b6b3a7640000"}
        assert AlchemyService("key").get_eth_balance(WALLET) == pytest.approx(1.0)
        assert rj.call_args.kwargs["json"]["method"] == "eth_getBalance"

    @patch("eth_sniper.services.alchemy_service.request_json")
    def test_gas_price_in_gwei(self, rj):
        rj.return_value = {"result": hex(25 * 10 ** 9)}
        assert AlchemyService("key").get_gas_price_gwei() == pytest.approx(25.0)

    @patch("eth_sniper.services.alchemy_service.request_json")
    def test_rate_limit_error_is_transient(self, rj):
        rj.return_value = {"error": {"code": -32005, "message": "limit exceeded"}}
        with pytest.raises(TransientGatewayError):
            AlchemyService("key").get_block_number()

    @patch("eth_sniper.services.alchemy_service.request_json")
    def test_invalid_params_is_permanent(self, rj):
        rj.return_value = {"error": {"code": -32602, "message": "invalid address"}}
        with pytest.raises(PermanentGatewayError):
            AlchemyService("key").get_eth_balance("0xbad")

    @patch("eth_sniper.services.alchemy_service.request_json")
    def test_token_balances_skip_zero(self, rj):
        rj.return_value = {"result": {"tokenBalances": [
            {"contractAddress": TOKEN, "tokenBalance": "0x0a"},
            {"contractAddress": WALLET, "tokenBalance": "0x0"},
        ]}}
        assert AlchemyService("key").get_token_balances(WALLET) == [(TOKEN, 10)]

    @patch("eth_sniper.services.alchemy_service.request_json")
    def test_token_metadata(self, rj):
        rj.return_value = {"result": {"name": "Tether USD", "symbol": "USDT", "decimals": 6}}
        meta = AlchemyService("key").get_token_metadata(TOKEN)
        assert (meta.name, meta.symbol, meta.decimals) == ("Tether USD", "USDT", 6)


# =============================================================================
# Etherscan
# =============================================================================


def _etherscan_router(tokentx=None, txlist=None):
    def route(method, url, provider, timeout, params):
        action = params["action"]
        rows = {"tokentx": tokentx, "txlist": txlist}[action]
        if not rows:
            return {"status": "0", "message": "No transactions found", "result": []}
        return {"status": "1", "message": "OK", "result": rows}
    return route


class TestEtherscan:
    @patch("eth_sniper.services.etherscan_service.request_json")
    def test_eth_price(self, rj):
        rj.return_value = {"status": "1", "message": "OK", "result": {"ethusd": "3120.55"}}
        assert EtherscanService("key").get_eth_price() == 3120.55

    @patch("eth_sniper.services.etherscan_service.request_json")
    def test_history_merges_and_orders(self, rj):
        rj.side_effect = _etherscan_router(
            tokentx=[{
                "hash": "0xtoken", "from": WALLET, "to": TOKEN, "contractAddress": TOKEN,
                "tokenSymbol": "TST", "tokenName": "Test", "tokenDecimal": "6",
                "value": "2500000", "blockNumber": "20", "timeStamp": "1700000020",
            }],
            txlist=[{
                "hash": "0xnative", "from": TOKEN, "to": WALLET, "value": str(10 ** 18),
                "blockNumber": "10", "timeStamp": "1700000010", "isError": "1",
            }],
        )
        events, cursor_limit = EtherscanService("key").get_transactions(WALLET, 5)
        assert cursor_limit is None
        assert [e.hash for e in events] == ["0xnative", "0xtoken"]
        native, token = events
        assert native.is_native and native.amount == pytest.approx(1.0) and native.failed
        assert token.token_contract == TOKEN
        assert token.amount == pytest.approx(2.5)
        assert rj.call_args.kwargs["params"]["startblock"] == 5

    @patch("eth_sniper.services.etherscan_service.request_json")
    def test_no_transactions(self, rj):
        rj.side_effect = _etherscan_router()
        assert EtherscanService("key").get_transactions(WALLET, 0) == ([], None)

    @patch("eth_sniper.services.etherscan_service.request_json")
    def test_full_page_limits_cursor(self, rj):
        def row(tx_hash, block):
            return {"hash": tx_hash, "from": WALLET, "to": TOKEN, "value": "0",
                    "blockNumber": str(block), "timeStamp": str(1_700_000_000 + block)}

        rj.side_effect = _etherscan_router(
            tokentx=[dict(row("0xt1", 10), contractAddress=TOKEN), dict(row("0xt2", 11), contractAddress=TOKEN)],
            txlist=[row("0xn1", 30)],
        )
        events, cursor_limit = EtherscanService("key", page_size=2).get_transactions(WALLET, 0)
        assert [e.block_number for e in events] == [10, 11, 30]
        assert cursor_limit == 11

    @patch("eth_sniper.services.etherscan_service.request_json")
    def test_rate_limit_is_transient(self, rj):
        rj.return_value = {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"}
        with pytest.raises(TransientGatewayError):
            EtherscanService("key").get_eth_price()

    @patch("eth_sniper.services.etherscan_service.request_json")
    def test_bad_key_is_permanent(self, rj):
        rj.return_value = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}
        with pytest.raises(PermanentGatewayError):
            EtherscanService("key").get_transactions(WALLET, 0)


# =============================================================================
# DexScreener / GoPlus / honeypot.is / Moralis
# =============================================================================


class TestMarket:
    @patch("eth_sniper.services.market_service.request_json")
    def test_price_from_deepest_base_pair(self, rj):
        rj.return_value = {"pairs": [
            {"chainId": "ethereum", "pairAddress": "0xAAA", "priceUsd": "0.10",
             "baseToken": {"address": TOKEN}, "liquidity": {"usd": 1000}},
            {"chainId": "ethereum", "pairAddress": "0xBBB", "priceUsd": "0.12",
             "baseToken": {"address": TOKEN}, "liquidity": {"usd": 9000}},
            {"chainId": "ethereum", "pairAddress": "0xCCC", "priceUsd": "5",
             "baseToken": {"address": WALLET}, "liquidity": {"usd": 500}},
            {"chainId": "bsc", "pairAddress": "0xDDD", "priceUsd": "9",
             "baseToken": {"address": TOKEN}, "liquidity": {"usd": 99999}},
        ]}
        market = MarketService().get_token_market(TOKEN)
        assert market.price_usd == 0.12
        assert market.liquidity_usd == 10_500
        assert market.pools == frozenset({"0xaaa", "0xbbb", "0xccc"})

    @patch("eth_sniper.services.market_service.request_json")
    def test_no_pairs(self, rj):
        rj.return_value = {"pairs": None}
        assert MarketService().get_token_market(TOKEN).price_usd is None


@patch("eth_sniper.services.goplus_service.GoPlusToken")
class TestGoplus:
    def _node(self, **fields):
        node = MagicMock()
        node.to_dict.return_value = fields
        return node

    def test_security_flags(self, sdk):
        sdk.return_value.token_security.return_value = MagicMock(code=1, result={
            TOKEN.lower(): self._node(
                is_open_source="1", owner_address="", is_mintable="0",
                is_blacklisted="1", token_name="Test", token_symbol="TST",
            ),
        })
        sec = GoplusService().get_security(TOKEN)
        assert sec["is_verified"] is True
        assert sec["owner_address"] is None
        assert sec["is_mintable"] is False
        assert sec["has_blacklist"] is True
        assert sec["symbol"] == "TST"

    def test_missing_fields_are_unknown(self, sdk):
        sdk.return_value.token_security.return_value = MagicMock(code=1, result={TOKEN.lower(): self._node()})
        sec = GoplusService().get_security(TOKEN)
        assert sec["is_verified"] is None and sec["is_mintable"] is None

    def test_unknown_token_is_permanent(self, sdk):
        sdk.return_value.token_security.return_value = MagicMock(code=1, result={})
        with pytest.raises(PermanentGatewayError):
            GoplusService().get_security(TOKEN)

    def test_throttled_is_transient(self, sdk):
        sdk.return_value.token_security.return_value = MagicMock(code=4029, message="too many requests")
        with pytest.raises(TransientGatewayError):
            GoplusService().get_security(TOKEN)

    def test_sdk_exception_is_transient(self, sdk):
        sdk.return_value.token_security.side_effect = OSError("reset")
        with pytest.raises(TransientGatewayError):
            GoplusService().get_security(TOKEN)


class TestHoneypot:
    @patch("eth_sniper.services.honeypot_service.request_json")
    def test_honeypot_detected(self, rj):
        rj.return_value = {
            "honeypotResult": {"isHoneypot": True, "honeypotReason": "sell reverted"},
            "simulationResult": {"buyTax": 0, "sellTax": 100},
        }
        sim = HoneypotService().simulate_sell(TOKEN)
        assert sim.failed is True
        assert sim.reason == "sell reverted"
        assert sim.sell_tax == 100

    @patch("eth_sniper.services.honeypot_service.request_json")
    def test_clean_token(self, rj):
        rj.return_value = {"honeypotResult": {"isHoneypot": False}}
        assert HoneypotService().simulate_sell(TOKEN).failed is False

    @patch("eth_sniper.services.honeypot_service.request_json")
    def test_no_verdict_is_unknown(self, rj):
        rj.return_value = {"simulationSuccess": False, "simulationError": "no pairs"}
        sim = HoneypotService().simulate_sell(TOKEN)
        assert sim.failed is None


class TestMoralis:
    def test_without_key_returns_nothing(self, monkeypatch):
        monkeypatch.delenv("MORALIS_API", raising=False)
        assert MoralisService("").get_top_holders(TOKEN) == []

    @patch("eth_sniper.services.moralis_service.request_json")
    def test_parses_holders(self, rj):
        rj.return_value = {"result": [
            {"owner_address": WALLET, "percentage_relative_to_total_supply": 12.5,
             "owner_address_label": "Uniswap V2: Pair", "is_contract": True},
            {"percentage_relative_to_total_supply": 3},
        ]}
        holders = MoralisService("key").get_top_holders(TOKEN)
        assert len(holders) == 1
        assert holders[0].percentage == 12.5
        assert holders[0].label == "Uniswap V2: Pair"


# =============================================================================
# Telegram push
# =============================================================================


class TestTelegramService:
    def test_send_ok(self):
        http = MagicMock()
        http.post.return_value = response(200, {"ok": True})
        assert TelegramService("t", session=http).send(5, "hi") is True
        assert http.post.call_args.kwargs["json"]["chat_id"] == 5

    def test_forbidden_drops_chat(self):
        http = MagicMock()
        http.post.return_value = response(403)
        gone = MagicMock()
        assert TelegramService("t", session=http, on_unreachable=gone).send(5, "hi") is False
        gone.assert_called_once_with(5)

    def test_network_error(self):
        http = MagicMock()
        http.post.side_effect = requests.ConnectionError("down")
        assert TelegramService("t", session=http).send(5, "hi") is False
