"""
Shared fixtures: an in-memory gateway fake and a fully wired command stack.
"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")

from typing import Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402

from eth_sniper.controllers.command_controller import CommandController  # noqa: E402
from eth_sniper.controllers.conversation_controller import ConversationController  # noqa: E402
from eth_sniper.models.token import ContractMetadata, Holder, TokenBalance, TokenMetadata  # noqa: E402
from eth_sniper.models.transaction import TransactionEvent  # noqa: E402
from eth_sniper.repositories.session_repository import SessionRepository  # noqa: E402
from eth_sniper.repositories.watch_repository import WatchRepository  # noqa: E402
from eth_sniper.services.gas_service import GasService  # noqa: E402
from eth_sniper.services.risk_scanner_service import RiskScannerService  # noqa: E402
from eth_sniper.services.trade_intent_service import TradeIntentService  # noqa: E402
from eth_sniper.utils.config import AppConfig  # noqa: E402

# Digit-only addresses are already in EIP-55 form
TOKEN = "0x" + "1" * 40
WALLET = "0x" + "2" * 40
OTHER = "0x" + "3" * 40
OPERATOR = "0x" + "4" * 40


def make_event(tx_hash: str, block: int, wallet: str = WALLET, **kw) -> TransactionEvent:
    data = dict(
        hash=tx_hash,
        from_address=kw.pop("from_address", OTHER),
        to_address=kw.pop("to_address", wallet),
        block_number=block,
        timestamp=1_700_000_000 + block,
    )
    data.update(kw)
    return TransactionEvent(**data)


def safe_metadata(address: str = TOKEN, **overrides) -> ContractMetadata:
    """Contract metadata that raises no risk flag."""
    data = dict(
        address=address,
        token=TokenMetadata(name="Test Token", symbol="TST", decimals=18),
        is_verified=True,
        owner_address="0x0000000000000000000000000000000000000000",
        is_mintable=False,
        has_blacklist=False,
        liquidity_usd=250_000.0,
        liquidity_pools=frozenset(),
        sell_simulation_failed=False,
    )
    data.update(overrides)
    return ContractMetadata(**data)


class FakeGateway:
    """Scriptable stand-in for ``BlockchainGateway``; counts every call."""

    def __init__(self) -> None:
        self.eth_balance = 1.5
        self.eth_price = 2000.0
        self.gas_gwei = 20.0
        self.latest_block = 100
        self.token_prices: Dict[str, float] = {TOKEN.lower(): 0.5}
        self.token_balances: List[TokenBalance] = []
        self.holders: Dict[str, List[Holder]] = {}
        self.metadata: Dict[str, ContractMetadata] = {}
        self.transactions: Dict[str, List[TransactionEvent]] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: Dict[str, int] = {}

    def _hit(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
        err = self.errors.get(name)
        if err is not None:
            raise err

    def get_eth_balance(self, address: str) -> float:
        self._hit("get_eth_balance")
        return self.eth_balance

    def get_token_balances(self, address: str) -> List[TokenBalance]:
        self._hit("get_token_balances")
        return list(self.token_balances)

    def get_transactions(self, address: str, since_cursor: int):
        self._hit("get_transactions")
        events = [e for e in self.transactions.get(address.lower(), []) if e.block_number >= since_cursor]
        next_cursor = max([since_cursor] + [e.block_number for e in events])
        return events, next_cursor

    def get_gas_price_gwei(self) -> float:
        self._hit("get_gas_price_gwei")
        return self.gas_gwei

    def get_token_price_usd(self, contract: str) -> float:
        self._hit("get_token_price_usd")
        return self.token_prices[contract.lower()]

    def get_eth_price_usd(self) -> float:
        self._hit("get_eth_price_usd")
        return self.eth_price

    def get_latest_block(self) -> int:
        self._hit("get_latest_block")
        return self.latest_block

    def get_top_holders(self, contract: str) -> List[Holder]:
        self._hit("get_top_holders")
        return list(self.holders.get(contract.lower(), []))

    def get_contract_metadata(self, contract: str) -> ContractMetadata:
        self._hit("get_contract_metadata")
        return self.metadata.get(contract.lower()) or safe_metadata(contract)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cfg() -> AppConfig:
    return AppConfig(
        telegram_token="123:abc",
        eth_address=OPERATOR,
        alchemy_api="alchemy",
        etherscan_api="etherscan",
    )


@pytest.fixture
def watches() -> WatchRepository:
    return WatchRepository(max_per_chat=10)


@pytest.fixture
def commands(cfg, gateway, watches, clock) -> CommandController:
    return CommandController(
        cfg,
        gateway,
        scanner=RiskScannerService(gateway, ttl=600, clock=clock),
        intents=TradeIntentService(OPERATOR, clock=lambda: 1_700_000_000),
        gas=GasService(gateway),
        watches=watches,
    )


@pytest.fixture
def conversation(commands, clock) -> ConversationController:
    return ConversationController(commands, SessionRepository(), timeout=300, clock=clock)


def reply_text(reply: Optional[object]) -> str:
    assert reply is not None
    return reply.text
