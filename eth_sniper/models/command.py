"""
Command catalogue for the chat interface.

Each ``CommandSpec`` lists its parameters in the order they are prompted for.
Once every parameter is collected, ``CommandSpec.build_args`` turns the values
into the typed argument model of that command kind (``TradeArgs``,
``WatchArgs``, ``ScanArgs`` or ``NoArgs``), which the command controller
dispatches on by ``CommandKind``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from eth_sniper.enums.trade_direction import TradeDirection
from eth_sniper.utils.validators import (
    DEFAULT_MAX_ADDRESSES,
    slippage_warning,
    validate_address_list,
    validate_contract_address,
    validate_slippage_percent,
    validate_usd_amount,
    validate_wallet_address,
)


class ParamType(str, Enum):
    WALLET_ADDRESS = "WalletAddress"
    CONTRACT_ADDRESS = "ContractAddress"
    USD_AMOUNT = "UsdAmount"
    SLIPPAGE_PERCENT = "SlippagePercent"
    ADDRESS_LIST = "AddressList"


_VALIDATORS: Dict[ParamType, Callable[[str], Any]] = {
    ParamType.WALLET_ADDRESS: validate_wallet_address,
    ParamType.CONTRACT_ADDRESS: validate_contract_address,
    ParamType.USD_AMOUNT: validate_usd_amount,
    ParamType.SLIPPAGE_PERCENT: validate_slippage_percent,
    ParamType.ADDRESS_LIST: validate_address_list,
}


class CommandKind(str, Enum):
    HELP = "help"
    BUY = "buy"
    SELL = "sell"
    BALANCE = "balance"
    PORTFOLIO = "portfolio"
    GAS = "gas"
    WATCH = "watch"
    UNWATCH = "unwatch"
    SCAN = "scan"
    SETTINGS = "settings"
    CANCEL = "cancel"


@dataclass(frozen=True)
class ParamDescriptor:
    name: str
    param_type: ParamType
    prompt: str
    warning: Optional[Callable[[Any], Optional[str]]] = None

    def validate(self, text: str, max_addresses: int = DEFAULT_MAX_ADDRESSES) -> Any:
        if self.param_type is ParamType.ADDRESS_LIST:
            return validate_address_list(text, max_items=max_addresses)
        return _VALIDATORS[self.param_type](text)

    @property
    def absorbs_rest(self) -> bool:
        """An address list takes every remaining inline token."""
        return self.param_type is ParamType.ADDRESS_LIST


# ---------- typed arguments ----------
class NoArgs(BaseModel):
    model_config = ConfigDict(frozen=True)


class TradeArgs(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: TradeDirection
    token_address: str
    usd_amount: float
    slippage_percent: float


class WatchArgs(BaseModel):
    model_config = ConfigDict(frozen=True)

    addresses: Tuple[str, ...]


class ScanArgs(BaseModel):
    model_config = ConfigDict(frozen=True)

    contract: str


CommandArgs = Union[NoArgs, TradeArgs, WatchArgs, ScanArgs]


@dataclass(frozen=True)
class CommandSpec:
    kind: CommandKind
    description: str
    params: Tuple[ParamDescriptor, ...] = ()
    requires_confirmation: bool = False
    aliases: Tuple[str, ...] = field(default=())

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def usage(self) -> str:
        return " ".join([f"/{self.name}"] + [f"<{p.name}>" for p in self.params])

    def build_args(self, values: Sequence[Any]) -> CommandArgs:
        if len(values) != len(self.params):
            raise ValueError(f"/{self.name} expects {len(self.params)} values, got {len(values)}")
        if self.kind in (CommandKind.BUY, CommandKind.SELL):
            token, usd, slippage = values
            return TradeArgs(
                direction=TradeDirection(self.kind.value),
                token_address=token,
                usd_amount=usd,
                slippage_percent=slippage,
            )
        if self.kind in (CommandKind.WATCH, CommandKind.UNWATCH):
            return WatchArgs(addresses=tuple(values[0]))
        if self.kind is CommandKind.SCAN:
            return ScanArgs(contract=values[0])
        return NoArgs()


def _trade_params() -> Tuple[ParamDescriptor, ...]:
    return (
        ParamDescriptor(
            "token", ParamType.CONTRACT_ADDRESS,
            "📄 Send the ERC-20 token contract address (0x...).",
        ),
        ParamDescriptor(
            "usd_amount", ParamType.USD_AMOUNT,
            "💰 How many USD? (e.g. 50 or 12.5)",
        ),
        ParamDescriptor(
            "slippage", ParamType.SLIPPAGE_PERCENT,
            "🏷 Slippage tolerance in percent? (e.g. 1.5)",
            warning=slippage_warning,
        ),
    )


_ADDRESSES = ParamDescriptor(
    "addresses", ParamType.ADDRESS_LIST,
    "🔎 Send one or more wallet addresses, separated by commas or spaces.",
)

COMMANDS: Dict[CommandKind, CommandSpec] = {
    CommandKind.HELP: CommandSpec(CommandKind.HELP, "list available commands", aliases=("start",)),
    CommandKind.BUY: CommandSpec(CommandKind.BUY, "prepare a buy of an ERC-20 token", _trade_params(), requires_confirmation=True),
    CommandKind.SELL: CommandSpec(CommandKind.SELL, "prepare a sell of an ERC-20 token", _trade_params(), requires_confirmation=True),
    CommandKind.BALANCE: CommandSpec(CommandKind.BALANCE, "get wallet ETH balance"),
    CommandKind.PORTFOLIO: CommandSpec(CommandKind.PORTFOLIO, "get wallet ERC-20 token balances", aliases=("tokens",)),
    CommandKind.GAS: CommandSpec(CommandKind.GAS, "get current ETH gas and swap cost"),
    CommandKind.WATCH: CommandSpec(CommandKind.WATCH, "start monitoring Ethereum wallets", (_ADDRESSES,)),
    CommandKind.UNWATCH: CommandSpec(CommandKind.UNWATCH, "stop monitoring Ethereum wallets", (_ADDRESSES,)),
    CommandKind.SCAN: CommandSpec(
        CommandKind.SCAN, "scan a token contract for risk signals",
        (ParamDescriptor("contract", ParamType.CONTRACT_ADDRESS, "📄 Send the token contract address to scan (0x...)."),),
    ),
    CommandKind.SETTINGS: CommandSpec(CommandKind.SETTINGS, "show current settings and watched wallets"),
    CommandKind.CANCEL: CommandSpec(CommandKind.CANCEL, "cancel current command"),
}

_BY_NAME: Dict[str, CommandSpec] = {}
for _spec in COMMANDS.values():
    _BY_NAME[_spec.name] = _spec
    for _alias in _spec.aliases:
        _BY_NAME[_alias] = _spec


def parse_command(text: str) -> Tuple[Optional[CommandSpec], List[str]]:
    """Split ``/name arg1 arg2`` into its spec (None if unknown) and arguments.

    ``/buy@MyBot`` style mentions are accepted. Non-command text yields
    ``(None, [])``.
    """
    parts = (text or "").strip().split()
    if not parts or not parts[0].startswith("/"):
        return None, []
    name = parts[0][1:].split("@", 1)[0].lower()
    return _BY_NAME.get(name), parts[1:]


def is_command(text: str) -> bool:
    return (text or "").strip().startswith("/")
