"""
Controller executing fully parsed chat commands.

Handlers are plain blocking methods returning a ``Reply``; ``execute`` runs
them on a worker thread so gateway I/O never blocks the bot's event loop.
Buy and sell are split in two: ``prepare_trade`` builds the intent shown for
confirmation and ``confirm_trade`` records it once the user agrees.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Tuple

from eth_sniper.enums.trade_direction import TradeDirection
from eth_sniper.models.command import COMMANDS, CommandArgs, CommandKind, NoArgs, ScanArgs, TradeArgs, WatchArgs
from eth_sniper.models.reply import Reply
from eth_sniper.models.token import TokenProfile
from eth_sniper.models.trade_intent import TradeIntent
from eth_sniper.repositories.watch_repository import WatchRepository
from eth_sniper.services.gas_service import GasService
from eth_sniper.services.risk_scanner_service import RiskScannerService
from eth_sniper.services.trade_intent_service import TradeIntentService
from eth_sniper.utils import formatters
from eth_sniper.utils.config import AppConfig
from eth_sniper.utils.errors import GatewayError, ValidationError
from eth_sniper.utils.log_config import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)

MAX_PREPARED_INTENTS = 100


class CommandController:
    def __init__(
        self,
        cfg: AppConfig,
        gateway,
        scanner: RiskScannerService,
        intents: TradeIntentService,
        gas: GasService,
        watches: WatchRepository,
    ) -> None:
        self.cfg = cfg
        self.gateway = gateway
        self.scanner = scanner
        self.intents = intents
        self.gas = gas
        self.watches = watches
        self.prepared: Deque[TradeIntent] = deque(maxlen=MAX_PREPARED_INTENTS)
        self._handlers: Dict[CommandKind, Callable[[int, CommandArgs], Reply]] = {
            CommandKind.HELP: self.help,
            CommandKind.BALANCE: self.balance,
            CommandKind.PORTFOLIO: self.portfolio,
            CommandKind.GAS: self.gas_prices,
            CommandKind.WATCH: self.watch,
            CommandKind.UNWATCH: self.unwatch,
            CommandKind.SCAN: self.scan,
            CommandKind.SETTINGS: self.settings,
        }

    async def execute(self, kind: CommandKind, chat_id: int, args: CommandArgs) -> Reply:
        handler = self._handlers.get(kind)
        if handler is None:
            raise ValueError(f"/{kind.value} has no direct handler")
        return await asyncio.to_thread(handler, chat_id, args)

    # ---------- read-only commands ----------
    def help(self, chat_id: int, args: NoArgs) -> Reply:
        return Reply(formatters.help_text(COMMANDS.values()))

    @log_function
    def balance(self, chat_id: int, args: NoArgs) -> Reply:
        eth = self.gateway.get_eth_balance(self.cfg.eth_address)
        price = self.gateway.get_eth_price_usd()
        return Reply(formatters.balance_text(eth, price))

    @log_function
    def portfolio(self, chat_id: int, args: NoArgs) -> Reply:
        balances = self.gateway.get_token_balances(self.cfg.eth_address)
        priced = []
        for b in balances:
            try:
                usd = b.balance * self.gateway.get_token_price_usd(b.contract)
            except GatewayError as e:
                logger.debug(f"[portfolio] no price for {b.contract}: {e}")
                usd = None
            priced.append(b.model_copy(update={"balance_usd": usd}))
        return Reply(formatters.portfolio_text(priced))

    @log_function
    def gas_prices(self, chat_id: int, args: NoArgs) -> Reply:
        v2, v3 = self.gas.estimate_both()
        return Reply(formatters.gas_text(v2, v3))

    @log_function
    def scan(self, chat_id: int, args: ScanArgs) -> Reply:
        return Reply(formatters.scan_text(self.scanner.scan(args.contract)))

    def settings(self, chat_id: int, args: NoArgs) -> Reply:
        watched = [s.address for s in self.watches.list_for_chat(chat_id)]
        return Reply(formatters.settings_text(self.cfg, watched))

    # ---------- watches ----------
    @log_function
    def watch(self, chat_id: int, args: WatchArgs) -> Reply:
        new = [a for a in args.addresses if not self.watches.contains(chat_id, a)]
        notes: List[str] = []
        if new:
            start = self.gateway.get_latest_block() + 1
            for address in new:
                try:
                    self.watches.add(chat_id, address, cursor=start)
                except ValidationError as e:
                    skipped = new[new.index(address):]
                    notes.append(f"⚠️ {e} Not added: {', '.join(skipped)}")
                    break
        already = len(args.addresses) - len(new)
        if already:
            notes.append(f"ℹ️ {already} address(es) were already watched.")
        watched = [s.address for s in self.watches.list_for_chat(chat_id)]
        return Reply("\n\n".join([formatters.watch_list_text(watched)] + notes))

    @log_function
    def unwatch(self, chat_id: int, args: WatchArgs) -> Reply:
        missing = [a for a in args.addresses if not self.watches.remove(chat_id, a)]
        parts = []
        if missing:
            parts.append(f"ℹ️ Not watched: {', '.join(missing)}")
        watched = [s.address for s in self.watches.list_for_chat(chat_id)]
        parts.append(formatters.watch_list_text(watched))
        return Reply("\n\n".join(parts))

    # ---------- trades ----------
    def _is_blocked(self, profile: TokenProfile) -> bool:
        return profile.is_blocking or profile.risk_score >= self.cfg.risk_block_score

    @log_function
    def prepare_trade(self, chat_id: int, args: TradeArgs) -> Tuple[Optional[TradeIntent], Reply]:
        """
        Build the intent to confirm, or ``(None, reply)`` when a buy is refused.

        A buy is only prepared once the token scan passes; a sell shows the
        scan when available but never depends on it.
        """
        if args.direction is TradeDirection.BUY:
            profile = self.scanner.scan(args.token_address)
            if self._is_blocked(profile):
                logger.warning(f"🛑 [trade] buy of {args.token_address} refused (score={profile.risk_score})")
                return None, Reply(formatters.blocked_buy_text(profile, self.cfg.risk_block_score))
        else:
            try:
                profile = self.scanner.scan(args.token_address)
            except GatewayError as e:
                logger.info(f"[trade] sell without risk summary for {args.token_address}: {e}")
                profile = None

        price = self.gateway.get_token_price_usd(args.token_address)
        intent = self.intents.build_intent(
            args.direction, args.usd_amount, args.slippage_percent, price,
            token_address=args.token_address,
        )
        try:
            gas = self.gas.estimate()
        except GatewayError as e:
            logger.info(f"[trade] gas estimate unavailable: {e}")
            gas = None

        text = formatters.intent_text(intent, gas=gas, profile=profile)
        return intent, Reply(text, ask_confirmation=True)

    @log_function
    def confirm_trade(self, chat_id: int, intent: TradeIntent) -> Reply:
        self.prepared.append(intent)
        logger.info(
            f"✅ [trade] chat={chat_id} prepared {intent.direction.value} of {intent.token_address} "
            f"${intent.usd_amount:.2f} (bound {intent.bound_amount:.6g})"
        )
        return Reply("✅ Transaction prepared. It was not signed or sent; execute it from your wallet.")

    def discard_trade(self, chat_id: int, intent: Optional[TradeIntent]) -> Reply:
        if intent is not None:
            logger.info(f"[trade] chat={chat_id} discarded {intent.direction.value} of {intent.token_address}")
        return Reply("Transaction was not prepared!")
