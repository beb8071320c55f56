# main.py
from __future__ import annotations
import sys

from dotenv import load_dotenv

from eth_sniper.controllers.command_controller import CommandController
from eth_sniper.controllers.conversation_controller import ConversationController
from eth_sniper.orchestrators.monitor_orchestrator import MonitorOrchestrator
from eth_sniper.repositories.session_repository import SessionRepository
from eth_sniper.repositories.watch_repository import WatchRepository
from eth_sniper.services.gas_service import GasService
from eth_sniper.services.gateway_service import BlockchainGateway
from eth_sniper.services.risk_scanner_service import RiskScannerService
from eth_sniper.services.telegram_bot import TelegramBot
from eth_sniper.services.telegram_service import TelegramService
from eth_sniper.services.trade_intent_service import TradeIntentService
from eth_sniper.utils.config import AppConfig, load_app_config
from eth_sniper.utils.errors import ConfigError, ValidationError
from eth_sniper.utils.log_config import logger_manager
from eth_sniper.utils.validators import validate_wallet_address

logger = logger_manager.setup_logger(__name__)


def build_app(cfg: AppConfig) -> tuple[TelegramBot, MonitorOrchestrator]:
    """Wire every component from ``cfg``."""
    gateway = BlockchainGateway.from_config(cfg)
    watches = WatchRepository(max_per_chat=cfg.max_watches_per_chat)
    scanner = RiskScannerService(
        gateway,
        ttl=cfg.scan_ttl_sec,
        min_liquidity_usd=cfg.min_liquidity_usd,
        holder_concentration_pct=cfg.holder_concentration_pct,
    )
    commands = CommandController(
        cfg,
        gateway,
        scanner=scanner,
        intents=TradeIntentService(cfg.eth_address),
        gas=GasService(gateway),
        watches=watches,
    )
    conversations = ConversationController(commands, SessionRepository(), timeout=cfg.session_timeout_sec)
    bot = TelegramBot(conversations, token=cfg.telegram_token, chat_id=cfg.telegram_chat_id)

    push = TelegramService(cfg.telegram_token, on_unreachable=watches.remove_chat)
    monitor = MonitorOrchestrator(
        gateway,
        watches,
        notify=push.send,
        interval=cfg.poll_interval_sec,
        jitter_pct=cfg.poll_jitter_pct,
        max_workers=cfg.monitor_max_workers,
    )
    return bot, monitor


def main() -> int:
    load_dotenv()
    try:
        cfg = load_app_config().require()
        cfg = cfg.model_copy(update={"eth_address": validate_wallet_address(cfg.eth_address)})
    except ConfigError as e:
        logger.error(f"❌ {e}")
        return 1
    except ValidationError as e:
        logger.error(f"❌ Invalid ETH_ADDRESS: {e}")
        return 1

    logger.info("🚀 Starting eth_sniper (wallet monitor + Telegram bot)...")
    bot, monitor = build_app(cfg)
    monitor.start()
    try:
        bot.run()
    finally:
        logger.info("🛑 Shutdown requested, stopping services...")
        monitor.stop()
        logger.info("✅ Shutdown complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
