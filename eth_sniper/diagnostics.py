# diagnostics.py
from __future__ import annotations
import sys
from typing import Callable, List, Tuple

from dotenv import load_dotenv

from eth_sniper.services.gateway_service import BlockchainGateway
from eth_sniper.utils.config import AppConfig, load_app_config
from eth_sniper.utils.errors import ConfigError, EthSniperError
from eth_sniper.utils.log_config import logger_manager

logger = logger_manager.setup_logger("diagnostics")

# USDC: verified, deep liquidity, present on every provider
PROBE_TOKEN = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def ok(b: bool, msg: str) -> None:
    print(("✅" if b else "❌"), msg)


def provider_checks(gateway: BlockchainGateway, cfg: AppConfig) -> List[Tuple[str, Callable[[], object]]]:
    checks = [
        ("Alchemy block number", gateway.get_latest_block),
        ("Alchemy gas price", gateway.get_gas_price_gwei),
        ("Alchemy ETH balance", lambda: gateway.get_eth_balance(cfg.eth_address)),
        ("Etherscan ETH price", gateway.get_eth_price_usd),
        ("Etherscan history", lambda: len(gateway.get_transactions(cfg.eth_address, 0)[0])),
        ("DexScreener token price", lambda: gateway.get_token_price_usd(PROBE_TOKEN)),
        ("GoPlus/honeypot.is contract data", lambda: gateway.get_contract_metadata(PROBE_TOKEN).is_verified),
    ]
    if cfg.moralis_api:
        checks.append(("Moralis top holders", lambda: len(gateway.get_top_holders(PROBE_TOKEN))))
    return checks


def run_checks(checks: List[Tuple[str, Callable[[], object]]]) -> int:
    """Run each check once; returns the number of failures."""
    failures = 0
    for label, fn in checks:
        try:
            ok(True, f"{label}: {fn()}")
        except EthSniperError as e:
            failures += 1
            ok(False, f"{label} failed: {e}")
    return failures


def main() -> int:
    load_dotenv()
    print("== ETH SNIPER DIAGNOSTICS ==")
    try:
        cfg = load_app_config().require()
    except ConfigError as e:
        ok(False, str(e))
        return 1
    ok(True, f"Configuration loaded (wallet {cfg.eth_address})")

    gateway = BlockchainGateway.from_config(cfg)
    failures = run_checks(provider_checks(gateway, cfg))
    print("== END ==")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
