"""
Reply text for chat commands and wallet notifications.

All functions are pure and return plain text (no Markdown), so user supplied
values never need escaping.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from eth_sniper.enums.trade_direction import TradeDirection
from eth_sniper.models.command import CommandSpec
from eth_sniper.models.gas import GasEstimate
from eth_sniper.models.token import TokenBalance, TokenProfile
from eth_sniper.models.trade_intent import TradeIntent
from eth_sniper.models.transaction import TransactionEvent
from eth_sniper.utils.config import AppConfig

HELP_HINT = "Type /help to see available commands."
GENERIC_ERROR = "Something went wrong: {error}\n\nPlease try again"


def fmt_usd(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"${value:,.2f}"


def fmt_price(value: float) -> str:
    return fmt_usd(value) if value >= 0.01 else f"${value:.8g}"


def fmt_amount(value: float) -> str:
    if value == 0:
        return "0"
    if abs(value) >= 1:
        return f"{value:,.4f}".rstrip("0").rstrip(".")
    return f"{value:.8g}"


def fmt_timestamp(ts: int) -> str:
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def help_text(commands: Iterable[CommandSpec]) -> str:
    lines = ["These commands are supported:", ""]
    for spec in commands:
        names = ", ".join(f"/{n}" for n in (spec.name,) + spec.aliases)
        lines.append(f"{names} - {spec.description}")
    return "\n".join(lines)


def usage_error(spec: CommandSpec, problems: Sequence[str]) -> str:
    lines = [f"⚠️ /{spec.name} cancelled: submitted parameters are incorrect!"]
    lines += [f"• {p}" for p in problems]
    lines += ["", f"Usage: {spec.usage}"]
    return "\n".join(lines)


def balance_text(eth_balance: float, eth_price_usd: float) -> str:
    return f"Wallet balance:\n{eth_balance:.4f} ETH ({fmt_usd(eth_balance * eth_price_usd)})"


def portfolio_text(balances: Sequence[TokenBalance]) -> str:
    if not balances:
        return "No ERC-20 token balances found."
    parts = ["ERC-20 Token balances:"]
    for b in balances:
        name = b.token.name or "Unknown token"
        symbol = b.token.symbol or "?"
        parts.append(
            f"\n{name} ({symbol})\n"
            f"📄 contract: {b.contract}\n"
            f"💰 balance: {fmt_amount(b.balance)} ({fmt_usd(b.balance_usd)})"
        )
    return "\n".join(parts)


def gas_text(v2: GasEstimate, v3: GasEstimate) -> str:
    return (
        f"Current eth gas is: {v2.gwei_price:.0f} gwei\n\n"
        f"Estimated fees:\n"
        f"🦄 Uniswap V2 swap: {fmt_usd(v2.cost_usd)} ({v2.cost_eth:.5f} ETH)\n"
        f"🦄 Uniswap V3 swap: {fmt_usd(v3.cost_usd)} ({v3.cost_eth:.5f} ETH)"
    )


def watch_list_text(addresses: Sequence[str], header: str = "Currently watched wallets:") -> str:
    if not addresses:
        return "No wallets are being watched."
    lines = [header]
    for i, addr in enumerate(addresses, start=1):
        lines.append(f"{i}. {addr}")
    return "\n".join(lines)


def _flag_names(profile: TokenProfile) -> List[str]:
    return sorted(f.value for f in profile.flags)


def fmt_tax(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:g}%"


def tax_line(profile: TokenProfile) -> Optional[str]:
    if profile.buy_tax is None and profile.sell_tax is None:
        return None
    return f"💸 Buy tax: {fmt_tax(profile.buy_tax)}, sell tax: {fmt_tax(profile.sell_tax)}"


def risk_level(score: int) -> str:
    if score >= 70:
        return "🔴 HIGH"
    if score >= 30:
        return "🟠 MEDIUM"
    return "🟢 LOW"


def scan_text(profile: TokenProfile) -> str:
    meta = profile.metadata
    title = f"{meta.name or 'Unknown token'} ({meta.symbol or '?'})"
    lines = [
        f"🔎 Risk scan: {title}",
        f"📄 Contract: {profile.contract}",
        f"⚖️ Risk score: {profile.risk_score}/100 {risk_level(profile.risk_score)}",
    ]
    taxes = tax_line(profile)
    if taxes:
        lines.append(taxes)
    if profile.honeypot_reason:
        lines.append(f"🍯 Honeypot: {profile.honeypot_reason}")
    flags = _flag_names(profile)
    if flags:
        lines.append("🚩 Flags:")
        lines += [f"• {f}" for f in flags]
    else:
        lines.append("✅ No risk flags raised")
    if profile.notes:
        lines.append("❔ Not checked: " + ", ".join(n.split(":", 1)[0] for n in profile.notes))
    return "\n".join(lines)


def blocked_buy_text(profile: TokenProfile, block_score: int) -> str:
    flags = ", ".join(_flag_names(profile)) or "none"
    reason = "suspected honeypot" if profile.is_blocking else f"risk score {profile.risk_score} ≥ {block_score}"
    if profile.is_blocking and profile.honeypot_reason:
        reason += f" ({profile.honeypot_reason})"
    return (
        f"🛑 Buy refused: {reason}.\n"
        f"📄 Contract: {profile.contract}\n"
        f"🚩 Flags: {flags}"
    )


def intent_text(
    intent: TradeIntent,
    gas: Optional[GasEstimate] = None,
    profile: Optional[TokenProfile] = None,
) -> str:
    is_buy = intent.direction is TradeDirection.BUY
    bound_label = "Minimum received" if is_buy else "Maximum sold"
    lines = [
        f"📄 Contract: {intent.token_address}",
        f"👛 Wallet: {intent.wallet_address}",
        f"💰 Amount: {fmt_usd(intent.usd_amount)} ≈ {fmt_amount(intent.token_amount)} tokens",
        f"💵 Price: {fmt_price(intent.reference_price)}",
        f"🏷 Slippage: {intent.slippage_percent:g}%",
        f"📉 {bound_label}: {fmt_amount(intent.bound_amount)} tokens",
        f"{'🟢' if is_buy else '🔴'} Order type: {intent.direction.value}",
    ]
    if gas is not None:
        lines.append(f"⛽ Gas: {gas.gwei_price:.0f} gwei ≈ {fmt_usd(gas.cost_usd)}")
    if profile is not None:
        flags = ", ".join(_flag_names(profile)) or "none"
        lines.append(f"⚖️ Risk: {profile.risk_score}/100, flags: {flags}")
        taxes = tax_line(profile)
        if taxes:
            lines.append(taxes)
    lines += ["", "Do you want to prepare this transaction? (yes/no)"]
    return "\n".join(lines)


def settings_text(cfg: AppConfig, watched: Sequence[str]) -> str:
    lines = [
        "⚙️ Settings",
        f"👛 Wallet: {cfg.eth_address}",
        f"⏱ Poll interval: {cfg.poll_interval_sec:g}s (±{cfg.poll_jitter_pct * 100:g}%)",
        f"⌛ Session timeout: {cfg.session_timeout_sec:g}s",
        f"🔎 Scan cache: {cfg.scan_ttl_sec:g}s",
        f"💧 Min liquidity: {fmt_usd(cfg.min_liquidity_usd)}",
        f"👥 Holder concentration limit: {cfg.holder_concentration_pct:g}%",
        f"🛑 Buy refused at risk score ≥ {cfg.risk_block_score}",
        f"🧾 Holder analysis: {'on' if cfg.moralis_api else 'off (no MORALIS_API)'}",
        "",
        watch_list_text(watched),
    ]
    return "\n".join(lines)


def transaction_text(wallet: str, event: TransactionEvent) -> str:
    text = (
        "🚨🚨🚨 New transaction from watched wallet 🚨🚨🚨\n\n"
        f"🔎 Wallet: {wallet}\n\n"
        f"⏰ Timestamp: {fmt_timestamp(event.timestamp)}\n"
        f"🔗 Transaction hash: {event.hash}\n"
        f"💎 Token symbol: {event.token_symbol}\n"
        f"💎 Token name: {event.token_name}\n"
        f"📄 Contract: {event.token_contract or 'native ETH'}\n"
        f"💰 Amount: {fmt_amount(event.amount)} {event.token_symbol}"
    )
    direction = "⬆️ out" if event.from_address.lower() == wallet.lower() else "⬇️ in"
    text += f" ({direction})"
    if event.failed:
        text += "\n❌ Transaction failed"
    return text
