# services/risk_scanner_service.py
from __future__ import annotations
import time
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence

from eth_sniper.enums.risk_flag import RiskFlag
from eth_sniper.models.token import ContractMetadata, Holder, TokenProfile
from eth_sniper.utils.cache import TTLCache
from eth_sniper.utils.log_config import logger_manager, log_function
from eth_sniper.utils.web3_utils import is_burn_address

logger = logger_manager.setup_logger(__name__)

TOP_HOLDERS = 10
LP_LABEL_HINTS = ("uniswap", "sushiswap")


class ScanInputs(NamedTuple):
    holders: Sequence[Holder]
    metadata: ContractMetadata
    min_liquidity_usd: float
    holder_concentration_pct: float


class RiskRule(NamedTuple):
    """One independent check. ``check`` answers True/False, or None when unknown."""
    flag: RiskFlag
    weight: int
    check: Callable[[ScanInputs], Optional[bool]]


def _is_lp_holder(holder: Holder, pools: Iterable[str]) -> bool:
    if holder.address.lower() in pools:
        return True
    label = (holder.label or "").lower()
    return any(hint in label for hint in LP_LABEL_HINTS)


def top_holder_share(holders: Sequence[Holder], pools: Iterable[str] = ()) -> Optional[float]:
    """Supply percentage held by the top holders, ignoring burn and LP addresses."""
    if not holders:
        return None
    pools = {p.lower() for p in pools}
    counted = [
        h for h in holders
        if not is_burn_address(h.address) and not _is_lp_holder(h, pools)
    ]
    counted.sort(key=lambda h: h.percentage, reverse=True)
    return sum(h.percentage for h in counted[:TOP_HOLDERS])


def _holder_concentration(i: ScanInputs) -> Optional[bool]:
    share = top_holder_share(i.holders, i.metadata.liquidity_pools)
    return None if share is None else share > i.holder_concentration_pct


def _unverified(i: ScanInputs) -> Optional[bool]:
    v = i.metadata.is_verified
    return None if v is None else not v


def _ownership(i: ScanInputs) -> Optional[bool]:
    owner = i.metadata.owner_address
    return None if not owner else not is_burn_address(owner)


def _mintable(i: ScanInputs) -> Optional[bool]:
    return i.metadata.is_mintable


def _blacklist(i: ScanInputs) -> Optional[bool]:
    return i.metadata.has_blacklist


def _low_liquidity(i: ScanInputs) -> Optional[bool]:
    liq = i.metadata.liquidity_usd
    return None if liq is None else liq < i.min_liquidity_usd


def _honeypot(i: ScanInputs) -> Optional[bool]:
    return i.metadata.sell_simulation_failed


RULES: List[RiskRule] = [
    RiskRule(RiskFlag.HIGH_HOLDER_CONCENTRATION, 25, _holder_concentration),
    RiskRule(RiskFlag.UNVERIFIED_CONTRACT, 20, _unverified),
    RiskRule(RiskFlag.OWNERSHIP_NOT_RENOUNCED, 10, _ownership),
    RiskRule(RiskFlag.MINT_FUNCTION_PRESENT, 15, _mintable),
    RiskRule(RiskFlag.BLACKLIST_FUNCTION_PRESENT, 15, _blacklist),
    RiskRule(RiskFlag.LOW_LIQUIDITY, 20, _low_liquidity),
    RiskRule(RiskFlag.SUSPECTED_HONEYPOT, 60, _honeypot),
]


def compute_profile(
    contract: str,
    holders: Sequence[Holder],
    metadata: ContractMetadata,
    min_liquidity_usd: float = 10_000.0,
    holder_concentration_pct: float = 50.0,
    scanned_at: float = 0.0,
    rules: Sequence[RiskRule] = RULES,
) -> TokenProfile:
    """
    Evaluate every rule and sum the weights of the raised flags, clamped to 0..100.
    Pure: the same inputs always give the same score and flags.
    """
    inputs = ScanInputs(holders, metadata, min_liquidity_usd, holder_concentration_pct)
    flags = set()
    notes = []
    for rule in rules:
        verdict = rule.check(inputs)
        if verdict is None:
            notes.append(f"{rule.flag.value}: unknown")
        elif verdict:
            flags.add(rule.flag)
    score = max(0, min(100, sum(r.weight for r in rules if r.flag in flags)))
    return TokenProfile(
        contract=contract,
        metadata=metadata.token,
        risk_score=score,
        flags=frozenset(flags),
        scanned_at=scanned_at,
        notes=notes,
        buy_tax=metadata.buy_tax,
        sell_tax=metadata.sell_tax,
        honeypot_reason=metadata.honeypot_reason,
    )


class RiskScannerService:
    """
    Scores ERC-20 contracts from holder distribution and contract signals.

    Profiles are cached per contract for ``ttl`` seconds; a rescan inside the
    window returns the cached snapshot without touching the gateway.
    """

    def __init__(
        self,
        gateway,
        ttl: float = 600.0,
        min_liquidity_usd: float = 10_000.0,
        holder_concentration_pct: float = 50.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.gateway = gateway
        self.min_liquidity_usd = min_liquidity_usd
        self.holder_concentration_pct = holder_concentration_pct
        self._cache = TTLCache(ttl=ttl, clock=clock)

    @log_function
    def scan(self, contract: str) -> TokenProfile:
        key = contract.lower()
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"[scan] cache hit {contract}")
            return cached

        holders = self.gateway.get_top_holders(contract)
        metadata = self.gateway.get_contract_metadata(contract)
        profile = compute_profile(
            contract,
            holders,
            metadata,
            min_liquidity_usd=self.min_liquidity_usd,
            holder_concentration_pct=self.holder_concentration_pct,
            scanned_at=time.time(),
        )
        self._cache.set(key, profile)
        flags = ", ".join(sorted(f.value for f in profile.flags)) or "none"
        logger.info(f"🔎 [scan] {contract} score={profile.risk_score} flags={flags}")
        return profile
