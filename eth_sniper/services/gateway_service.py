# services/gateway_service.py
from __future__ import annotations
from time import sleep
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from eth_sniper.models.token import ContractMetadata, Holder, TokenBalance, TokenMetadata
from eth_sniper.models.transaction import TransactionEvent
from eth_sniper.services.alchemy_service import AlchemyService
from eth_sniper.services.etherscan_service import EtherscanService
from eth_sniper.services.goplus_service import GoplusService
from eth_sniper.services.honeypot_service import HoneypotService
from eth_sniper.services.market_service import MarketService
from eth_sniper.services.moralis_service import MoralisService
from eth_sniper.utils.cache import TTLCache
from eth_sniper.utils.config import AppConfig
from eth_sniper.utils.errors import GatewayError, PermanentGatewayError, TransientGatewayError
from eth_sniper.utils.log_config import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)

T = TypeVar("T")

MAX_PORTFOLIO_TOKENS = 25
_METADATA_TTL_SEC = 24 * 3600


class BlockchainGateway:
    """
    Single entry point to every blockchain data provider.

    All methods block; callers on the event loop run them in a worker thread.
    Transient failures are retried with exponential backoff
    (``backoff * 2**(attempt-1)``) up to ``retries`` extra attempts before
    ``TransientGatewayError`` propagates. Permanent failures are never retried.
    """

    def __init__(
        self,
        alchemy: AlchemyService,
        etherscan: EtherscanService,
        moralis: MoralisService,
        market: MarketService,
        goplus: GoplusService,
        honeypot: HoneypotService,
        retries: int = 3,
        backoff: float = 0.5,
        price_ttl: float = 60.0,
        sleep_fn: Callable[[float], None] = sleep,
    ) -> None:
        self.alchemy = alchemy
        self.etherscan = etherscan
        self.moralis = moralis
        self.market = market
        self.goplus = goplus
        self.honeypot = honeypot
        self.retries = retries
        self.backoff = backoff
        self._sleep = sleep_fn
        self._prices = TTLCache(ttl=price_ttl)
        self._metadata = TTLCache(ttl=_METADATA_TTL_SEC, max_size=5000)

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "BlockchainGateway":
        t = cfg.http_timeout_sec
        return cls(
            alchemy=AlchemyService(cfg.alchemy_api, timeout=t),
            etherscan=EtherscanService(cfg.etherscan_api, timeout=t),
            moralis=MoralisService(cfg.moralis_api, timeout=t),
            market=MarketService(timeout=t),
            goplus=GoplusService(cfg.goplus_access_token or None, timeout=t),
            honeypot=HoneypotService(timeout=t),
            retries=cfg.http_retries,
            backoff=cfg.retry_backoff_sec,
            price_ttl=cfg.price_ttl_sec,
        )

    # ---------- retries ----------
    def _call(self, label: str, fn: Callable[[], T]) -> T:
        """
        Run a provider call, retrying transient failures with backoff.
        """
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return fn()
            except TransientGatewayError as e:
                if attempt == attempts:
                    logger.error(f"[gateway:{label}] giving up after {attempts} attempts: {e}")
                    raise
                delay = self.backoff * (2 ** (attempt - 1))
                logger.warning(f"[gateway:{label}] attempt {attempt}/{attempts} failed: {e}; retrying in {delay:.2f}s")
                self._sleep(delay)
        raise TransientGatewayError(f"{label}: no attempts made")  # retries < 0

    def _best_effort(self, label: str, fn: Callable[[], T], default: T) -> T:
        try:
            return self._call(label, fn)
        except GatewayError as e:
            logger.warning(f"[gateway:{label}] unavailable, continuing without it: {e}")
            return default

    # ---------- balances ----------
    @log_function
    def get_eth_balance(self, address: str) -> float:
        return self._call("eth_balance", lambda: self.alchemy.get_eth_balance(address))

    def _token_metadata(self, contract: str) -> TokenMetadata:
        key = contract.lower()
        cached = self._metadata.get(key)
        if cached is not None:
            return cached
        meta = self._call("token_metadata", lambda: self.alchemy.get_token_metadata(contract))
        self._metadata.set(key, meta)
        return meta

    @log_function
    def get_token_balances(self, address: str) -> List[TokenBalance]:
        raw_balances = self._call("token_balances", lambda: self.alchemy.get_token_balances(address))
        if len(raw_balances) > MAX_PORTFOLIO_TOKENS:
            logger.info(f"[gateway] {address} holds {len(raw_balances)} tokens; showing {MAX_PORTFOLIO_TOKENS}")
        balances = []
        for contract, raw in raw_balances[:MAX_PORTFOLIO_TOKENS]:
            meta = self._best_effort("token_metadata", lambda c=contract: self._token_metadata(c), TokenMetadata())
            balances.append(TokenBalance(
                contract=contract,
                token=meta,
                balance=raw / (10 ** meta.decimals),
            ))
        return balances

    # ---------- history ----------
    @log_function
    def get_transactions(self, address: str, since_cursor: int) -> Tuple[List[TransactionEvent], int]:
        """Transactions at or after block ``since_cursor`` and the cursor to use next."""
        events, cursor_limit = self._call(
            "transactions", lambda: self.etherscan.get_transactions(address, since_cursor)
        )
        next_cursor = max([since_cursor] + [e.block_number for e in events])
        if cursor_limit is not None:
            # a truncated page: blocks after its last row were not read yet
            next_cursor = max(since_cursor, min(next_cursor, cursor_limit))
        return events, next_cursor

    @log_function
    def get_latest_block(self) -> int:
        return self._call("block_number", self.alchemy.get_block_number)

    # ---------- prices / gas ----------
    @log_function
    def get_gas_price_gwei(self) -> float:
        return self._call("gas_price", self.alchemy.get_gas_price_gwei)

    @log_function
    def get_eth_price_usd(self) -> float:
        cached = self._prices.get("eth")
        if cached is not None:
            return cached
        price = self._call("eth_price", self.etherscan.get_eth_price)
        self._prices.set("eth", price)
        return price

    @log_function
    def get_token_price_usd(self, contract: str) -> float:
        key = contract.lower()
        cached = self._prices.get(key)
        if cached is not None:
            return cached
        market = self._call("token_price", lambda: self.market.get_token_market(contract))
        if market.price_usd is None or market.price_usd <= 0:
            raise PermanentGatewayError(f"No Ethereum market price found for {contract}", provider="dexscreener")
        self._prices.set(key, market.price_usd)
        return market.price_usd

    # ---------- risk signals ----------
    @log_function
    def get_top_holders(self, contract: str) -> List[Holder]:
        return self._call("top_holders", lambda: self.moralis.get_top_holders(contract))

    @log_function
    def get_contract_metadata(self, contract: str) -> ContractMetadata:
        """
        Contract signals from GoPlus (required) plus best-effort token
        metadata, DexScreener liquidity and the honeypot.is sell simulation.
        """
        security = self._call("contract_security", lambda: self.goplus.get_security(contract))
        meta = self._best_effort("token_metadata", lambda: self._token_metadata(contract), None)
        market = self._best_effort("liquidity", lambda: self.market.get_token_market(contract), None)
        sim = self._best_effort("sell_simulation", lambda: self.honeypot.simulate_sell(contract), None)

        token = TokenMetadata(
            name=(meta.name if meta and meta.name else security["name"]),
            symbol=(meta.symbol if meta and meta.symbol else security["symbol"]),
            decimals=meta.decimals if meta else 18,
        )
        if market is not None and market.price_usd:
            self._prices.set(contract.lower(), market.price_usd)

        return ContractMetadata(
            address=contract,
            token=token,
            is_verified=security["is_verified"],
            owner_address=security["owner_address"],
            is_mintable=security["is_mintable"],
            has_blacklist=security["has_blacklist"],
            liquidity_usd=market.liquidity_usd if market else None,
            liquidity_pools=market.pools if market else frozenset(),
            sell_simulation_failed=sim.failed if sim else None,
            honeypot_reason=sim.reason if sim else None,
            buy_tax=_opt_float(sim.buy_tax) if sim else None,
            sell_tax=_opt_float(sim.sell_tax) if sim else None,
        )


def _opt_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None
