# orchestrators/monitor_orchestrator.py
from __future__ import annotations
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from eth_sniper.models.transaction import TransactionEvent
from eth_sniper.models.watch import WatchSubscription
from eth_sniper.repositories.watch_repository import WatchRepository
from eth_sniper.utils.errors import GatewayError
from eth_sniper.utils.formatters import transaction_text
from eth_sniper.utils.log_config import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)

PollResult = Tuple[WatchSubscription, List[TransactionEvent]]


class MonitorOrchestrator:
    """
    Wallet monitor loop:
      - Every cycle takes a snapshot of the active subscriptions.
      - Polls them concurrently on a bounded pool; each poll keeps only
        hashes its subscription has not seen and moves the cursor forward.
      - Sends one notification per new transaction to the subscribed chat.

    A failing subscription is logged and retried next cycle from the same
    cursor; it never stops the others.
    """

    def __init__(
        self,
        gateway,
        watches: WatchRepository,
        notify: Callable[[int, str], bool],
        interval: float = 30.0,
        jitter_pct: float = 0.2,
        max_workers: int = 4,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.gateway = gateway
        self.watches = watches
        self.notify = notify
        self.interval = interval
        self.jitter_pct = jitter_pct
        self.max_workers = max_workers
        self._rng = rng or random.Random()

        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._pool: Optional[ThreadPoolExecutor] = None

    # ---------- public API ----------
    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_evt.clear()
        self._pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="MonitorPoll")
        self._thread = threading.Thread(target=self._run_loop, name="WalletMonitor", daemon=True)
        self._thread.start()
        logger.info(f"MonitorOrchestrator started (every {self.interval:g}s ±{self.jitter_pct * 100:g}%).")

    def stop(self, timeout: float | None = 10.0) -> None:
        self._stop_evt.set()
        if self._thread is not None:
            self._thread.join(timeout)
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None
        logger.info("MonitorOrchestrator stopped.")

    def next_delay(self) -> float:
        spread = self.interval * self.jitter_pct
        return max(0.0, self.interval + self._rng.uniform(-spread, spread))

    # ---------- main loop ----------
    def _run_loop(self) -> None:
        while not self._stop_evt.is_set():
            try:
                self.run_cycle()
            except Exception as e:
                logger.exception(f"Error in wallet monitor cycle: {e}")
            self._stop_evt.wait(self.next_delay())

    @log_function
    def run_cycle(self) -> int:
        """One poll + notify pass; returns the number of notifications sent."""
        results = self.poll_once()
        return self.dispatch(results)

    def poll_once(self) -> List[PollResult]:
        subs = self.watches.list_active()
        if not subs:
            return []
        logger.debug(f"[monitor] polling {len(subs)} subscription(s)")

        # outside start()/stop() (tests, one-off runs) a pool lives for one cycle
        pool = self._pool or ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="MonitorPoll")
        try:
            futures = [(s, pool.submit(self._poll_subscription, s)) for s in subs]
            outcomes = [(s, self._result(s, f.result)) for s, f in futures]
        finally:
            if pool is not self._pool:
                pool.shutdown(wait=True)
        return [(s, events) for s, events in outcomes if events]

    def _result(self, sub: WatchSubscription, get: Callable[[], List[TransactionEvent]]) -> List[TransactionEvent]:
        try:
            return get()
        except GatewayError as e:
            logger.warning(f"[monitor] {sub.address} (chat {sub.chat_id}) poll failed, cursor stays at {sub.cursor}: {e}")
        except Exception as e:
            logger.exception(f"[monitor] unexpected error polling {sub.address}: {e}")
        return []

    def _poll_subscription(self, sub: WatchSubscription) -> List[TransactionEvent]:
        """Fetch from the cursor, keep unseen hashes, then advance the cursor."""
        events, next_cursor = self.gateway.get_transactions(sub.address, sub.cursor)
        fresh: List[TransactionEvent] = []
        for ev in events:
            if sub.has_seen(ev.hash):
                continue
            sub.mark_seen(ev.hash)
            fresh.append(ev)
        sub.advance(next_cursor)
        fresh.sort(key=lambda e: (e.block_number, e.timestamp))
        if fresh:
            logger.info(f"🔔 [monitor] {sub.address}: {len(fresh)} new transaction(s) for chat {sub.chat_id}")
        return fresh

    # ---------- notification stage ----------
    def dispatch(self, results: List[PollResult]) -> int:
        sent = 0
        for sub, events in results:
            for ev in events:
                if not self.watches.contains(sub.chat_id, sub.address):
                    break  # unwatched (or chat unreachable) mid-cycle
                if self.notify(sub.chat_id, transaction_text(sub.address, ev)):
                    sent += 1
        return sent
