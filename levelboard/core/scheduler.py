"""
levelboard/core/scheduler.py
═══════════════════════════════════════════════════════════════════════════════
Background refresh loop with strict guarantees:

  1. ONE loop per scheduler (guarded by _running flag)
  2. ONE refresh at a time (asyncio.Lock — overlapping fetches impossible)
  3. First cycle runs immediately, then one cycle per interval measured
     between cycle starts. A slow cycle delays the next one, never queues it.
  4. Failed refresh → keep last valid snapshot, log, try again next tick
  5. Each fetch is bounded by fetch_timeout when one is configured
  6. Optional stop event ends the loop on host shutdown

Per-cycle states: idle → fetching → installing | skipping → idle
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import enum
import inspect
import logging
import time
from typing import Awaitable, Callable, Iterable, Optional, Sequence, Union

from levelboard.core.cache import ScoreRecord, SnapshotStore

log = logging.getLogger("scheduler")

FetchFn = Callable[[], Union[Sequence[ScoreRecord], Awaitable[Sequence[ScoreRecord]]]]


class CycleState(str, enum.Enum):
    IDLE       = "idle"
    FETCHING   = "fetching"
    INSTALLING = "installing"
    SKIPPING   = "skipping"


def build_scores(records: Iterable[ScoreRecord]) -> dict[int, int]:
    """id → value table for one batch. Later records win on duplicate ids."""
    scores: dict[int, int] = {}
    for rec in records:
        scores[rec.id] = rec.value
    return scores


class RefreshScheduler:
    def __init__(
        self,
        store: SnapshotStore,
        fetch: FetchFn,
        interval: float,
        *,
        fetch_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.store         = store
        self.interval      = interval
        self.fetch_timeout = fetch_timeout or None
        self._fetch        = fetch
        self._clock        = clock
        self._sleep        = sleep
        self._cycle_lock   = asyncio.Lock()
        self._running      = False

        self.state: CycleState          = CycleState.IDLE
        self.cycles                     = 0
        self.failures                   = 0
        self.last_error: Optional[str]  = None
        self.last_success: Optional[float] = None

    async def _fetch_records(self) -> Sequence[ScoreRecord]:
        if inspect.iscoroutinefunction(self._fetch):
            pending = self._fetch()
        else:
            pending = asyncio.to_thread(self._fetch)
        if self.fetch_timeout:
            return await asyncio.wait_for(pending, self.fetch_timeout)
        return await pending

    async def run_cycle(self) -> bool:
        """One fetch-and-install attempt. Returns True if a snapshot was installed."""
        if self._cycle_lock.locked():
            log.warning("Previous refresh still running — skipping cycle")
            return False

        async with self._cycle_lock:
            self.cycles += 1
            t0 = self._clock()
            self.state = CycleState.FETCHING
            try:
                try:
                    scores = build_scores(await self._fetch_records())
                except Exception as ex:
                    self._record_failure(self._describe(ex))
                    return False

                self.state = CycleState.INSTALLING
                snap = self.store.replace(scores)
                self.last_success = time.time()
                self.last_error   = None
                elapsed = self._clock() - t0
                log.info(f"Snapshot #{snap.seq} installed: {len(snap)} ids in {elapsed:.1f}s")
                return True
            finally:
                self.state = CycleState.IDLE

    def _describe(self, ex: Exception) -> str:
        # wait_for raises a bare TimeoutError; one raised by the fetch carries its own text
        if self.fetch_timeout and isinstance(ex, asyncio.TimeoutError) and not str(ex):
            return f"fetch timed out after {self.fetch_timeout:g}s"
        return f"{type(ex).__name__}: {ex}"

    def _record_failure(self, reason: str) -> None:
        # Snapshot not replaced → previous valid data stays
        self.state      = CycleState.SKIPPING
        self.failures  += 1
        self.last_error = reason
        log.error(
            f"Refresh failed, keeping snapshot #{self.store.snapshot().seq}: {reason}"
        )

    async def _wait(self, delay: float, stop: Optional[asyncio.Event]) -> bool:
        """Sleep until the next cycle. Returns True if stop was signalled."""
        if stop is None:
            await self._sleep(delay)
            return False
        sleeper = asyncio.ensure_future(self._sleep(delay))
        stopper = asyncio.ensure_future(stop.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, stopper):
                if not task.done():
                    task.cancel()
        return stop.is_set()

    async def run_forever(self, stop: Optional[asyncio.Event] = None) -> None:
        """
        Called once at startup. Runs until `stop` is set or the task is cancelled.
        Never starts a second loop on the same scheduler.
        """
        if self._running:
            log.warning("Scheduler already running — ignoring duplicate start")
            return
        self._running = True
        log.info(f"Scheduler started (interval {self.interval:g}s)")

        try:
            while stop is None or not stop.is_set():
                started = self._clock()
                await self.run_cycle()
                delay = max(0.0, started + self.interval - self._clock())
                log.debug(f"Next refresh in {delay:.1f}s")
                if await self._wait(delay, stop):
                    break
        finally:
            self._running = False
            log.info("Scheduler stopped")

    def status(self) -> dict:
        return {
            "state":        self.state.value,
            "running":      self._running,
            "interval_s":   self.interval,
            "cycles":       self.cycles,
            "failures":     self.failures,
            "last_error":   self.last_error,
            "last_success": self.last_success,
        }


async def run_forever(
    interval: float,
    fetch: FetchFn,
    store: SnapshotStore,
    *,
    stop: Optional[asyncio.Event] = None,
    fetch_timeout: Optional[float] = None,
) -> None:
    """Build a scheduler for `store` and run it. Returns only once `stop` is set."""
    scheduler = RefreshScheduler(store, fetch, interval, fetch_timeout=fetch_timeout)
    await scheduler.run_forever(stop)
