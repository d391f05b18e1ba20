"""Periodic liveness probing and idle-session sweeping."""
import asyncio
import contextlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.relay.engine import RelayEngine
from src.relay.registry import Removal

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL = 30.0
DEFAULT_IDLE_TIMEOUT = 300.0


class LivenessMonitor:
    """Recurring task that drops dead connections and sweeps idle sessions.

    A probe sent in one cycle must be answered before the next one;
    otherwise the connection is handled exactly like a LEAVE and its
    transport is closed. After probing, sessions idle for longer than
    ``idle_timeout`` seconds are removed and their peers notified.
    """

    def __init__(
        self,
        engine: RelayEngine,
        probe_interval: float = DEFAULT_PROBE_INTERVAL,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
    ) -> None:
        if probe_interval <= 0:
            raise ValueError("probe_interval must be positive")
        if idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")
        self._engine = engine
        self._probe_interval = probe_interval
        self._idle_timeout = timedelta(seconds=idle_timeout)
        self._task: Optional[asyncio.Task[None]] = None
        self._last_run_at: Optional[datetime] = None

    @property
    def last_run_at(self) -> Optional[datetime]:
        return self._last_run_at

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="relay-liveness")
        logger.info(
            "Liveness monitor started (probe every %.0fs, idle timeout %.0fs)",
            self._probe_interval, self._idle_timeout.total_seconds(),
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Liveness monitor stopped")

    async def run_once(self, now: Optional[datetime] = None) -> list[Removal]:
        """Run one probe-and-sweep cycle.

        Returns:
            Sessions removed by the idle sweep.
        """
        now = now or datetime.now(timezone.utc)
        registry = self._engine.registry
        cycle = await registry.probe_cycle()
        for peer in cycle.unanswered:
            logger.info("No probe answer from %s in room %s", peer.role.value, peer.code)
            await self._engine.drop(peer.conn)
        for peer in cycle.to_probe:
            await peer.conn.probe()
        removed = await registry.sweep_idle(self._idle_timeout, now)
        for removal in removed:
            await self._engine.evict(removal)
        self._last_run_at = now
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._probe_interval)
            try:
                await self.run_once()
            except Exception:
                logger.exception("Liveness cycle failed")
