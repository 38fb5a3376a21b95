"""
Tick engine implementation for Forge Tycoon.
Drives the shop simulation in real time and runs the autosave timer.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from forge_tycoon.gameplay.shop import Shop
from forge_tycoon.persistence.save_manager import SaveManager

logger = logging.getLogger(__name__)

# Global tick engine instance
_engine: "TickEngine | None" = None


def get_tick_engine() -> "TickEngine | None":
    """Get the global tick engine instance."""
    return _engine


def set_tick_engine(engine: "TickEngine | None") -> None:
    """Set the global tick engine instance."""
    global _engine
    _engine = engine


@dataclass
class TickStats:
    """Statistics for tick timing."""

    tick_number: int
    duration_ms: float
    autosaved: bool


class TickEngine:
    """
    Runs Shop.tick() once per tick period.
    Shop.tick() is synchronous, so a tick always finishes before the next
    one starts and before any API handler sees the shop again.
    """

    def __init__(
        self,
        tick_rate_ms: int,
        shop: Shop,
        save_manager: SaveManager | None = None,
    ) -> None:
        self._tick_rate_ms = tick_rate_ms
        self._shop = shop
        self._save_manager = save_manager

        self._tick_number = 0
        self._is_running = False
        self._is_paused = False
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

        # Tick statistics
        self._recent_stats: list[TickStats] = []
        self._max_stats_history = 100

    @property
    def tick_number(self) -> int:
        """Current tick number."""
        return self._tick_number

    @property
    def tick_rate_ms(self) -> int:
        return self._tick_rate_ms

    @property
    def is_running(self) -> bool:
        """Whether the tick engine is actively running (not paused)."""
        return self._is_running and not self._is_paused

    @property
    def is_paused(self) -> bool:
        """Whether the tick engine is paused."""
        return self._is_paused

    async def start(self) -> None:
        """Start the tick engine loop."""
        if self._task is not None:
            return

        self._is_running = True
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Tick engine started (rate: {self._tick_rate_ms}ms)")

    async def stop(self) -> None:
        """Stop the tick engine loop."""
        if self._task is None:
            return

        self._is_running = False
        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=5.0)
        except asyncio.TimeoutError:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._task = None
        logger.info("Tick engine stopped")

    def pause(self) -> None:
        """Pause the tick engine."""
        self._is_paused = True
        self._shop.clock.set_paused(True)
        logger.info(f"Tick engine paused at tick {self._tick_number}")

    def resume(self) -> None:
        """Resume the tick engine."""
        self._is_paused = False
        self._shop.clock.set_paused(False)
        logger.info(f"Tick engine resumed at tick {self._tick_number}")

    async def step(self) -> None:
        """Execute a single tick (when paused)."""
        if not self._is_paused:
            return

        self._shop.clock.set_paused(False)
        try:
            await self._process_tick()
        finally:
            self._shop.clock.set_paused(True)
        logger.info(f"Manual tick step executed: {self._tick_number}")

    async def _run_loop(self) -> None:
        """
        Main tick loop.
        Fail-fast: internal errors propagate and crash the server.
        """
        while self._is_running:
            tick_start = time.perf_counter()

            if not self._is_paused:
                # Bus handlers are already isolated; anything else is a bug
                await self._process_tick()

            # Calculate sleep time to maintain tick rate
            tick_duration = (time.perf_counter() - tick_start) * 1000
            sleep_time = max(0, (self._tick_rate_ms - tick_duration) / 1000)

            # Wait for either sleep time or stop signal
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=sleep_time,
                )
                # Stop event was set
                break
            except asyncio.TimeoutError:
                # Normal tick interval elapsed
                pass

    async def _process_tick(self) -> None:
        """Process a single tick."""
        tick_start = time.perf_counter()
        self._tick_number += 1
        real_seconds = self._tick_rate_ms / 1000

        self._shop.tick(real_seconds)

        autosaved = False
        if self._save_manager is not None:
            autosaved = await self._save_manager.update(real_seconds)

        # Record stats
        tick_duration = (time.perf_counter() - tick_start) * 1000
        stats = TickStats(
            tick_number=self._tick_number,
            duration_ms=tick_duration,
            autosaved=autosaved,
        )
        self._recent_stats.append(stats)
        if len(self._recent_stats) > self._max_stats_history:
            self._recent_stats.pop(0)

        if tick_duration > self._tick_rate_ms:
            logger.warning(
                f"Tick {self._tick_number} took {tick_duration:.1f}ms "
                f"(target: {self._tick_rate_ms}ms)"
            )

    def get_recent_stats(self) -> list[TickStats]:
        """Get recent tick statistics."""
        return list(self._recent_stats)
