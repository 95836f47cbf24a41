"""
Chrono Loop: the heartbeat of the mirror.

Two decoupled periodic tasks on one event loop:

    ticker   every tick_interval (100 ms): advances the timeline
    refresh  every refresh_interval (~60 Hz): re-runs render sync when
             the cursor or particle membership changed

The ticker decides what time it is; the refresh decides how often the
view repaints. Both run on the loop thread, so no locks are needed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .engine import ChronoEngine
from .render_sync import ParticleView

logger = logging.getLogger("aura.chrono.loop")

FrameCallback = Callable[[List[ParticleView]], Awaitable[None]]


class ChronoLoop:
    """
    Drives a ChronoEngine.

    Args:
        engine: The engine to drive
        tick_interval: Seconds between timeline ticks
        refresh_interval: Seconds between render refreshes
        on_frame: Awaited with each new frame
    """

    def __init__(
        self,
        engine: ChronoEngine,
        tick_interval: float = 0.1,
        refresh_interval: float = 1 / 60,
        on_frame: Optional[FrameCallback] = None,
    ):
        self.engine = engine
        self.tick_interval = tick_interval
        self.refresh_interval = refresh_interval
        self.on_frame = on_frame

        self.tick_count = 0
        self.frame_count = 0
        self._running = False
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start ticker and refresh tasks."""
        if self._running:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._ticker(), name="chrono-ticker"),
            asyncio.create_task(self._refresher(), name="chrono-refresh"),
        ]
        logger.info(
            f"Chrono loop started (tick={self.tick_interval * 1000:.0f}ms, "
            f"refresh={1 / self.refresh_interval:.0f}Hz)"
        )

    async def stop(self) -> None:
        """Cancel both tasks and wait for them to finish."""
        if not self._running:
            return
        self._running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info(f"Chrono loop stopped after {self.tick_count} ticks, {self.frame_count} frames")

    async def run(self) -> None:
        """Run until cancelled."""
        await self.start()
        try:
            while self._running:
                await asyncio.sleep(self.tick_interval)
        except asyncio.CancelledError:
            pass
        finally:
            await self.stop()

    async def _ticker(self) -> None:
        while self._running:
            self.engine.tick()
            self.tick_count += 1
            await asyncio.sleep(self.tick_interval)

    async def _refresher(self) -> None:
        while self._running:
            try:
                frame = self.engine.refresh()
                if frame is not None:
                    self.frame_count += 1
                    if self.on_frame:
                        await self.on_frame(frame)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # A broken presentation callback must not stop time
                logger.error(f"Refresh error: {e}")
            await asyncio.sleep(self.refresh_interval)


__all__ = ["ChronoLoop", "FrameCallback"]
