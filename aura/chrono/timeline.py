"""
Timeline Controller - the only component that advances time.

Owns the cursor (the instant being visualised), the LIVE/REPLAY mode and
the observable window [min, max].

    LIVE    cursor follows max, which follows the clock on every tick
    REPLAY  cursor is frozen at an operator-chosen instant; ticks keep
            extending max only

Invariants:
    min <= cursor <= max
    max never decreases, even if the wall clock steps backwards

Usage:
    timeline = TimelineController(clock=now_ms)
    timeline.tick()
    timeline.scrub(timeline.state.min_observed_time)   # -> REPLAY
    timeline.resume_live()                              # -> LIVE
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .registry import now_ms

logger = logging.getLogger("aura.chrono.timeline")

DEFAULT_REWIND_MS = 10_000


class TimelineMode(str, Enum):
    """Cursor behaviour."""
    LIVE = "live"
    REPLAY = "replay"


@dataclass(frozen=True)
class TimelineState:
    """Snapshot of the timeline for a scrub bar."""
    cursor_time: int
    is_live: bool
    min_observed_time: int
    max_observed_time: int

    @property
    def mode(self) -> TimelineMode:
        return TimelineMode.LIVE if self.is_live else TimelineMode.REPLAY

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["mode"] = self.mode.value
        return data


class TimelineController:
    """
    LIVE/REPLAY state machine over a growing observation window.

    Args:
        clock: Returns "now" in epoch ms
        session_start: Instant the session began (default: clock())
        earliest: Earliest known timestamp from persisted history
    """

    def __init__(
        self,
        clock: Callable[[], int] = now_ms,
        session_start: Optional[int] = None,
        earliest: Optional[int] = None,
    ):
        self._clock = clock
        now = int(clock())
        start = now if session_start is None else int(session_start)

        self._mode = TimelineMode.LIVE
        self._max = max(now, start)
        self._min = start if earliest is None else min(int(earliest), start)
        self._cursor = self._max

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def state(self) -> TimelineState:
        return TimelineState(
            cursor_time=self._cursor,
            is_live=self._mode is TimelineMode.LIVE,
            min_observed_time=self._min,
            max_observed_time=self._max,
        )

    @property
    def mode(self) -> TimelineMode:
        return self._mode

    @property
    def is_live(self) -> bool:
        return self._mode is TimelineMode.LIVE

    @property
    def cursor_time(self) -> int:
        return self._cursor

    # ------------------------------------------------------------------
    # Time flow
    # ------------------------------------------------------------------

    def tick(self) -> TimelineState:
        """Advance max to now; in LIVE mode the cursor follows."""
        now = int(self._clock())
        if now > self._max:
            self._max = now
        elif now < self._max:
            logger.debug(f"Clock behind observed max by {self._max - now}ms; holding max")

        if self._mode is TimelineMode.LIVE:
            self._cursor = self._max
        return self.state

    def observe(self, timestamp: int) -> None:
        """
        Widen the window to include a known event.

        Earlier than min extends min downward. Later than max extends max
        (a birth stamped between two ticks).
        """
        timestamp = int(timestamp)
        if timestamp < self._min:
            logger.debug(f"Extending timeline min by {self._min - timestamp}ms")
            self._min = timestamp
        if timestamp > self._max:
            self._max = timestamp
            if self._mode is TimelineMode.LIVE:
                self._cursor = self._max

    # ------------------------------------------------------------------
    # Operator controls
    # ------------------------------------------------------------------

    def scrub(self, requested: float) -> TimelineState:
        """Freeze the cursor at requested, clamped into [min, max]."""
        if self._mode is TimelineMode.LIVE:
            logger.info("Timeline: LIVE -> REPLAY (scrub)")
        self._mode = TimelineMode.REPLAY
        self._cursor = self._clamp(requested)
        return self.state

    def rewind(self, delta_ms: int = DEFAULT_REWIND_MS) -> TimelineState:
        """Step the cursor back by delta_ms, never below min."""
        if self._mode is TimelineMode.LIVE:
            logger.info("Timeline: LIVE -> REPLAY (rewind)")
        self._mode = TimelineMode.REPLAY
        delta = abs(float(delta_ms))
        if math.isnan(delta):
            delta = 0.0
        self._cursor = self._clamp(self._cursor - delta)
        return self.state

    def pause(self) -> TimelineState:
        """Enter REPLAY with the cursor frozen where it is."""
        if self._mode is TimelineMode.LIVE:
            logger.info("Timeline: LIVE -> REPLAY (pause)")
            self._mode = TimelineMode.REPLAY
        return self.state

    def resume_live(self) -> TimelineState:
        """Snap the cursor to max and follow the clock again."""
        if self._mode is TimelineMode.REPLAY:
            logger.info("Timeline: REPLAY -> LIVE")
        self._mode = TimelineMode.LIVE
        self._cursor = self._max
        return self.state

    def toggle(self) -> TimelineState:
        """Flip between LIVE and REPLAY."""
        if self._mode is TimelineMode.LIVE:
            return self.pause()
        return self.resume_live()

    def _clamp(self, value: float) -> int:
        # NaN keeps the cursor; infinities pin to an edge
        if math.isnan(value):
            return self._cursor
        return int(max(self._min, min(self._max, value)))


__all__ = [
    "TimelineMode",
    "TimelineState",
    "TimelineController",
    "DEFAULT_REWIND_MS",
]
