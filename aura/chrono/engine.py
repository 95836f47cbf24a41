"""
Chrono Engine - explicitly owned context for the positioning core.

Bundles the particle registry, timeline controller, render sync and
metrics into one object with a lifecycle: create it when a view mounts,
dispose() it when the view goes away. Nothing here is process-global.

Control flow for a birth:
    registry.append -> timeline.observe -> metrics.derive_on_birth
    (render sync picks up the membership change on the next refresh)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

import numpy as np

from .metrics import SystemMetrics, derive_on_birth
from .physics import ParticleKind, Vector3, VELOCITY_SPEED, clamp_spawn_vector
from .registry import BirthRecord, ParticleRegistry, create_birth_record, now_ms
from .render_sync import ParticleView, PresentationArena, RenderSync
from .timeline import TimelineController, TimelineState

logger = logging.getLogger("aura.chrono.engine")


class ChronoEngine:
    """
    The Chrono-Positioning Engine.

    Args:
        clock: Returns "now" in epoch ms
        rng: Random generator for birth-time draws
        arena: Presentation arena for render sync (default: headless)
        metrics: Initial metrics
        velocity_speed: Per-axis velocity span for new births
        session_start: Session start instant (default: clock())
    """

    def __init__(
        self,
        clock: Callable[[], int] = now_ms,
        rng: Optional[np.random.Generator] = None,
        arena: Optional[PresentationArena] = None,
        metrics: Optional[SystemMetrics] = None,
        velocity_speed: float = VELOCITY_SPEED,
        session_start: Optional[int] = None,
    ):
        self.clock = clock
        self.rng = rng if rng is not None else np.random.default_rng()
        self.velocity_speed = velocity_speed

        self.registry = ParticleRegistry()
        self.timeline = TimelineController(clock=clock, session_start=session_start)
        self.render = RenderSync(arena)
        self._metrics = metrics or SystemMetrics()
        self._spawn_vector = Vector3(30.0, 30.0, 30.0)
        self._disposed = False

    # ------------------------------------------------------------------
    # Observable outputs
    # ------------------------------------------------------------------

    @property
    def metrics(self) -> SystemMetrics:
        return self._metrics

    @property
    def timeline_state(self) -> TimelineState:
        return self.timeline.state

    @property
    def spawn_vector(self) -> Vector3:
        return self._spawn_vector

    @property
    def disposed(self) -> bool:
        return self._disposed

    def frame(self) -> List[ParticleView]:
        """Evaluate all particles at the current cursor."""
        return self.render.sync(self.registry, self.timeline.cursor_time)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def hydrate(self, records: Iterable[BirthRecord]) -> int:
        """
        Load persisted births.

        Widens the timeline to cover them. Metrics are not re-derived:
        derivation runs once per new birth, not per load.
        """
        added = 0
        for record in records:
            if self.registry.append(record):
                self.timeline.observe(record.birth_timestamp)
                added += 1
        if added:
            logger.info(f"Hydrated {added} HyperBits")
        return added

    def add(self, record: BirthRecord) -> bool:
        """Register a newly born record and update metrics."""
        if not self.registry.append(record):
            return False
        self.timeline.observe(record.birth_timestamp)
        self._metrics = derive_on_birth(self._metrics, len(self.registry))
        logger.debug(
            f"Birth {record.id[:8]}: coherence={self._metrics.coherence} "
            f"entropy={self._metrics.entropy} resonance={self._metrics.resonance}"
        )
        return True

    def spawn(self, kind: ParticleKind = ParticleKind.ELECTRON) -> BirthRecord:
        """Create a HyperBit at the spawn vector, stamped now."""
        record = create_birth_record(
            position=self._spawn_vector,
            kind=kind,
            timestamp=self.clock(),
            rng=self.rng,
            speed=self.velocity_speed,
        )
        self.add(record)
        logger.info(f"Spawned {record.kind.value} at {record.initial_position.as_tuple()}")
        return record

    # ------------------------------------------------------------------
    # Operator controls
    # ------------------------------------------------------------------

    def set_spawn_vector(self, x: float, y: float, z: float) -> Vector3:
        self._spawn_vector = clamp_spawn_vector(x, y, z)
        return self._spawn_vector

    def set_stability(self, stability: float) -> SystemMetrics:
        """Ambient stability; clamped to [0, 1]."""
        self._metrics = replace(self._metrics, stability=max(0.0, min(1.0, float(stability))))
        return self._metrics

    # ------------------------------------------------------------------
    # Loop hooks
    # ------------------------------------------------------------------

    def tick(self) -> TimelineState:
        return self.timeline.tick()

    def refresh(self) -> Optional[List[ParticleView]]:
        """Re-run render sync if the cursor or membership changed."""
        return self.render.sync_if_needed(self.registry, self.timeline.cursor_time)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        if self._disposed:
            return
        self.render.dispose()
        self._disposed = True
        logger.info("Chrono engine disposed")

    def __enter__(self) -> "ChronoEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


__all__ = ["ChronoEngine"]
