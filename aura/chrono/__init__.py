"""
Chrono-Positioning Engine

Deterministic placement of time-stamped HyperBits and the live/replay
timeline that queries them.

Usage:
    from aura.chrono import ChronoEngine

    engine = ChronoEngine()
    engine.set_spawn_vector(30, 30, 30)
    engine.spawn()
    engine.tick()
    for view in engine.frame():
        print(view.id, view.position)
"""

from aura.chrono.physics import (
    CONSTANTS,
    ParticleKind,
    PhysicalProperties,
    QuantumState,
    Vector3,
    collapse_state,
    create_quantum_state,
    particle_properties,
    sample_velocity,
)

from aura.chrono.registry import (
    BirthRecord,
    ParticleRegistry,
    create_birth_record,
    now_ms,
)

from aura.chrono.trajectory import (
    Freshness,
    freshness,
    highlight_intensity,
    position_at,
)

from aura.chrono.timeline import (
    TimelineController,
    TimelineMode,
    TimelineState,
)

from aura.chrono.render_sync import (
    ParticleView,
    PresentationArena,
    RenderSync,
    ViewArena,
)

from aura.chrono.metrics import (
    SystemMetrics,
    derive_on_birth,
)

from aura.chrono.engine import ChronoEngine
from aura.chrono.loop import ChronoLoop

__all__ = [
    # Physics
    "CONSTANTS",
    "ParticleKind",
    "PhysicalProperties",
    "QuantumState",
    "Vector3",
    "collapse_state",
    "create_quantum_state",
    "particle_properties",
    "sample_velocity",
    # Registry
    "BirthRecord",
    "ParticleRegistry",
    "create_birth_record",
    "now_ms",
    # Trajectory
    "Freshness",
    "freshness",
    "highlight_intensity",
    "position_at",
    # Timeline
    "TimelineController",
    "TimelineMode",
    "TimelineState",
    # Render
    "ParticleView",
    "PresentationArena",
    "RenderSync",
    "ViewArena",
    # Metrics
    "SystemMetrics",
    "derive_on_birth",
    # Engine
    "ChronoEngine",
    "ChronoLoop",
]
