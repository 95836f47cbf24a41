"""
Particle Registry - Ordered, append-only HyperBit births.

A BirthRecord captures everything needed to place a particle at any
instant: where it was spawned, the drift drawn at birth, and the birth
timestamp. Records never change after creation and are never removed
during a session.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

import numpy as np

from .physics import (
    ParticleKind,
    PhysicalProperties,
    QuantumState,
    Vector3,
    create_quantum_state,
    particle_properties,
    sample_velocity,
)

logger = logging.getLogger("aura.chrono.registry")


def now_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class BirthRecord:
    """An immutable HyperBit: origin in space and time plus motion parameters."""
    id: str
    kind: ParticleKind
    quantum: QuantumState
    initial_position: Vector3
    velocity: Vector3
    birth_timestamp: int             # epoch ms

    @property
    def physics(self) -> PhysicalProperties:
        return particle_properties(self.kind)

    def to_dict(self) -> Dict[str, Any]:
        physics = self.physics
        return {
            "id": self.id,
            "kind": self.kind.value,
            "physics": {"mass": physics.mass, "charge": physics.charge, "spin": physics.spin},
            "quantum": self.quantum.to_dict(),
            "position": self.initial_position.to_dict(),
            "velocity": self.velocity.to_dict(),
            "timestamp": self.birth_timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BirthRecord":
        return cls(
            id=str(data["id"]),
            kind=ParticleKind(data.get("kind", data.get("type", ParticleKind.ELECTRON.value))),
            quantum=QuantumState.from_dict(data.get("quantum", {})),
            initial_position=Vector3.from_dict(data.get("position", {})),
            velocity=Vector3.from_dict(data.get("velocity", {})),
            birth_timestamp=int(data["timestamp"]),
        )


def create_birth_record(
    position: Vector3,
    kind: ParticleKind = ParticleKind.ELECTRON,
    timestamp: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    speed: Optional[float] = None,
) -> BirthRecord:
    """
    Create a new BirthRecord.

    All randomness (the velocity sample) happens here, once.
    """
    velocity = sample_velocity(rng) if speed is None else sample_velocity(rng, speed=speed)
    return BirthRecord(
        id=str(uuid.uuid4()),
        kind=ParticleKind(kind),
        quantum=create_quantum_state(),
        initial_position=position,
        velocity=velocity,
        birth_timestamp=now_ms() if timestamp is None else int(timestamp),
    )


class ParticleRegistry:
    """
    Insertion-ordered collection of BirthRecords.

    Append-only: records are never replaced or removed. Re-appending an
    id that is already present is a no-op.
    """

    def __init__(self, records: Optional[Iterable[BirthRecord]] = None):
        self._records: Dict[str, BirthRecord] = {}
        if records:
            self.extend(records)

    def append(self, record: BirthRecord) -> bool:
        """Add a record. Returns False if the id was already registered."""
        if record.id in self._records:
            logger.debug(f"Ignoring duplicate birth record: {record.id}")
            return False
        self._records[record.id] = record
        return True

    def extend(self, records: Iterable[BirthRecord]) -> int:
        """Add many records (hydration). Returns how many were new."""
        added = 0
        for record in records:
            if self.append(record):
                added += 1
        return added

    def get(self, record_id: str) -> Optional[BirthRecord]:
        return self._records.get(record_id)

    @property
    def records(self) -> List[BirthRecord]:
        return list(self._records.values())

    def earliest_timestamp(self) -> Optional[int]:
        """Earliest birth timestamp, or None when empty."""
        if not self._records:
            return None
        return min(r.birth_timestamp for r in self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[BirthRecord]:
        return iter(list(self._records.values()))

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records


__all__ = [
    "BirthRecord",
    "ParticleRegistry",
    "create_birth_record",
    "now_ms",
]
