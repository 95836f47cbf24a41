"""
System Metrics - scalars recomputed once per birth.

Coherence decays multiplicatively on every new HyperBit and never
recovers. Entropy and resonance are derived from it:

    coherence = round(coherence * 0.99, 3)
    entropy   = round(-coherence * ln(coherence + eps), 4)
    resonance = round(max(0.5, 7.83 + (stability - entropy) * 10), 2)

All inputs are clamped; nothing here raises.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict

from .physics import CONSTANTS

COHERENCE_DECAY = 0.99
BASE_FREQUENCY = CONSTANTS["SCHUMANN_RESONANCE"]
MIN_RESONANCE = 0.5
EPSILON = sys.float_info.epsilon
NODES_PER_HZ = 12


@dataclass(frozen=True)
class SystemMetrics:
    """Derived readout; not authoritative state."""
    stability: float = 0.99
    entropy: float = 0.0
    coherence: float = 1.0
    dimension: int = 11
    resonance: float = BASE_FREQUENCY

    @property
    def active_nodes(self) -> int:
        return int(math.floor(self.resonance * NODES_PER_HZ))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["active_nodes"] = self.active_nodes
        return data


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def calculate_entropy(population: int, coherence: float) -> float:
    """-c * ln(c + eps); zero for an empty population or zero coherence."""
    coherence = _clamp01(coherence)
    if population <= 0 or coherence == 0.0:
        return 0.0
    return -coherence * math.log(coherence + EPSILON)


def calculate_resonance(entropy: float, stability: float) -> float:
    """Base frequency modulated by (stability - entropy), floored at 0.5 Hz."""
    modulation = (_clamp01(stability) - entropy) * 10
    return max(MIN_RESONANCE, BASE_FREQUENCY + modulation)


def derive_on_birth(metrics: SystemMetrics, population: int) -> SystemMetrics:
    """
    Metrics after one more HyperBit has been born.

    Args:
        metrics: Metrics before the birth
        population: Registry size including the new record
    """
    coherence = round(_clamp01(metrics.coherence) * COHERENCE_DECAY, 3)
    entropy = round(calculate_entropy(population, coherence), 4)
    resonance = round(calculate_resonance(entropy, metrics.stability), 2)
    return replace(
        metrics,
        coherence=coherence,
        entropy=entropy,
        resonance=resonance,
    )


__all__ = [
    "SystemMetrics",
    "calculate_entropy",
    "calculate_resonance",
    "derive_on_birth",
    "COHERENCE_DECAY",
    "BASE_FREQUENCY",
]
