"""
Particle Physics Tables and Birth Sampling

Static descriptive attributes for each particle kind, the quantum state
carried by a HyperBit, and the random draws made exactly once at birth.

Nothing here participates in trajectory math except the velocity sample,
which is stored in the BirthRecord and never redrawn.

Usage:
    from aura.chrono.physics import ParticleKind, sample_velocity

    rng = np.random.default_rng(7)
    velocity = sample_velocity(rng)
    props = particle_properties(ParticleKind.ELECTRON)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np


# Real physical constants (SI units)
CONSTANTS = {
    "PLANCK": 6.62607015e-34,        # J*s
    "LIGHT_SPEED": 299792458,        # m/s
    "BOLTZMANN": 1.380649e-23,       # J/K
    "G_CONSTANT": 6.67430e-11,       # m^3 kg^-1 s^-2
    "FINE_STRUCTURE": 1 / 137.035999,
    "SCHUMANN_RESONANCE": 7.83,      # Hz
}

# Per-axis velocity is (u - 0.5) * VELOCITY_SPEED, u ~ U[0, 1)
VELOCITY_SPEED = 5.0

SPAWN_AXIS_MIN = -100.0
SPAWN_AXIS_MAX = 100.0


class ParticleKind(str, Enum):
    """Particle categories a HyperBit can be born as."""
    ELECTRON = "electron"
    PROTON = "proton"
    NEUTRON = "neutron"
    PHOTON = "photon"
    HIGGS = "higgs"


@dataclass(frozen=True)
class PhysicalProperties:
    """Static attributes of a particle kind. Descriptive only."""
    mass: float      # kg
    charge: float    # C
    spin: float


# Particle Data Group (approximated values)
PARTICLE_DATA: Dict[ParticleKind, PhysicalProperties] = {
    ParticleKind.ELECTRON: PhysicalProperties(mass=9.10938356e-31, charge=-1.60217663e-19, spin=0.5),
    ParticleKind.PROTON: PhysicalProperties(mass=1.6726219e-27, charge=1.60217663e-19, spin=0.5),
    ParticleKind.NEUTRON: PhysicalProperties(mass=1.674927471e-27, charge=0.0, spin=0.5),
    ParticleKind.PHOTON: PhysicalProperties(mass=0.0, charge=0.0, spin=1.0),
    ParticleKind.HIGGS: PhysicalProperties(mass=2.2e-25, charge=0.0, spin=0.0),
}


def particle_properties(kind: ParticleKind) -> PhysicalProperties:
    """Look up the static attributes for a particle kind."""
    return PARTICLE_DATA[ParticleKind(kind)]


@dataclass(frozen=True)
class Vector3:
    """A 3D point or vector."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vector3":
        return cls(
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            z=float(data.get("z", 0.0)),
        )

    def as_tuple(self):
        return (self.x, self.y, self.z)


def clamp_spawn_vector(x: float, y: float, z: float) -> Vector3:
    """Clamp an operator-supplied spawn point into [-100, 100] per axis."""
    def _clamp(v: float) -> float:
        return max(SPAWN_AXIS_MIN, min(SPAWN_AXIS_MAX, float(v)))
    return Vector3(_clamp(x), _clamp(y), _clamp(z))


@dataclass(frozen=True)
class QuantumState:
    """
    Two-outcome probability amplitudes.

    amplitude0**2 + amplitude1**2 == 1. observed_value stays None
    until the state is collapsed.
    """
    amplitude0: float
    amplitude1: float
    collapsed: bool = False
    observed_value: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amplitude0": self.amplitude0,
            "amplitude1": self.amplitude1,
            "collapsed": self.collapsed,
            "observed_value": self.observed_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuantumState":
        observed = data.get("observed_value", data.get("observedValue"))
        return cls(
            amplitude0=float(data.get("amplitude0", math.sqrt(0.5))),
            amplitude1=float(data.get("amplitude1", math.sqrt(0.5))),
            collapsed=bool(data.get("collapsed", False)),
            observed_value=None if observed is None else int(observed),
        )


def create_quantum_state() -> QuantumState:
    """Fresh, uncollapsed equal superposition."""
    return QuantumState(
        amplitude0=math.sqrt(0.5),
        amplitude1=math.sqrt(0.5),
        collapsed=False,
        observed_value=None,
    )


def collapse_state(
    state: QuantumState,
    bias: float = 0.5,
    rng: Optional[np.random.Generator] = None,
) -> QuantumState:
    """
    Collapse a quantum state to a definite outcome.

    The probability of observing 1 is the mean of |amplitude1|^2 and
    the bias. Returns a new state; the input is left untouched.

    No caller in the spawn path collapses states; this is exposed for
    tooling and tests.
    """
    rng = rng if rng is not None else np.random.default_rng()
    bias = max(0.0, min(1.0, bias))

    probability1 = state.amplitude1 * state.amplitude1
    adjusted = (probability1 + bias) / 2
    outcome = 1 if rng.random() < adjusted else 0

    return replace(
        state,
        collapsed=True,
        observed_value=outcome,
        amplitude0=1.0 if outcome == 0 else 0.0,
        amplitude1=1.0 if outcome == 1 else 0.0,
    )


def sample_velocity(
    rng: Optional[np.random.Generator] = None,
    speed: float = VELOCITY_SPEED,
) -> Vector3:
    """Draw a per-axis drift vector within [-speed/2, speed/2)."""
    rng = rng if rng is not None else np.random.default_rng()
    u = rng.random(3)
    return Vector3(
        x=float((u[0] - 0.5) * speed),
        y=float((u[1] - 0.5) * speed),
        z=float((u[2] - 0.5) * speed),
    )


__all__ = [
    "CONSTANTS",
    "VELOCITY_SPEED",
    "ParticleKind",
    "PhysicalProperties",
    "PARTICLE_DATA",
    "particle_properties",
    "Vector3",
    "clamp_spawn_vector",
    "QuantumState",
    "create_quantum_state",
    "collapse_state",
    "sample_velocity",
]
