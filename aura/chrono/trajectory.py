"""
Trajectory Function - where a HyperBit is at a given instant.

Each particle follows an independent closed-form path: a bounded
Lissajous-like oscillation superimposed on an unbounded linear drift,
both scaled by the velocity drawn at birth.

    x = x0 + 10 * sin(age * vx)       + 2 * age * vx
    y = y0 + 10 * (cos(age * vy) - 1) + 2 * age * vy
    z = z0 + 10 * sin(age * vz)       + 2 * age * vz

age is seconds since birth. Before birth there is no position.

The y axis is anchored so a particle starts at its birth point: it sits
exactly 10 below the plain `y0 + 10 * cos(age * vy)` form at every age.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional

from .physics import Vector3
from .registry import BirthRecord

OSCILLATION_AMPLITUDE = 10.0
DRIFT_FACTOR = 2.0

FRESH_WINDOW_MS = 2000
FRESH_INTENSITY = 3.0
SETTLED_INTENSITY = 1.0
UNBORN_INTENSITY = 0.0


class Freshness(str, Enum):
    """Presentation hint for how recently a particle was born."""
    UNBORN = "unborn"
    FRESH = "fresh"
    SETTLED = "settled"


def age_seconds(record: BirthRecord, query_time: float) -> float:
    return (query_time - record.birth_timestamp) / 1000.0


def position_at(record: BirthRecord, query_time: float) -> Optional[Vector3]:
    """
    Position of a record at query_time (epoch ms).

    Returns None when query_time precedes the birth timestamp. Pure and
    deterministic: the same record and instant always give the same point.
    """
    if query_time < record.birth_timestamp:
        return None

    age = age_seconds(record, query_time)
    origin = record.initial_position
    v = record.velocity

    return Vector3(
        x=origin.x + OSCILLATION_AMPLITUDE * math.sin(age * v.x) + DRIFT_FACTOR * age * v.x,
        y=origin.y + OSCILLATION_AMPLITUDE * (math.cos(age * v.y) - 1.0) + DRIFT_FACTOR * age * v.y,
        z=origin.z + OSCILLATION_AMPLITUDE * math.sin(age * v.z) + DRIFT_FACTOR * age * v.z,
    )


def freshness(record: BirthRecord, query_time: float) -> Freshness:
    """FRESH while 0 < age < 2s, SETTLED afterwards, UNBORN before birth."""
    age_ms = query_time - record.birth_timestamp
    if age_ms < 0:
        return Freshness.UNBORN
    if 0 < age_ms < FRESH_WINDOW_MS:
        return Freshness.FRESH
    return Freshness.SETTLED


def highlight_intensity(state: Freshness) -> float:
    if state is Freshness.FRESH:
        return FRESH_INTENSITY
    if state is Freshness.SETTLED:
        return SETTLED_INTENSITY
    return UNBORN_INTENSITY


__all__ = [
    "Freshness",
    "position_at",
    "freshness",
    "highlight_intensity",
    "age_seconds",
    "FRESH_WINDOW_MS",
]
