"""
AURA test configuration.

Shared fixtures: a hand-driven clock, a seeded generator, record and
session factories.
"""

import logging

import numpy as np
import pytest

from aura.chrono import BirthRecord, QuantumState, Vector3, create_quantum_state
from aura.chrono.physics import ParticleKind
from aura.configs import AuraConfig
from aura.service import CompletionResult, MemoryStore, MirrorSession, OfflineCompletionService

logger = logging.getLogger(__name__)

T0 = 1_700_000_000_000


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "scenario: acceptance scenarios for the positioning core")
    config.addinivalue_line("markers", "slow: tests that take >1s to run")


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now

    def set(self, ms: int) -> int:
        self.now = ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def make_record():
    """Build a BirthRecord with explicit motion parameters."""

    def _make(
        record_id="p-1",
        position=(30.0, 30.0, 30.0),
        velocity=(1.0, 0.0, 0.0),
        timestamp=T0,
        kind=ParticleKind.ELECTRON,
        quantum: QuantumState = None,
    ) -> BirthRecord:
        return BirthRecord(
            id=record_id,
            kind=kind,
            quantum=quantum or create_quantum_state(),
            initial_position=Vector3(*position),
            velocity=Vector3(*velocity),
            birth_timestamp=timestamp,
        )

    return _make


class ScriptedCompletion(OfflineCompletionService):
    """Completion backend that replays canned replies and records calls."""

    def __init__(self, replies=None, image=None):
        self.replies = list(replies or [])
        self.image = image
        self.calls = []
        self.dream_prompts = []

    def generate_response(self, history, prompt, mode, shadow_context):
        self.calls.append({
            "history": list(history),
            "prompt": prompt,
            "mode": mode,
            "shadow_context": list(shadow_context),
        })
        text = self.replies.pop(0) if self.replies else f"echo: {prompt}"
        return CompletionResult(text=text, introspection="scripted", model="scripted")

    def generate_dream(self, prompt):
        self.dream_prompts.append(prompt)
        return self.image

    @property
    def is_available(self) -> bool:
        return True


@pytest.fixture
def scripted():
    """Factory for ScriptedCompletion backends."""
    return ScriptedCompletion


@pytest.fixture
def completion():
    return ScriptedCompletion()


@pytest.fixture
def memory_config():
    config = AuraConfig()
    config.storage.backend = "memory"
    config.storage.async_writes = False
    config.physics.seed = 7
    return config


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def session(memory_config, store, completion, clock, rng):
    """An opened session over an in-memory store."""
    s = MirrorSession(
        config=memory_config,
        store=store,
        completion=completion,
        clock=clock,
        rng=rng,
    )
    s.open()
    yield s
    s.close()
