"""
Mirror Session - the integration layer.

Brings the Chrono-Positioning Engine, the completion backend, record
persistence and mode classification together into a single session
that can answer chat input and drive the particle timeline.

Lifecycle:
    session = MirrorSession(config)
    session.open()          # hydrate history, create the engine
    session.handle_command("show me a bit of light")
    session.close()         # flush writes, dispose the engine

The in-memory state is authoritative. Durable writes go through a
write-behind queue; if the store fails, the session keeps running
without durability.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from aura import __version__
from aura.chrono import (
    BirthRecord,
    ChronoEngine,
    ParticleKind,
    ParticleView,
    PresentationArena,
    SystemMetrics,
    TimelineState,
    Vector3,
    now_ms,
)
from aura.configs import AuraConfig
from aura.errors import CompletionError, PersistenceError, SessionClosedError

from .classifier import (
    KeywordModeClassifier,
    Mode,
    ModeClassifier,
    Tab,
    sentiment_for,
    wants_spawn,
)
from .completion import (
    DREAM_MANIFEST_MARKER,
    FAILURE_INTROSPECTION,
    FAILURE_TEXT,
    CompletionResult,
    CompletionService,
    create_completion_service,
)
from .persistence import (
    AUDIT_LOG,
    CHAT_MESSAGES,
    PARTICLES,
    PersistenceStore,
    WriteBehind,
    create_store,
)
from .schemas import AuditEntry, ChatMessage

logger = logging.getLogger("aura.service.session")

SHADOW_CONTEXT_LIMIT = 10

GREETING_TEXT = "Muza Aura 2.6: voice protocol restored. Live stream synchronised."
GREETING_INTROSPECTION = "Voice core patched. Time kinetics amplified."
DREAM_DONE_TEXT = "Visualisation of the thought-form complete."
DREAM_DONE_INTROSPECTION = "Vision module engaged. Dream materialised."


class SessionState(str, Enum):
    """Session operational state."""
    INITIALIZING = "initializing"
    READY = "ready"
    THINKING = "thinking"
    CLOSED = "closed"


@dataclass
class NeuralTopology:
    """Readout of the mirror's current cognitive topology."""
    active_nodes: int
    dominant_mode: Mode
    global_frequency: float
    shadow_context: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_nodes": self.active_nodes,
            "dominant_mode": self.dominant_mode.value,
            "global_frequency": self.global_frequency,
            "shadow_context": list(self.shadow_context),
        }


@dataclass
class PendingTurn:
    """A chat turn whose user message is stored but whose reply is not."""
    text: str
    mode: Mode
    user_message: ChatMessage
    history: List[ChatMessage]
    shadow_context: List[str]


@dataclass
class CommandResult:
    """Outcome of one chat turn."""
    user_message: ChatMessage
    reply: ChatMessage
    mode: Mode
    spawned: Optional[BirthRecord] = None
    dream_requested: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_message": self.user_message.model_dump(),
            "reply": self.reply.model_dump(),
            "mode": self.mode.value,
            "spawned": self.spawned.to_dict() if self.spawned else None,
            "dream_requested": self.dream_requested,
        }


class MirrorSession:
    """
    One operator's mirror session.

    Args:
        config: AURA configuration
        store: Record store (default: from config.storage)
        completion: Completion backend (default: from config.completion)
        classifier: Mode classifier (default: keyword heuristic)
        clock: Returns "now" in epoch ms
        rng: Random generator for birth-time draws
        arena: Presentation arena handed to render sync
    """

    def __init__(
        self,
        config: Optional[AuraConfig] = None,
        store: Optional[PersistenceStore] = None,
        completion: Optional[CompletionService] = None,
        classifier: Optional[ModeClassifier] = None,
        clock: Callable[[], int] = now_ms,
        rng: Optional[np.random.Generator] = None,
        arena: Optional[PresentationArena] = None,
    ):
        self.config = config or AuraConfig()
        self.clock = clock
        self._state = SessionState.INITIALIZING

        if store is None:
            store = create_store(self.config.storage.backend, self.config.storage.data_dir)
        self.store = store
        self.writer = WriteBehind(store, background=self.config.storage.async_writes)

        self.completion = completion or create_completion_service(self.config.completion)
        self.classifier = classifier or KeywordModeClassifier()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.physics.seed)
        self._arena = arena

        self.engine: Optional[ChronoEngine] = None
        self.messages: List[ChatMessage] = []
        self.shadow_context: List[str] = []
        self.active_mode = Mode.ANALYTIC
        self.active_tab = Tab.MIRROR
        self.dream_prompt = ""
        self.generated_image: Optional[str] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def open(self) -> "MirrorSession":
        """Create the engine and hydrate persisted history."""
        if self._state == SessionState.CLOSED:
            raise SessionClosedError("Session is closed; create a new one")
        if self.engine is not None:
            return self

        metrics_cfg = self.config.metrics
        self.engine = ChronoEngine(
            clock=self.clock,
            rng=self.rng,
            arena=self._arena,
            metrics=SystemMetrics(
                stability=metrics_cfg.stability,
                coherence=metrics_cfg.coherence,
                dimension=metrics_cfg.dimension,
            ),
            velocity_speed=self.config.physics.velocity_speed,
        )
        self.engine.set_spawn_vector(*self.config.physics.spawn_vector)

        self._audit("AURA_GENESIS", {"version": __version__})
        self._hydrate_messages()
        self._hydrate_particles()

        self._state = SessionState.READY
        logger.info(
            f"Session ready: {len(self.messages)} messages, "
            f"{len(self.engine.registry)} HyperBits"
        )
        return self

    def close(self) -> None:
        """Flush pending writes and dispose the engine."""
        if self._state == SessionState.CLOSED:
            return
        self.writer.close()
        if self.engine is not None:
            self.engine.dispose()
        self._state = SessionState.CLOSED
        logger.info("Session closed")

    def __enter__(self) -> "MirrorSession":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_engine(self) -> ChronoEngine:
        if self._state == SessionState.CLOSED:
            raise SessionClosedError("Session is closed; create a new one")
        if self.engine is None:
            self.open()
        return self.engine

    def _hydrate_messages(self) -> None:
        try:
            raw = self.store.load_all(CHAT_MESSAGES)
        except PersistenceError as e:
            logger.warning(f"Chat history unavailable: {e}")
            raw = []

        messages = []
        for data in raw:
            try:
                messages.append(ChatMessage(**data))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed chat message {data.get('id')}: {e}")
        messages.sort(key=lambda m: m.timestamp)

        if messages:
            self.messages = messages
            self.engine.timeline.observe(messages[0].timestamp)
        else:
            greeting = ChatMessage(
                id="init",
                role="ai",
                text=GREETING_TEXT,
                timestamp=self.clock(),
                introspection=GREETING_INTROSPECTION,
            )
            self.messages = [greeting]
            self._persist(CHAT_MESSAGES, greeting.model_dump())

    def _hydrate_particles(self) -> None:
        try:
            raw = self.store.load_all(PARTICLES)
        except PersistenceError as e:
            logger.warning(f"HyperBit history unavailable: {e}")
            raw = []

        records = []
        for data in raw:
            try:
                records.append(BirthRecord.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed HyperBit {data.get('id')}: {e}")
        records.sort(key=lambda r: r.birth_timestamp)
        self.engine.hydrate(records)

    # ------------------------------------------------------------------
    # Observable outputs
    # ------------------------------------------------------------------

    @property
    def timeline_state(self) -> TimelineState:
        return self._require_engine().timeline_state

    @property
    def metrics(self) -> SystemMetrics:
        return self._require_engine().metrics

    @property
    def topology(self) -> NeuralTopology:
        metrics = self.metrics
        return NeuralTopology(
            active_nodes=metrics.active_nodes,
            dominant_mode=self.active_mode,
            global_frequency=metrics.resonance,
            shadow_context=list(self.shadow_context),
        )

    def frame(self) -> List[ParticleView]:
        return self._require_engine().frame()

    def snapshot(self) -> Dict[str, Any]:
        """Everything a dashboard needs in one JSON-able dict."""
        engine = self._require_engine()
        return {
            "state": self._state.value,
            "timeline": engine.timeline_state.to_dict(),
            "particles": [v.to_dict() for v in engine.frame()],
            "metrics": engine.metrics.to_dict(),
            "topology": self.topology.to_dict(),
            "spawn_vector": engine.spawn_vector.to_dict(),
            "active_tab": self.active_tab.value,
            "message_count": len(self.messages),
            "write_failures": self.writer.failures,
        }

    # ------------------------------------------------------------------
    # Operator controls
    # ------------------------------------------------------------------

    def set_spawn_vector(self, x: float, y: float, z: float) -> Vector3:
        return self._require_engine().set_spawn_vector(x, y, z)

    def spawn(self, kind: Optional[ParticleKind] = None) -> BirthRecord:
        """Materialise a HyperBit at the spawn vector."""
        kind = ParticleKind(kind or self.config.physics.default_kind)
        record = self._require_engine().spawn(kind)
        self._persist(PARTICLES, record.to_dict())
        return record

    def tick(self) -> TimelineState:
        return self._require_engine().tick()

    def toggle_live(self) -> TimelineState:
        return self._require_engine().timeline.toggle()

    def scrub(self, timestamp: float) -> TimelineState:
        return self._require_engine().timeline.scrub(timestamp)

    def rewind(self, delta_ms: Optional[int] = None) -> TimelineState:
        step = self.config.timeline.rewind_step_ms if delta_ms is None else delta_ms
        return self._require_engine().timeline.rewind(step)

    def resume_live(self) -> TimelineState:
        return self._require_engine().timeline.resume_live()

    def set_active_tab(self, tab: Tab) -> None:
        self.active_tab = Tab(tab)

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    def handle_command(self, text: str, active_tab: Optional[Tab] = None) -> Optional[CommandResult]:
        """
        Process one line of operator input.

        1. Snap the timeline to live
        2. Classify the mode and extend the shadow context
        3. Store the user message
        4. Ask the completion backend for a reply
        5. Store the reply and audit the turn
        6. Spawn a HyperBit if the input asks for one

        Returns None for blank input. Callers that must not block while
        the backend answers can run the three phases separately:
        begin_turn(), generate_reply() off-thread, then finish_turn().
        """
        turn = self.begin_turn(text, active_tab)
        if turn is None:
            return None
        return self.finish_turn(turn, self.generate_reply(turn))

    def begin_turn(self, text: str, active_tab: Optional[Tab] = None) -> Optional[PendingTurn]:
        """Steps 1-3 of a chat turn. Returns None for blank input."""
        if not text or not text.strip():
            return None

        engine = self._require_engine()
        if active_tab is not None:
            self.active_tab = Tab(active_tab)

        self._state = SessionState.THINKING
        engine.timeline.resume_live()

        mode = self.classifier.classify(text, self.active_tab)
        self.active_mode = mode
        self.shadow_context = (self.shadow_context + [sentiment_for(mode)])[-SHADOW_CONTEXT_LIMIT:]

        history = list(self.messages)
        user_msg = ChatMessage(role="user", text=text, timestamp=self.clock())
        self._append_message(user_msg)

        return PendingTurn(
            text=text,
            mode=mode,
            user_message=user_msg,
            history=history,
            shadow_context=list(self.shadow_context),
        )

    def generate_reply(self, turn: PendingTurn) -> CompletionResult:
        """Ask the backend for a reply. Touches no session state."""
        try:
            return self.completion.generate_response(
                turn.history, turn.text, turn.mode, list(turn.shadow_context)
            )
        except CompletionError as e:
            logger.error(f"Completion failed: {e}")
            return CompletionResult(text=FAILURE_TEXT, introspection=FAILURE_INTROSPECTION, degraded=True)

    def finish_turn(self, turn: PendingTurn, response: CompletionResult) -> CommandResult:
        """Steps 5-6 of a chat turn."""
        self._require_engine()
        mode = turn.mode

        dream_requested = DREAM_MANIFEST_MARKER in response.text
        if dream_requested:
            self.active_tab = Tab.DREAM
            self.dream_prompt = turn.text

        reply = ChatMessage(
            role="ai",
            text=response.text.replace(DREAM_MANIFEST_MARKER, ""),
            timestamp=self.clock(),
            introspection=response.introspection,
            mode=mode.value,
        )
        self._append_message(reply)
        self._audit("CHAT_TURN", {"mode": mode.value})

        spawned = self.spawn() if wants_spawn(turn.text) else None

        self._state = SessionState.READY
        return CommandResult(
            user_message=turn.user_message,
            reply=reply,
            mode=mode,
            spawned=spawned,
            dream_requested=dream_requested,
        )

    def dream(self, prompt: Optional[str] = None) -> Optional[str]:
        """
        Manifest a dream image.

        Returns the data URI of the image, or None if nothing was produced.
        """
        prompt = self.begin_dream(prompt)
        if prompt is None:
            return None
        return self.finish_dream(self.render_dream(prompt))

    def begin_dream(self, prompt: Optional[str] = None) -> Optional[str]:
        """Resolve and audit the dream prompt. Returns None if there is none."""
        self._require_engine()
        prompt = (prompt if prompt is not None else self.dream_prompt).strip()
        if not prompt:
            return None

        self._state = SessionState.THINKING
        self._audit("DREAM_MANIFEST_START", {"prompt": prompt})
        return prompt

    def render_dream(self, prompt: str) -> Optional[str]:
        """Ask the backend for a base64 image. Touches no session state."""
        try:
            return self.completion.generate_dream(prompt)
        except CompletionError as e:
            logger.error(f"Dream generation failed: {e}")
            return None

    def finish_dream(self, image: Optional[str]) -> Optional[str]:
        self._require_engine()
        data_uri = None
        if image:
            data_uri = f"data:image/jpeg;base64,{image}"
            self.generated_image = data_uri
            self._audit("DREAM_MANIFEST_SUCCESS", {})
            self._append_message(ChatMessage(
                role="ai",
                text=DREAM_DONE_TEXT,
                timestamp=self.clock(),
                attachment=data_uri,
                introspection=DREAM_DONE_INTROSPECTION,
            ))

        self.dream_prompt = ""
        self._state = SessionState.READY
        return data_uri

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _append_message(self, message: ChatMessage) -> None:
        self.messages.append(message)
        self._persist(CHAT_MESSAGES, message.model_dump())

    def _audit(self, action_type: str, metadata: Dict[str, Any]) -> None:
        entry = AuditEntry(action_type=action_type, metadata=metadata, timestamp=self.clock())
        self._persist(AUDIT_LOG, entry.model_dump())

    def _persist(self, kind: str, record: Dict[str, Any]) -> None:
        self.writer.submit(kind, record)


def create_session(config: Optional[AuraConfig] = None, **kwargs) -> MirrorSession:
    """
    Create a mirror session.

    Args:
        config: AURA configuration
        **kwargs: Passed through to MirrorSession

    Returns:
        Unopened MirrorSession
    """
    return MirrorSession(config=config, **kwargs)


__all__ = [
    "SessionState",
    "NeuralTopology",
    "PendingTurn",
    "CommandResult",
    "MirrorSession",
    "create_session",
]
