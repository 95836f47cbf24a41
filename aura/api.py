"""
Mirror API: REST endpoints over a MirrorSession.

Provides:
- Timeline, particle frame, metrics and full snapshot reads
- Operator controls (spawn, spawn vector, scrub, rewind, live, toggle)
- Chat turns and dream manifests

The session belongs to the application (app.state.session) and the
chrono loop runs inside the application lifespan, so the timeline keeps
ticking while the server is up.

Usage:
    uvicorn aura.api:app --port 8000
    aura serve --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from aura import __version__
from aura.chrono import ChronoLoop, ParticleKind
from aura.configs import load_config
from aura.service import MirrorSession, Tab, create_session, get_updates

logger = logging.getLogger("aura.api")

router = APIRouter(prefix="/api/mirror", tags=["mirror"])


# ============================================================================
# Pydantic Models
# ============================================================================

class SpawnRequest(BaseModel):
    """Materialise a HyperBit."""
    kind: Optional[ParticleKind] = None


class SpawnVectorRequest(BaseModel):
    """Spawn coordinates; clamped to [-100, 100] per axis."""
    x: float
    y: float
    z: float


class ScrubRequest(BaseModel):
    """Absolute instant in epoch ms; clamped to the observed window."""
    timestamp: float


class RewindRequest(BaseModel):
    delta_ms: Optional[int] = Field(default=None, ge=0)


class ChatRequest(BaseModel):
    text: str
    active_tab: Optional[Tab] = None


class DreamRequest(BaseModel):
    prompt: Optional[str] = None


def get_session(request: Request) -> MirrorSession:
    """The session owned by the running application."""
    session: MirrorSession = request.app.state.session
    session.open()
    return session


# ============================================================================
# Reads
# ============================================================================

@router.get("/timeline")
async def get_timeline(session: MirrorSession = Depends(get_session)):
    """Cursor, mode and observable window."""
    return session.timeline_state.to_dict()


@router.get("/particles")
async def get_particles(session: MirrorSession = Depends(get_session)) -> List[Dict[str, Any]]:
    """Every HyperBit evaluated at the current cursor, in birth order."""
    return [view.to_dict() for view in session.frame()]


@router.get("/metrics")
async def get_metrics(session: MirrorSession = Depends(get_session)):
    return session.metrics.to_dict()


@router.get("/snapshot")
async def get_snapshot(session: MirrorSession = Depends(get_session)):
    """Timeline, particles, metrics and topology in one response."""
    return session.snapshot()


@router.get("/updates")
async def get_release_notes():
    return {"version": __version__, "updates": [u.to_dict() for u in get_updates()]}


# ============================================================================
# Operator controls
# ============================================================================

@router.post("/spawn")
async def spawn(request: SpawnRequest, session: MirrorSession = Depends(get_session)):
    return session.spawn(request.kind).to_dict()


@router.post("/spawn-vector")
async def set_spawn_vector(request: SpawnVectorRequest, session: MirrorSession = Depends(get_session)):
    return session.set_spawn_vector(request.x, request.y, request.z).to_dict()


@router.post("/scrub")
async def scrub(request: ScrubRequest, session: MirrorSession = Depends(get_session)):
    return session.scrub(request.timestamp).to_dict()


@router.post("/rewind")
async def rewind(request: RewindRequest, session: MirrorSession = Depends(get_session)):
    return session.rewind(request.delta_ms).to_dict()


@router.post("/live")
async def resume_live(session: MirrorSession = Depends(get_session)):
    return session.resume_live().to_dict()


@router.post("/toggle")
async def toggle(session: MirrorSession = Depends(get_session)):
    return session.toggle_live().to_dict()


# ============================================================================
# Conversation
# ============================================================================

@router.post("/chat")
async def chat(request: ChatRequest, session: MirrorSession = Depends(get_session)):
    """
    Run one chat turn.

    Snaps the timeline to live, may spawn a HyperBit and may request a
    dream manifest. Only the backend call leaves the event loop; session
    state is read and written on the loop alongside the chrono ticker.
    """
    turn = session.begin_turn(request.text, request.active_tab)
    if turn is None:
        raise HTTPException(status_code=400, detail="Empty input")
    response = await run_in_threadpool(session.generate_reply, turn)
    return session.finish_turn(turn, response).to_dict()


@router.post("/dream")
async def dream(request: DreamRequest, session: MirrorSession = Depends(get_session)):
    prompt = session.begin_dream(request.prompt)
    image = None
    if prompt is not None:
        image = session.finish_dream(await run_in_threadpool(session.render_dream, prompt))
    if image is None:
        raise HTTPException(status_code=502, detail="Dream manifest produced no image")
    return {"attachment": image}


# ============================================================================
# Application
# ============================================================================

def create_app(session: Optional[MirrorSession] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        session: Session to serve (default: one built from load_config())
    """
    if session is None:
        session = create_session(load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        current: MirrorSession = app.state.session.open()
        timeline_cfg = current.config.timeline
        loop = ChronoLoop(
            current.engine,
            tick_interval=timeline_cfg.tick_interval_ms / 1000,
            refresh_interval=1 / timeline_cfg.refresh_hz,
        )
        logger.info("Mirror API starting up...")
        await loop.start()
        yield
        await loop.stop()
        current.close()
        logger.info("Mirror API shut down")

    app = FastAPI(
        title="AURA Mirror API",
        description="Chrono-Positioning Engine and cognitive mirror session",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session = session
    app.include_router(router)
    return app


def __getattr__(name):
    # `uvicorn aura.api:app` builds the default app on first access
    if name == "app":
        return create_app()
    raise AttributeError(f"module 'aura.api' has no attribute '{name}'")


__all__ = ["router", "create_app", "get_session"]
