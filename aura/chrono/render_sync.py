"""
Render Sync - per-particle visibility, position and highlight.

Evaluates the trajectory of every registered particle at the cursor and
pushes the results into a presentation arena. The arena maps particle id
to a presentation handle (a mesh, a DOM node, a dict) and is reconciled
by add/remove, so handles survive membership changes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .physics import Vector3
from .registry import BirthRecord
from .trajectory import Freshness, freshness, highlight_intensity, position_at

logger = logging.getLogger("aura.chrono.render")


@dataclass(frozen=True)
class ParticleView:
    """What the presentation layer needs to draw one particle."""
    id: str
    visible: bool
    position: Optional[Vector3]
    highlight_intensity: float
    freshness: Freshness
    collapsed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "visible": self.visible,
            "position": self.position.to_dict() if self.position else None,
            "highlight_intensity": self.highlight_intensity,
            "freshness": self.freshness.value,
            "collapsed": self.collapsed,
        }


def evaluate(record: BirthRecord, query_time: float) -> ParticleView:
    """Evaluate a single record at query_time."""
    position = position_at(record, query_time)
    state = freshness(record, query_time)
    return ParticleView(
        id=record.id,
        visible=position is not None,
        position=position,
        highlight_intensity=highlight_intensity(state),
        freshness=state,
        collapsed=record.quantum.collapsed,
    )


class PresentationArena(ABC):
    """Owns presentation handles for particles."""

    @abstractmethod
    def create(self, record: BirthRecord) -> Any:
        """Allocate a handle for a newly registered particle."""
        pass

    @abstractmethod
    def update(self, handle: Any, view: ParticleView) -> None:
        """Apply a freshly evaluated view to a handle."""
        pass

    @abstractmethod
    def discard(self, handle: Any) -> None:
        """Release a handle whose particle left the registry."""
        pass


class ViewArena(PresentationArena):
    """Headless arena: each handle is a dict holding the latest view."""

    def __init__(self):
        self.created = 0
        self.discarded = 0

    def create(self, record: BirthRecord) -> Dict[str, Any]:
        self.created += 1
        return {"id": record.id, "kind": record.kind.value, "view": None}

    def update(self, handle: Dict[str, Any], view: ParticleView) -> None:
        handle["view"] = view

    def discard(self, handle: Dict[str, Any]) -> None:
        self.discarded += 1
        handle["view"] = None


class RenderSync:
    """
    Keeps an arena in step with the registry and the cursor.

    A pass is needed whenever the cursor moved or the number of
    registered records differs from the previous pass. Evaluation order
    is registry insertion order.
    """

    def __init__(self, arena: Optional[PresentationArena] = None):
        self.arena = arena or ViewArena()
        self._handles: Dict[str, Any] = {}
        self._last_cursor: Optional[float] = None
        self._last_count: Optional[int] = None
        self._frame: List[ParticleView] = []
        self.passes = 0

    @property
    def frame(self) -> List[ParticleView]:
        """Views from the most recent pass."""
        return list(self._frame)

    def handle_for(self, record_id: str) -> Any:
        return self._handles.get(record_id)

    def needs_sync(self, cursor_time: float, count: int) -> bool:
        return cursor_time != self._last_cursor or count != self._last_count

    def sync(self, records: Iterable[BirthRecord], cursor_time: float) -> List[ParticleView]:
        """Reconcile handles, then evaluate every record at cursor_time."""
        records = list(records)
        if self._membership_changed(records):
            self._reconcile(records)

        views = []
        for record in records:
            view = evaluate(record, cursor_time)
            self.arena.update(self._handles[record.id], view)
            views.append(view)

        self._frame = views
        self._last_cursor = cursor_time
        self._last_count = len(records)
        self.passes += 1
        return list(views)

    def sync_if_needed(self, records: Iterable[BirthRecord], cursor_time: float) -> Optional[List[ParticleView]]:
        records = list(records)
        if not self.needs_sync(cursor_time, len(records)) and not self._membership_changed(records):
            return None
        return self.sync(records, cursor_time)

    def _membership_changed(self, records: List[BirthRecord]) -> bool:
        # A same-size swap changes the id set without changing the count
        return {r.id for r in records} != self._handles.keys()

    def _reconcile(self, records: List[BirthRecord]) -> None:
        wanted = {r.id for r in records}

        for record_id in [rid for rid in self._handles if rid not in wanted]:
            self.arena.discard(self._handles.pop(record_id))

        added = 0
        for record in records:
            if record.id not in self._handles:
                self._handles[record.id] = self.arena.create(record)
                added += 1

        if added:
            logger.debug(f"Allocated {added} presentation handles ({len(self._handles)} total)")

    def dispose(self) -> None:
        """Release every handle."""
        for handle in self._handles.values():
            self.arena.discard(handle)
        self._handles.clear()
        self._frame = []
        self._last_cursor = None
        self._last_count = None


__all__ = [
    "ParticleView",
    "PresentationArena",
    "ViewArena",
    "RenderSync",
    "evaluate",
]
