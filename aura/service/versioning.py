"""Release history shown in the roadmap panel."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class UpdateStatus(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in-progress"
    PLANNED = "planned"


@dataclass(frozen=True)
class SystemUpdate:
    version: str
    date: str
    title: str
    description: str
    status: UpdateStatus
    features: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "date": self.date,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "features": list(self.features),
        }


_UPDATES = (
    SystemUpdate(
        version="v2.4 (AURA)",
        date="2024-05-26",
        title="Master Prompt: Muza Aura 2.0",
        description="Full synchronisation with the architectural blade.",
        status=UpdateStatus.COMPLETED,
        features=[
            "Cognitive Mirror: topology of consciousness visualised",
            "Code Forge (Alchemy): generative refactoring mode",
            "Empathic Mimicry: UI adapts to mood",
            "Dream Manifest: thought-form image generation (Vision Core)",
        ],
    ),
    SystemUpdate(
        version="v2.3",
        date="2024-05-25",
        title="Hybrid Core: Resonance",
        description="Move to a hybrid core (Flash/Pro) and shadow context.",
        status=UpdateStatus.COMPLETED,
        features=[
            "Hybrid Core: Gemini Flash + Pro",
            "Shadow Context: emotional memory",
            "System Burst: internal introspection",
        ],
    ),
    SystemUpdate(
        version="v2.2",
        date="2024-05-22",
        title="Architectural Singularity",
        description="Assimilation of the 'Muza Nexus Prism' architecture.",
        status=UpdateStatus.COMPLETED,
        features=[
            "Master Prompt Integration",
            "Roadmap Visualization",
            "Logic Restructuring",
        ],
    ),
)


def get_updates() -> List[SystemUpdate]:
    """Newest first."""
    return list(_UPDATES)


__all__ = ["UpdateStatus", "SystemUpdate", "get_updates"]
