"""
Mode classification for chat input.

Decides which cognitive mode a reply is generated in. The default
classifier is a keyword heuristic; anything implementing
ModeClassifier.classify can replace it.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Sequence


class Mode(str, Enum):
    """Dominant mode of the neural topology."""
    ANALYTIC = "ANALYTIC"
    CREATIVE = "CREATIVE"
    DREAM = "DREAM"
    EMPATHIC = "EMPATHIC"
    ALCHEMY = "ALCHEMY"


class Tab(str, Enum):
    """UI tab the operator is looking at."""
    MIRROR = "mirror"
    ALCHEMY = "alchemy"
    HISTORY = "history"
    DREAM = "dream"


# Shadow-context tags recorded per turn
SENTIMENT_BY_MODE = {
    Mode.EMPATHIC: "EMOTIONAL_VULNERABILITY",
    Mode.ALCHEMY: "TECHNICAL_FOCUS",
}
NEUTRAL_SENTIMENT = "NEUTRAL"


def sentiment_for(mode: Mode) -> str:
    return SENTIMENT_BY_MODE.get(mode, NEUTRAL_SENTIMENT)


class ModeClassifier(ABC):
    """Maps free text (and the active tab) to a Mode."""

    @abstractmethod
    def classify(self, text: str, active_tab: Optional[Tab] = None) -> Mode:
        pass


class KeywordModeClassifier(ModeClassifier):
    """
    Substring heuristic.

    Checked in order: ALCHEMY, DREAM, EMPATHIC; ANALYTIC otherwise.
    Russian stems sit alongside English ones.
    """

    def __init__(
        self,
        alchemy: Sequence[str] = ("код", "функц", "api", "code", "function"),
        dream: Sequence[str] = ("сон", "мечт", "образ", "dream", "imagine", "image"),
        empathic: Sequence[str] = ("привет", "чувств", "груст", "hello", "feel", "sad"),
    ):
        self.alchemy = tuple(alchemy)
        self.dream = tuple(dream)
        self.empathic = tuple(empathic)

    def classify(self, text: str, active_tab: Optional[Tab] = None) -> Mode:
        lower = text.lower()

        if _contains_any(lower, self.alchemy) or active_tab == Tab.ALCHEMY:
            return Mode.ALCHEMY
        if _contains_any(lower, self.dream) or active_tab == Tab.DREAM:
            return Mode.DREAM
        if _contains_any(lower, self.empathic):
            return Mode.EMPATHIC
        return Mode.ANALYTIC


def _contains_any(text: str, needles: Sequence[str]) -> bool:
    return any(n in text for n in needles)


# Input that asks for a HyperBit to be materialised
SPAWN_KEYWORDS = ("бит", "bit")


def wants_spawn(text: str) -> bool:
    return _contains_any(text.lower(), SPAWN_KEYWORDS)


__all__ = [
    "Mode",
    "Tab",
    "ModeClassifier",
    "KeywordModeClassifier",
    "sentiment_for",
    "wants_spawn",
    "SPAWN_KEYWORDS",
]
