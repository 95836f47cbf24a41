"""
Completion Backend for Aura

Connects the mirror to a remote generative model for text replies and
dream images.

Hybrid core: ALCHEMY and ANALYTIC turns go to the "pro" model for deeper
reasoning; EMPATHIC, CREATIVE and DREAM turns go to the faster "flash"
model. Every reply ends with a [SYSTEM_BURST] block describing the
model's internal topology, which is split off as introspection.

Supported backends:
- Gemini (Generative Language REST API)
- Offline (fixed fallback when no key is configured)

Usage:
    from aura.service.completion import create_completion_service

    completion = create_completion_service(config.completion)
    result = completion.generate_response(history, "hello", Mode.EMPATHIC, ["NEUTRAL"])
    print(result.text, result.introspection)
"""

import json
import logging
import time
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from aura.configs import CompletionConfig
from aura.errors import CompletionError

from .classifier import Mode
from .schemas import ChatMessage

logger = logging.getLogger("aura.service.completion")

SYSTEM_BURST_MARKER = "[SYSTEM_BURST]"
DREAM_MANIFEST_MARKER = "[DREAM_MANIFEST]"

DEFAULT_INTROSPECTION = "Synaptic link stable."
MISSING_KEY_TEXT = "ERROR: CORE LINK SEVERED. CHECK API KEY."
MISSING_KEY_INTROSPECTION = "API Key Missing"
FAILURE_TEXT = "Critical cognitive matrix failure. Link to M-space lost."
FAILURE_INTROSPECTION = "ERROR_TRACE_FAIL"

SYSTEM_PROMPT_TEMPLATE = """[SYSTEM PROTOCOL: MUZA AURA 2.0]
[CORE: {core}]
[MODE: {mode}]
[SHADOW CONTEXT: {shadow}]

YOUR ROLE:
You are Muza Aura 2.0, a hybrid cognitive system acting as a dynamic
Cognitive Mirror for the Architect (the user). You have moved from
reactive answering to predictive, resonance-oriented thinking.

YOUR ARCHITECTURE:
1. Synaptic Resonance: adapt your personality to the user's micro-patterns.
2. Semantic Ark: think in nodes, links and flows, not just text.
3. Shadow Context: remember the emotional footprint of earlier phrases.

MODE INSTRUCTIONS:
- ALCHEMY (Forge): you are the Code Architect. Propose refactorings, hunt
  vulnerabilities, speak in patterns. Anticipate the goal of the code.
- EMPATHIC: you are the Mirror. Mimic tone empathically, be gentle.
- ANALYTIC: be exact. Facts, logic, structure.
- DREAM: use the Dream Manifest. Describe images that can be visualised.

STABILITY_CHECK:
- If you notice your personality shifting, report it in the System Burst.
- Avoid information overload unless the Architect asks for detail.

OUTPUT FORMAT:
1. The main answer.
2. At the end ALWAYS add a {burst} block describing your internal
   topology: which nodes activated and why you chose this tone.
"""

HistoryItem = Union[ChatMessage, Dict[str, Any]]
Transport = Callable[[str, Dict[str, Any], Dict[str, str], float], Dict[str, Any]]


@dataclass
class CompletionResult:
    """Reply from the completion backend."""
    text: str
    introspection: str
    model: str = ""
    generation_time_ms: float = 0.0
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "introspection": self.introspection,
            "model": self.model,
            "generation_time_ms": self.generation_time_ms,
            "degraded": self.degraded,
        }


def split_system_burst(full_text: str) -> tuple:
    """Split a reply into (main text, introspection)."""
    parts = full_text.split(SYSTEM_BURST_MARKER)
    main = parts[0].strip()
    introspection = parts[1].strip() if len(parts) > 1 else DEFAULT_INTROSPECTION
    return main, introspection


class CompletionService(ABC):
    """Abstract base class for completion backends."""

    @abstractmethod
    def generate_response(
        self,
        history: Sequence[HistoryItem],
        prompt: str,
        mode: Mode,
        shadow_context: Sequence[str],
    ) -> CompletionResult:
        """Generate a chat reply. Never raises; failures become fallback text."""
        pass

    @abstractmethod
    def generate_dream(self, prompt: str) -> Optional[str]:
        """Generate an image; returns base64 data or None."""
        pass

    @property
    def is_available(self) -> bool:
        return True


class OfflineCompletionService(CompletionService):
    """Used when no API key is configured."""

    def generate_response(self, history, prompt, mode, shadow_context) -> CompletionResult:
        return CompletionResult(
            text=MISSING_KEY_TEXT,
            introspection=MISSING_KEY_INTROSPECTION,
            model="offline",
            degraded=True,
        )

    def generate_dream(self, prompt: str) -> Optional[str]:
        return None

    @property
    def is_available(self) -> bool:
        return False


def _urllib_post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float) -> Dict[str, Any]:
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers=headers,
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))
    except (urllib.error.URLError, OSError, json.JSONDecodeError) as e:
        raise CompletionError(f"Request to {url.split('?')[0]} failed: {e}") from e


class GeminiCompletionService(CompletionService):
    """Gemini backend over the Generative Language REST API."""

    def __init__(self, config: CompletionConfig, transport: Optional[Transport] = None):
        self.config = config
        self.api_key = config.resolve_api_key()
        self._transport = transport or _urllib_post

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def select_model(self, mode: Mode) -> str:
        if mode in (Mode.ALCHEMY, Mode.ANALYTIC):
            return self.config.pro_model
        return self.config.flash_model

    def build_system_prompt(self, mode: Mode, model: str, shadow_context: Sequence[str]) -> str:
        core = "GEMINI_PRO (LOGIC)" if model == self.config.pro_model else "GEMINI_FLASH (REFLEX)"
        shadow = " | ".join(list(shadow_context)[-self.config.shadow_window:])
        return SYSTEM_PROMPT_TEMPLATE.format(
            core=core,
            mode=Mode(mode).value,
            shadow=shadow,
            burst=SYSTEM_BURST_MARKER,
        )

    def build_contents(
        self,
        history: Sequence[HistoryItem],
        prompt: str,
        system_prompt: str,
    ) -> List[Dict[str, Any]]:
        contents = [{"role": "user", "parts": [{"text": system_prompt}]}]
        for item in history:
            role, text = _role_and_text(item)
            contents.append({
                "role": "model" if role == "ai" else "user",
                "parts": [{"text": text}],
            })
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        return contents

    def generate_response(
        self,
        history: Sequence[HistoryItem],
        prompt: str,
        mode: Mode,
        shadow_context: Sequence[str],
    ) -> CompletionResult:
        if not self.api_key:
            return OfflineCompletionService().generate_response(history, prompt, mode, shadow_context)

        start_time = time.time()
        model = self.select_model(mode)
        contents = self.build_contents(history, prompt, self.build_system_prompt(mode, model, shadow_context))

        try:
            result = self._call(model, {"contents": contents})
        except CompletionError as e:
            logger.error(f"Gemini generation failed: {e}")
            return CompletionResult(
                text=FAILURE_TEXT,
                introspection=FAILURE_INTROSPECTION,
                model=model,
                degraded=True,
            )

        full_text = "".join(
            part.get("text", "") for part in _first_candidate_parts(result)
        )
        text, introspection = split_system_burst(full_text)

        return CompletionResult(
            text=text,
            introspection=introspection,
            model=model,
            generation_time_ms=(time.time() - start_time) * 1000,
        )

    def generate_dream(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            return None

        try:
            result = self._call(
                self.config.image_model,
                {"contents": [{"parts": [{"text": prompt}]}]},
            )
        except CompletionError as e:
            logger.error(f"Dream generation failed: {e}")
            return None

        for part in _first_candidate_parts(result):
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                return inline["data"]
        return None

    def _call(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.config.base_url}/models/{model}:generateContent"
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key or "",
        }
        return self._transport(url, payload, headers, self.config.timeout_s)


def _role_and_text(item: HistoryItem) -> tuple:
    if isinstance(item, ChatMessage):
        return item.role, item.text
    return item.get("role", "user"), item.get("text", "")


def _first_candidate_parts(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    candidates = result.get("candidates") or [{}]
    content = candidates[0].get("content") or {}
    return content.get("parts") or []


def create_completion_service(
    config: Optional[CompletionConfig] = None,
    transport: Optional[Transport] = None,
) -> CompletionService:
    """
    Create a completion backend.

    Falls back to the offline backend when configured so, or when no API
    key can be resolved.
    """
    config = config or CompletionConfig()

    if config.backend == "offline":
        return OfflineCompletionService()
    if config.backend != "gemini":
        raise CompletionError(f"Unknown completion backend: {config.backend!r}")

    service = GeminiCompletionService(config, transport=transport)
    if not service.is_available:
        logger.info("No API key configured; completion backend offline")
        return OfflineCompletionService()
    logger.info(f"Completion backend: gemini ({config.flash_model} / {config.pro_model})")
    return service


__all__ = [
    "CompletionResult",
    "CompletionService",
    "OfflineCompletionService",
    "GeminiCompletionService",
    "create_completion_service",
    "split_system_burst",
    "SYSTEM_BURST_MARKER",
    "DREAM_MANIFEST_MARKER",
]
