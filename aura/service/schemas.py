"""Data schemas for Aura's persisted conversation records.

Pydantic models for chat messages and the audit (genesis) log.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChatMessage(BaseModel):
    """One chat turn.

    Example record:
    {
      "id": "5f0c...",
      "role": "ai",
      "text": "Visualisation of the thought-form complete.",
      "timestamp": 1716700000000,
      "introspection": "Vision module engaged.",
      "attachment": "data:image/jpeg;base64,...",
      "mode": "DREAM"
    }
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Literal["ai", "user"]
    text: str
    timestamp: int = Field(default_factory=_now_ms)   # epoch ms
    introspection: Optional[str] = None               # system burst reasoning
    attachment: Optional[str] = None                  # data URI
    mode: Optional[str] = None                        # mode the reply was generated in


class AuditEntry(BaseModel):
    """Genesis log entry: one notable action."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: int = Field(default_factory=_now_ms)
    action_type: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


__all__ = ["ChatMessage", "AuditEntry"]
