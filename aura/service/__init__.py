"""
Aura Service Layer

Conversation session and the collaborators it is built from.

Components:
- MirrorSession: Main session orchestrator
- Completion: Gemini / offline reply and dream backends
- Persistence: Record stores and the write-behind queue
- Classifier: Keyword mode detection

Usage:
    from aura.service import create_session

    with create_session(config) as session:
        result = session.handle_command("hello")
        print(result.reply.text)
"""

from .classifier import (
    KeywordModeClassifier,
    Mode,
    ModeClassifier,
    Tab,
    sentiment_for,
    wants_spawn,
)
from .completion import (
    CompletionResult,
    CompletionService,
    GeminiCompletionService,
    OfflineCompletionService,
    create_completion_service,
    split_system_burst,
)
from .persistence import (
    JsonFileStore,
    MemoryStore,
    PersistenceStore,
    WriteBehind,
    create_store,
)
from .schemas import AuditEntry, ChatMessage
from .session import (
    CommandResult,
    MirrorSession,
    NeuralTopology,
    PendingTurn,
    SessionState,
    create_session,
)
from .versioning import SystemUpdate, UpdateStatus, get_updates

__all__ = [
    # Session
    "MirrorSession",
    "SessionState",
    "CommandResult",
    "NeuralTopology",
    "PendingTurn",
    "create_session",
    # Classification
    "Mode",
    "Tab",
    "ModeClassifier",
    "KeywordModeClassifier",
    "sentiment_for",
    "wants_spawn",
    # Completion
    "CompletionResult",
    "CompletionService",
    "GeminiCompletionService",
    "OfflineCompletionService",
    "create_completion_service",
    "split_system_burst",
    # Persistence
    "PersistenceStore",
    "MemoryStore",
    "JsonFileStore",
    "WriteBehind",
    "create_store",
    # Schemas
    "ChatMessage",
    "AuditEntry",
    # Release notes
    "SystemUpdate",
    "UpdateStatus",
    "get_updates",
]
