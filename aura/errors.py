"""Exception hierarchy for Aura."""


class AuraError(Exception):
    """Base exception for Aura errors."""
    pass


class ConfigError(AuraError):
    """Configuration file could not be parsed."""
    pass


class PersistenceError(AuraError):
    """Record store rejected a save or load."""
    pass


class CompletionError(AuraError):
    """Completion backend failed to produce a response."""
    pass


class SessionClosedError(AuraError):
    """Operation attempted on a session that has been closed."""
    pass


__all__ = [
    "AuraError",
    "ConfigError",
    "PersistenceError",
    "CompletionError",
    "SessionClosedError",
]
