"""
AURA: Cognitive Mirror

A conversational mirror that keeps a chat history, a population of
time-stamped particles (HyperBits) and a scrubbable timeline, delegating
language to an external generative model.

Core Components:
- chrono: Chrono-Positioning Engine (trajectory, registry, timeline,
  render sync, metrics, tick loop)
- service: Conversation session, completion backends, persistence,
  mode classification

Example usage:

    from aura.configs import load_config
    from aura.service import create_session

    session = create_session(load_config())
    session.open()
    session.handle_command("materialise a bit")
    print(session.snapshot())

CLI Commands:
    aura                # Interactive mirror
    aura --status       # Print a snapshot and exit
    aura serve          # Start the HTTP API
"""

__version__ = "0.3.0"
__author__ = "AURA Framework"

_lazy_imports = {}


def __getattr__(name):
    """Lazy import handler for main package attributes."""
    if name in _lazy_imports:
        return _lazy_imports[name]

    if name in ("ChronoEngine", "TimelineController", "ParticleRegistry", "BirthRecord"):
        from aura import chrono
        _lazy_imports[name] = getattr(chrono, name)
        return _lazy_imports[name]

    if name in ("MirrorSession", "create_session"):
        from aura import service
        _lazy_imports[name] = getattr(service, name)
        return _lazy_imports[name]

    if name in ("AuraConfig", "load_config"):
        from aura import configs
        _lazy_imports[name] = getattr(configs, name)
        return _lazy_imports[name]

    raise AttributeError(f"module 'aura' has no attribute '{name}'")


__all__ = [
    "__version__",
    "ChronoEngine",
    "TimelineController",
    "ParticleRegistry",
    "BirthRecord",
    "MirrorSession",
    "create_session",
    "AuraConfig",
    "load_config",
]
