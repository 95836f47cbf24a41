"""
AURA Configuration

Handles loading and accessing configuration for:
- Timeline tick and refresh rates
- Birth sampling
- Initial metrics
- Completion backend
- Record storage

Usage:
    from aura.configs import load_config

    config = load_config()                      # search default locations
    config = load_config(Path("aura.yaml"))     # explicit file
    print(config.timeline.tick_interval_ms)
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from aura.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class TimelineConfig:
    """Timeline tick/refresh configuration."""

    tick_interval_ms: int = 100
    refresh_hz: float = 60.0
    rewind_step_ms: int = 10_000


@dataclass
class PhysicsConfig:
    """Birth sampling configuration."""

    velocity_speed: float = 5.0
    default_kind: str = "electron"
    spawn_vector: List[float] = field(default_factory=lambda: [30.0, 30.0, 30.0])
    seed: Optional[int] = None


@dataclass
class MetricsConfig:
    """Initial metric values."""

    stability: float = 0.99
    coherence: float = 1.0
    dimension: int = 11


@dataclass
class CompletionConfig:
    """Configuration for the completion backend."""

    backend: str = "gemini"           # "gemini" or "offline"
    api_key: Optional[str] = None     # falls back to GEMINI_API_KEY / API_KEY
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    flash_model: str = "gemini-2.5-flash"
    pro_model: str = "gemini-3-pro-preview"
    image_model: str = "gemini-2.5-flash-image"
    timeout_s: float = 60.0
    shadow_window: int = 5

    def resolve_api_key(self) -> Optional[str]:
        return self.api_key or os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY") or None


@dataclass
class StorageConfig:
    """Configuration for the record store."""

    backend: str = "json"             # "json" or "memory"
    data_dir: str = "~/.aura/data"
    async_writes: bool = True

    def get_data_path(self) -> Path:
        return Path(os.path.expanduser(self.data_dir))


@dataclass
class AuraConfig:
    """Complete AURA configuration."""

    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuraConfig":
        """Create from dictionary. Unknown keys are ignored."""
        config = cls()

        if "timeline" in data:
            config.timeline = _section(TimelineConfig, data["timeline"])
        if "physics" in data:
            config.physics = _section(PhysicsConfig, data["physics"])
        if "metrics" in data:
            config.metrics = _section(MetricsConfig, data["metrics"])
        if "completion" in data:
            config.completion = _section(CompletionConfig, data["completion"])
        if "storage" in data:
            config.storage = _section(StorageConfig, data["storage"])

        config.log_level = data.get("log_level", config.log_level)
        return config


def _section(cls, data: Optional[Dict[str, Any]]):
    if not data:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section for {cls.__name__} must be a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


# =============================================================================
# Loading Functions
# =============================================================================

_config_search_paths: List[Path] = [
    Path.home() / ".aura" / "config.yaml",
    Path.home() / ".config" / "aura" / "config.yaml",
    Path("aura_config.yaml"),
    Path("config/aura.yaml"),
]


def load_config(path: Optional[Path] = None) -> AuraConfig:
    """Load configuration from file.

    Args:
        path: Explicit config path (optional). Errors in an explicit file
            raise ConfigError; errors in a discovered file fall back to
            defaults with a warning.

    Returns:
        Loaded configuration
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return _load_file(path)

    for search_path in _config_search_paths:
        if search_path.exists():
            try:
                return _load_file(search_path)
            except ConfigError as e:
                logger.warning(f"Ignoring config {search_path}: {e}")
                break

    return AuraConfig()


def _load_file(path: Path) -> AuraConfig:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping")

    config = AuraConfig.from_dict(data or {})
    logger.info(f"Loaded config from {path}")
    return config


def save_config(config: AuraConfig, path: Optional[Path] = None) -> Path:
    """Save configuration to file.

    Args:
        config: Configuration to save
        path: Path to save to (defaults to ~/.aura/config.yaml)
    """
    save_path = Path(path) if path else Path.home() / ".aura" / "config.yaml"
    save_path.parent.mkdir(parents=True, exist_ok=True)

    with open(save_path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False)

    logger.info(f"Saved config to {save_path}")
    return save_path


__all__ = [
    "TimelineConfig",
    "PhysicsConfig",
    "MetricsConfig",
    "CompletionConfig",
    "StorageConfig",
    "AuraConfig",
    "load_config",
    "save_config",
]
