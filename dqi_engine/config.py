"""
Engine configuration.

Values load from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """
    Runtime configuration for the DQI engine and its outer surfaces.
    """

    # Narrative collaborator
    narrative_timeout: float = field(
        default_factory=lambda: float(os.environ.get("DQI_NARRATIVE_TIMEOUT", "5.0"))
    )
    narrative_enabled: bool = field(
        default_factory=lambda: _env_bool("DQI_NARRATIVE_ENABLED", "true")
    )
    openai_model: str = field(
        default_factory=lambda: os.environ.get("DQI_OPENAI_MODEL", "gpt-4o")
    )

    # Aggregation
    peer_benchmark: int = field(
        default_factory=lambda: int(os.environ.get("DQI_PEER_BENCHMARK", "71"))
    )

    # Pillar fan-out (1 = sequential)
    max_workers: int = field(
        default_factory=lambda: int(os.environ.get("DQI_MAX_WORKERS", "7"))
    )

    # Outer surfaces
    storage_path: str = field(
        default_factory=lambda: os.environ.get("DQI_STORAGE_PATH", "./data/properties.json")
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("DQI_LOG_LEVEL", "INFO").upper()
    )

    def __post_init__(self) -> None:
        if self.narrative_timeout <= 0:
            raise ValueError("narrative_timeout must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @classmethod
    def load(cls) -> "EngineConfig":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "narrative_timeout": self.narrative_timeout,
            "narrative_enabled": self.narrative_enabled,
            "openai_model": self.openai_model,
            "peer_benchmark": self.peer_benchmark,
            "max_workers": self.max_workers,
            "storage_path": self.storage_path,
            "log_level": self.log_level,
        }
