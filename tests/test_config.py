"""
Tests for environment-driven engine configuration.
"""

import pytest

from dqi_engine.config import EngineConfig


class TestEngineConfig:
    """Test defaults, environment overrides and validation."""

    def test_defaults(self, monkeypatch):
        for name in (
            "DQI_NARRATIVE_TIMEOUT", "DQI_NARRATIVE_ENABLED", "DQI_OPENAI_MODEL",
            "DQI_PEER_BENCHMARK", "DQI_MAX_WORKERS", "DQI_STORAGE_PATH", "DQI_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        config = EngineConfig.load()
        assert config.narrative_timeout == 5.0
        assert config.narrative_enabled is True
        assert config.openai_model == "gpt-4o"
        assert config.peer_benchmark == 71
        assert config.max_workers == 7
        assert config.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DQI_NARRATIVE_TIMEOUT", "2.5")
        monkeypatch.setenv("DQI_NARRATIVE_ENABLED", "false")
        monkeypatch.setenv("DQI_PEER_BENCHMARK", "74")
        monkeypatch.setenv("DQI_LOG_LEVEL", "debug")
        config = EngineConfig.load()
        assert config.narrative_timeout == 2.5
        assert config.narrative_enabled is False
        assert config.peer_benchmark == 74
        assert config.log_level == "DEBUG"

    def test_to_dict(self):
        data = EngineConfig(peer_benchmark=75).to_dict()
        assert data["peer_benchmark"] == 75
        assert set(data) >= {"narrative_timeout", "max_workers", "storage_path"}

    @pytest.mark.parametrize("kwargs", [
        {"narrative_timeout": 0},
        {"max_workers": 0},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)
