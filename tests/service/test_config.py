"""
Tests for YAML configuration loading.
"""

import pytest
import yaml

import aura.configs as configs
from aura.configs import AuraConfig, load_config, save_config
from aura.errors import ConfigError


class TestAuraConfig:
    """Tests for the config dataclasses."""

    def test_defaults(self):
        config = AuraConfig()
        assert config.timeline.tick_interval_ms == 100
        assert config.timeline.rewind_step_ms == 10_000
        assert config.physics.velocity_speed == 5.0
        assert config.metrics.coherence == 1.0
        assert config.storage.backend == "json"
        assert config.log_level == "INFO"

    def test_from_dict_ignores_unknown_keys(self):
        config = AuraConfig.from_dict({
            "timeline": {"tick_interval_ms": 50, "warp": 9},
            "physics": {"seed": 11},
            "mystery": True,
        })
        assert config.timeline.tick_interval_ms == 50
        assert config.timeline.refresh_hz == 60.0
        assert config.physics.seed == 11

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigError):
            AuraConfig.from_dict({"timeline": [1, 2, 3]})

    def test_api_key_resolution(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("API_KEY", "fallback")
        config = AuraConfig()
        assert config.completion.resolve_api_key() == "fallback"

        config.completion.api_key = "explicit"
        assert config.completion.resolve_api_key() == "explicit"


class TestLoadConfig:
    """Tests for load_config and save_config."""

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "aura.yaml"
        path.write_text(yaml.safe_dump({
            "storage": {"backend": "memory"},
            "completion": {"flash_model": "gemini-test"},
            "log_level": "DEBUG",
        }))

        config = load_config(path)
        assert config.storage.backend == "memory"
        assert config.completion.flash_model == "gemini-test"
        assert config.log_level == "DEBUG"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AuraConfig()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("timeline: [unclosed")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_search_paths(self, tmp_path, monkeypatch):
        good = tmp_path / "found.yaml"
        good.write_text(yaml.safe_dump({"timeline": {"refresh_hz": 30.0}}))
        monkeypatch.setattr(configs, "_config_search_paths", [tmp_path / "absent.yaml", good])

        assert load_config().timeline.refresh_hz == 30.0

    def test_broken_discovered_file_falls_back(self, tmp_path, monkeypatch):
        bad = tmp_path / "bad.yaml"
        bad.write_text("timeline: [unclosed")
        monkeypatch.setattr(configs, "_config_search_paths", [bad])

        assert load_config() == AuraConfig()

    def test_save_and_reload(self, tmp_path):
        config = AuraConfig()
        config.physics.spawn_vector = [1.0, 2.0, 3.0]
        path = save_config(config, tmp_path / "nested" / "aura.yaml")

        assert load_config(path) == config
