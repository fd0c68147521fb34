"""Tests for config/config_loader.py."""

from pathlib import Path

import pytest
import yaml

from config.config_loader import (
    DEFAULT_INSTRUCTION,
    AppConfig,
    ModelConfig,
    PromptsConfig,
    load_config,
)


def _write_settings(tmp_path: Path, settings: dict) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump(settings), encoding="utf-8")
    return path


@pytest.fixture
def minimal_settings(tmp_path: Path) -> Path:
    """Write a minimal valid settings.yaml to a temp path."""
    settings = {
        "watch": {
            "dir": str(tmp_path / "inbox"),
            "extensions": [".txt", ".md"],
            "debounce_sec": 0.25,
            "max_concurrent_events": 2,
        },
        "store": {"dir": str(tmp_path / "store")},
        "prompts": {"instruction": "Explain briefly:\n\n"},
        "defaults": {"panel": ["claude", "openai"], "allow_partial": True},
        "models": {
            "claude": {
                "sdk": "anthropic",
                "model": "claude-sonnet-4-20250514",
                "api_key_env": "TEST_CLAUDE_KEY",
                "timeout_sec": 120,
                "max_tokens": 2048,
                "input_per_1m": 3,
                "output_per_1m": 15,
            },
            "openai": {
                "sdk": "openai",
                "model": "gpt-4o-mini",
                "api_key_env": "TEST_OPENAI_KEY",
                "timeout_sec": 60,
                "max_tokens": 1024,
            },
        },
    }
    return _write_settings(tmp_path, settings)


def test_load_config_returns_app_config(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config, AppConfig)


def test_load_config_watch_section(minimal_settings, tmp_path):
    config = load_config(minimal_settings)
    assert config.watch.dir == tmp_path / "inbox"
    assert config.watch.extensions == [".txt", ".md"]
    assert config.watch.debounce_sec == 0.25
    assert config.watch.max_concurrent_events == 2


def test_load_config_store_dir(minimal_settings, tmp_path):
    config = load_config(minimal_settings)
    assert config.store.dir == tmp_path / "store"
    assert isinstance(config.store.dir, Path)


def test_load_config_prompts(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config.prompts, PromptsConfig)
    assert config.prompts.instruction == "Explain briefly:\n\n"


def test_load_config_defaults(minimal_settings):
    config = load_config(minimal_settings)
    assert config.defaults.panel == ["claude", "openai"]
    assert config.defaults.allow_partial is True


def test_load_config_models(minimal_settings):
    config = load_config(minimal_settings)
    claude = config.models["claude"]
    assert isinstance(claude, ModelConfig)
    assert claude.name == "claude"
    assert claude.sdk == "anthropic"
    assert claude.max_tokens == 2048
    assert claude.input_per_1m == 3.0
    assert claude.output_per_1m == 15.0


def test_model_pricing_and_base_url_optional(minimal_settings):
    config = load_config(minimal_settings)
    openai = config.models["openai"]
    assert openai.base_url is None
    assert openai.input_per_1m is None
    assert openai.output_per_1m is None


def test_load_config_available_providers_with_key(minimal_settings, monkeypatch):
    monkeypatch.setenv("TEST_CLAUDE_KEY", "sk-test-key")
    monkeypatch.delenv("TEST_OPENAI_KEY", raising=False)
    config = load_config(minimal_settings)
    assert config.available_providers == {"claude"}


def test_load_config_blank_key_is_unavailable(minimal_settings, monkeypatch):
    monkeypatch.setenv("TEST_CLAUDE_KEY", "   ")
    monkeypatch.delenv("TEST_OPENAI_KEY", raising=False)
    config = load_config(minimal_settings)
    assert config.available_providers == set()


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config(Path("/nonexistent/settings.yaml"))


def test_load_config_sections_are_optional(tmp_path: Path):
    path = _write_settings(tmp_path, {"models": {}})
    config = load_config(path)
    assert config.watch.dir == Path("./inbox")
    assert config.watch.extensions == [".txt", ".md"]
    assert config.watch.debounce_sec == 0.5
    assert config.watch.max_concurrent_events == 0
    assert config.store.dir == Path("./inbox") / "comparisons"
    assert config.prompts.instruction == DEFAULT_INSTRUCTION
    assert config.defaults.panel == []
    assert config.defaults.allow_partial is False
    assert config.models == {}


def test_store_dir_defaults_under_watch_dir(tmp_path: Path):
    path = _write_settings(tmp_path, {"watch": {"dir": "/data/drop"}})
    assert load_config(path).store.dir == Path("/data/drop/comparisons")


@pytest.mark.parametrize(
    "watch",
    [
        {"extensions": []},
        {"debounce_sec": -1},
        {"max_concurrent_events": -2},
    ],
)
def test_load_config_rejects_invalid_watch_values(tmp_path: Path, watch):
    path = _write_settings(tmp_path, {"watch": watch})
    with pytest.raises(ValueError):
        load_config(path)


def test_bundled_settings_load(monkeypatch):
    for var in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY", "XAI_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    config = load_config()
    assert {"openai", "claude", "gemini", "grok"} <= set(config.models)
    assert config.models["grok"].base_url == "https://api.x.ai/v1"
    assert config.available_providers == set()
