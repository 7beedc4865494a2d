"""Tests for config/config_loader.py."""

from pathlib import Path

import pytest
import yaml

from config.config_loader import AppConfig, LimitsConfig, ModelConfig, PromptsConfig, load_config

_PROMPTS = {
    "framework_opening": "[TURN {turn}/{max_turns}] {topic}",
    "framework_summary": "Summarize: {topic}",
    "nominated": "[TURN {turn}/{max_turns}] {topic}",
    "awaiting": "[TURN {turn}/{max_turns}] {topic}",
    "interjection": "[TURN {turn}/{max_turns}] {message}",
    "synthesis": "{turn_count}\n{fact_check_summary}",
    "fact_check_request": "{check_id} {source}\n{claims}",
}


def _write(tmp_path: Path, settings: dict) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump(settings), encoding="utf-8")
    return path


@pytest.fixture
def minimal_settings_dict() -> dict:
    return {
        "limits": {"framework_turns": 2, "discussion_turns": 6},
        "models": {
            "anthropic": {
                "sdk": "anthropic",
                "model": "claude-sonnet-4-20250514",
                "api_key_env": "TEST_ANTHROPIC_KEY",
                "timeout_sec": 120,
                "max_tokens": 4096,
            },
            "perplexity": {
                "sdk": "openai",
                "model": "sonar",
                "api_key_env": "TEST_PERPLEXITY_KEY",
                "timeout_sec": 60,
                "max_tokens": 1024,
                "base_url": "https://api.perplexity.ai",
            },
        },
        "roster": [
            {"personality": "analyst", "provider": "anthropic"},
            {"personality": "synthesizer", "provider": "anthropic", "model": "claude-opus-4-20250514"},
            {"personality": "fact_checker", "provider": "perplexity"},
        ],
        "evaluator": {"provider": "anthropic"},
        "prompts": dict(_PROMPTS, evaluation='{topic} {{"scores": {{}}}}'),
    }


@pytest.fixture
def minimal_settings(tmp_path: Path, minimal_settings_dict: dict) -> Path:
    return _write(tmp_path, minimal_settings_dict)


def test_load_config_returns_app_config(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config, AppConfig)


def test_load_config_limits_override_and_default(minimal_settings):
    config = load_config(minimal_settings)
    assert config.limits.framework_turns == 2
    assert config.limits.discussion_turns == 6
    assert config.limits.participant_turns == 3
    assert config.limits.fact_check_history == 10


def test_load_config_models(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config.models["anthropic"], ModelConfig)
    assert config.models["anthropic"].base_url is None
    assert config.models["perplexity"].base_url == "https://api.perplexity.ai"


def test_load_config_roster(minimal_settings):
    config = load_config(minimal_settings)
    assert [s.personality for s in config.roster] == ["analyst", "synthesizer", "fact_checker"]
    assert config.roster[0].model is None
    assert config.roster[1].model == "claude-opus-4-20250514"


def test_load_config_prompts(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config.prompts, PromptsConfig)
    assert "{topic}" in config.prompts.framework_opening
    assert config.prompts.evaluation.format(topic="T") == 'T {"scores": {}}'


def test_load_config_evaluator(minimal_settings):
    config = load_config(minimal_settings)
    assert config.evaluator.provider == "anthropic"
    assert config.evaluator.model is None


def test_load_config_available_providers_with_key(minimal_settings, monkeypatch):
    monkeypatch.setenv("TEST_ANTHROPIC_KEY", "sk-test-key")
    monkeypatch.delenv("TEST_PERPLEXITY_KEY", raising=False)
    config = load_config(minimal_settings)
    assert config.available_providers == {"anthropic"}


def test_missing_key_is_not_fatal(minimal_settings, monkeypatch):
    monkeypatch.delenv("TEST_ANTHROPIC_KEY", raising=False)
    monkeypatch.delenv("TEST_PERPLEXITY_KEY", raising=False)
    config = load_config(minimal_settings)
    assert config.available_providers == set()
    assert len(config.roster) == 3


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config(Path("/nonexistent/settings.yaml"))


def test_roster_with_unknown_provider_raises(tmp_path, minimal_settings_dict):
    minimal_settings_dict["roster"].append({"personality": "skeptic", "provider": "grok"})
    with pytest.raises(ValueError, match="grok"):
        load_config(_write(tmp_path, minimal_settings_dict))


def test_evaluator_with_unknown_provider_raises(tmp_path, minimal_settings_dict):
    minimal_settings_dict["evaluator"] = {"provider": "grok"}
    with pytest.raises(ValueError, match="grok"):
        load_config(_write(tmp_path, minimal_settings_dict))


def test_optional_sections_default(tmp_path, minimal_settings_dict):
    del minimal_settings_dict["limits"]
    del minimal_settings_dict["evaluator"]
    del minimal_settings_dict["prompts"]["evaluation"]
    config = load_config(_write(tmp_path, minimal_settings_dict))
    assert config.limits == LimitsConfig()
    assert config.evaluator is None
    assert config.prompts.evaluation == ""


def test_shipped_settings_load():
    """The bundled settings.yaml is valid and its templates format cleanly."""
    config = load_config()
    assert len(config.roster) == 9
    assert config.limits == LimitsConfig()
    config.prompts.framework_opening.format(turn=1, max_turns=4, topic="T")
    config.prompts.interjection.format(turn=1, max_turns=4, message="M")
    config.prompts.synthesis.format(turn_count=3, fact_check_summary="S")
    config.prompts.fact_check_request.format(check_id="x", source="The Analyst", claims='1. "c"')
    config.prompts.evaluation.format(topic="T", user_context="C", transcript="X")
