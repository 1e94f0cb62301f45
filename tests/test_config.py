"""Tests for environment-driven settings."""

import pytest

from knowledge_search.config import Settings, StageDelays


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("OLLAMA_MODEL", "KNOWLEDGE_SEARCH_ANSWER_LANGUAGE", "KNOWLEDGE_SEARCH_SEARCH_DELAY"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.answer_language == "Korean"
    assert settings.stage_delays == StageDelays()


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OLLAMA_MODEL", "qwen2.5")
    monkeypatch.setenv("OLLAMA_TIMEOUT", "30")
    monkeypatch.setenv("KNOWLEDGE_SEARCH_SEARCH_DELAY", "1.5")
    monkeypatch.setenv("KNOWLEDGE_SEARCH_API_BASE_URL", "  ")

    settings = Settings.from_env()

    assert settings.ollama_model == "qwen2.5"
    assert settings.llm_timeout == 30.0
    assert settings.stage_delays.search == 1.5
    assert settings.stage_delays.intent == 0.0
    assert settings.api_base_url == "http://localhost:8000"
