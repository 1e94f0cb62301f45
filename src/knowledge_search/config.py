"""
Configuration utilities for Knowledge Search.

Central place to configure:
- Backend base URL (used by the Streamlit UI)
- Ollama model and endpoint
- Answer language and simulated stage latency

Every field can be overridden from the environment (see `from_env`).
"""

import os

from pydantic import BaseModel


class StageDelays(BaseModel):
    # Simulated latency in seconds before each stage. Zero disables it.
    intent: float = 0.0
    search: float = 0.0
    generate: float = 0.0


class Settings(BaseModel):
    # Base URL where the FastAPI app is running.
    api_base_url: str = "http://localhost:8000"

    # Ollama configuration
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3"
    llm_timeout: float = 120.0

    # Drafted answers are always written in this language.
    answer_language: str = "Korean"

    stage_delays: StageDelays = StageDelays()

    # UI polling interval in seconds
    poll_interval: float = 0.5

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        overrides = {}
        env_map = {
            "api_base_url": "KNOWLEDGE_SEARCH_API_BASE_URL",
            "ollama_base_url": "OLLAMA_BASE_URL",
            "ollama_model": "OLLAMA_MODEL",
            "llm_timeout": "OLLAMA_TIMEOUT",
            "answer_language": "KNOWLEDGE_SEARCH_ANSWER_LANGUAGE",
            "poll_interval": "KNOWLEDGE_SEARCH_POLL_INTERVAL",
            "log_level": "KNOWLEDGE_SEARCH_LOG_LEVEL",
        }
        for field_name, env_name in env_map.items():
            value = os.getenv(env_name, "").strip()
            if value:
                overrides[field_name] = value

        delays = {}
        for stage in ("intent", "search", "generate"):
            value = os.getenv(f"KNOWLEDGE_SEARCH_{stage.upper()}_DELAY", "").strip()
            if value:
                delays[stage] = value
        if delays:
            overrides["stage_delays"] = StageDelays(**delays)

        return cls(**overrides)


settings = Settings.from_env()
