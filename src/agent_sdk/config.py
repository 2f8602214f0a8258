from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    llm_api_key: str = ""
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "openai/gpt-4o-mini"

    # Agent loop defaults
    agent_max_iterations: int = 24
    agent_timeout: float | None = None

    # Sandbox used by the bundled tools
    sandbox_root: str = ""


@dataclass
class ModelConfig:
    model: str = ""
    temperature: float | None = None
    max_tokens: int | None = None
    base_url: str = ""


_models_config_cache: dict | None = None


def _load_models_yaml() -> dict:
    global _models_config_cache
    if _models_config_cache is not None:
        return _models_config_cache

    config_path = os.environ.get("MODELS_CONFIG_PATH", "models.yaml")
    path = Path(config_path)
    if not path.is_file():
        _models_config_cache = {}
        return _models_config_cache

    import yaml

    with open(path) as f:
        _models_config_cache = yaml.safe_load(f) or {}
    return _models_config_cache


def get_model_config(profile: str = "") -> ModelConfig:
    """Get model config for a profile, merging default + profile override.

    Falls back to Settings env variables if models.yaml doesn't exist.
    """
    data = _load_models_yaml()
    current = Settings()

    if not data:
        return ModelConfig(
            model=current.llm_model,
            base_url=current.llm_base_url,
        )

    default = data.get("default", {})
    merged = {
        "model": default.get("model", current.llm_model),
        "temperature": default.get("temperature"),
        "max_tokens": default.get("max_tokens"),
        "base_url": default.get("base_url", current.llm_base_url),
    }

    if profile:
        profiles = data.get("profiles", {})
        override = profiles.get(profile, {})
        for key, value in override.items():
            if key in merged:
                merged[key] = value

    return ModelConfig(
        model=merged["model"],
        temperature=merged["temperature"],
        max_tokens=merged["max_tokens"],
        base_url=merged["base_url"],
    )
