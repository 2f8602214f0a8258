"""Tests for Settings, models.yaml loading and ModelConfig merging."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from agent_sdk.config import ModelConfig, Settings, _load_models_yaml, get_model_config


@pytest.fixture(autouse=True)
def _reset_cache():
    """Reset the module-level YAML cache before each test."""
    import agent_sdk.config as cfg
    cfg._models_config_cache = None
    yield
    cfg._models_config_cache = None


def test_settings_defaults():
    s = Settings(llm_api_key="k")
    assert s.agent_max_iterations == 24
    assert s.agent_timeout is None
    assert s.sandbox_root == ""


def test_settings_read_from_environment():
    env = {"LLM_API_KEY": "secret", "LLM_MODEL": "env-model", "AGENT_MAX_ITERATIONS": "7"}
    with patch.dict("os.environ", env):
        s = Settings()
    assert s.llm_api_key == "secret"
    assert s.llm_model == "env-model"
    assert s.agent_max_iterations == 7


def test_model_config_defaults():
    mc = ModelConfig()
    assert mc.model == ""
    assert mc.temperature is None
    assert mc.max_tokens is None
    assert mc.base_url == ""


# ---------------------------------------------------------------------------
# _load_models_yaml
# ---------------------------------------------------------------------------

def test_load_yaml_missing_file(tmp_path):
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(tmp_path / "nope.yaml")}):
        result = _load_models_yaml()
    assert result == {}


def test_load_yaml_empty_file(tmp_path):
    yaml_file = tmp_path / "models.yaml"
    yaml_file.write_text("")
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(yaml_file)}):
        result = _load_models_yaml()
    assert result == {}


def test_load_yaml_caches_result(tmp_path):
    yaml_file = tmp_path / "models.yaml"
    yaml_file.write_text("default:\n  model: m1\n")
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(yaml_file)}):
        first = _load_models_yaml()
        yaml_file.write_text("default:\n  model: m2\n")
        second = _load_models_yaml()
    assert first is second
    assert first["default"]["model"] == "m1"


# ---------------------------------------------------------------------------
# get_model_config
# ---------------------------------------------------------------------------

def test_no_yaml_falls_back_to_environment(tmp_path):
    env = {"MODELS_CONFIG_PATH": str(tmp_path / "missing.yaml"), "LLM_MODEL": "env-model"}
    with patch.dict("os.environ", env):
        mc = get_model_config("anything")
    assert mc.model == "env-model"
    assert mc.temperature is None


YAML_WITH_PROFILES = (
    "default:\n"
    "  model: openai/gpt-4.1-mini\n"
    "  temperature: 0.2\n"
    "  base_url: https://openrouter.ai/api/v1\n"
    "profiles:\n"
    "  careful:\n"
    "    model: openai/gpt-4.1\n"
    "    temperature: 0.0\n"
    "  long:\n"
    "    max_tokens: 16000\n"
    "    unknown_key: ignored\n"
)


def test_default_section_only(tmp_path):
    (tmp_path / "m.yaml").write_text(YAML_WITH_PROFILES)
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(tmp_path / "m.yaml")}):
        mc = get_model_config()
    assert mc.model == "openai/gpt-4.1-mini"
    assert mc.temperature == 0.2
    assert mc.base_url == "https://openrouter.ai/api/v1"


def test_profile_override_merges_with_default(tmp_path):
    (tmp_path / "m.yaml").write_text(YAML_WITH_PROFILES)
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(tmp_path / "m.yaml")}):
        mc = get_model_config("careful")
    assert mc.model == "openai/gpt-4.1"
    assert mc.temperature == 0.0
    assert mc.base_url == "https://openrouter.ai/api/v1"
    assert mc.max_tokens is None


def test_profile_partial_override(tmp_path):
    (tmp_path / "m.yaml").write_text(YAML_WITH_PROFILES)
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(tmp_path / "m.yaml")}):
        mc = get_model_config("long")
    assert mc.model == "openai/gpt-4.1-mini"
    assert mc.max_tokens == 16000
    assert not hasattr(mc, "unknown_key")


def test_unknown_profile_gets_default(tmp_path):
    (tmp_path / "m.yaml").write_text(YAML_WITH_PROFILES)
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(tmp_path / "m.yaml")}):
        mc = get_model_config("nope")
    assert mc.model == "openai/gpt-4.1-mini"


def test_null_values_in_yaml(tmp_path):
    (tmp_path / "m.yaml").write_text("default:\n  model: m\n  max_tokens: null\n  temperature: null\n")
    with patch.dict("os.environ", {"MODELS_CONFIG_PATH": str(tmp_path / "m.yaml")}):
        mc = get_model_config()
    assert mc.max_tokens is None
    assert mc.temperature is None
