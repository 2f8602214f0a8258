"""Loop prompts (completion contract, reminders, budget warnings) stored as .txt templates."""

from __future__ import annotations

from pathlib import Path

from agent_sdk.errors import ConfigurationError

TEMPLATES_DIR = Path(__file__).parent / "templates"

_cache: dict[str, str] = {}


def load_prompt(name: str) -> str:
    """Return the raw template ``name`` with its {placeholders} intact."""
    if name not in _cache:
        path = TEMPLATES_DIR / f"{name}.txt"
        if not path.is_file():
            raise ConfigurationError(f"unknown prompt template: {name}")
        _cache[name] = path.read_text(encoding="utf-8").strip()
    return _cache[name]


def render_prompt(name: str, **variables: object) -> str:
    return load_prompt(name).format(**variables)
