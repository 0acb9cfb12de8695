"""Configuration loading from YAML files + env vars."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_CONFIG_DIR = _PROJECT_ROOT / "config"


# ---------------------------------------------------------------------------
# Pydantic settings (env‑var overrides)
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    scriptsync_env: str = "local"
    api_port: int = 8080
    ai_provider: str = "openai"
    ai_api_key: str = ""
    ai_endpoint: str = ""
    ai_text_model: str = "gpt-4.1-mini"
    ai_vision_model: str = "gpt-4o-mini"
    ai_token_cap: int = 2048
    ai_temperature: float = 0.2
    ai_timeout_seconds: float = 25.0
    ai_max_concurrent: int = 3
    ai_batch_delay_seconds: float = 1.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


# ---------------------------------------------------------------------------
# YAML config helpers
# ---------------------------------------------------------------------------

def _load_yaml(name: str) -> dict[str, Any]:
    path = _CONFIG_DIR / name
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


@lru_cache()
def get_defaults() -> dict[str, Any]:
    return _load_yaml("defaults.yaml")


def get_limits() -> dict[str, Any]:
    return get_defaults().get("limits", {})


def get_allocation_config() -> dict[str, Any]:
    return get_defaults().get("allocation", {})


def get_matching_config() -> dict[str, Any]:
    return get_defaults().get("matching", {})
