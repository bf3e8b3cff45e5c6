"""App config: per-role model selection, DB path, guard bounds, env overrides.

Per-role env overrides: ARCHIVIST_{ROLE}_PROVIDER, ARCHIVIST_{ROLE}_MODEL,
ARCHIVIST_{ROLE}_BASE_URL, ARCHIVIST_{ROLE}_API_KEY (fallback: {ROLE}_*).
A role whose provider resolves to "none" (or empty) has no generator binding.
"""
from __future__ import annotations

import logging
import os

from shared.config import (
    CHUNK_TARGET_CHARS,
    INGESTION_TAGGER_ENABLED,
    TRANSCRIPT_DATA_DIR,
    _env_flag,
    _env_int,
)

logger = logging.getLogger(__name__)


def _role_env(key: str, role: str, default: str = "") -> str:
    """Env override: ARCHIVIST_{ROLE}_{KEY} first, then {ROLE}_{KEY} fallback."""
    role_upper = role.upper()
    val = os.environ.get(f"ARCHIVIST_{role_upper}_{key}", "").strip()
    if not val:
        val = os.environ.get(f"{role_upper}_{key}", default).strip()
    return val or default


def _model_config() -> dict[str, dict[str, str]]:
    # Generation and tagging share a default local model; cloud providers are opt-in per role.
    base: dict[str, dict[str, str]] = {
        "generation": {"provider": "ollama", "model": "llama3.1:8b"},
        "metadata_tagger": {"provider": "ollama", "model": "llama3.1:8b"},
    }
    out = {}
    for role, cfg in base.items():
        c = dict(cfg)
        override_provider = _role_env("PROVIDER", role)
        if override_provider:
            c["provider"] = override_provider
        override_model = _role_env("MODEL", role)
        if override_model:
            c["model"] = override_model
        override_url = _role_env("BASE_URL", role)
        if override_url:
            c["base_url"] = override_url
        override_key = _role_env("API_KEY", role)
        if override_key:
            c["api_key"] = override_key
        out[role] = c
    return out


MODEL_CONFIG = _model_config()


def _log_resolved_model_config() -> None:
    """Log resolved per-role model config at startup (no secrets)."""
    lines = ["LLM config (per role):"]
    for role, cfg in sorted(MODEL_CONFIG.items()):
        provider = cfg.get("provider", "")
        model = cfg.get("model", "")
        base_url = cfg.get("base_url", "")
        url_display = "custom" if base_url else "default"
        lines.append(f"  {role}: provider={provider} model={model} base_url={url_display}")
    logger.info("\n".join(lines))


_log_resolved_model_config()

DEFAULT_DB_PATH = os.environ.get("ARCHIVIST_DB_PATH", "./data/archivist.db")

# Default sampling options handed to the generator binding
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1400

# Generation guard bounds (attempts per forbidden-term loop)
OUTLINE_ATTEMPTS = _env_int("ARCHIVIST_OUTLINE_ATTEMPTS", 2)
DRAFT_ATTEMPTS = _env_int("ARCHIVIST_DRAFT_ATTEMPTS", 2)
OUTLINE_MAX_TOKENS = _env_int("ARCHIVIST_OUTLINE_MAX_TOKENS", 900)
DRAFT_MAX_TOKENS = _env_int("ARCHIVIST_DRAFT_MAX_TOKENS", 2000)

# Dev-only flag: include raw error detail in API error responses
DEV_ERROR_DETAIL = _env_flag("ARCHIVIST_DEV_ERROR_DETAIL", default=True)

__all__ = [
    "CHUNK_TARGET_CHARS",
    "DEFAULT_DB_PATH",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "DEV_ERROR_DETAIL",
    "DRAFT_ATTEMPTS",
    "DRAFT_MAX_TOKENS",
    "INGESTION_TAGGER_ENABLED",
    "MODEL_CONFIG",
    "OUTLINE_ATTEMPTS",
    "OUTLINE_MAX_TOKENS",
    "TRANSCRIPT_DATA_DIR",
]
