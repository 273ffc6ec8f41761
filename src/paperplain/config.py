"""Environment-based configuration for the pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ConfigError

DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama-3.3-70b-versatile"
DEFAULT_CONTACT_EMAIL = "example@email.com"


@dataclass(frozen=True)
class Settings:
    llm_api_key: str
    llm_base_url: str
    llm_model: str
    llm_timeout_sec: int

    contact_email: str
    pubmed_api_key: str | None
    semantic_scholar_api_key: str | None
    http_timeout_sec: int
    network_trust_env: bool

    default_style: str
    log_level: str


_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _read_env(*keys: str, default: str | None = None) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value is not None and value != "":
            return value
    return default


def _read_bool(*keys: str, default: bool) -> bool:
    raw = _read_env(*keys)
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSE_VALUES


def _read_int(*keys: str, default: int) -> int:
    raw = _read_env(*keys)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {keys[0]}: {raw}") from exc


def load_settings(
    dotenv_path: str | Path | None = None,
    require_llm: bool = True,
) -> Settings:
    """Load project settings from .env and OS env vars."""

    load_dotenv(dotenv_path=dotenv_path, override=False)

    llm_api_key = _read_env("GROQ_API_KEY", "OPENAI_API_KEY", "API_KEY")
    if require_llm and not llm_api_key:
        raise ConfigError(
            "Missing required environment variables: GROQ_API_KEY (or OPENAI_API_KEY)"
        )

    return Settings(
        llm_api_key=llm_api_key or "",
        llm_base_url=(
            _read_env(
                "LLM_BASE_URL",
                "OPENAI_BASE_URL",
                "BASE_URL",
                default=DEFAULT_LLM_BASE_URL,
            )
            or DEFAULT_LLM_BASE_URL
        ).rstrip("/"),
        llm_model=_read_env("LLM_MODEL", "OPENAI_MODEL", default=DEFAULT_LLM_MODEL)
        or DEFAULT_LLM_MODEL,
        llm_timeout_sec=_read_int("LLM_TIMEOUT_SEC", default=120),
        contact_email=_read_env("CONTACT_EMAIL", default=DEFAULT_CONTACT_EMAIL)
        or DEFAULT_CONTACT_EMAIL,
        pubmed_api_key=_read_env("PUBMED_API_KEY", "NCBI_API_KEY"),
        semantic_scholar_api_key=_read_env("SEMANTIC_SCHOLAR_API_KEY"),
        http_timeout_sec=_read_int("HTTP_TIMEOUT_SEC", default=20),
        network_trust_env=_read_bool("NETWORK_TRUST_ENV", default=False),
        default_style=(
            _read_env("SUMMARY_DEFAULT_STYLE", default="simple") or "simple"
        )
        .strip()
        .lower(),
        log_level=(_read_env("LOG_LEVEL", default="INFO") or "INFO").strip().upper(),
    )
