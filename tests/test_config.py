import pytest

from paperplain.config import load_settings
from paperplain.exceptions import ConfigError


ENV_KEYS = [
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "API_KEY",
    "LLM_BASE_URL",
    "OPENAI_BASE_URL",
    "BASE_URL",
    "LLM_MODEL",
    "OPENAI_MODEL",
    "LLM_TIMEOUT_SEC",
    "CONTACT_EMAIL",
    "PUBMED_API_KEY",
    "NCBI_API_KEY",
    "SEMANTIC_SCHOLAR_API_KEY",
    "HTTP_TIMEOUT_SEC",
    "NETWORK_TRUST_ENV",
    "SUMMARY_DEFAULT_STYLE",
    "LOG_LEVEL",
]


def clear_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_load_settings_from_dotenv_with_aliases(tmp_path, monkeypatch):
    clear_env(monkeypatch)

    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "\n".join(
            [
                "OPENAI_API_KEY=test-llm-key",
                "OPENAI_BASE_URL=https://llm.example.com/v1/",
                "OPENAI_MODEL=test-model",
                "CONTACT_EMAIL=me@example.org",
                "NCBI_API_KEY=ncbi-key",
                "SEMANTIC_SCHOLAR_API_KEY=s2-key",
                "HTTP_TIMEOUT_SEC=5",
                "NETWORK_TRUST_ENV=true",
                "SUMMARY_DEFAULT_STYLE=Detailed",
                "LOG_LEVEL=debug",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(dotenv_path=dotenv)

    assert settings.llm_api_key == "test-llm-key"
    assert settings.llm_base_url == "https://llm.example.com/v1"
    assert settings.llm_model == "test-model"
    assert settings.contact_email == "me@example.org"
    assert settings.pubmed_api_key == "ncbi-key"
    assert settings.semantic_scholar_api_key == "s2-key"
    assert settings.http_timeout_sec == 5
    assert settings.network_trust_env is True
    assert settings.default_style == "detailed"
    assert settings.log_level == "DEBUG"


def test_load_settings_defaults(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("GROQ_API_KEY", "groq")

    settings = load_settings(dotenv_path=tmp_path / "missing.env")

    assert settings.llm_api_key == "groq"
    assert settings.llm_base_url == "https://api.groq.com/openai/v1"
    assert settings.llm_model == "llama-3.3-70b-versatile"
    assert settings.llm_timeout_sec == 120
    assert settings.contact_email == "example@email.com"
    assert settings.pubmed_api_key is None
    assert settings.semantic_scholar_api_key is None
    assert settings.http_timeout_sec == 20
    assert settings.network_trust_env is False
    assert settings.default_style == "simple"
    assert settings.log_level == "INFO"


def test_groq_key_takes_precedence(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("GROQ_API_KEY", "groq")
    monkeypatch.setenv("OPENAI_API_KEY", "openai")

    settings = load_settings(dotenv_path=tmp_path / "missing.env")

    assert settings.llm_api_key == "groq"


def test_missing_llm_key_raises(tmp_path, monkeypatch):
    clear_env(monkeypatch)

    with pytest.raises(ConfigError, match="GROQ_API_KEY"):
        load_settings(dotenv_path=tmp_path / "missing.env")


def test_missing_llm_key_allowed_when_not_required(tmp_path, monkeypatch):
    clear_env(monkeypatch)

    settings = load_settings(dotenv_path=tmp_path / "missing.env", require_llm=False)

    assert settings.llm_api_key == ""


def test_invalid_integer_raises(tmp_path, monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("GROQ_API_KEY", "groq")
    monkeypatch.setenv("HTTP_TIMEOUT_SEC", "soon")

    with pytest.raises(ConfigError, match="HTTP_TIMEOUT_SEC"):
        load_settings(dotenv_path=tmp_path / "missing.env")
