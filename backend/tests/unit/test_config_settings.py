"""Unit tests for application settings configuration."""

from pathlib import Path

from community_search.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_search_defaults():
    settings = Settings(_env_file=None)

    assert settings.text_providers == ["openrouter", "deepinfra", "gemini"]
    assert settings.embedding_providers == ["deepinfra", "gemini"]
    assert settings.semantic_weight == 0.7
    assert settings.keyword_weight == 0.3
    assert settings.max_page_size == 50
    assert settings.embedding_dimensions == 768


def test_provider_order_from_environment(monkeypatch):
    monkeypatch.setenv("TEXT_PROVIDERS", '["gemini", "openrouter"]')
    monkeypatch.setenv("CIRCUIT_FAILURE_THRESHOLD", "3")

    settings = Settings(_env_file=None)

    assert settings.text_providers == ["gemini", "openrouter"]
    assert settings.circuit_failure_threshold == 3
