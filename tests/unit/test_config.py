"""Unit tests for configuration management."""

import os
from collections.abc import Generator

import pytest

from snaptosheet.shared.config import Settings, get_settings

UNPREFIXED_VARS = ("OPENROUTER_API_KEY", "OPENROUTER_KEY", "ENABLE_DEBUG")


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables before and after test."""
    original_env = dict(os.environ)
    env_vars = [k for k in os.environ if k.startswith("APP_") or k in UNPREFIXED_VARS]
    for var in env_vars:
        del os.environ[var]
    yield
    os.environ.clear()
    os.environ.update(original_env)


def test_settings_defaults(clean_env: None) -> None:
    """Test that settings have correct default values."""
    settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.log_level == "INFO"
    assert settings.service_name == "snaptosheet"
    assert settings.service_version == "0.1.0"
    assert settings.extraction_provider == "openrouter"
    assert settings.default_model == "amazon/nova-2-lite-v1:free"
    assert settings.openrouter_api_key is None
    assert settings.enable_debug is False
    assert settings.totals_tolerance == 1.0


def test_settings_from_env_vars(clean_env: None) -> None:
    """Test that settings can be overridden via environment variables."""
    os.environ["APP_ENVIRONMENT"] = "production"
    os.environ["APP_LOG_LEVEL"] = "ERROR"
    os.environ["APP_SERVICE_NAME"] = "test-service"
    os.environ["APP_EXTRACTION_PROVIDER"] = "heuristic"

    settings = Settings(_env_file=None)

    assert settings.environment == "production"
    assert settings.log_level == "ERROR"
    assert settings.service_name == "test-service"
    assert settings.extraction_provider == "heuristic"


def test_settings_case_insensitive(clean_env: None) -> None:
    """Test that environment variables are case insensitive."""
    os.environ["app_log_level"] = "DEBUG"

    settings = Settings(_env_file=None)

    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("var", ["OPENROUTER_API_KEY", "OPENROUTER_KEY", "APP_OPENROUTER_API_KEY"])
def test_api_key_read_from_legacy_names(clean_env: None, var: str) -> None:
    """Test that the OpenRouter key is read from every supported variable."""
    os.environ[var] = "sk-or-test"

    settings = Settings(_env_file=None)

    assert settings.openrouter_api_key == "sk-or-test"


def test_enable_debug_from_unprefixed_var(clean_env: None) -> None:
    """Test that ENABLE_DEBUG turns on the debug endpoint."""
    os.environ["ENABLE_DEBUG"] = "true"

    settings = Settings(_env_file=None)

    assert settings.enable_debug is True


def test_settings_accept_field_names(clean_env: None) -> None:
    """Test that aliased fields can still be set by name."""
    settings = Settings(_env_file=None, openrouter_api_key="key", enable_debug=True)

    assert settings.openrouter_api_key == "key"
    assert settings.enable_debug is True


def test_get_settings_factory() -> None:
    """Test that factory function returns Settings instance."""
    settings = get_settings()

    assert isinstance(settings, Settings)
