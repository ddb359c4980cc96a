"""Shared fixtures for unit tests."""

import pytest

CREDENTIAL_VARS = (
    "OPENROUTER_API_KEY",
    "OPENROUTER_KEY",
    "APP_OPENROUTER_API_KEY",
    "ENABLE_DEBUG",
    "APP_ENABLE_DEBUG",
)


@pytest.fixture(autouse=True)
def no_server_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer credentials in the environment out of unit tests."""
    for var in CREDENTIAL_VARS:
        monkeypatch.delenv(var, raising=False)
