"""Shared configuration management for the extraction service.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug

    The OpenRouter key and the debug switch also honour the unprefixed names
    used by existing deployments (OPENROUTER_API_KEY, OPENROUTER_KEY, ENABLE_DEBUG).
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="snaptosheet",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Extraction provider configuration
    extraction_provider: Literal["openrouter", "heuristic"] = Field(
        default="openrouter",
        description="Extraction provider: openrouter (remote LLM), heuristic (offline OCR parser)",
    )

    # OpenRouter configuration (for extraction_provider="openrouter")
    openrouter_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "APP_OPENROUTER_API_KEY", "OPENROUTER_API_KEY", "OPENROUTER_KEY"
        ),
        description="Server-side OpenRouter API key, used when a request carries none",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible chat completions base URL",
    )
    default_model: str = Field(
        default="amazon/nova-2-lite-v1:free",
        description="Vision-capable model used by default and as image-input fallback",
    )
    app_title: str = Field(
        default="SnapToSheet",
        description="Value of the X-Title header sent to OpenRouter",
    )
    request_timeout_seconds: float = Field(
        default=120.0,
        description="Transport timeout for a single completion call (LLMs can be slow)",
        gt=0,
    )
    totals_tolerance: float = Field(
        default=1.0,
        description="Absolute deviation allowed between reported and line-item totals",
        ge=0,
    )

    # Debug endpoint
    enable_debug: bool = Field(
        default=False,
        validation_alias=AliasChoices("APP_ENABLE_DEBUG", "ENABLE_DEBUG"),
        description="Expose the raw-response debug endpoint (development only)",
    )
    debug_model: str = Field(
        default="openai/gpt-oss-20b:free",
        description="Model used by the debug endpoint when the request names none",
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
