"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces
configuration values from environment, file and programmatic sources into
the correct types with proper defaults.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gemini_insights.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    MAX_ATTEMPTS,
    NETWORK_RETRY_DELAY,
    RATE_LIMIT_RETRY_DELAY,
)


class InsightsSettings(BaseSettings):
    """Pydantic settings schema for the insights pipeline.

    Handles validation, type coercion, and default values for every
    configuration field. Environment variables use the GEMINI_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    # --- Generation backend ---

    api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )

    model: str = Field(
        default=DEFAULT_MODEL,
        description="Gemini model identifier",
        min_length=1,
    )

    temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        description="Sampling temperature for generation",
        ge=0.0,
        le=2.0,
    )

    max_output_tokens: int = Field(
        default=DEFAULT_MAX_OUTPUT_TOKENS,
        description="Maximum tokens the model may emit per response",
        ge=1,
    )

    # --- Retry policy ---

    max_attempts: int = Field(
        default=MAX_ATTEMPTS,
        description="Total attempts per generation, including the first",
        ge=1,
        le=MAX_ATTEMPTS,
    )

    rate_limit_delay: float = Field(
        default=RATE_LIMIT_RETRY_DELAY,
        description="Fixed wait in seconds before retrying a rate-limited call",
        ge=0.0,
    )

    network_retry_delay: float = Field(
        default=NETWORK_RETRY_DELAY,
        description="Fixed wait in seconds before retrying after a network fault",
        ge=0.0,
    )

    # --- Result cache ---

    enable_cache: bool = Field(
        default=True,
        description="Whether to consult and populate the result cache",
    )

    cache_ttl_seconds: int = Field(
        default=DEFAULT_CACHE_TTL,
        description="Age in seconds after which cached results are ignored",
        ge=1,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary of resolved field values."""
        return {name: getattr(self, name) for name in type(self).model_fields}


FIELD_NAMES: tuple[str, ...] = tuple(InsightsSettings.model_fields)


def schema_defaults() -> dict[str, Any]:
    """Return the declared default of every field, without reading the environment."""
    return {
        name: field.get_default(call_default_factory=True)
        for name, field in InsightsSettings.model_fields.items()
    }
