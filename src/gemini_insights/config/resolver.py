"""Configuration resolution with precedence handling.

Merges configuration from every source in this order, highest first:
Programmatic > Environment > Project file > Defaults
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gemini_insights.exceptions import ConfigurationError

from .file_loader import FileConfigLoader
from .schema import FIELD_NAMES, InsightsSettings, schema_defaults
from .types import ConfigOrigin, ResolvedConfig, SourceMap

log = logging.getLogger(__name__)

ENV_PREFIX = "GEMINI_"
FALLBACK_API_KEY_ENV = "GOOGLE_API_KEY"


class SourceTracker:
    """Tracks the origin of configuration values during resolution."""

    def __init__(self) -> None:
        self._origins: dict[str, ConfigOrigin] = {}

    def set_multiple(self, fields: dict[str, Any], origin: ConfigOrigin) -> None:
        """Record the origin for every field in `fields`."""
        for field in fields:
            self._origins[field] = origin

    def get_source_map(self) -> SourceMap:
        """Return a copy of the field-to-origin mapping."""
        return dict(self._origins)


def load_env_config(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect the configuration fields set through environment variables.

    ``GEMINI_<FIELD>`` is read for every field. ``GOOGLE_API_KEY`` is accepted
    when ``GEMINI_API_KEY`` is not set. Values are left as strings; the
    settings schema coerces them.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for field in FIELD_NAMES:
        name = f"{ENV_PREFIX}{field.upper()}"
        if name in env:
            values[field] = env[name]
    if "api_key" not in values and env.get(FALLBACK_API_KEY_ENV):
        values["api_key"] = env[FALLBACK_API_KEY_ENV]
    return values


class ConfigResolver:
    """Resolves configuration from multiple sources with proper precedence."""

    def __init__(self, file_loader: FileConfigLoader | None = None) -> None:
        self.file_loader = file_loader or FileConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        project_root: Path | None = None,
        environ: dict[str, str] | None = None,
    ) -> ResolvedConfig:
        """Resolve configuration from all sources.

        Args:
            programmatic: Explicit overrides (highest precedence). Unknown
                fields are ignored.
            project_root: Directory to search for pyproject.toml.
            environ: Environment mapping to read instead of ``os.environ``.

        Returns:
            ResolvedConfig with merged values and source tracking.

        Raises:
            ConfigurationError: If the merged values fail validation.
            ConfigFileError: If pyproject.toml exists but is malformed.
        """
        tracker = SourceTracker()
        merged: dict[str, Any] = {}

        layers: list[tuple[ConfigOrigin, dict[str, Any]]] = [
            ("default", schema_defaults()),
            ("file", self.file_loader.load_project_config(project_root)),
            ("env", load_env_config(environ)),
            ("programmatic", dict(programmatic or {})),
        ]
        for origin, values in layers:
            known = {k: v for k, v in values.items() if k in FIELD_NAMES}
            merged.update(known)
            tracker.set_multiple(known, origin)

        try:
            # Every field is passed explicitly, so ambient env never leaks in.
            settings = InsightsSettings(**merged)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        resolved = ResolvedConfig(**settings.to_dict(), origin=tracker.get_source_map())
        log.debug("Resolved configuration: %s", resolved)
        return resolved
