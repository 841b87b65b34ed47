"""Configuration management for the insights pipeline.

Configuration is resolved once, frozen, then flows through the pipeline:

- ResolvedConfig: merged values plus the origin of each field
- FrozenConfig: immutable values handed to the executor and its parts
- config_scope / config_override: entry-time overrides via a context variable
"""

from pathlib import Path
from typing import Any

from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver, SourceTracker, load_env_config
from .schema import InsightsSettings
from .scope import config_override, config_scope, get_ambient_resolved_config
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Resolve configuration from all sources with proper precedence.

    Inside a `config_scope`, the scoped configuration is the base and only
    `programmatic` overrides are applied on top of it.

    Args:
        programmatic: Explicit overrides (highest precedence).
        project_root: Directory to search for pyproject.toml. If None,
            searches the current directory and its parents.

    Raises:
        ConfigurationError: If validation fails.
        ConfigFileError: If pyproject.toml exists but is malformed.

    Example:
        config = resolve_config({"model": "gemini-2.5-pro"})
        print(config.audit())
    """
    ambient = get_ambient_resolved_config()
    if ambient is not None:
        return ambient.with_overrides(**programmatic) if programmatic else ambient
    return _resolver.resolve(programmatic, project_root=project_root)


__all__ = [
    "ConfigFileError",
    "ConfigOrigin",
    "ConfigResolver",
    "FileConfigLoader",
    "FrozenConfig",
    "InsightsSettings",
    "ResolvedConfig",
    "SourceMap",
    "SourceTracker",
    "config_override",
    "config_scope",
    "get_ambient_resolved_config",
    "load_env_config",
    "resolve_config",
]
