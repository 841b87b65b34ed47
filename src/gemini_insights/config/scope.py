"""Configuration scoping for entry-time overrides.

A scope only affects `resolve_config()` calls made inside it. Once a
`FrozenConfig` has been handed to an executor, ambient changes are not seen.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any

from .types import ResolvedConfig

_ambient_resolved_config: contextvars.ContextVar[ResolvedConfig] = (
    contextvars.ContextVar("gemini_insights_resolved_config")
)


def get_ambient_resolved_config() -> ResolvedConfig | None:
    """Return the configuration set by the innermost scope, or None."""
    try:
        return _ambient_resolved_config.get()
    except LookupError:
        return None


@contextmanager
def config_scope(config: ResolvedConfig) -> Generator[None]:
    """Temporarily use a different resolved configuration.

    Async-safe: the scope is carried by a context variable.

    Example:
        base = resolve_config()
        with config_scope(base.with_overrides(enable_cache=False)):
            executor = create_executor()
    """
    token = _ambient_resolved_config.set(config)
    try:
        yield
    finally:
        _ambient_resolved_config.reset(token)


@contextmanager
def config_override(**overrides: Any) -> Generator[None]:
    """Temporarily override individual configuration fields.

    Example:
        with config_override(model="gemini-2.5-pro"):
            config = resolve_config()
    """
    base_config = get_ambient_resolved_config()
    if base_config is None:
        from . import resolve_config

        base_config = resolve_config()
    with config_scope(base_config.with_overrides(**overrides)):
        yield
