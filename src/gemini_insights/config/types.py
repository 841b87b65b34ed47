"""Core configuration data types.

Configuration follows a resolve-once, freeze-then-flow pattern: sources are
merged into a `ResolvedConfig` that remembers where each value came from,
then frozen into the `FrozenConfig` the pipeline components read.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

_SENSITIVE_FIELDS = frozenset({"api_key"})


class ResolvedConfig(NamedTuple):
    """Configuration after resolution from all sources, before freezing.

    Logically immutable; carries an `origin` map for auditing.
    """

    api_key: str | None
    model: str
    temperature: float
    max_output_tokens: int
    max_attempts: int
    rate_limit_delay: float
    network_retry_delay: float
    enable_cache: bool
    cache_ttl_seconds: int

    origin: SourceMap

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        api_key_display = "[REDACTED]" if self.api_key else None
        return (
            f"ResolvedConfig(api_key={api_key_display!r}, model={self.model!r}, "
            f"max_attempts={self.max_attempts!r}, "
            f"enable_cache={self.enable_cache!r}, "
            f"cache_ttl_seconds={self.cache_ttl_seconds!r}, "
            f"origin={dict(self.origin)!r})"
        )

    def __repr__(self) -> str:
        """Repr with redacted API key for safe debugging."""
        return self.__str__()

    def to_frozen(self) -> "FrozenConfig":
        """Convert to the immutable configuration used by the pipeline."""
        values = self._asdict()
        values.pop("origin")
        return FrozenConfig(**values)

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Return a copy with programmatic overrides applied.

        Unknown fields are ignored.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)
        for field, value in overrides.items():
            if field in new_values and field != "origin":
                new_values[field] = value
                new_origin[field] = "programmatic"
        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """Generate a redacted report showing the origin of each field."""
        lines = []
        for field in self._fields:
            if field == "origin" or field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if field in _SENSITIVE_FIELDS:
                shown = "None" if value is None else "<redacted>"
            else:
                shown = str(value)
            lines.append(f"{field}: {origin}:{shown}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration handed to pipeline components."""

    api_key: str | None
    model: str
    temperature: float
    max_output_tokens: int
    max_attempts: int
    rate_limit_delay: float
    network_retry_delay: float
    enable_cache: bool
    cache_ttl_seconds: int

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        api_key_display = "[REDACTED]" if self.api_key else None
        return (
            f"FrozenConfig(api_key={api_key_display!r}, model={self.model!r}, "
            f"max_attempts={self.max_attempts!r}, "
            f"enable_cache={self.enable_cache!r}, "
            f"cache_ttl_seconds={self.cache_ttl_seconds!r})"
        )

    def __repr__(self) -> str:
        """Representation with redacted API key for safe debugging."""
        return self.__str__()
