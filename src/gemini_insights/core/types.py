"""Core data types that flow through the insights pipeline.

This module defines the immutable data structures shared by the recovery,
normalization, generation and caching stages. Each stage hands the next one
a new value rather than mutating shared state.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
import enum
import typing

# --- Minimal guard helpers ---


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Result Monad for Robust Error Handling ---
# Failures are a predictable part of the data flow rather than exceptions
# escaping from the pipeline entry point.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Task kinds ---


class TaskKind(str, enum.Enum):
    """The analysis kinds the pipeline knows how to generate and normalize."""

    MANAGEMENT_TRUST_SCORE = "managementTrustScore"
    MACRO_SHOCK = "macroShock"
    RISK_ANALYSIS = "riskAnalysis"
    REGULATORY_WATCH = "regulatoryWatch"

    @classmethod
    def coerce(cls, value: TaskKind | str) -> TaskKind:
        """Return the enum member for a member or its wire value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(
                f"Unknown task kind {value!r}; expected one of: {valid}"
            ) from None


# --- Recovery types ---


class CandidateValidity(str, enum.Enum):
    """Whether a candidate parsed cleanly or is only a balanced best guess."""

    VALID = "valid"
    BEST_EFFORT = "best_effort"


@dataclasses.dataclass(frozen=True, slots=True)
class JsonCandidate:
    """A substring of a raw response believed to delimit one JSON value.

    Attributes:
        text: The candidate substring.
        start: Offset of the candidate within the cleaned response text.
        delimiter: The opening bracket (``{`` or ``[``), or None when the
            whole cleaned text parsed as a scalar.
        validity: Whether `text` parses cleanly.
    """

    text: str
    start: int
    delimiter: typing.Literal["{", "["] | None
    validity: CandidateValidity

    def __post_init__(self) -> None:
        """Validate candidate invariants."""
        _require(
            condition=isinstance(self.text, str),
            message="must be str",
            field_name="text",
            exc=TypeError,
        )
        _require(
            condition=self.start >= 0,
            message="must be >= 0",
            field_name="start",
        )
        _require(
            condition=self.delimiter in ("{", "[", None),
            message=f"must be '{{', '[' or None, got {self.delimiter!r}",
            field_name="delimiter",
        )

    @property
    def is_valid(self) -> bool:
        """True when the candidate parses without repair."""
        return self.validity is CandidateValidity.VALID


# --- Cache types ---


@dataclasses.dataclass(frozen=True, slots=True)
class CacheEntry:
    """A stored generation result, owned exclusively by the result cache."""

    key: str
    result_json: str
    created_at: datetime
    model: str | None = None
    latency_ms: float | None = None

    def __post_init__(self) -> None:
        """Validate cache entry invariants."""
        _require(
            condition=isinstance(self.key, str) and self.key != "",
            message="must be a non-empty str",
            field_name="key",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.result_json, str),
            message="must be str",
            field_name="result_json",
            exc=TypeError,
        )
        _require(
            condition=self.created_at.tzinfo is not None,
            message="must be timezone-aware",
            field_name="created_at",
        )

    def age_seconds(self, now: datetime) -> float:
        """Seconds elapsed between creation and `now`."""
        return (now - self.created_at).total_seconds()

    def is_expired(self, now: datetime, ttl_seconds: float) -> bool:
        """True once the entry's age exceeds `ttl_seconds`."""
        return self.age_seconds(now) > ttl_seconds
