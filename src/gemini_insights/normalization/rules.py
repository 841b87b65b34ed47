"""Declarative field-alias tables used to reshape off-schema model output.

Each task schema is described by an ordered tuple of `FieldRule`s. A rule
names the canonical wire key, the alternate keys models have been seen to
use instead, and a coercer that adapts the found value to the canonical
type. A single generic routine, `remap`, evaluates any table.

Coercers receive ``bounded=True`` only in the bounded-coercion tier, where
out-of-range numbers are clamped instead of rejected.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
import math
from typing import Any, Final

from gemini_insights.constants import SCORE_MAX, SCORE_MIN
from gemini_insights.core.types import TaskKind

from .schemas import (
    RISK_LEVELS,
    ManagementTrustScoreOutput,
    MacroShockOutput,
    RegulatoryWatchOutput,
    RiskAnalysisOutput,
    TaskOutput,
)


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()

type Coercer = Callable[[Any, bool], Any]


def passthrough(value: Any, bounded: bool = False) -> Any:
    return value


@dataclass(frozen=True, slots=True)
class FieldRule:
    """How to find and adapt one canonical field.

    Attributes:
        canonical: The wire name required by the task schema.
        aliases: Alternate keys probed in order after the canonical one.
        coerce: Adapts a found value; returns `MISSING` when unusable so the
            next alias is tried.
        default: Factory used when no key yields a usable value. Only set for
            fields whose absence is not an error (e.g. an empty evidence list).
    """

    canonical: str
    aliases: tuple[str, ...] = ()
    coerce: Coercer = passthrough
    default: Callable[[], Any] | None = None

    @property
    def keys(self) -> tuple[str, ...]:
        return (self.canonical, *self.aliases)

    def resolve(self, source: Mapping[str, Any], *, bounded: bool = False) -> Any:
        """Return the first usable value for this field, or `MISSING`."""
        for key in self.keys:
            if source.get(key) is None:
                continue
            value = self.coerce(source[key], bounded)
            if value is not MISSING:
                return value
        if self.default is not None:
            return self.default()
        return MISSING


def remap(
    source: Any, rules: tuple[FieldRule, ...], *, bounded: bool = False
) -> dict[str, Any] | None:
    """Rebuild `source` in canonical shape using `rules`.

    Fields with no usable value are left out, so the result fails schema
    validation rather than carrying a made-up default. Returns None when
    `source` is not an object.
    """
    if not isinstance(source, Mapping):
        return None
    rebuilt: dict[str, Any] = {}
    for rule in rules:
        value = rule.resolve(source, bounded=bounded)
        if value is not MISSING:
            rebuilt[rule.canonical] = value
    return rebuilt


def has_any_field(source: Any, rules: tuple[FieldRule, ...]) -> bool:
    """True if `source` carries a usable value for at least one rule."""
    if not isinstance(source, Mapping):
        return False
    return any(
        rule.resolve(source) is not MISSING for rule in rules if rule.default is None
    )


# --- Coercers ---


def as_text(value: Any, bounded: bool = False) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return MISSING


def number_in(low: float, high: float) -> Coercer:
    """Coerce numbers (and numeric strings) to float; clamp when bounded."""

    def _coerce(value: Any, bounded: bool) -> Any:
        if isinstance(value, bool):
            return MISSING
        if isinstance(value, str):
            try:
                value = float(value.strip().rstrip("%"))
            except ValueError:
                return MISSING
        if not isinstance(value, int | float):
            return MISSING
        if isinstance(value, int):
            # Python ints compare exactly against floats, even past float range
            if bounded:
                return float(max(low, min(high, value)))
            try:
                return float(value)
            except OverflowError:
                return MISSING
        if not math.isfinite(value):
            return MISSING
        if bounded:
            return max(low, min(high, value))
        return value

    return _coerce


def enum_of(choices: tuple[str, ...]) -> Coercer:
    """Match a string against `choices` case-insensitively."""
    by_fold = {choice.casefold(): choice for choice in choices}

    def _coerce(value: Any, bounded: bool) -> Any:
        if not isinstance(value, str):
            return MISSING
        return by_fold.get(value.strip().casefold(), MISSING)

    return _coerce


def text_list(value: Any, bounded: bool = False) -> Any:
    """Coerce a list of strings (or objects with a description) or one string."""
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        return MISSING
    items: list[str] = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("description")
        text = as_text(item)
        if text is MISSING:
            return MISSING
        items.append(text)
    return items


def objects(rules: tuple[FieldRule, ...]) -> Coercer:
    """Coerce a list of objects by remapping each item with `rules`."""

    def _coerce(value: Any, bounded: bool) -> Any:
        if not isinstance(value, list):
            return MISSING
        items = [remap(item, rules, bounded=bounded) for item in value]
        if any(item is None for item in items):
            return MISSING
        return items

    return _coerce


def suggested_action(value: Any, bounded: bool = False) -> Any:
    """Coerce a loose recommendation into ``{action, details}``."""
    if isinstance(value, str):
        return {"action": "Suggestion", "details": value}
    if not isinstance(value, Mapping):
        return MISSING
    action = as_text(value.get("action", value.get("recommendation")))
    details = as_text(value.get("details", value.get("note")))
    return {
        "action": "Action" if action is MISSING else action,
        "details": "" if details is MISSING else details,
    }


# --- Per-task tables ---

CITATION_RULES: tuple[FieldRule, ...] = (
    FieldRule("text", ("quote", "promise"), as_text),
    FieldRule("source", ("location", "metric"), as_text),
)

TRUST_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        "managementTrustScore",
        ("score", "trust_score", "trustScore"),
        number_in(SCORE_MIN, SCORE_MAX),
    ),
    FieldRule("reasoning", ("reason", "analysis", "rationale"), as_text),
    FieldRule("citations", ("gaps",), objects(CITATION_RULES), default=list),
)

MACRO_RULES: tuple[FieldRule, ...] = (
    FieldRule("expectedDrawdown", ("drawdown", "expected_drawdown"), as_text),
    FieldRule("sectorSensitivity", ("sector_sensitivity",), as_text),
    FieldRule(
        "downsideRisk", ("risk", "macro_event_impact", "downside_risk"), as_text
    ),
    FieldRule("reasoning", ("rationale", "analysisNote", "reason"), as_text),
    FieldRule(
        "suggestedAction", ("suggested_action", "recommendation"), suggested_action
    ),
)

RISK_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        "riskFactorSummary", ("risks", "riskFactors", "risk_factors"), text_list
    ),
)

RED_FLAG_RULES: tuple[FieldRule, ...] = (
    FieldRule("riskLevel", ("level", "risk_level", "severity"), enum_of(RISK_LEVELS)),
    FieldRule("description", ("text",), as_text),
    FieldRule("implication", ("impact",), as_text),
)

REGULATORY_RULES: tuple[FieldRule, ...] = (
    FieldRule("redFlags", ("flags", "red_flags"), objects(RED_FLAG_RULES)),
)


@dataclass(frozen=True, slots=True)
class TaskSpec:
    """Everything the normalizer needs to know about one task schema.

    Attributes:
        kind: The task kind.
        model: The strict output model.
        rules: Top-level field rules.
        wrap_field: Field a bare-array response is wrapped into, if any.
        salvage_field: Optional structured field that may be filled from
            labeled free text in the raw response, if any.
    """

    kind: TaskKind
    model: type[TaskOutput]
    rules: tuple[FieldRule, ...]
    wrap_field: str | None = None
    salvage_field: str | None = None


TASK_SPECS: dict[TaskKind, TaskSpec] = {
    TaskKind.MANAGEMENT_TRUST_SCORE: TaskSpec(
        TaskKind.MANAGEMENT_TRUST_SCORE, ManagementTrustScoreOutput, TRUST_RULES
    ),
    TaskKind.MACRO_SHOCK: TaskSpec(
        TaskKind.MACRO_SHOCK,
        MacroShockOutput,
        MACRO_RULES,
        salvage_field="suggestedAction",
    ),
    TaskKind.RISK_ANALYSIS: TaskSpec(
        TaskKind.RISK_ANALYSIS,
        RiskAnalysisOutput,
        RISK_RULES,
        wrap_field="riskFactorSummary",
    ),
    TaskKind.REGULATORY_WATCH: TaskSpec(
        TaskKind.REGULATORY_WATCH,
        RegulatoryWatchOutput,
        REGULATORY_RULES,
        wrap_field="redFlags",
    ),
}
