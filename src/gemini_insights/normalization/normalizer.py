"""Schema normalization: reshape parsed model output into a task schema.

Models often return parseable JSON in the wrong shape: renamed fields,
results nested under a wrapper key, a bare array instead of an object, or a
score slightly outside its range. `SchemaNormalizer` tries an ordered list
of tiers and returns the first value that validates:

1. strict: the value as-is
2. alias remap: the value rebuilt through the task's `FieldRule` table
3. container unwrap: tiers 1-2 on a single nested wrapper object
4. free-text salvage: optional structured fields recovered from labeled
   prose in the raw text (enrichment only, never required fields)
5. bounded coercion: numbers clamped into range, bare arrays wrapped

Nothing half-valid is ever returned; if no tier validates the caller gets a
`SchemaMismatch` carrying a preview of the offending text.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
import enum
import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from gemini_insights.constants import SALVAGE_MAX_CHARS
from gemini_insights.core.types import TaskKind
from gemini_insights.exceptions import SchemaMismatch

from .rules import TASK_SPECS, TaskSpec, has_any_field, remap
from .schemas import TaskOutput

log = logging.getLogger(__name__)

WRAPPER_KEYS: tuple[str, ...] = (
    "processedData",
    "processed",
    "data",
    "insights",
    "analysis",
    "result",
)

_LABELED_ACTION = re.compile(
    rf"(?:Suggested Action|Recommendation)[:\-]\s*([\s\S]{{1,{SALVAGE_MAX_CHARS}}})",
    re.IGNORECASE,
)
_FRAGMENT_SPLIT = re.compile(r"[\n\r.;]")


class NormalizationTier(str, enum.Enum):
    """The fallback tier that produced a normalized output."""

    STRICT = "strict"
    ALIAS_REMAP = "alias_remap"
    CONTAINER_UNWRAP = "container_unwrap"
    FREE_TEXT_SALVAGE = "free_text_salvage"
    BOUNDED_COERCION = "bounded_coercion"


@dataclass(frozen=True, slots=True)
class Normalized:
    """A validated output together with the tier that produced it."""

    output: TaskOutput
    tier: NormalizationTier


def unwrap(value: Any, spec: TaskSpec) -> Any | None:
    """Return the single nested container holding the real payload, if any.

    Only applies when `value` carries none of the schema's top-level fields.
    Known wrapper keys are preferred; otherwise a lone object-valued property
    (e.g. results keyed by a company ticker) is used.
    """
    if not isinstance(value, Mapping) or has_any_field(value, spec.rules):
        return None

    wrapped = [
        value[key]
        for key in WRAPPER_KEYS
        if isinstance(value.get(key), Mapping | list)
    ]
    if len(wrapped) == 1:
        return wrapped[0]
    if wrapped:
        return None

    nested = [item for item in value.values() if isinstance(item, Mapping)]
    if len(nested) == 1:
        return nested[0]
    return None


def salvage_action(raw_text: str | None) -> dict[str, str] | None:
    """Build a suggested action from a labeled sentence in free text."""
    if not raw_text:
        return None
    match = _LABELED_ACTION.search(raw_text)
    if match is None:
        return None
    fragments = [
        f.strip() for f in _FRAGMENT_SPLIT.split(match.group(1).strip()) if f.strip()
    ]
    if not fragments:
        return None
    first, *rest = fragments
    return {"action": first, "details": ". ".join(rest).strip()}


class SchemaNormalizer:
    """Normalizes parsed values into the output schema of a task kind."""

    def __init__(self, specs: Mapping[TaskKind, TaskSpec] | None = None) -> None:
        """Initialize with per-task specs; defaults to the built-in tables."""
        self._specs = dict(specs) if specs is not None else dict(TASK_SPECS)

    def normalize(
        self,
        value: Any,
        task_kind: TaskKind | str,
        *,
        raw_text: str | None = None,
    ) -> TaskOutput:
        """Return `value` reshaped into the schema for `task_kind`.

        Args:
            value: A parsed JSON value.
            task_kind: Which schema to normalize into.
            raw_text: The raw response text, used for free-text salvage and
                error diagnostics.

        Raises:
            SchemaMismatch: If no tier produces a valid output.
        """
        return self.normalize_detailed(value, task_kind, raw_text=raw_text).output

    def normalize_detailed(
        self,
        value: Any,
        task_kind: TaskKind | str,
        *,
        raw_text: str | None = None,
    ) -> Normalized:
        """Like `normalize`, but also report which tier succeeded."""
        kind = TaskKind.coerce(task_kind)
        spec = self._specs[kind]

        for tier, candidate in self._candidates(value, spec):
            output = self._validate(spec, candidate)
            if output is None:
                continue
            if tier is NormalizationTier.STRICT:
                return Normalized(output, tier)
            log.info("Normalized %s output via %s tier.", kind.value, tier.value)
            salvaged = self._salvage(spec, output, raw_text)
            if salvaged is not None:
                return Normalized(salvaged, NormalizationTier.FREE_TEXT_SALVAGE)
            return Normalized(output, tier)

        preview = raw_text if raw_text is not None else _dump(value)
        log.warning("No normalization tier matched %s output.", kind.value)
        raise SchemaMismatch(kind.value, preview)

    def _candidates(
        self, value: Any, spec: TaskSpec
    ) -> Iterator[tuple[NormalizationTier, Any]]:
        yield NormalizationTier.STRICT, value
        yield NormalizationTier.ALIAS_REMAP, remap(value, spec.rules)

        inner = unwrap(value, spec)
        if inner is not None:
            yield NormalizationTier.CONTAINER_UNWRAP, inner
            yield NormalizationTier.CONTAINER_UNWRAP, remap(inner, spec.rules)

        for source in (value, inner):
            if source is None:
                continue
            if isinstance(source, list) and spec.wrap_field:
                source = {spec.wrap_field: source}
            yield (
                NormalizationTier.BOUNDED_COERCION,
                remap(source, spec.rules, bounded=True),
            )

    def _validate(self, spec: TaskSpec, candidate: Any) -> TaskOutput | None:
        if candidate is None:
            return None
        try:
            return spec.model.model_validate(candidate)
        except ValidationError as e:
            log.debug("%s candidate rejected: %s", spec.kind.value, e.error_count())
            return None

    def _salvage(
        self, spec: TaskSpec, output: TaskOutput, raw_text: str | None
    ) -> TaskOutput | None:
        """Fill a missing optional structured field from labeled free text."""
        if spec.salvage_field is None:
            return None
        payload = output.to_payload()
        if payload.get(spec.salvage_field) is not None:
            return None
        action = salvage_action(raw_text)
        if action is None:
            return None
        enriched = self._validate(spec, {**payload, spec.salvage_field: action})
        if enriched is not None:
            log.info("Salvaged %s from free text.", spec.salvage_field)
        return enriched


def _dump(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


_default_normalizer = SchemaNormalizer()


def normalize(
    value: Any, task_kind: TaskKind | str, *, raw_text: str | None = None
) -> TaskOutput:
    """Normalize `value` with the built-in task tables."""
    return _default_normalizer.normalize(value, task_kind, raw_text=raw_text)
