"""Recovery of JSON values from unstructured model output.

The chain runs from cheapest to most invasive and stops at the first step
that yields a parseable document:

1. parse the raw text as-is
2. extract a bracket-balanced candidate and parse it
3. repair the candidate (close strings/nesting) and parse
4. repair the raw text and parse
"""

from __future__ import annotations

import logging
from typing import Any

from gemini_insights.exceptions import ExtractionFailure, RepairExhausted

from .repair import repair
from .scanner import extract, parses, strip_wrappers, try_loads

log = logging.getLogger(__name__)


def recover_json(text: str | None) -> Any:
    """Recover a JSON value from raw model text.

    Raises:
        ExtractionFailure: Nothing JSON-like was found and repairing the raw
            text did not produce a parseable document.
        RepairExhausted: A candidate was found but neither it nor its repaired
            form parses.
    """
    raw = text or ""

    ok, value = try_loads(raw)
    if ok:
        return value

    candidate = extract(raw)
    if candidate is not None:
        ok, value = try_loads(candidate.text)
        if ok:
            return value

        repaired = repair(candidate.text)
        ok, value = try_loads(repaired)
        if ok:
            log.info(
                "Recovered JSON by repairing a %s candidate at offset %d.",
                candidate.validity.value,
                candidate.start,
            )
            return value

    ok, value = try_loads(repair(raw))
    if ok:
        log.info("Recovered JSON by repairing the raw response text.")
        return value

    if candidate is None:
        log.warning("No JSON found in model response: %r", raw[:300])
        raise ExtractionFailure("No JSON value found in model response", raw)

    log.warning("Could not parse model response even after repair: %r", raw[:300])
    raise RepairExhausted("Model response is not valid JSON even after repair", raw)


__all__ = [
    "extract",
    "parses",
    "recover_json",
    "repair",
    "strip_wrappers",
    "try_loads",
]
