"""Bracket scanning: locate a JSON value inside free-form model output.

Model responses often wrap JSON in markdown fences or surround it with prose.
`extract` strips the common wrappers, tries the cleaned text as-is, and then
walks forward from the first opening bracket looking for the shortest
balanced slice that parses.

The depth counter is deliberately not string-aware: a brace inside a quoted
string can desynchronize it on adversarial input. Callers get a best-effort
candidate in that case and the repairer gets a chance to fix it.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from gemini_insights.core.types import CandidateValidity, JsonCandidate

log = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")
_STRAY_BACKTICKS = re.compile(r"^`+|`+$")
_LEADING_JSON_TOKEN = re.compile(r"^json\s*", re.IGNORECASE)
_FIRST_OPENER = re.compile(r"[{\[]")

_CLOSERS = {"{": "}", "[": "]"}


def parses(text: str) -> bool:
    """Return True if `text` is a complete JSON document."""
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def try_loads(text: str) -> tuple[bool, Any]:
    """Parse `text`, returning ``(ok, value)`` instead of raising."""
    try:
        return True, json.loads(text)
    except (ValueError, RecursionError):
        return False, None


def strip_wrappers(text: str) -> str:
    """Remove code fences, stray backticks and a leading ``json`` token."""
    t = text.strip()
    t = _LEADING_FENCE.sub("", t)
    t = _TRAILING_FENCE.sub("", t).strip()
    t = _STRAY_BACKTICKS.sub("", t).strip()
    return _LEADING_JSON_TOKEN.sub("", t).strip()


def extract(text: str | None) -> JsonCandidate | None:
    """Extract the best JSON candidate from raw model text.

    Args:
        text: Raw response text; may be None or empty.

    Returns:
        A `JsonCandidate` marked valid when it parses, best-effort when only a
        balanced (or, lacking one, an unterminated) slice was found, or None
        when the text contains no opening bracket at all.
    """
    if not text:
        return None

    t = strip_wrappers(text)

    # Fast path: the cleaned text is already a JSON document
    if parses(t):
        delimiter = t[0] if t[:1] in _CLOSERS else None
        return JsonCandidate(t, 0, delimiter, CandidateValidity.VALID)

    match = _FIRST_OPENER.search(t)
    if match is None:
        log.debug("No JSON opener found in %d chars of text.", len(t))
        return None

    start = match.start()
    open_char = t[start]
    close_char = _CLOSERS[open_char]
    depth = 0
    best: str | None = None

    for i in range(start, len(t)):
        ch = t[i]
        if ch == open_char:
            depth += 1
            continue
        if ch != close_char:
            continue
        depth -= 1

        # Only a closer that returns depth to zero ends a slice
        if depth == 0:
            candidate = t[start : i + 1]
            if parses(candidate):
                return JsonCandidate(
                    candidate, start, open_char, CandidateValidity.VALID
                )
            best = candidate

    if best is not None:
        log.debug("Returning last balanced slice as best-effort candidate.")
        return JsonCandidate(best, start, open_char, CandidateValidity.BEST_EFFORT)

    # Never balanced: most likely truncated output, keep the tail for repair
    log.debug("No balanced slice; returning unterminated tail from offset %d.", start)
    return JsonCandidate(t[start:], start, open_char, CandidateValidity.BEST_EFFORT)
