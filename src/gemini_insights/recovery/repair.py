"""Truncation repair for JSON cut off mid-stream.

Models that hit their output token limit stop mid-document. `repair` closes
what was left open: an unterminated string, then any open arrays and
objects, innermost first. Original characters are never removed or
reordered; only closing tokens are appended.

Invalid tokens, trailing commas and unquoted keys are out of scope.
"""

from __future__ import annotations

import logging

log = logging.getLogger(__name__)

EMPTY_OBJECT = "{}"

_CLOSERS = {"{": "}", "[": "]"}


def repair(text: str | None) -> str:
    """Close unterminated strings and nesting in `text`.

    Total function: never raises. Returns ``{}`` for empty input, or when the
    nesting cannot be resolved by appending (a closer with no matching
    opener).
    """
    if not text or not text.strip():
        return EMPTY_OBJECT

    in_string = False
    escape_next = False
    brace_depth = 0
    bracket_depth = 0
    # Open delimiters in order, so closers can be appended innermost first
    stack: list[str] = []

    for ch in text:
        if escape_next:
            escape_next = False
            continue
        if ch == "\\":
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if ch in _CLOSERS:
            stack.append(ch)
            if ch == "{":
                brace_depth += 1
            else:
                bracket_depth += 1
        elif ch in ("}", "]"):
            if not stack or _CLOSERS[stack[-1]] != ch:
                log.debug("Unmatched %r in text; nesting cannot be repaired.", ch)
                return EMPTY_OBJECT
            stack.pop()
            if ch == "}":
                brace_depth -= 1
            else:
                bracket_depth -= 1

    if in_string:
        text += '"'

    closing = "".join(_CLOSERS[opener] for opener in reversed(stack))
    if closing:
        log.debug(
            "Repaired truncated JSON: %d bracket(s), %d brace(s) closed.",
            bracket_depth,
            brace_depth,
        )
    return text + closing
