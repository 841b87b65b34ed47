"""Exception hierarchy for the insights recovery pipeline."""

from __future__ import annotations

from .constants import RAW_TEXT_PREVIEW


def _preview(text: str | None, limit: int = RAW_TEXT_PREVIEW) -> str:
    return (text or "")[:limit]


class InsightsError(Exception):
    """Base exception for all gemini_insights errors."""


class ConfigurationError(InsightsError):
    """Raised when required configuration (e.g. credentials) is missing or invalid."""


class RecoveryError(InsightsError):
    """Base for failures to recover a JSON value from raw model text.

    Attributes:
        raw_preview: First characters of the offending text, for diagnostics.
    """

    def __init__(self, message: str, raw_text: str | None = None) -> None:
        self.raw_preview = _preview(raw_text)
        super().__init__(message)


class ExtractionFailure(RecoveryError):
    """No JSON-like substring could be located in the text."""


class RepairExhausted(RecoveryError):
    """A candidate was found but still fails to parse after repair."""


class SchemaMismatch(InsightsError):
    """Raised when a parsed value cannot be normalized into its task schema.

    Only raised after every normalization tier has been tried.
    """

    def __init__(self, task_kind: str, raw_text: str | None = None) -> None:
        self.task_kind = task_kind
        self.raw_preview = _preview(raw_text)
        super().__init__(
            f"Model returned unexpected shape for {task_kind}: {self.raw_preview}"
        )


class GenerationError(InsightsError):
    """Raised when the generation backend fails after the retry budget.

    Attributes:
        status_code: HTTP status of the final response, if one was received.
        body: Truncated response body, if one was received.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)
