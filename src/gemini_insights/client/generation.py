"""Generation client with a bounded, fixed-delay retry policy.

Each call walks a small state machine:

    IDLE -> REQUESTING -> SUCCESS
                       -> RATE_LIMITED  -> BACKOFF -> REQUESTING
                       -> NETWORK_ERROR -> BACKOFF -> REQUESTING
                       -> FAILED

Rate limits (HTTP 429) wait a fixed delay, network faults a shorter one, and
the whole call is capped at `max_attempts` requests. Any other non-2xx status
fails immediately. On success the response is passed through the bracket
scanner so callers receive the JSON-looking part whenever one exists.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
import enum
import logging
import time
from typing import Any

from gemini_insights.config import FrozenConfig
from gemini_insights.constants import ERROR_BODY_PREVIEW, RATE_LIMIT_STATUS
from gemini_insights.core.types import TaskKind
from gemini_insights.exceptions import ConfigurationError, GenerationError
from gemini_insights.recovery import extract
from gemini_insights.telemetry import TelemetryContext, TelemetryContextProtocol

from .adapters import (
    GenerationAdapter,
    GoogleGenAIAdapter,
    ProviderStatusError,
    TransportFault,
)
from .prompts import build_prompt

log = logging.getLogger(__name__)

type Sleep = Callable[[float], Awaitable[Any]]


class GenerationState(str, enum.Enum):
    """States of a single generation call."""

    IDLE = "idle"
    REQUESTING = "requesting"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    BACKOFF = "backoff"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class GenerationTrace:
    """Per-call record of state transitions, attempts and latency."""

    state: GenerationState = GenerationState.IDLE
    history: list[GenerationState] = field(
        default_factory=lambda: [GenerationState.IDLE]
    )
    attempts: int = 0
    latency_ms: float | None = None

    def to(self, state: GenerationState) -> None:
        self.state = state
        self.history.append(state)


@dataclass(frozen=True, slots=True)
class Generated:
    """Text returned by a successful generation call."""

    text: str
    model: str
    trace: GenerationTrace


class GenerationClient:
    """Calls the generation backend for one task and returns its text."""

    def __init__(
        self,
        config: FrozenConfig,
        *,
        adapter: GenerationAdapter | None = None,
        sleep: Sleep = asyncio.sleep,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Frozen configuration (model, retry delays, credentials).
            adapter: Backend adapter. When omitted, a `GoogleGenAIAdapter` is
                built from `config.api_key` on first use.
            sleep: Awaitable used for backoff waits; injectable for tests.
            telemetry: Optional telemetry context.
        """
        self._config = config
        self._adapter = adapter
        self._sleep = sleep
        self._tele = telemetry or TelemetryContext()

    async def generate(
        self, task_kind: TaskKind | str, payload: Mapping[str, Any]
    ) -> str:
        """Return the (extracted) response text for one task.

        Raises:
            ConfigurationError: If no adapter was injected and no API key is
                configured. Raised before any request is sent.
            GenerationError: On a terminal backend failure.
        """
        return (await self.generate_detailed(task_kind, payload)).text

    async def generate_detailed(
        self, task_kind: TaskKind | str, payload: Mapping[str, Any]
    ) -> Generated:
        """Like `generate`, but also return the call trace."""
        adapter = self._select_adapter()
        prompt = build_prompt(task_kind, payload)
        trace = GenerationTrace()

        with self._tele("generate", task=getattr(task_kind, "value", task_kind)):
            start = time.perf_counter()
            raw = await self._request_with_retry(adapter, prompt, trace)
            trace.latency_ms = (time.perf_counter() - start) * 1000

        if not raw.strip():
            trace.to(GenerationState.FAILED)
            raise GenerationError("No text content in API response")

        trace.to(GenerationState.SUCCESS)
        candidate = extract(raw)
        if candidate is None:
            log.warning(
                "JSON extraction failed, returning raw text for recovery: %r",
                raw[:300],
            )
            return Generated(raw, self._config.model, trace)
        return Generated(candidate.text, self._config.model, trace)

    def _select_adapter(self) -> GenerationAdapter:
        if self._adapter is not None:
            return self._adapter
        if not self._config.api_key:
            raise ConfigurationError(
                "API key is not set. Provide GEMINI_API_KEY or GOOGLE_API_KEY."
            )
        self._adapter = GoogleGenAIAdapter(self._config.api_key)
        return self._adapter

    async def _request_with_retry(
        self,
        adapter: GenerationAdapter,
        prompt: str,
        trace: GenerationTrace,
    ) -> str:
        max_attempts = self._config.max_attempts
        retried: set[GenerationState] = set()

        while True:
            trace.to(GenerationState.REQUESTING)
            trace.attempts += 1
            can_retry = trace.attempts < max_attempts
            try:
                return await adapter.generate(
                    model_name=self._config.model,
                    prompt=prompt,
                    temperature=self._config.temperature,
                    max_output_tokens=self._config.max_output_tokens,
                )
            except ProviderStatusError as e:
                retry_rate_limit = (
                    e.status_code == RATE_LIMIT_STATUS
                    and can_retry
                    and GenerationState.RATE_LIMITED not in retried
                )
                if retry_rate_limit:
                    retried.add(GenerationState.RATE_LIMITED)
                    trace.to(GenerationState.RATE_LIMITED)
                    log.warning(
                        "Rate limited. Retrying in %.1f seconds...",
                        self._config.rate_limit_delay,
                    )
                    await self._backoff(trace, self._config.rate_limit_delay)
                    continue
                trace.to(GenerationState.FAILED)
                body = (e.body or "")[:ERROR_BODY_PREVIEW]
                log.error("API Error %d: %s", e.status_code, body)
                raise GenerationError(
                    f"API Error {e.status_code}: {body}",
                    status_code=e.status_code,
                    body=body,
                ) from e
            except TransportFault as e:
                if can_retry and GenerationState.NETWORK_ERROR not in retried:
                    retried.add(GenerationState.NETWORK_ERROR)
                    trace.to(GenerationState.NETWORK_ERROR)
                    log.warning("Request failed, retrying: %s", e)
                    await self._backoff(trace, self._config.network_retry_delay)
                    continue
                trace.to(GenerationState.FAILED)
                log.error("AI generation error: %s", e)
                raise GenerationError(f"Network failure: {e}") from e

    async def _backoff(self, trace: GenerationTrace, delay: float) -> None:
        trace.to(GenerationState.BACKOFF)
        self._tele.count("generation.retry")
        await self._sleep(delay)
