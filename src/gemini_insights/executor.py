"""The primary entry point for running an analysis task.

`InsightsExecutor.run` composes the pipeline stages:

    cache lookup -> generation -> JSON recovery -> normalization -> cache store

Terminal failures in any stage are returned as `Failure(error)` rather than
raised, so callers branch on the result type. Cache errors never fail a run:
a failed read is a miss and a failed write is skipped.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
from typing import Any

from pydantic import BaseModel

from gemini_insights.cache import DocumentStore, ResultCache
from gemini_insights.client import GenerationAdapter, GenerationClient
from gemini_insights.client.generation import Sleep
from gemini_insights.config import FrozenConfig, resolve_config
from gemini_insights.core.types import Failure, Result, Success, TaskKind
from gemini_insights.exceptions import InsightsError
from gemini_insights.normalization import SchemaNormalizer, TaskOutput
from gemini_insights.recovery import recover_json
from gemini_insights.telemetry import (
    TelemetryContext,
    TelemetryContextProtocol,
    TelemetryReporter,
)

log = logging.getLogger(__name__)


class InsightsExecutor:
    """Runs analysis tasks through cache, generation, recovery and normalization."""

    def __init__(
        self,
        config: FrozenConfig,
        *,
        adapter: GenerationAdapter | None = None,
        cache: ResultCache | None = None,
        store: DocumentStore | None = None,
        normalizer: SchemaNormalizer | None = None,
        sleep: Sleep | None = None,
        reporters: tuple[TelemetryReporter, ...] = (),
    ) -> None:
        """Initialize the executor.

        Args:
            config: Frozen configuration for every stage.
            adapter: Generation backend; defaults to the google-genai adapter.
            cache: Result cache; built over `store` when omitted.
            store: Document store for the default cache.
            normalizer: Schema normalizer; the built-in task tables by default.
            sleep: Backoff sleep for the generation client.
            reporters: Telemetry reporters (active only when telemetry is enabled).
        """
        self.config = config
        self._tele: TelemetryContextProtocol = TelemetryContext(*reporters)
        client_kwargs: dict[str, Any] = {"adapter": adapter, "telemetry": self._tele}
        if sleep is not None:
            client_kwargs["sleep"] = sleep
        self.client = GenerationClient(config, **client_kwargs)
        self.cache = cache or ResultCache(store, ttl_seconds=config.cache_ttl_seconds)
        self.normalizer = normalizer or SchemaNormalizer()

    async def run(
        self,
        task_kind: TaskKind | str,
        input: BaseModel | Mapping[str, Any],  # noqa: A002
        *,
        context_id: str | None = None,
    ) -> Result[TaskOutput, InsightsError]:
        """Run one analysis task.

        Args:
            task_kind: Which analysis to run.
            input: A task input model or an equivalent camelCase mapping.
            context_id: Optional portfolio id used to scope the cache key.

        Returns:
            `Success(output)` with a validated task output, or
            `Failure(error)` with the terminal `InsightsError`.
        """
        try:
            kind = TaskKind.coerce(task_kind)
        except ValueError as e:
            return Failure(InsightsError(str(e)))

        payload = _to_payload(input)
        with self._tele("insights.run", task=kind.value):
            try:
                return Success(await self._run(kind, payload, context_id))
            except InsightsError as e:
                log.error("Analysis %s failed: %s", kind.value, e)
                self._tele.count("insights.failure", task=kind.value)
                return Failure(e)

    async def _run(
        self, kind: TaskKind, payload: dict[str, Any], context_id: str | None
    ) -> TaskOutput:
        cached = await self._cached_output(kind, payload, context_id)
        if cached is not None:
            return cached

        generated = await self.client.generate_detailed(kind, payload)
        with self._tele("normalize", task=kind.value):
            value = recover_json(generated.text)
            output = self.normalizer.normalize(value, kind, raw_text=generated.text)

        if self.config.enable_cache:
            try:
                await self.cache.put(
                    kind,
                    output.to_json(),
                    context_id=context_id,
                    input=payload,
                    model=generated.model,
                    latency_ms=generated.trace.latency_ms,
                )
            except Exception as e:
                log.warning("AI cache write skipped for %s: %s", kind.value, e)
        return output

    async def _cached_output(
        self, kind: TaskKind, payload: dict[str, Any], context_id: str | None
    ) -> TaskOutput | None:
        if not self.config.enable_cache:
            return None
        try:
            entry = await self.cache.get(kind, context_id=context_id, input=payload)
        except Exception as e:
            log.warning("AI cache read failed for %s: %s", kind.value, e)
            entry = None
        if entry is None:
            self._tele.count("cache.miss", task=kind.value)
            return None

        try:
            output = self.normalizer.normalize(
                json.loads(entry.result_json), kind, raw_text=entry.result_json
            )
        except (ValueError, InsightsError) as e:
            log.warning("Ignoring unusable cache entry %s: %s", entry.key, e)
            self._tele.count("cache.miss", task=kind.value)
            return None
        self._tele.count("cache.hit", task=kind.value)
        return output


def _to_payload(value: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(value, BaseModel):
        to_payload = getattr(value, "to_payload", None)
        if callable(to_payload):
            return to_payload()
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    return dict(value)


def create_executor(
    config: FrozenConfig | None = None,
    **kwargs: Any,
) -> InsightsExecutor:
    """Create an executor, resolving configuration from the environment if needed.

    Args:
        config: Optional frozen configuration.
        **kwargs: Forwarded to `InsightsExecutor` (adapter, store, sleep, ...).
    """
    final_config = config if config is not None else resolve_config().to_frozen()
    return InsightsExecutor(final_config, **kwargs)
