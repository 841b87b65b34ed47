"""Content-addressed cache for generation results.

A result is stored under a key built from the task kind, an optional
portfolio id and a hash of the request input:

    managementTrustScore|portfolio:p-42|input:<sha256>

Entries older than the TTL are ignored on read (never deleted); writing the
same key again replaces the document and resets its age.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
import hashlib
import json
import logging
from typing import Any

from gemini_insights.constants import (
    CACHE_COLLECTION,
    CACHE_KEY_SEPARATOR,
    DEFAULT_CACHE_TTL,
)
from gemini_insights.core.types import CacheEntry, TaskKind

from .store import Document, DocumentStore, InMemoryDocumentStore

log = logging.getLogger(__name__)

type Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def hash_input(value: Any) -> str:
    """Return the SHA-256 hex digest of `value`'s canonical JSON form.

    Falls back to ``str(value)`` when the value is not JSON-serializable.
    """
    try:
        canonical = json.dumps(value, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        log.debug("Input is not JSON-serializable; keying on str()", exc_info=True)
        return str(value)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def make_key(
    task_kind: TaskKind | str,
    *,
    context_id: str | None = None,
    input: Any = None,  # noqa: A002
) -> str:
    """Compose the cache key for a task, context and input."""
    kind = task_kind.value if isinstance(task_kind, TaskKind) else str(task_kind)
    parts = [kind]
    if context_id:
        parts.append(f"portfolio:{context_id}")
    if input is not None:
        parts.append(f"input:{hash_input(input)}")
    return CACHE_KEY_SEPARATOR.join(parts)


class ResultCache:
    """TTL-bounded result cache over a `DocumentStore`."""

    def __init__(
        self,
        store: DocumentStore | None = None,
        *,
        ttl_seconds: float = DEFAULT_CACHE_TTL,
        clock: Clock = _utc_now,
        collection: str = CACHE_COLLECTION,
    ) -> None:
        """Initialize the cache.

        Args:
            store: Backing document store; in-memory when omitted.
            ttl_seconds: Age after which entries are treated as missing.
            clock: Returns the current timezone-aware time.
            collection: Collection name used in the store.
        """
        self.store = store if store is not None else InMemoryDocumentStore()
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._collection = collection

    async def get(
        self,
        task_kind: TaskKind | str,
        *,
        context_id: str | None = None,
        input: Any = None,  # noqa: A002
    ) -> CacheEntry | None:
        """Return the fresh entry for this request, or None."""
        key = make_key(task_kind, context_id=context_id, input=input)
        doc = await self.store.get_document(self._collection, key)
        if doc is None:
            return None

        entry = _entry_from_document(key, doc)
        if entry is None:
            log.warning("AI cache entry unreadable, ignoring: %s", key)
            return None

        if entry.is_expired(self._clock(), self.ttl_seconds):
            log.info("AI cache expired: %s", key)
            return None

        log.info("AI cache hit: %s", key)
        return entry

    async def put(
        self,
        task_kind: TaskKind | str,
        result_json: str,
        *,
        context_id: str | None = None,
        input: Any = None,  # noqa: A002
        model: str | None = None,
        latency_ms: float | None = None,
    ) -> CacheEntry:
        """Store a result, replacing any previous entry under the same key."""
        key = make_key(task_kind, context_id=context_id, input=input)
        now = self._clock()
        kind = task_kind.value if isinstance(task_kind, TaskKind) else str(task_kind)
        document: Document = {
            "analysisType": kind,
            "portfolioId": context_id,
            "inputHash": hash_input(input) if input is not None else None,
            "resultJson": result_json,
            "model": model,
            "latencyMs": latency_ms,
            "createdAt": now.isoformat(),
            "updatedAt": now.isoformat(),
        }
        await self.store.set_document(self._collection, key, document)
        log.info("AI cache set: %s (latency_ms=%s)", key, latency_ms)
        return CacheEntry(
            key=key,
            result_json=result_json,
            created_at=now,
            model=model,
            latency_ms=latency_ms,
        )


def _entry_from_document(key: str, doc: Document) -> CacheEntry | None:
    result_json = doc.get("resultJson")
    created_raw = doc.get("createdAt")
    if not isinstance(result_json, str) or not isinstance(created_raw, str):
        return None
    try:
        created_at = datetime.fromisoformat(created_raw)
    except ValueError:
        return None
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return CacheEntry(
        key=key,
        result_json=result_json,
        created_at=created_at,
        model=doc.get("model"),
        latency_ms=doc.get("latencyMs"),
    )
