"""Document stores backing the result cache.

The cache only needs keyed get/set of JSON-like documents within a named
collection. Any document database client can be wrapped to satisfy
`DocumentStore`; `InMemoryDocumentStore` is the process-local default.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Protocol, runtime_checkable

type Document = dict[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    """Async keyed document storage."""

    async def get_document(self, collection: str, doc_id: str) -> Document | None:
        """Return the document stored under `doc_id`, or None."""
        ...

    async def set_document(self, collection: str, doc_id: str, data: Document) -> None:
        """Store `data` under `doc_id`, replacing any existing document."""
        ...


class InMemoryDocumentStore:
    """Process-local document store.

    Documents are copied on the way in and out so callers cannot mutate
    stored state. Not shared between processes.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}
        self._lock = asyncio.Lock()

    async def get_document(self, collection: str, doc_id: str) -> Document | None:
        async with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    async def set_document(self, collection: str, doc_id: str, data: Document) -> None:
        async with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def __len__(self) -> int:
        return sum(len(docs) for docs in self._collections.values())
