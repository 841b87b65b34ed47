"""Result cache and its document stores."""

from .result_cache import ResultCache, hash_input, make_key
from .store import Document, DocumentStore, InMemoryDocumentStore

__all__ = [
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "ResultCache",
    "hash_input",
    "make_key",
]
