import hashlib
import json

import pytest

from gemini_insights.cache import InMemoryDocumentStore, ResultCache, hash_input, make_key
from gemini_insights.core.types import TaskKind

TTL = 3600
INPUT = {"companyName": "Acme", "financialData": ["Revenue +12%"]}


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def cache(store, clock) -> ResultCache:
    return ResultCache(store, ttl_seconds=TTL, clock=clock)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_put_then_get_round_trips(cache):
    await cache.put(
        "managementTrustScore",
        '{"managementTrustScore": 80}',
        context_id="p-1",
        input=INPUT,
        model="gemini-2.5-flash",
        latency_ms=812.5,
    )

    entry = await cache.get("managementTrustScore", context_id="p-1", input=INPUT)

    assert entry is not None
    assert entry.result_json == '{"managementTrustScore": 80}'
    assert entry.model == "gemini-2.5-flash"
    assert entry.latency_ms == 812.5


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_key_is_a_miss(cache):
    assert await cache.get("riskAnalysis", input=INPUT) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_entry_expires_lazily_after_ttl(cache, store, clock):
    await cache.put("riskAnalysis", "{}", input=INPUT)

    clock.advance(TTL)
    assert await cache.get("riskAnalysis", input=INPUT) is not None

    clock.advance(1)
    assert await cache.get("riskAnalysis", input=INPUT) is None
    # Stale documents are ignored, not deleted
    assert len(store) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_overwrite_refreshes_timestamp(cache, clock):
    await cache.put("riskAnalysis", '{"v": 1}', input=INPUT)
    clock.advance(TTL - 10)
    await cache.put("riskAnalysis", '{"v": 2}', input=INPUT)
    clock.advance(60)

    entry = await cache.get("riskAnalysis", input=INPUT)

    assert entry is not None
    assert entry.result_json == '{"v": 2}'


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stored_document_shape(cache, store, clock):
    entry = await cache.put(
        TaskKind.MACRO_SHOCK, '{"x": 1}', context_id="p-9", input=INPUT, latency_ms=5
    )

    doc = await store.get_document("ai_cache", entry.key)

    assert doc == {
        "analysisType": "macroShock",
        "portfolioId": "p-9",
        "inputHash": hash_input(INPUT),
        "resultJson": '{"x": 1}',
        "model": None,
        "latencyMs": 5,
        "createdAt": clock.now.isoformat(),
        "updatedAt": clock.now.isoformat(),
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unreadable_document_is_a_miss(cache, store):
    key = make_key("riskAnalysis", input=INPUT)
    await store.set_document("ai_cache", key, {"resultJson": "{}", "createdAt": "not a date"})

    assert await cache.get("riskAnalysis", input=INPUT) is None


@pytest.mark.unit
def test_key_is_composed_in_order():
    digest = hashlib.sha256(
        json.dumps(INPUT, sort_keys=True, separators=(",", ":")).encode()
    ).hexdigest()

    assert make_key("riskAnalysis") == "riskAnalysis"
    assert make_key("riskAnalysis", context_id="p-1") == "riskAnalysis|portfolio:p-1"
    assert (
        make_key(TaskKind.RISK_ANALYSIS, context_id="p-1", input=INPUT)
        == f"riskAnalysis|portfolio:p-1|input:{digest}"
    )


@pytest.mark.unit
def test_input_hash_ignores_key_order():
    assert hash_input({"a": 1, "b": [1, 2]}) == hash_input({"b": [1, 2], "a": 1})
    assert hash_input({"a": 1}) != hash_input({"a": 2})


@pytest.mark.unit
def test_unserializable_input_falls_back_to_str():
    value = {"when": object}

    assert hash_input(value) == str(value)
    assert make_key("riskAnalysis", input=value) == f"riskAnalysis|input:{value}"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_in_memory_store_copies_documents(store):
    doc = {"resultJson": "{}", "nested": {"a": 1}}
    await store.set_document("c", "k", doc)
    doc["nested"]["a"] = 2

    stored = await store.get_document("c", "k")
    stored["nested"]["a"] = 3

    assert (await store.get_document("c", "k"))["nested"] == {"a": 1}
    assert await store.get_document("c", "missing") is None
