# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-10-18
# Description: test_api_routes.py
# -----------------------------------------------------------------------------
import pytest
from starlette.testclient import TestClient

import settings
from api import dependencies
from api.main import app
from api.schemas.chat import ChatRequest
from api.schemas.ingest import IngestRequest
from api.schemas.search import SearchRequest
from health.TestRunner import TestRunner
from services.CivicChatService import CivicChatService
from services.CivicHealthService import CivicHealthService
from services.CivicIngestService import CivicIngestService
from services.CivicSearchService import CivicSearchService
from services.CivicStatsService import CivicStatsService
from utility.errors import ProviderError


@pytest.fixture
def wired(make_doc, fake_classes, fake_embedder, memory_store):
    """Route tests run against in-memory services; no credentials needed."""
    source = fake_classes.FakeSource([[
        make_doc("b1", title="Budget FY2024", text="The council adopted the FY2024 budget of $40 million."),
        make_doc("p1", title="Parks Commission", text="Park renovation schedule reviewed by the commission."),
        make_doc("t1", title="Traffic Safety", text="Traffic calming on Foothill Boulevard discussed at length."),
    ]])
    chat_client = fake_classes.FakeChatClient(answer="The budget was $40 million.")
    search = CivicSearchService(store=memory_store, embedder=fake_embedder)
    services = {
        "source": source,
        "store": memory_store,
        "chat_client": chat_client,
        "search": search,
        "ingest": CivicIngestService(
            source=source, embedder=fake_embedder, store=memory_store, sleep=lambda _s: None,
        ),
        "chat": CivicChatService(search_service=search, chat_client=chat_client, sleep=lambda _s: None),
        "stats": CivicStatsService(store=memory_store, source=source, collection_name="test"),
        "health": CivicHealthService(
            test_runner=TestRunner(store=memory_store, embedder=fake_embedder, source=source, expected_dim=None)
        ),
    }

    app.dependency_overrides[dependencies.get_search_service] = lambda: services["search"]
    app.dependency_overrides[dependencies.get_ingest_service] = lambda: services["ingest"]
    app.dependency_overrides[dependencies.get_chat_service] = lambda: services["chat"]
    app.dependency_overrides[dependencies.get_stats_service] = lambda: services["stats"]
    app.dependency_overrides[dependencies.get_health_service] = lambda: services["health"]
    yield services
    app.dependency_overrides.clear()


@pytest.fixture
def client(wired):
    return TestClient(app)


@pytest.fixture
def auth_off(monkeypatch):
    monkeypatch.setattr(settings, "CHAT_REQUIRE_AUTH", False)


def _ingest_all(client):
    resp = client.post("/ingest", json={"batchSize": 5, "startPage": 1})
    assert resp.status_code == 200
    return resp.json()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_deep_health(client):
    body = client.get("/health/deep").json()
    assert body["status"] == "ok"
    assert body["summary"]["failed"] == 0


def test_ingest_reports_camel_case_summary(client):
    body = _ingest_all(client)

    assert body["processedCount"] == 3
    assert body["skippedCount"] == 0
    assert body["errorCount"] == 0
    assert body["stopReason"] == "no_more_documents"

    again = _ingest_all(client)
    assert again["processedCount"] == 0
    assert again["skippedCount"] == 3


def test_ingest_defaults_without_body(client):
    resp = client.post("/ingest")
    assert resp.status_code == 200
    assert resp.json()["processedCount"] == 3


def test_search_after_ingest(client):
    _ingest_all(client)

    resp = client.post("/search", json={"query": "budget"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["query"] == "budget"
    assert body["search_type"] == "vector"
    assert body["total_results"] == len(body["results"]) >= 1
    assert body["results"][0]["metadata"]["title"] == "Budget FY2024"


def test_search_on_empty_store_is_well_formed(client):
    resp = client.post("/search", json={"query": "budget", "limit": 3})

    assert resp.status_code == 200
    assert resp.json()["results"] == []


def test_search_rejects_empty_query(client):
    assert client.post("/search", json={"query": "  "}).status_code == 400


def test_embeddings_upsert(client, wired):
    payload = {
        "meeting_id": "m-42",
        "content": "Full agenda text for the special meeting on the library expansion budget.",
        "content_type": "full_content",
    }

    first = client.post("/embeddings", json=payload)
    second = client.post("/embeddings", json=payload)

    assert first.status_code == 200
    assert first.json()["created"] is True
    assert second.json()["created"] is False
    assert wired["store"].count() == 1


def test_embeddings_rejects_short_content(client):
    resp = client.post("/embeddings", json={"meeting_id": "m-1", "content": "too short"})
    assert resp.status_code == 400


def test_stats(client):
    _ingest_all(client)

    stats = client.get("/stats").json()
    audit = client.get("/stats/source").json()

    assert stats == {"collection_name": "test", "total_embeddings": 3, "by_content_type": {"summary": 3}}
    assert audit["total_documents"] == 3
    assert audit["summary_only"] == 3


def test_chat_requires_authentication(client, monkeypatch):
    monkeypatch.setattr(settings, "CHAT_REQUIRE_AUTH", True)
    monkeypatch.setattr(dependencies, "get_chat_api_token", lambda: "s3cret")

    assert client.post("/chat", json={"message": "budget"}).status_code == 401

    wrong = client.post("/chat", json={"message": "budget"}, headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401

    ok = client.post("/chat", json={"message": "budget"}, headers={"Authorization": "Bearer s3cret"})
    assert ok.status_code == 200


def test_chat_accepts_any_bearer_when_no_token_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "CHAT_REQUIRE_AUTH", True)
    monkeypatch.setattr(dependencies, "get_chat_api_token", lambda: "")

    resp = client.post("/chat", json={"message": "budget"}, headers={"Authorization": "Bearer anything"})
    assert resp.status_code == 200


def test_chat_returns_answer_and_citations(client, auth_off):
    _ingest_all(client)

    resp = client.post("/chat", json={"message": "What was the budget?", "session_id": "s-1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["response"] == "The budget was $40 million."
    assert body["session_id"] == "s-1"
    assert body["context_documents"] >= 1
    assert body["source_urls"][0]["title"] == "Budget FY2024"
    assert body["source_urls"][0]["url"] == "b1"


def test_chat_rejects_empty_message(client, auth_off):
    assert client.post("/chat", json={"message": ""}).status_code == 400


def test_chat_provider_failure_is_bad_gateway(client, wired, auth_off):
    wired["chat_client"].error = ProviderError("upstream 500", status_code=500)
    assert client.post("/chat", json={"message": "budget"}).status_code == 502


def test_request_defaults_come_from_settings():
    assert SearchRequest().limit == settings.SEARCH_DEFAULTS["limit"]
    assert SearchRequest().threshold == settings.SEARCH_DEFAULTS["threshold"]
    assert ChatRequest().max_context_results == settings.CHAT_DEFAULTS["max_context_results"]
    assert IngestRequest().batch_size == settings.INGEST_DEFAULTS["batch_size"]
