# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: test_vector_stores.py
# -----------------------------------------------------------------------------
import uuid
from types import SimpleNamespace

import pytest

from embedding.EmbeddingRecord import EmbeddingRecord
from vectorstore.ChromaCivicVectorStore import ChromaCivicVectorStore
from vectorstore.CivicVectorStore import CivicVectorStore
from vectorstore.InMemoryCivicVectorStore import InMemoryCivicVectorStore


def _chroma_store():
    cfg = SimpleNamespace(chroma_mode="ephemeral", chroma_collection=f"test-{uuid.uuid4().hex}")
    return ChromaCivicVectorStore(cfg=cfg, sleep=lambda _s: None)


@pytest.fixture(params=["memory", "chroma"])
def store(request):
    if request.param == "memory":
        return InMemoryCivicVectorStore()
    return _chroma_store()


def _record(meeting_id, content, vector, content_type="summary", created_at="2026-01-01T00:00:00+00:00", **meta):
    return EmbeddingRecord(
        meeting_id=meeting_id,
        content=content,
        content_type=content_type,
        embedding=vector,
        metadata={"title": meta.pop("title", f"Meeting {meeting_id}"), **meta},
        created_at=created_at,
        updated_at=created_at,
    )


def test_stores_satisfy_protocol(store):
    assert isinstance(store, CivicVectorStore)
    assert store.test_connection() is True


def test_insert_if_absent_is_idempotent_per_meeting_and_content_type(store):
    assert store.insert_if_absent(_record("m1", "first body", [1.0, 0.0, 0.0])) is True
    assert store.insert_if_absent(_record("m1", "second body", [0.0, 1.0, 0.0])) is False
    assert store.insert_if_absent(_record("m1", "full body", [0.0, 1.0, 0.0], content_type="full_content")) is True

    assert store.count() == 2
    assert store.count_by_content_type() == {"summary": 1, "full_content": 1}
    assert store.get("m1", "summary").content == "first body"


def test_content_round_trips_exactly(store):
    body = "Title: Budget FY2024\nDate: 2024-06-03\nFull Content: Line one.\n\n  Indented ünïcode line."
    store.insert_if_absent(_record("m2", body, [0.5, 0.5, 0.0], date="2024-06-03"))

    rec = store.get("m2", "summary")
    assert rec.content == body
    assert rec.metadata["date"] == "2024-06-03"
    assert rec.embedding == pytest.approx([0.5, 0.5, 0.0])
    assert store.exists("m2", "summary") is True
    assert store.exists("m2", "full_content") is False


def test_upsert_reports_created_and_keeps_created_at(store):
    first = _record("m3", "original", [1.0, 0.0, 0.0], created_at="2025-01-01T00:00:00+00:00")
    assert store.upsert(first) is True

    second = _record("m3", "re-embedded", [0.0, 1.0, 0.0], created_at="2026-05-05T00:00:00+00:00")
    assert store.upsert(second) is False

    rec = store.get("m3", "summary")
    assert rec.content == "re-embedded"
    assert rec.created_at == "2025-01-01T00:00:00+00:00"
    assert rec.updated_at != rec.created_at
    assert store.count() == 1


def test_query_by_vector_respects_threshold_and_order(store):
    store.insert_if_absent(_record("near", "near body", [1.0, 0.0, 0.0]))
    store.insert_if_absent(_record("mid", "mid body", [1.0, 1.0, 0.0]))
    store.insert_if_absent(_record("far", "far body", [0.0, 0.0, 1.0]))

    results = store.query_by_vector([1.0, 0.0, 0.0], limit=5, threshold=0.5)

    assert [r.meeting_id for r in results] == ["near", "mid"]
    assert results[0].similarity_score == pytest.approx(1.0, abs=1e-3)
    assert all(r.similarity_score >= 0.5 for r in results)


def test_query_by_vector_on_empty_store(store):
    assert store.query_by_vector([1.0, 0.0, 0.0], limit=5, threshold=0.0) == []


def test_query_by_text_is_case_insensitive_and_filters_content_type(store):
    store.insert_if_absent(_record("a", "The BUDGET was adopted.", [1.0, 0.0, 0.0]))
    store.insert_if_absent(_record("b", "Park renovation update.", [0.0, 1.0, 0.0]))
    store.insert_if_absent(_record("c", "Budget hearing continued.", [0.0, 1.0, 0.0], content_type="full_content"))

    ids = {r.meeting_id for r in store.query_by_text(["budget"], limit=10)}
    assert ids == {"a", "c"}

    only_summary = store.query_by_text(["budget"], limit=10, content_type="summary")
    assert [r.meeting_id for r in only_summary] == ["a"]
    assert only_summary[0].similarity_score == pytest.approx(0.3)


def test_query_recent_orders_by_ingestion_time(store):
    store.insert_if_absent(_record("old", "old body", [1.0, 0.0, 0.0], created_at="2025-01-01T00:00:00+00:00"))
    store.insert_if_absent(_record("new", "new body", [1.0, 0.0, 0.0], created_at="2026-03-01T00:00:00+00:00"))
    store.insert_if_absent(_record("mid", "mid body", [1.0, 0.0, 0.0], created_at="2025-06-01T00:00:00+00:00"))

    results = store.query_recent(limit=2)

    assert [r.meeting_id for r in results] == ["new", "mid"]
    assert all(r.similarity_score == pytest.approx(0.5) for r in results)


def test_chroma_drops_none_metadata_values():
    store = _chroma_store()
    store.insert_if_absent(_record("m9", "body", [1.0, 0.0, 0.0], source_url=None, commission="Planning"))

    rec = store.get("m9", "summary")
    assert "source_url" not in rec.metadata
    assert rec.metadata["commission"] == "Planning"


def test_chroma_insert_if_absent_reports_lost_race_as_skip(monkeypatch):
    store = _chroma_store()
    assert store.insert_if_absent(_record("m10", "winner body", [1.0, 0.0, 0.0])) is True

    # another run wrote the row between our exists() check and add()
    monkeypatch.setattr(store, "exists", lambda meeting_id, content_type: False)
    late = _record("m10", "loser body", [0.0, 1.0, 0.0], created_at="2026-02-02T00:00:00+00:00")

    assert store.insert_if_absent(late) is False
    rec = store.get("m10", "summary")
    assert rec.content == "winner body"
    assert rec.created_at == "2026-01-01T00:00:00+00:00"
    assert store.count() == 1
