# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-21
# Updated: 2026-10-18
# Description: test_ingest_service.py
# -----------------------------------------------------------------------------
import pytest

from services.CivicIngestService import CivicIngestService


def _service(source, embedder, store, **kwargs):
    kwargs.setdefault("sleep", lambda _s: None)
    return CivicIngestService(source=source, embedder=embedder, store=store, **kwargs)


def _docs(make_doc, n, prefix="m"):
    return [make_doc(f"{prefix}{i}", title=f"Council Meeting {i}") for i in range(1, n + 1)]


def test_batch_larger_than_source_stops_with_no_more_documents(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 3)])

    summary = _service(source, fake_embedder, memory_store).run_batch(batch_size=5, start_page=1)

    assert summary.processed_count == 3
    assert summary.skipped_count == 0
    assert summary.error_count == 0
    assert summary.stop_reason == "no_more_documents"
    assert summary.pages_checked == 1
    assert memory_store.count() == 3


def test_second_run_is_idempotent(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 3)])
    svc = _service(source, fake_embedder, memory_store)

    svc.run_batch(batch_size=10)
    second = svc.run_batch(batch_size=10)

    assert second.processed_count == 0
    assert second.skipped_count == 3
    assert memory_store.count() == 3


def test_stored_content_is_the_embedded_text(make_doc, fake_classes, fake_embedder, memory_store):
    doc = make_doc("m1", title="Budget FY2024", source_url="https://city.example.org/m1")
    source = fake_classes.FakeSource([[doc]])

    _service(source, fake_embedder, memory_store).run_batch(batch_size=1)

    rec = memory_store.get("m1", "summary")
    assert rec.content == doc.embedding_text()
    assert fake_embedder.calls == [doc.embedding_text()]
    assert rec.metadata["title"] == "Budget FY2024"
    assert rec.metadata["source_url"] == "https://city.example.org/m1"
    assert rec.metadata["model"] == "fake-embed"


def test_one_failing_document_does_not_abort_batch(make_doc, fake_classes, memory_store):
    docs = _docs(make_doc, 3)
    embedder = fake_classes.FakeEmbedder(fail_on=("Council Meeting 2",))
    source = fake_classes.FakeSource([docs])

    summary = _service(source, embedder, memory_store).run_batch(batch_size=10)

    assert summary.processed_count == 2
    assert summary.error_count == 1
    assert summary.stop_reason == "no_more_documents"
    assert not memory_store.exists("m2", "summary")


def test_batch_limit_reached(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 3), _docs(make_doc, 3, prefix="n")])

    summary = _service(source, fake_embedder, memory_store).run_batch(batch_size=2)

    assert summary.processed_count == 2
    assert summary.stop_reason == "batch_limit_reached"
    assert source.calls == [1]


def test_walks_pages_until_exhausted(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 2), _docs(make_doc, 2, prefix="n")])

    summary = _service(source, fake_embedder, memory_store).run_batch(batch_size=10)

    assert summary.processed_count == 4
    assert summary.pages_checked == 2
    assert source.calls == [1, 2]


def test_start_page_is_honoured(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 2), _docs(make_doc, 2, prefix="n")])

    _service(source, fake_embedder, memory_store).run_batch(batch_size=10, start_page=2)

    assert source.calls == [2]
    assert memory_store.exists("n1", "summary")
    assert not memory_store.exists("m1", "summary")


def test_insufficient_content_is_skipped(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([[make_doc("short", text="tiny"), make_doc("long")]])

    summary = _service(source, fake_embedder, memory_store).run_batch(batch_size=10)

    assert summary.processed_count == 1
    assert summary.skipped_count == 1
    assert not memory_store.exists("short", "summary")


def test_time_limit_stops_the_batch(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 5)])
    clock = fake_classes.FakeClock(step=100.0)

    summary = _service(
        source, fake_embedder, memory_store, clock=clock, max_runtime_seconds=250.0,
    ).run_batch(batch_size=10)

    assert summary.stop_reason == "time_limit_approached"
    assert summary.processed_count == 1


def test_too_many_consecutive_errors(make_doc, fake_classes, memory_store):
    embedder = fake_classes.FakeEmbedder(fail_on=("Council Meeting",))
    source = fake_classes.FakeSource([_docs(make_doc, 6)])

    summary = _service(source, embedder, memory_store, max_consecutive_doc_errors=2).run_batch(batch_size=10)

    assert summary.stop_reason == "too_many_errors"
    assert summary.error_count == 3
    assert summary.processed_count == 0


def test_failing_page_is_retried_then_skipped(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 2), _docs(make_doc, 2, prefix="n")], failing_pages={1})

    summary = _service(source, fake_embedder, memory_store, page_fetch_attempts=3).run_batch(batch_size=10)

    assert source.calls == [1, 1, 1, 2]
    assert summary.page_errors == 1
    assert summary.processed_count == 2
    assert summary.stop_reason == "no_more_documents"


def test_too_many_page_errors(fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([[], [], []], failing_pages={1, 2, 3})

    summary = _service(
        source, fake_embedder, memory_store, page_fetch_attempts=1, max_page_errors=1,
    ).run_batch(batch_size=10)

    assert summary.stop_reason == "too_many_errors"
    assert summary.page_errors == 2
    assert summary.processed_count == 0


def test_progressive_delay_between_documents(make_doc, fake_classes, fake_embedder, memory_store):
    sleeps = []
    source = fake_classes.FakeSource([_docs(make_doc, 3)])

    _service(
        source, fake_embedder, memory_store,
        sleep=sleeps.append, doc_delay_seconds=0.1, doc_delay_step=2,
    ).run_batch(batch_size=3)

    assert sleeps == pytest.approx([0.1, 0.2, 0.2])


def test_summary_uses_camel_case_keys(make_doc, fake_classes, fake_embedder, memory_store):
    source = fake_classes.FakeSource([_docs(make_doc, 1)])

    out = _service(source, fake_embedder, memory_store).run_batch(batch_size=5).to_dict()

    assert set(out) == {
        "processedCount", "skippedCount", "errorCount", "pageErrors",
        "pagesChecked", "duration", "stopReason",
    }


@pytest.mark.parametrize("batch_size, start_page", [(0, 1), (5, 0)])
def test_invalid_arguments(fake_classes, fake_embedder, memory_store, batch_size, start_page):
    svc = _service(fake_classes.FakeSource([]), fake_embedder, memory_store)
    with pytest.raises(ValueError):
        svc.run_batch(batch_size=batch_size, start_page=start_page)


def test_embed_document_inserts_then_updates(fake_embedder, memory_store):
    svc = _service(None, fake_embedder, memory_store)
    text = "Budget FY2024 full agenda text with line items for the general fund."

    first = svc.embed_document(meeting_id="m1", content=text, content_type="full_content")
    created_at = memory_store.get("m1", "full_content").created_at
    second = svc.embed_document(meeting_id="m1", content=text + " Amended.", content_type="full_content")

    assert first == {
        "meeting_id": "m1",
        "content_type": "full_content",
        "embedding_dimensions": fake_embedder.dimension,
        "created": True,
    }
    assert second["created"] is False
    rec = memory_store.get("m1", "full_content")
    assert rec.content.endswith("Amended.")
    assert rec.created_at == created_at
    assert memory_store.count() == 1


def test_embed_document_validates_content_type(fake_embedder, memory_store):
    svc = _service(None, fake_embedder, memory_store)
    with pytest.raises(ValueError):
        svc.embed_document(meeting_id="m1", content="x" * 60, content_type="transcript")
