# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-12
# Updated: 2026-10-18
# Description: conftest.py
# -----------------------------------------------------------------------------

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from document.CivicDocument import CivicDocument  # noqa: E402
from embedding.EmbeddingRecord import EmbeddingRecord  # noqa: E402
from utility.errors import InsufficientContent, ProviderError, SourceUnavailable  # noqa: E402
from vectorstore.InMemoryCivicVectorStore import InMemoryCivicVectorStore  # noqa: E402

# Keyword axes for the fake embedder; last axis keeps every vector non-zero
VOCAB = ("budget", "park", "traffic", "library", "water")


class FakeEmbedder:
    """Bag-of-keywords vectors: texts sharing keywords are close in cosine space."""

    model = "fake-embed"
    min_content_chars = 50
    dimension = len(VOCAB) + 1

    def __init__(self, fail_on=()):
        self.fail_on = tuple(fail_on)
        self.calls = []

    def _vector(self, text):
        lowered = text.lower()
        return [float(lowered.count(w)) for w in VOCAB] + [0.1]

    def embed(self, text):
        self.calls.append(text)
        clean = (text or "").strip()
        if len(clean) < self.min_content_chars:
            raise InsufficientContent("too short")
        if any(marker in clean for marker in self.fail_on):
            raise ProviderError("provider exploded", status_code=500)
        return self._vector(clean)

    def embed_query(self, query):
        if not (query or "").strip():
            raise InsufficientContent("query must not be empty")
        return self._vector(query)


class BrokenEmbedder(FakeEmbedder):
    """Embedding provider that is down for queries."""

    def embed_query(self, query):
        raise ProviderError("embedding provider unreachable")


class FakeSource:
    """Serves fixed pages; page numbers start at 1."""

    def __init__(self, pages, failing_pages=()):
        self.pages = [list(p) for p in pages]
        self.failing_pages = set(failing_pages)
        self.calls = []

    def fetch_page(self, page, page_size=20):
        self.calls.append(page)
        if page in self.failing_pages:
            raise SourceUnavailable(f"page {page} unavailable", status_code=503)
        if page > len(self.pages):
            return [], False
        return list(self.pages[page - 1]), page < len(self.pages)

    def audit(self, *, max_pages=100, page_size=20):
        docs = [d for p in self.pages[:max_pages] for d in p]
        return {
            "total_documents": len(docs),
            "with_full_content": sum(1 for d in docs if d.has_full_content),
            "summary_only": sum(1 for d in docs if not d.has_full_content and d.raw_text),
            "without_content": sum(1 for d in docs if not d.raw_text),
            "pages_checked": min(len(self.pages), max_pages),
        }


class FakeChatClient:
    def __init__(self, answer="According to the meeting records, yes.", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    def chat(self, messages, temperature=0.3, max_tokens=1500, extra_params=None):
        self.calls.append({"messages": messages, "temperature": temperature, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.answer)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)], model="fake-chat", usage=None)

    def healthcheck(self):
        return self.error is None


class FakeClock:
    def __init__(self, step=0.0):
        self.now = 0.0
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


def _make_doc(
        doc_id,
        title="City Council Regular Meeting",
        text=None,
        date="2024-06-03",
        full=False,
        document_type="minutes",
        source_url=None,
):
    if text is None:
        text = f"The council discussed routine business for {title} and approved the consent calendar."
    return CivicDocument(
        id=doc_id,
        title=title,
        date=date,
        government_body="City Council",
        document_type=document_type,
        raw_text=text,
        source_url=source_url,
        has_full_content=full,
    )


@pytest.fixture
def make_doc():
    return _make_doc


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def memory_store():
    return InMemoryCivicVectorStore()


@pytest.fixture
def no_sleep():
    return lambda _seconds: None


@pytest.fixture
def seed_store(memory_store, fake_embedder):
    """Add documents to the in-memory store the way ingestion would."""

    def _seed(docs, created_at=None):
        for i, doc in enumerate(docs):
            text = doc.embedding_text()
            stamp = created_at[i] if created_at else f"2026-01-{i + 1:02d}T00:00:00+00:00"
            memory_store.insert_if_absent(
                EmbeddingRecord(
                    meeting_id=doc.id,
                    content=text,
                    content_type=doc.content_type,
                    embedding=fake_embedder.embed(text),
                    metadata=doc.to_metadata(),
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
        return memory_store

    return _seed


@pytest.fixture
def fake_classes():
    return SimpleNamespace(
        FakeEmbedder=FakeEmbedder,
        BrokenEmbedder=BrokenEmbedder,
        FakeSource=FakeSource,
        FakeChatClient=FakeChatClient,
        FakeClock=FakeClock,
    )
