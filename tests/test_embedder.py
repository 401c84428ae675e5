# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Updated: 2026-10-18
# Description: test_embedder.py
# -----------------------------------------------------------------------------
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from embedding.CivicEmbedder import CivicEmbedder
from utility.errors import InsufficientContent, ProviderError, RateLimited

LONG_TEXT = "Title: Budget Study Session\nFull Content: The council reviewed the FY2024 operating budget."
_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _ok(vector):
    return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


def _rate_limit(retry_after="2"):
    response = httpx.Response(429, headers={"retry-after": retry_after}, request=_REQUEST)
    return openai.RateLimitError("slow down", response=response, body=None)


def _server_error():
    response = httpx.Response(500, request=_REQUEST)
    return openai.InternalServerError("oops", response=response, body={"error": "oops"})


def _embedder(*outcomes, **kwargs):
    client = MagicMock()
    client.embeddings.create.side_effect = list(outcomes)
    sleeps = []
    cfg = SimpleNamespace(openai_embed_model="text-embedding-3-small")
    embedder = CivicEmbedder(cfg, client=client, dimension=2, sleep=sleeps.append, **kwargs)
    return embedder, client, sleeps


def test_embed_returns_normalised_vector():
    embedder, client, _ = _embedder(_ok([3.0, 4.0]))

    vec = embedder.embed(LONG_TEXT)

    assert vec == pytest.approx([0.6, 0.8])
    client.embeddings.create.assert_called_once_with(model="text-embedding-3-small", input=LONG_TEXT)


def test_embed_rejects_short_text_without_calling_provider():
    embedder, client, _ = _embedder(_ok([1.0, 0.0]))

    with pytest.raises(InsufficientContent):
        embedder.embed("too short")

    client.embeddings.create.assert_not_called()


def test_embed_query_allows_short_queries():
    embedder, _, _ = _embedder(_ok([0.0, 2.0]))
    assert embedder.embed_query("budget") == pytest.approx([0.0, 1.0])


def test_rate_limit_honours_retry_after_then_succeeds():
    embedder, client, sleeps = _embedder(_rate_limit("2"), _rate_limit("3"), _ok([1.0, 0.0]))

    assert embedder.embed(LONG_TEXT) == pytest.approx([1.0, 0.0])
    assert client.embeddings.create.call_count == 3
    assert sleeps == [2.0, 3.0]


def test_rate_limit_exhaustion_raises_rate_limited():
    embedder, client, _ = _embedder(*[_rate_limit("1")] * 2, rate_limit_attempts=2)

    with pytest.raises(RateLimited) as info:
        embedder.embed(LONG_TEXT)

    assert info.value.retry_after == 1.0
    assert client.embeddings.create.call_count == 2


def test_provider_error_retried_then_surfaced():
    embedder, client, sleeps = _embedder(*[_server_error()] * 3, max_attempts=3)

    with pytest.raises(ProviderError) as info:
        embedder.embed(LONG_TEXT)

    assert info.value.status_code == 500
    assert client.embeddings.create.call_count == 3
    assert len(sleeps) == 2


def test_connection_errors_become_provider_errors():
    embedder, _, _ = _embedder(openai.APIConnectionError(request=_REQUEST), max_attempts=1)

    with pytest.raises(ProviderError):
        embedder.embed(LONG_TEXT)


def test_empty_embedding_payload_is_a_provider_error():
    embedder, _, _ = _embedder(SimpleNamespace(data=[]), max_attempts=1)

    with pytest.raises(ProviderError):
        embedder.embed(LONG_TEXT)


def test_test_connection_reports_failure():
    embedder, _, _ = _embedder(_server_error())
    assert embedder.test_connection() is False
