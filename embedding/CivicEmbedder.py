# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Updated: 2026-10-18
# Description: CivicEmbedder
# -----------------------------------------------------------------------------
import time
from typing import Any, Callable, List, Optional

import numpy as np
import openai
from openai import OpenAI

from utility.errors import InsufficientContent, ProviderError, RateLimited
from utility.logging_utils import get_class_logger
from utility.retry_utils import RetryPolicy, with_retry


def _retry_after_seconds(response: Any) -> Optional[float]:
    headers = getattr(response, "headers", None) or {}
    value = headers.get("retry-after") if hasattr(headers, "get") else None
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        # HTTP-date form is rare from model providers; fall back to backoff
        return None


class CivicEmbedder:
    def __init__(
            self,
            cfg: Any,
            *,
            client: Any = None,
            dimension: Optional[int] = 1536,
            normalize: bool = True,
            min_content_chars: int = 50,
            max_attempts: int = 3,
            rate_limit_attempts: int = 5,
            timeout: float = 15.0,
            sleep: Callable[[float], None] = time.sleep,
            logger=None,
    ):
        self.cfg = cfg
        self.dimension = dimension
        self.normalize = normalize
        self.min_content_chars = min_content_chars
        self.sleep = sleep
        self.logger = logger or get_class_logger(self.__class__)

        # SDK retries off: with_retry owns backoff so 429s honour Retry-After
        self.client = client or OpenAI(
            api_key=cfg.openai_api_key,
            base_url=getattr(cfg, "openai_base_url", None) or None,
            timeout=timeout,
            max_retries=0,
        )
        self.model = getattr(cfg, "openai_embed_model", None) or "text-embedding-3-small"

        self.retry_policy = RetryPolicy(
            max_attempts=max_attempts,
            rate_limit_attempts=rate_limit_attempts,
            honor_retry_after=True,
            retry_on=(RateLimited, ProviderError),
        )
        self.logger.info("OpenAI Embedder initialised (model=%s, dimension=%s)", self.model, self.dimension)

    def _embed_once(self, text: str) -> List[float]:
        try:
            resp = self.client.embeddings.create(model=self.model, input=text)
        except openai.RateLimitError as e:
            raise RateLimited(
                f"Embedding provider rate limited: {e}",
                retry_after=_retry_after_seconds(getattr(e, "response", None)),
            ) from e
        except openai.APIStatusError as e:
            # error body surfaced verbatim for the logs
            raise ProviderError(
                f"Embedding provider error {e.status_code}: {getattr(e, 'body', None) or e}",
                status_code=e.status_code,
            ) from e
        except openai.APIConnectionError as e:
            # includes APITimeoutError
            raise ProviderError(f"Embedding provider unreachable: {e}") from e

        if not resp.data or not resp.data[0].embedding:
            raise ProviderError("Embedding provider returned no embedding data")

        arr = np.asarray(resp.data[0].embedding, dtype=np.float32)

        if self.dimension is not None and arr.shape[0] != self.dimension:
            self.logger.warning(
                "Embedding dimension mismatch: expected %d, got %d",
                self.dimension,
                arr.shape[0],
            )

        # Normalize vectors (cosine-friendly)
        if self.normalize:
            arr = arr / (np.linalg.norm(arr) + 1e-12)

        return arr.astype(float).tolist()

    def embed(self, text: str) -> List[float]:
        """
        Embed one document text. Raises InsufficientContent for near-empty text,
        RateLimited / ProviderError once the retry budget is spent.
        """
        clean = (text or "").strip()
        if len(clean) < self.min_content_chars:
            raise InsufficientContent(
                f"content has {len(clean)} chars, minimum is {self.min_content_chars}"
            )

        self.logger.debug("Embedding text (chars=%d)", len(clean))
        return with_retry(
            lambda: self._embed_once(clean),
            self.retry_policy,
            description="embedding request",
            sleep=self.sleep,
            logger=self.logger,
        )

    def embed_query(self, query: str) -> List[float]:
        """Embed a search query; no minimum length beyond non-empty."""
        clean = (query or "").strip()
        if not clean:
            raise InsufficientContent("query must not be empty")
        return with_retry(
            lambda: self._embed_once(clean),
            self.retry_policy,
            description="query embedding",
            sleep=self.sleep,
            logger=self.logger,
        )

    def test_connection(self) -> bool:
        try:
            vec = self._embed_once("Civic meeting embedding healthcheck")
            return len(vec) > 0
        except Exception as e:
            self.logger.error("Embedding connection failed: %s", e)
            return False
