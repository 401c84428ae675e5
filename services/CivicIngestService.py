# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-21
# Updated: 2026-10-18
# Description: CivicIngestService.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from document.CivicDocument import CONTENT_TYPES, CivicDocument
from embedding.EmbeddingRecord import EmbeddingRecord, utc_now_iso
from utility.errors import InsufficientContent, ProviderError, RateLimited, SourceUnavailable
from utility.logging_utils import get_class_logger
from utility.retry_utils import RetryPolicy, with_retry
from vectorstore.CivicVectorStore import CivicVectorStore

STOP_BATCH_LIMIT = "batch_limit_reached"
STOP_TIME_LIMIT = "time_limit_approached"
STOP_NO_MORE_DOCUMENTS = "no_more_documents"
STOP_TOO_MANY_ERRORS = "too_many_errors"

_PROCESSED = "processed"
_SKIPPED = "skipped"
_ERROR = "error"


@dataclass
class IngestSummary:
    processed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    page_errors: int = 0
    pages_checked: int = 0
    duration: float = 0.0
    stop_reason: str = STOP_NO_MORE_DOCUMENTS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processedCount": self.processed_count,
            "skippedCount": self.skipped_count,
            "errorCount": self.error_count,
            "pageErrors": self.page_errors,
            "pagesChecked": self.pages_checked,
            "duration": round(self.duration, 3),
            "stopReason": self.stop_reason,
        }


class CivicIngestService:
    """
    Owns the batch ingest pipeline:
      - fetch a page of meetings from the civic data API
      - skip meetings already embedded (or with too little text)
      - embed
      - insert into the vector store

    One document failing never aborts the batch; the run stops early on the
    batch size, the wall-clock ceiling, an exhausted source or too many errors,
    and always reports what it got done.
    """

    def __init__(
        self,
        *,
        source: Any,
        embedder: Any,
        store: CivicVectorStore,
        page_size: int = 20,
        max_runtime_seconds: float = 540.0,
        max_consecutive_doc_errors: int = 10,
        max_page_errors: int = 5,
        page_fetch_attempts: int = 3,
        doc_delay_seconds: float = 0.1,
        doc_delay_step: int = 25,
        page_delay_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.embedder = embedder
        self.store = store
        self.page_size = page_size
        self.max_runtime_seconds = max_runtime_seconds
        self.max_consecutive_doc_errors = max_consecutive_doc_errors
        self.max_page_errors = max_page_errors
        self.page_fetch_policy = RetryPolicy(
            max_attempts=page_fetch_attempts,
            base_delay=1.0,
            retry_on=(SourceUnavailable,),
        )
        self.doc_delay_seconds = doc_delay_seconds
        self.doc_delay_step = max(1, doc_delay_step)
        self.page_delay_seconds = page_delay_seconds
        self.clock = clock
        self.sleep = sleep
        self.logger = logger or get_class_logger(self.__class__)

    @property
    def min_content_chars(self) -> int:
        return int(getattr(self.embedder, "min_content_chars", 50))

    def _doc_delay(self, processed: int) -> float:
        # grows mildly with volume to stay under provider rate limits
        return self.doc_delay_seconds * (1 + processed // self.doc_delay_step)

    # ------------------------------------------------------------------
    def run_batch(self, batch_size: int = 10, start_page: int = 1) -> IngestSummary:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if start_page < 1:
            raise ValueError("start_page must be >= 1")

        started = self.clock()
        summary = IngestSummary()
        consecutive_errors = 0
        page = start_page
        stop_reason: Optional[str] = None

        self.logger.info(
            "Batch ingest starting from page %d with batch size %d",
            start_page,
            batch_size,
        )

        while stop_reason is None:
            if summary.processed_count >= batch_size:
                stop_reason = STOP_BATCH_LIMIT
                break
            if self.clock() - started >= self.max_runtime_seconds:
                stop_reason = STOP_TIME_LIMIT
                break

            try:
                documents, has_next = with_retry(
                    lambda: self.source.fetch_page(page, self.page_size),
                    self.page_fetch_policy,
                    description=f"fetch page {page}",
                    sleep=self.sleep,
                    logger=self.logger,
                )
            except SourceUnavailable as e:
                summary.page_errors += 1
                self.logger.error("Page %d unavailable (%d page errors): %s", page, summary.page_errors, e)
                if summary.page_errors > self.max_page_errors:
                    stop_reason = STOP_TOO_MANY_ERRORS
                    break
                page += 1
                self.sleep(self.page_delay_seconds)
                continue

            summary.pages_checked += 1
            self.logger.info("Found %d meetings on page %d", len(documents), page)

            if not documents:
                stop_reason = STOP_NO_MORE_DOCUMENTS
                break

            for doc in documents:
                if summary.processed_count >= batch_size:
                    break
                if self.clock() - started >= self.max_runtime_seconds:
                    stop_reason = STOP_TIME_LIMIT
                    break

                outcome = self._process_document(doc)
                if outcome == _PROCESSED:
                    summary.processed_count += 1
                    consecutive_errors = 0
                    self.sleep(self._doc_delay(summary.processed_count))
                elif outcome == _SKIPPED:
                    summary.skipped_count += 1
                else:
                    summary.error_count += 1
                    consecutive_errors += 1
                    if consecutive_errors > self.max_consecutive_doc_errors:
                        self.logger.error(
                            "Stopping: %d consecutive document errors",
                            consecutive_errors,
                        )
                        stop_reason = STOP_TOO_MANY_ERRORS
                        break

            if stop_reason is not None or summary.processed_count >= batch_size:
                continue

            if not has_next:
                stop_reason = STOP_NO_MORE_DOCUMENTS
                break

            page += 1
            self.sleep(self.page_delay_seconds)

        summary.stop_reason = stop_reason or STOP_BATCH_LIMIT
        summary.duration = self.clock() - started

        self.logger.info(
            "Batch ingest complete: processed=%d skipped=%d errors=%d pages=%d stop=%s (%.1fs)",
            summary.processed_count,
            summary.skipped_count,
            summary.error_count,
            summary.pages_checked,
            summary.stop_reason,
            summary.duration,
        )
        return summary

    def _process_document(self, doc: CivicDocument) -> str:
        if not doc.id:
            self.logger.warning("Skipping meeting without an id: %s", doc.short_preview())
            return _SKIPPED

        content_type = doc.content_type
        try:
            if self.store.exists(doc.id, content_type):
                self.logger.info("Meeting already processed, skipping: %s", doc.short_preview())
                return _SKIPPED
        except Exception as e:
            self.logger.error("Existence check failed for meeting '%s': %s", doc.id, e, exc_info=True)
            return _ERROR

        if len(doc.raw_text.strip()) < self.min_content_chars:
            self.logger.info("Insufficient content, skipping: %s", doc.short_preview())
            return _SKIPPED

        content = doc.embedding_text()
        try:
            vector = self.embedder.embed(content)
        except InsufficientContent as e:
            self.logger.info("Insufficient content for meeting '%s': %s", doc.id, e)
            return _SKIPPED
        except (RateLimited, ProviderError) as e:
            self.logger.error("Embedding failed for meeting '%s': %s", doc.id, e)
            return _ERROR
        except Exception as e:
            self.logger.error("Unexpected embedding failure for meeting '%s': %s", doc.id, e, exc_info=True)
            return _ERROR

        metadata = doc.to_metadata()
        metadata["model"] = getattr(self.embedder, "model", None)
        record = EmbeddingRecord(
            meeting_id=doc.id,
            content=content,
            content_type=content_type,
            embedding=vector,
            metadata=metadata,
        )

        try:
            inserted = self.store.insert_if_absent(record)
        except Exception as e:
            self.logger.error("Failed to store embedding for meeting '%s': %s", doc.id, e, exc_info=True)
            return _ERROR

        if not inserted:
            self.logger.info("Meeting stored concurrently, skipping: %s", doc.short_preview())
            return _SKIPPED

        self.logger.info("Successfully processed: %s", doc.short_preview())
        return _PROCESSED

    # ------------------------------------------------------------------
    def embed_document(
        self,
        *,
        meeting_id: str,
        content: str,
        content_type: str = "summary",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        (Re-)embed a single document and upsert it: update when the
        (meeting_id, content_type) record exists, insert otherwise.
        """
        if not meeting_id or not (content or "").strip():
            raise ValueError("meeting_id and content are required")
        if content_type not in CONTENT_TYPES:
            raise ValueError(f"content_type must be one of {CONTENT_TYPES}, got {content_type!r}")

        self.logger.info(
            "Processing embedding for meeting %s, content length: %d",
            meeting_id,
            len(content),
        )
        vector = self.embedder.embed(content)

        meta: Dict[str, Any] = dict(metadata or {})
        meta.update({
            "model": getattr(self.embedder, "model", None),
            "content_length": len(content),
            "processed_at": utc_now_iso(),
        })

        created = self.store.upsert(
            EmbeddingRecord(
                meeting_id=meeting_id,
                content=content,
                content_type=content_type,
                embedding=vector,
                metadata=meta,
            )
        )
        return {
            "meeting_id": meeting_id,
            "content_type": content_type,
            "embedding_dimensions": len(vector),
            "created": created,
        }
