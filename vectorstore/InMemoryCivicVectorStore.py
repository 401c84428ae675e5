# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: InMemoryCivicVectorStore
# -----------------------------------------------------------------------------
from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence

import numpy as np

from embedding.EmbeddingRecord import EmbeddingRecord, record_key
from utility.logging_utils import get_class_logger
from vectorstore.SearchResult import (
    FALLBACK_SCORE,
    TEXT_BASE_SCORE,
    SearchResult,
    contains_any_term,
)


class InMemoryCivicVectorStore:
    """
    Brute-force store kept in a dict. For local runs (CHROMA_MODE unset in dev)
    and tests; the lock makes check-then-insert atomic per key.
    """

    def __init__(self, logger=None) -> None:
        self._records: Dict[str, EmbeddingRecord] = {}
        self._lock = threading.Lock()
        self.logger = logger or get_class_logger(self.__class__)

    def test_connection(self) -> bool:
        return True

    def exists(self, meeting_id: str, content_type: str) -> bool:
        return record_key(meeting_id, content_type) in self._records

    def get(self, meeting_id: str, content_type: str) -> Optional[EmbeddingRecord]:
        return self._records.get(record_key(meeting_id, content_type))

    def upsert(self, record: EmbeddingRecord) -> bool:
        with self._lock:
            existing = self._records.get(record.key)
            if existing is not None:
                self._records[record.key] = record.touched(created_at=existing.created_at)
                return False
            self._records[record.key] = record
            return True

    def insert_if_absent(self, record: EmbeddingRecord) -> bool:
        with self._lock:
            if record.key in self._records:
                return False
            self._records[record.key] = record
            return True

    def _filtered(self, content_type: Optional[str]) -> List[EmbeddingRecord]:
        return [
            r for r in self._records.values()
            if content_type is None or r.content_type == content_type
        ]

    @staticmethod
    def _to_result(rec: EmbeddingRecord, score: float) -> SearchResult:
        return SearchResult(
            meeting_id=rec.meeting_id,
            content=rec.content,
            content_type=rec.content_type,
            similarity_score=score,
            metadata=dict(rec.metadata),
            created_at=rec.created_at,
        )

    def query_by_vector(
            self,
            vector: Sequence[float],
            limit: int,
            threshold: float,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        q = np.asarray(vector, dtype=np.float32)
        q_norm = float(np.linalg.norm(q)) or 1.0

        scored: List[SearchResult] = []
        for rec in self._filtered(content_type):
            v = np.asarray(rec.embedding, dtype=np.float32)
            if v.shape != q.shape:
                continue
            sim = float(np.dot(q, v) / (q_norm * (float(np.linalg.norm(v)) or 1.0)))
            sim = max(0.0, min(1.0, sim))
            if sim >= threshold:
                scored.append(self._to_result(rec, sim))

        scored.sort(key=lambda r: r.similarity_score, reverse=True)
        return scored[:limit]

    def query_by_text(
            self,
            terms: Sequence[str],
            limit: int,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        if not terms:
            return []
        matches = [
            rec for rec in self._filtered(content_type)
            if contains_any_term(rec.content, rec.metadata.get("title"), terms)
        ]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return [self._to_result(rec, TEXT_BASE_SCORE) for rec in matches[:limit]]

    def query_recent(
            self,
            limit: int,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        recs = sorted(self._filtered(content_type), key=lambda r: r.created_at, reverse=True)
        return [self._to_result(rec, FALLBACK_SCORE) for rec in recs[:limit]]

    def count(self) -> int:
        return len(self._records)

    def count_by_content_type(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for rec in self._records.values():
            out[rec.content_type] = out.get(rec.content_type, 0) + 1
        return out
