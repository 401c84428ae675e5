# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-10-18
# Description: CivicSearchService
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from retrieval.DiversityRanker import diversify
from retrieval.KeywordScorer import KeywordScorer
from retrieval.QueryParser import (
    detect_temporal,
    extract_terms,
    normalise_phrase,
    parse_meeting_date,
)
from utility.errors import SearchDegraded
from utility.logging_utils import get_class_logger
from vectorstore.CivicVectorStore import CivicVectorStore
from vectorstore.SearchResult import FALLBACK_SCORE, SearchResult

SEARCH_TYPE_VECTOR = "vector"
SEARCH_TYPE_TEXT = "text"
SEARCH_TYPE_KEYWORD_FALLBACK = "keyword_fallback"
SEARCH_TYPE_RECENT_FALLBACK = "recent_fallback"


@dataclass
class SearchOutcome:
    query: str
    search_type: str
    results: List[SearchResult] = field(default_factory=list)

    @property
    def total_results(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "query": self.query,
            "total_results": self.total_results,
            "search_type": self.search_type,
        }


class CivicSearchService:
    """
    Retrieval engine. Stages run in order and stop at the first that yields results:

      1) vector          - embed query, cosine search (skipped if embedding/store errors)
      2) text            - substring candidates scored by KeywordScorer, >= threshold * factor
      3) keyword_fallback - recency language / explicit year, ranked by meeting date
      4) recent_fallback  - most recently ingested records

    Every stage's output goes through the same diversity cap.
    """

    def __init__(
        self,
        *,
        store: CivicVectorStore,
        embedder: Any = None,
        scorer: Optional[KeywordScorer] = None,
        max_per_meeting: int = 2,
        text_threshold_factor: float = 0.6,
        candidate_pool: int = 50,
        fallback_score: float = FALLBACK_SCORE,
        today: Callable[[], date] = date.today,
        logger=None,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.scorer = scorer or KeywordScorer()
        self.max_per_meeting = max_per_meeting
        self.text_threshold_factor = text_threshold_factor
        self.candidate_pool = candidate_pool
        self.fallback_score = fallback_score
        self.today = today
        self.logger = logger or get_class_logger(self.__class__)

    # ------------------------------------------------------------------
    def search(
        self,
        query: str,
        limit: int = 5,
        threshold: float = 0.8,
        content_type: Optional[str] = None,
    ) -> SearchOutcome:
        q = (query or "").strip()
        if not q:
            raise ValueError("query must not be empty")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        self.logger.info(
            "search: query='%s' limit=%d threshold=%.2f content_type=%s (start)",
            q[:120],
            limit,
            threshold,
            content_type,
        )

        vector_ran, results = self._vector_stage(q, limit, threshold, content_type)
        if results:
            return self._finish(q, SEARCH_TYPE_VECTOR, results, limit)

        results = self._text_stage(q, threshold, content_type)
        if results:
            return self._finish(q, SEARCH_TYPE_TEXT, results, limit)

        results = self._temporal_stage(q, content_type)
        if results:
            return self._finish(q, SEARCH_TYPE_KEYWORD_FALLBACK, results, limit, presorted=True)

        results = self._recent_stage(limit, content_type)
        if results:
            return self._finish(q, SEARCH_TYPE_RECENT_FALLBACK, results, limit)

        search_type = SEARCH_TYPE_VECTOR if vector_ran else SEARCH_TYPE_TEXT
        self.logger.info("search: no results in any stage (search_type=%s)", search_type)
        return SearchOutcome(query=q, search_type=search_type, results=[])

    def _finish(
        self,
        query: str,
        search_type: str,
        results: List[SearchResult],
        limit: int,
        *,
        presorted: bool = False,
    ) -> SearchOutcome:
        ranked = diversify(results, limit, self.max_per_meeting, presorted=presorted)
        self.logger.info(
            "search: %s stage returned %d results (%d candidates) (done)",
            search_type,
            len(ranked),
            len(results),
        )
        return SearchOutcome(query=query, search_type=search_type, results=ranked)

    def _pool(self, limit: int) -> int:
        # room for the diversity pass to drop duplicates
        return max(limit, min(self.candidate_pool, limit * (self.max_per_meeting + 2)))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _vector_stage(
        self,
        query: str,
        limit: int,
        threshold: float,
        content_type: Optional[str],
    ) -> Tuple[bool, List[SearchResult]]:
        try:
            if self.embedder is None:
                raise SearchDegraded("no embedder configured")
            vector = self.embedder.embed_query(query)
            results = self.store.query_by_vector(vector, self._pool(limit), threshold, content_type)
        except Exception as e:
            degraded = e if isinstance(e, SearchDegraded) else SearchDegraded(f"{type(e).__name__}: {e}")
            self.logger.warning("search: vector stage unavailable, falling back to text: %s", degraded)
            return False, []

        # threshold is re-checked here so every store honours it
        return True, [r for r in results if r.similarity_score >= threshold]

    def _text_stage(
        self,
        query: str,
        threshold: float,
        content_type: Optional[str],
    ) -> List[SearchResult]:
        terms = extract_terms(query)
        if not terms:
            self.logger.info("search: no usable terms for text stage")
            return []

        phrase = normalise_phrase(query)
        match_terms = terms + ([phrase] if len(terms) > 1 else [])

        candidates = self.store.query_by_text(match_terms, self.candidate_pool, content_type)
        scored = self.scorer.score(query, candidates)

        min_score = threshold * self.text_threshold_factor
        accepted = [r for r in scored if r.similarity_score >= min_score]
        self.logger.info(
            "search: text stage terms=%s candidates=%d accepted=%d (min_score=%.2f)",
            terms,
            len(candidates),
            len(accepted),
            min_score,
        )
        return accepted

    def _temporal_stage(self, query: str, content_type: Optional[str]) -> List[SearchResult]:
        intent = detect_temporal(query, today=self.today())
        if not intent.is_temporal:
            return []

        pool = self.store.query_recent(self.candidate_pool, content_type)
        dated = [(parse_meeting_date(str(r.metadata.get("date") or "")), r) for r in pool]

        if intent.year is not None:
            dated = [(d, r) for d, r in dated if d is not None and d.year == intent.year]

        # meeting date desc, undated last, ingestion time as tiebreak
        dated.sort(key=lambda pair: pair[1].created_at or "", reverse=True)
        dated.sort(key=lambda pair: (pair[0] is not None, pair[0] or date.min), reverse=True)

        self.logger.info(
            "search: temporal stage year=%s matched=%d",
            intent.year,
            len(dated),
        )
        return [r.with_score(self.fallback_score) for _, r in dated]

    def _recent_stage(self, limit: int, content_type: Optional[str]) -> List[SearchResult]:
        results = self.store.query_recent(self._pool(limit), content_type)
        return [r.with_score(self.fallback_score) for r in results]
