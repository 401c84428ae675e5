# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: KeywordScorer.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import List, Sequence

from rank_bm25 import BM25Okapi

from retrieval.QueryParser import extract_terms, normalise_phrase
from vectorstore.SearchResult import TEXT_BASE_SCORE, SearchResult


@dataclass
class KeywordScorer:
    """
    Scores text-stage candidates:

        base
        + content_boost per query term found in the content
        + title_boost   per query term found in the title
        + phrase_boost  when a multi-word query appears verbatim
        + up to bm25_weight, BM25 over the candidate set relative to the best candidate

    capped at 1.0.
    """
    base: float = TEXT_BASE_SCORE
    content_boost: float = 0.2
    title_boost: float = 0.3
    phrase_boost: float = 0.2
    bm25_weight: float = 0.2

    def _bm25_bonuses(self, terms: Sequence[str], candidates: Sequence[SearchResult]) -> List[float]:
        corpus = [extract_terms(c.content) for c in candidates]
        if not terms or not any(corpus):
            return [0.0] * len(candidates)

        # BM25Okapi divides by average document length; keep every doc non-empty
        corpus = [doc or ["_"] for doc in corpus]
        raw = [float(s) for s in BM25Okapi(corpus).get_scores(list(terms))]
        best = max(raw, default=0.0)
        if best <= 0.0:
            return [0.0] * len(candidates)
        return [self.bm25_weight * max(0.0, s) / best for s in raw]

    def score(self, query: str, candidates: Sequence[SearchResult]) -> List[SearchResult]:
        terms = extract_terms(query)
        phrase = normalise_phrase(query)
        bonuses = self._bm25_bonuses(terms, candidates)

        scored: List[SearchResult] = []
        for cand, bonus in zip(candidates, bonuses):
            content = (cand.content or "").casefold()
            title = str((cand.metadata or {}).get("title") or "").casefold()

            score = self.base
            for term in terms:
                if term in content:
                    score += self.content_boost
                if term in title:
                    score += self.title_boost
            if len(terms) > 1 and phrase and phrase in content:
                score += self.phrase_boost
            score += bonus

            scored.append(cand.with_score(min(score, 1.0)))
        return scored
