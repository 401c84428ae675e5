# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: SearchResult
# -----------------------------------------------------------------------------
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional, Sequence

# Flat scores handed out by the non-vector store primitives
TEXT_BASE_SCORE = 0.3
FALLBACK_SCORE = 0.5


def contains_any_term(content: str, title: Optional[str], terms: Sequence[str]) -> bool:
    """Case-insensitive substring match over content and title."""
    haystacks = ((content or "").lower(), (title or "").lower())
    return any(t.lower() in h for t in terms if t for h in haystacks)


@dataclass
class SearchResult:
    meeting_id: str
    content: str
    content_type: str
    similarity_score: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def with_score(self, score: float) -> "SearchResult":
        return replace(self, similarity_score=max(0.0, min(1.0, float(score))))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
