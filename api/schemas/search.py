# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-10-18
# Description: search.py
# -----------------------------------------------------------------------------
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

import settings


class SearchRequest(BaseModel):
    # empty queries are rejected by the router with a 400
    query: str = ""
    limit: int = Field(settings.SEARCH_DEFAULTS["limit"], ge=1, le=50)
    threshold: float = Field(settings.SEARCH_DEFAULTS["threshold"], ge=0.0, le=1.0)
    content_type: Optional[Literal["summary", "full_content"]] = None


class SearchHit(BaseModel):
    meeting_id: str
    content: str
    content_type: str
    similarity_score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None


class SearchResponse(BaseModel):
    results: List[SearchHit]
    query: str
    total_results: int
    search_type: Literal["vector", "text", "keyword_fallback", "recent_fallback"]
