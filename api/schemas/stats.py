# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-10-18
# Description: stats.py
# -----------------------------------------------------------------------------
from typing import Dict

from pydantic import BaseModel


class StoreStatsResponse(BaseModel):
    collection_name: str
    total_embeddings: int
    by_content_type: Dict[str, int]


class SourceAuditResponse(BaseModel):
    total_documents: int
    with_full_content: int
    summary_only: int
    without_content: int
    pages_checked: int
