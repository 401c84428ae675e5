# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-28
# Updated: 2026-10-18
# Description: api/schemas/chat.py
# -----------------------------------------------------------------------------
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

import settings


class ChatRequest(BaseModel):
    message: str = ""
    session_id: Optional[str] = None
    search_context: bool = True
    max_context_results: int = Field(settings.CHAT_DEFAULTS["max_context_results"], ge=1, le=20)


class SourceCitation(BaseModel):
    meeting_id: str
    url: str
    title: str = "Meeting Document"
    date: Optional[str] = None


class ChatResponse(BaseModel):
    response: str
    context_documents: int
    relevant_meetings: List[str] = Field(default_factory=list)
    source_urls: List[SourceCitation] = Field(default_factory=list)
    session_id: Optional[str] = None
