# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: ingest.py
# -----------------------------------------------------------------------------
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

import settings


class IngestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    batch_size: int = Field(settings.INGEST_DEFAULTS["batch_size"], ge=1, le=500, alias="batchSize")
    start_page: int = Field(1, ge=1, alias="startPage")


class IngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    processed_count: int = Field(..., alias="processedCount")
    skipped_count: int = Field(..., alias="skippedCount")
    error_count: int = Field(..., alias="errorCount")
    page_errors: int = Field(0, alias="pageErrors")
    pages_checked: int = Field(..., alias="pagesChecked")
    duration: float
    stop_reason: Literal[
        "batch_limit_reached",
        "time_limit_approached",
        "no_more_documents",
        "too_many_errors",
    ] = Field(..., alias="stopReason")


class EmbedDocumentRequest(BaseModel):
    meeting_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    content_type: Literal["summary", "full_content"] = "summary"
    metadata: Optional[Dict[str, Any]] = None


class EmbedDocumentResponse(BaseModel):
    meeting_id: str
    content_type: str
    embedding_dimensions: int
    created: bool
