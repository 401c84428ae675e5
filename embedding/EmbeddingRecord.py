# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-14
# Updated: 2026-10-18
# Description: EmbeddingRecord
# -----------------------------------------------------------------------------
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def record_key(meeting_id: str, content_type: str) -> str:
    """Store primary key; one record per (meeting_id, content_type)."""
    return f"{meeting_id}::{content_type}"


@dataclass
class EmbeddingRecord:
    """Embedded meeting text + vector + denormalised meeting metadata."""
    meeting_id: str
    content: str
    content_type: str
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    @property
    def key(self) -> str:
        return record_key(self.meeting_id, self.content_type)

    def touched(self, *, created_at: str) -> "EmbeddingRecord":
        """Copy for an overwrite: keep the original created_at, bump updated_at."""
        return replace(self, created_at=created_at, updated_at=utc_now_iso())
