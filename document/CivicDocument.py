# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-28
# Updated: 2026-10-18
# Description: CivicDocument
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Dict, Optional

DOCUMENT_TYPES = ("agenda", "minutes", "other")

CONTENT_TYPE_FULL = "full_content"
CONTENT_TYPE_SUMMARY = "summary"
CONTENT_TYPES = (CONTENT_TYPE_FULL, CONTENT_TYPE_SUMMARY)


@dataclass(frozen=True)
class CivicDocument:
    """
    One meeting document as served by the civic data API.
    date is kept verbatim: upstream dates are sometimes blank or malformed.
    """
    id: str
    title: str
    date: str
    government_body: str
    document_type: str
    raw_text: str
    source_url: Optional[str] = None
    commission: Optional[str] = None
    has_full_content: bool = False
    ai_enhanced: bool = False

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_FULL if self.has_full_content else CONTENT_TYPE_SUMMARY

    def embedding_text(self) -> str:
        """Header + full text. This exact string is embedded and stored."""
        return (
            f"Title: {self.title}\n"
            f"Date: {self.date}\n"
            f"Commission: {self.commission or ''}\n"
            f"Government Body: {self.government_body}\n"
            f"Meeting Type: {self.document_type}\n"
            f"Full Content: {self.raw_text}"
        ).strip()

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "date": self.date,
            "commission": self.commission,
            "government_body": self.government_body,
            "document_type": self.document_type,
            "source_url": self.source_url,
            "content_length": len(self.raw_text),
            "has_full_content": self.has_full_content,
            "ai_enhanced": self.ai_enhanced,
        }

    def short_preview(self, n: int = 80) -> str:
        """Return a compact preview for logging."""
        clean = " ".join(self.title.split())
        preview = (clean[:n] + "...") if len(clean) > n else clean
        return f"[{self.id} | {self.date or 'no date'}] {preview}"
