# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-29
# Updated: 2026-10-18
# Description: CivicDocumentSource.py
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from document.CivicDocument import CivicDocument, DOCUMENT_TYPES
from utility.errors import SourceUnavailable
from utility.logging_utils import get_class_logger


def _as_str(x: Any) -> str:
    return "" if x is None else str(x).strip()


class CivicDocumentSource:
    """
    Thin, stateless client for the civic data API (paginated meeting summaries).

        GET {endpoint}/api/summaries?page=<n>&limit=<m>
          -> {"summaries": [...], "pagination": {"has_next": bool}}
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("document source endpoint must not be empty")
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or get_class_logger(self.__class__)
        self.logger.info("CivicDocumentSource initialised (endpoint=%s)", self.endpoint)

    def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.endpoint}{path}"
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SourceUnavailable(f"GET {path} failed: {e}") from e

        if not r.ok:
            raise SourceUnavailable(
                f"GET {path} returned HTTP {r.status_code}: {r.text[:200]}",
                status_code=r.status_code,
            )

        try:
            payload = r.json()
        except ValueError as e:
            raise SourceUnavailable(f"GET {path} returned a non-JSON body") from e

        if not isinstance(payload, dict):
            raise SourceUnavailable(f"GET {path} returned {type(payload).__name__}, expected object")
        return payload

    def fetch_page(self, page: int, page_size: int = 20) -> Tuple[List[CivicDocument], bool]:
        """
        Return (documents, has_next_page).
        Without a pagination block, a non-empty page is taken to mean "maybe more".
        """
        payload = self._get_json("/api/summaries", {"page": page, "limit": page_size})

        raw_items = payload.get("summaries") or []
        documents = [self._to_document(item) for item in raw_items if isinstance(item, dict)]

        pagination = payload.get("pagination")
        if isinstance(pagination, dict) and "has_next" in pagination:
            has_next = bool(pagination.get("has_next"))
        else:
            has_next = len(documents) > 0

        self.logger.info(
            "Fetched page %d: %d documents (has_next=%s)",
            page,
            len(documents),
            has_next,
        )
        return documents, has_next

    def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Live keyword search on the civic data API.

            GET {endpoint}/api/search?q=<query>&limit=<n> -> {"results": [...]}

        Items are returned as served (they carry ai_analysis, which CivicDocument does not).
        """
        payload = self._get_json("/api/search", {"q": query, "limit": limit})
        items = [item for item in (payload.get("results") or []) if isinstance(item, dict)]
        self.logger.info("Civic API search '%s' returned %d results", query[:80], len(items))
        return items

    @staticmethod
    def _to_document(item: Dict[str, Any]) -> CivicDocument:
        content = _as_str(item.get("content"))
        summary = _as_str(item.get("summary"))

        doc_type = _as_str(item.get("document_type") or item.get("type")).lower()
        if doc_type not in DOCUMENT_TYPES:
            doc_type = "other"

        commission = _as_str(item.get("commission")) or None
        body = _as_str(item.get("government_body") or item.get("body")) or (commission or "")

        return CivicDocument(
            id=_as_str(item.get("id") or item.get("meeting_id")),
            title=_as_str(item.get("title")),
            date=_as_str(item.get("date")),
            government_body=body,
            document_type=doc_type,
            raw_text=content or summary,
            source_url=_as_str(item.get("url") or item.get("source_url")) or None,
            commission=commission,
            has_full_content=bool(content),
            ai_enhanced=bool(item.get("ai_enhanced") or item.get("ai_generated")),
        )

    def audit(self, *, max_pages: int = 100, page_size: int = 20) -> Dict[str, int]:
        """
        Walk the source and count how much text each meeting carries.
        Stops at the first empty page, the last page, an API error or max_pages.
        """
        counts = {
            "total_documents": 0,
            "with_full_content": 0,
            "summary_only": 0,
            "without_content": 0,
            "pages_checked": 0,
        }

        page = 1
        while page <= max_pages:
            try:
                documents, has_next = self.fetch_page(page, page_size)
            except SourceUnavailable as e:
                self.logger.warning("Audit stopped at page %d: %s", page, e)
                break

            counts["pages_checked"] += 1
            if not documents:
                break

            for d in documents:
                counts["total_documents"] += 1
                if d.has_full_content:
                    counts["with_full_content"] += 1
                elif d.raw_text:
                    counts["summary_only"] += 1
                else:
                    counts["without_content"] += 1

            if not has_next:
                break
            page += 1

        self.logger.info("Source audit complete: %s", counts)
        return counts
