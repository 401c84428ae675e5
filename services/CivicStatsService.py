# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-21
# Updated: 2026-10-18
# Description: CivicStatsService.py
# -----------------------------------------------------------------------------

import logging
from typing import Any, Dict

from utility.logging_utils import get_class_logger
from vectorstore.CivicVectorStore import CivicVectorStore


class CivicStatsService:
    """
    Stats service for the /stats endpoints.

    Responsibilities:
      - count stored embeddings, overall and per content type
      - audit the civic data API for how much text it actually serves
    """

    def __init__(
        self,
        *,
        store: CivicVectorStore,
        source: Any,
        collection_name: str,
        audit_max_pages: int = 100,
        page_size: int = 20,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.collection_name = collection_name
        self.audit_max_pages = audit_max_pages
        self.page_size = page_size
        self.logger = logger or get_class_logger(self.__class__)

    def get_stats(self) -> Dict[str, Any]:
        self.logger.info("Stats for collection='%s'", self.collection_name)

        try:
            total = self.store.count()
            by_type = self.store.count_by_content_type()
        except Exception as e:
            self.logger.error("Failed to count collection '%s': %s", self.collection_name, e)
            total, by_type = 0, {}

        return {
            "collection_name": self.collection_name,
            "total_embeddings": total,
            "by_content_type": by_type,
        }

    def audit_source(self) -> Dict[str, int]:
        """SourceUnavailable on page 1 just yields zero counts."""
        self.logger.info("Auditing civic data API (max_pages=%d)", self.audit_max_pages)
        return self.source.audit(max_pages=self.audit_max_pages, page_size=self.page_size)
