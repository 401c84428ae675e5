# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-15
# Updated: 2026-10-18
# Description: CivicVectorStore
# -----------------------------------------------------------------------------

from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from embedding.EmbeddingRecord import EmbeddingRecord
from vectorstore.SearchResult import SearchResult


@runtime_checkable
class CivicVectorStore(Protocol):
    """
    One logical table keyed by (meeting_id, content_type).
    Implementations enforce the key themselves; callers never need client-side locks.
    """

    def test_connection(self) -> bool:
        ...

    def exists(self, meeting_id: str, content_type: str) -> bool:
        ...

    def get(self, meeting_id: str, content_type: str) -> Optional[EmbeddingRecord]:
        ...

    def upsert(self, record: EmbeddingRecord) -> bool:
        """Insert or overwrite. Returns True when the record was new."""
        ...

    def insert_if_absent(self, record: EmbeddingRecord) -> bool:
        """Insert only when the key is free. Returns False when it already existed."""
        ...

    def query_by_vector(
            self,
            vector: Sequence[float],
            limit: int,
            threshold: float,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        ...

    def query_by_text(
            self,
            terms: Sequence[str],
            limit: int,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        ...

    def query_recent(
            self,
            limit: int,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        ...

    def count(self) -> int:
        ...

    def count_by_content_type(self) -> Dict[str, int]:
        ...
