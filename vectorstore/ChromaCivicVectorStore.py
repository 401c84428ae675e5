# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-16
# Updated: 2026-10-18
# Description: ChromaCivicVectorStore
# -----------------------------------------------------------------------------
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import chromadb
from chromadb import ClientAPI
from chromadb.api.models.Collection import Collection

from embedding.EmbeddingRecord import EmbeddingRecord, record_key
from utility.errors import StoreConflict
from utility.logging_utils import get_class_logger
from utility.retry_utils import RetryPolicy, with_retry
from vectorstore.SearchResult import (
    FALLBACK_SCORE,
    TEXT_BASE_SCORE,
    SearchResult,
    contains_any_term,
)

# Bookkeeping fields stored next to the meeting metadata
_INTERNAL_KEYS = ("meeting_id", "content_type", "created_at", "updated_at", "created_ts")


def _created_ts(iso: str) -> float:
    try:
        return datetime.fromisoformat(iso).timestamp()
    except (TypeError, ValueError):
        return 0.0


def _clean_metadata(meta: Dict[str, Any]) -> Dict[str, Any]:
    # Chroma only accepts str/int/float/bool values, and no None
    out: Dict[str, Any] = {}
    for k, v in (meta or {}).items():
        if v is None:
            continue
        out[k] = v if isinstance(v, (str, int, float, bool)) else str(v)
    return out


def _term_variants(term: str) -> List[str]:
    # $contains is case-sensitive; cover the common casings then re-check in Python
    return list(dict.fromkeys([term, term.lower(), term.capitalize(), term.title(), term.upper()]))


@dataclass
class ChromaCivicVectorStore:
    cfg: Any
    collection_name: Optional[str] = None
    client: Optional[ClientAPI] = None
    store_attempts: int = 3
    sleep: Callable[[float], None] = time.sleep
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)
        self.collection_name = (
            self.collection_name
            or getattr(self.cfg, "chroma_collection", None)
            or "document_embeddings"
        )

        if self.client is None:
            self.client = self._build_client()

        # cosine space so similarity = 1 - distance
        self.collection: Collection = self.client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        self.retry_policy = RetryPolicy(max_attempts=self.store_attempts, base_delay=0.5)
        self.logger.info("Chroma collection ready: '%s'", self.collection_name)

    def _build_client(self) -> ClientAPI:
        mode = getattr(self.cfg, "chroma_mode", "persistent")
        if mode == "cloud":
            self.logger.info(
                "Initialising Chroma Cloud client (tenant=%s, database=%s)",
                self.cfg.chroma_tenant,
                self.cfg.chroma_database,
            )
            return chromadb.CloudClient(
                tenant=self.cfg.chroma_tenant,
                database=self.cfg.chroma_database,
                api_key=self.cfg.chroma_api_key,
            )
        if mode == "ephemeral":
            self.logger.info("Initialising ephemeral (in-process) Chroma client")
            return chromadb.EphemeralClient()

        self.logger.info("Initialising persistent Chroma client (path=%s)", self.cfg.chroma_path)
        return chromadb.PersistentClient(path=self.cfg.chroma_path)

    def test_connection(self) -> bool:
        """
        Simple health check: can we talk to Chroma and our collection?
        """
        try:
            _ = self.collection.count()
            return True
        except Exception as e:
            self.logger.error("Chroma connection failed: %s", e)
            return False

    # ------------------------------------------------------------------
    # Row <-> record mapping
    # ------------------------------------------------------------------
    @staticmethod
    def _row_metadata(record: EmbeddingRecord) -> Dict[str, Any]:
        meta = _clean_metadata(record.metadata)
        meta.update({
            "meeting_id": record.meeting_id,
            "content_type": record.content_type,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
            "created_ts": _created_ts(record.created_at),
        })
        return meta

    @staticmethod
    def _to_result(document: str, meta: Dict[str, Any], score: float) -> SearchResult:
        meta = dict(meta or {})
        public = {k: v for k, v in meta.items() if k not in _INTERNAL_KEYS}
        return SearchResult(
            meeting_id=str(meta.get("meeting_id", "")),
            content=document or "",
            content_type=str(meta.get("content_type", "")),
            similarity_score=max(0.0, min(1.0, float(score))),
            metadata=public,
            created_at=str(meta.get("created_at", "")),
        )

    @staticmethod
    def _where(content_type: Optional[str]) -> Optional[Dict[str, Any]]:
        return {"content_type": content_type} if content_type else None

    # ------------------------------------------------------------------
    # Reads / writes by key
    # ------------------------------------------------------------------
    def exists(self, meeting_id: str, content_type: str) -> bool:
        res = self.collection.get(ids=[record_key(meeting_id, content_type)], include=[])
        return bool(res.get("ids"))

    def get(self, meeting_id: str, content_type: str) -> Optional[EmbeddingRecord]:
        res = self.collection.get(
            ids=[record_key(meeting_id, content_type)],
            include=["documents", "metadatas", "embeddings"],
        )
        ids = res.get("ids") or []
        if not ids:
            return None

        meta = dict((res.get("metadatas") or [{}])[0] or {})
        embeddings = res.get("embeddings")
        vector = [float(x) for x in embeddings[0]] if embeddings is not None and len(embeddings) else []

        return EmbeddingRecord(
            meeting_id=str(meta.get("meeting_id", meeting_id)),
            content=(res.get("documents") or [""])[0] or "",
            content_type=str(meta.get("content_type", content_type)),
            embedding=vector,
            metadata={k: v for k, v in meta.items() if k not in _INTERNAL_KEYS},
            created_at=str(meta.get("created_at", "")),
            updated_at=str(meta.get("updated_at", "")),
        )

    def _existing_created_at(self, key: str) -> Optional[str]:
        res = self.collection.get(ids=[key], include=["metadatas"])
        if not res.get("ids"):
            return None
        meta = (res.get("metadatas") or [{}])[0] or {}
        return meta.get("created_at")

    def _owns_row(self, record: EmbeddingRecord) -> bool:
        res = self.collection.get(ids=[record.key], include=["metadatas", "documents"])
        if not res.get("ids"):
            return False
        meta = (res.get("metadatas") or [{}])[0] or {}
        document = (res.get("documents") or [None])[0]
        return meta.get("created_at") == record.created_at and document == record.content

    def upsert(self, record: EmbeddingRecord) -> bool:
        def _do() -> bool:
            created_at = self._existing_created_at(record.key)
            row = record if created_at is None else record.touched(created_at=created_at)
            self.collection.upsert(
                ids=[row.key],
                documents=[row.content],
                embeddings=[list(row.embedding)],
                metadatas=[self._row_metadata(row)],
            )
            return created_at is None

        created = with_retry(
            _do,
            self.retry_policy,
            description=f"upsert {record.key}",
            sleep=self.sleep,
            logger=self.logger,
        )
        self.logger.info(
            "%s embedding for meeting '%s' (%s) in collection '%s'",
            "Inserted" if created else "Updated",
            record.meeting_id,
            record.content_type,
            self.collection_name,
        )
        return created

    def insert_if_absent(self, record: EmbeddingRecord) -> bool:
        def _do() -> bool:
            if self.exists(record.meeting_id, record.content_type):
                return False
            # add() may ignore an id that is already present, so confirm the stored row is ours
            try:
                self.collection.add(
                    ids=[record.key],
                    documents=[record.content],
                    embeddings=[list(record.embedding)],
                    metadatas=[self._row_metadata(record)],
                )
            except Exception:
                if self._existing_created_at(record.key) is None:
                    raise
            if not self._owns_row(record):
                raise StoreConflict(f"{record.key} was written by another ingestion run")
            return True

        try:
            return with_retry(
                _do,
                self.retry_policy,
                description=f"insert {record.key}",
                sleep=self.sleep,
                logger=self.logger,
            )
        except StoreConflict:
            self.logger.info("Record %s inserted concurrently; treating as existing", record.key)
            return False

    # ------------------------------------------------------------------
    # Query primitives
    # ------------------------------------------------------------------
    def query_by_vector(
            self,
            vector: Sequence[float],
            limit: int,
            threshold: float,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        total = self.collection.count()
        if total == 0:
            return []

        query_kwargs: Dict[str, Any] = {
            "query_embeddings": [list(vector)],
            "n_results": max(1, min(limit, total)),
            "include": ["documents", "metadatas", "distances"],
        }
        where = self._where(content_type)
        if where is not None:
            query_kwargs["where"] = where

        self.logger.debug("Chroma vector query: n_results=%d where=%s", query_kwargs["n_results"], where)
        res = self.collection.query(**query_kwargs)

        docs0 = (res.get("documents") or [[]])[0] or []
        metas0 = (res.get("metadatas") or [[]])[0] or []
        dists0 = (res.get("distances") or [[]])[0] or []

        results: List[SearchResult] = []
        for doc, meta, dist in zip(docs0, metas0, dists0):
            similarity = 1.0 - float(dist)
            if similarity >= threshold:
                results.append(self._to_result(doc, meta, similarity))

        self.logger.info(
            "Chroma vector search: %d/%d results above threshold %.2f",
            len(results),
            len(docs0),
            threshold,
        )
        return results

    def query_by_text(
            self,
            terms: Sequence[str],
            limit: int,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        terms = [t for t in terms if t]
        if not terms:
            return []

        clauses = [{"$contains": v} for t in terms for v in _term_variants(t)]
        where_document = clauses[0] if len(clauses) == 1 else {"$or": clauses}

        get_kwargs: Dict[str, Any] = {
            "where_document": where_document,
            "limit": limit,
            "include": ["documents", "metadatas"],
        }
        where = self._where(content_type)
        if where is not None:
            get_kwargs["where"] = where

        res = self.collection.get(**get_kwargs)
        docs = res.get("documents") or []
        metas = res.get("metadatas") or []

        results = [
            self._to_result(doc, meta, TEXT_BASE_SCORE)
            for doc, meta in zip(docs, metas)
            if contains_any_term(doc, (meta or {}).get("title"), terms)
        ]
        self.logger.info("Chroma text search: %d candidates for %d terms", len(results), len(terms))
        return results

    def query_recent(
            self,
            limit: int,
            content_type: Optional[str] = None,
    ) -> List[SearchResult]:
        get_kwargs: Dict[str, Any] = {"include": ["metadatas"]}
        where = self._where(content_type)
        if where is not None:
            get_kwargs["where"] = where

        # Chroma has no ORDER BY: rank ids by created_ts client-side, then fetch bodies
        res = self.collection.get(**get_kwargs)
        ids = res.get("ids") or []
        metas = res.get("metadatas") or []
        ranked = sorted(
            zip(ids, metas),
            key=lambda pair: float((pair[1] or {}).get("created_ts", 0.0)),
            reverse=True,
        )
        top_ids = [i for i, _ in ranked[:limit]]
        if not top_ids:
            return []

        full = self.collection.get(ids=top_ids, include=["documents", "metadatas"])
        by_id = {
            i: (doc, meta)
            for i, doc, meta in zip(full.get("ids") or [], full.get("documents") or [], full.get("metadatas") or [])
        }
        return [
            self._to_result(by_id[i][0], by_id[i][1], FALLBACK_SCORE)
            for i in top_ids
            if i in by_id
        ]

    def count(self) -> int:
        return self.collection.count()

    def count_by_content_type(self) -> Dict[str, int]:
        res = self.collection.get(include=["metadatas"])
        out: Dict[str, int] = {}
        for meta in res.get("metadatas") or []:
            ct = str((meta or {}).get("content_type", "unknown"))
            out[ct] = out.get(ct, 0) + 1
        return out
