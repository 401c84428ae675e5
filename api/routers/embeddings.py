# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: embeddings router
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_ingest_service
from api.schemas.ingest import EmbedDocumentRequest, EmbedDocumentResponse
from services.CivicIngestService import CivicIngestService
from utility.errors import InsufficientContent, ProviderError, RateLimited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post("", response_model=EmbedDocumentResponse)
def post_embedding(
    req: EmbedDocumentRequest,
    svc: CivicIngestService = Depends(get_ingest_service),
) -> EmbedDocumentResponse:
    try:
        out = svc.embed_document(
            meeting_id=req.meeting_id,
            content=req.content,
            content_type=req.content_type,
            metadata=req.metadata,
        )
    except (ValueError, InsufficientContent) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RateLimited as e:
        raise HTTPException(status_code=429, detail=str(e))
    except ProviderError as e:
        logger.exception("Embedding provider failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.exception("Embedding failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Embedding failed: {e}")

    return EmbedDocumentResponse(**out)
