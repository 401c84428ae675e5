# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: ingest router
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_ingest_service
from api.schemas.ingest import IngestRequest, IngestResponse
from services.CivicIngestService import CivicIngestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingest", tags=["ingest"])


@router.post("", response_model=IngestResponse)
def post_ingest(
    req: IngestRequest | None = None,
    svc: CivicIngestService = Depends(get_ingest_service),
) -> IngestResponse:
    req = req or IngestRequest()
    logger.info("POST /ingest (start) batchSize=%d startPage=%d", req.batch_size, req.start_page)

    try:
        summary = svc.run_batch(batch_size=req.batch_size, start_page=req.start_page)
    except Exception as e:
        logger.exception("Batch ingest failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Batch ingest failed: {e}")

    logger.info("POST /ingest (done) %s", summary.to_dict())
    return IngestResponse(**summary.to_dict())
