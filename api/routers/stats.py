# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-10-18
# Description: stats.py
# -----------------------------------------------------------------------------
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_stats_service
from api.schemas.stats import SourceAuditResponse, StoreStatsResponse
from services.CivicStatsService import CivicStatsService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stats",
    tags=["stats"]
)


@router.get("", response_model=StoreStatsResponse)
def get_store_stats(
    svc: CivicStatsService = Depends(get_stats_service),
) -> StoreStatsResponse:
    logger.info("GET /stats")
    return StoreStatsResponse(**svc.get_stats())


@router.get("/source", response_model=SourceAuditResponse)
def get_source_audit(
    svc: CivicStatsService = Depends(get_stats_service),
) -> SourceAuditResponse:
    logger.info("GET /stats/source")
    try:
        counts = svc.audit_source()
    except Exception as e:
        logger.exception("Source audit failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Source audit failed: {e}")
    return SourceAuditResponse(**counts)
