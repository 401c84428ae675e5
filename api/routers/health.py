# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-10-18
# Description: health.py
# -----------------------------------------------------------------------------
import logging
from fastapi import APIRouter, Depends, HTTPException, Query

from api.schemas.health import HealthResponse, DeepHealthResponse
from api.dependencies import get_health_service
from services.CivicHealthService import CivicHealthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok", message="Civic RAG API running")


@router.get("/deep", response_model=DeepHealthResponse)
def deep_health_check(
    svc: CivicHealthService = Depends(get_health_service),
    run_chat: bool = Query(False, description="Also ping the chat model"),
) -> DeepHealthResponse:
    logger.info("GET /health/deep called (run_chat=%s)", run_chat)
    try:
        result = svc.deep_health(run_chat=run_chat)
    except Exception as e:
        logger.exception("GET /health/deep failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Deep health check failed: {e}")

    logger.info("GET /health/deep completed (status=%s)", result.status)
    return result
