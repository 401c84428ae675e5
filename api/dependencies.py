# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-07
# Updated: 2026-10-18
# Description: dependencies.py
# -----------------------------------------------------------------------------
import hmac
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

import settings
from api.AppContainer import AppContainer
from services.CivicChatService import CivicChatService
from services.CivicHealthService import CivicHealthService
from services.CivicIngestService import CivicIngestService
from services.CivicSearchService import CivicSearchService
from services.CivicStatsService import CivicStatsService

logger = logging.getLogger(__name__)


@lru_cache
def get_container() -> AppContainer:
    # built on first use so the app imports without credentials
    return AppContainer()


def get_health_service() -> CivicHealthService:
    return get_container().health_service


def get_stats_service() -> CivicStatsService:
    return get_container().stats_service


def get_search_service() -> CivicSearchService:
    return get_container().search_service


def get_ingest_service() -> CivicIngestService:
    return get_container().ingest_service


def get_chat_service() -> CivicChatService:
    return get_container().chat_service


def get_chat_api_token() -> str:
    return get_container().cfg.chat_api_token


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_caller(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """
    Resolve the caller for /chat. Returns a caller id (or None when auth is off).

    CHAT_REQUIRE_AUTH on:
      - token configured: the bearer token must match it
      - no token configured: any bearer token is accepted
    """
    token = _bearer_token(authorization)

    if not settings.CHAT_REQUIRE_AUTH:
        return f"token:{token[:8]}" if token else None

    if token is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    expected = get_chat_api_token()
    if expected and not hmac.compare_digest(token, expected):
        logger.warning("Rejected /chat caller with invalid token")
        raise HTTPException(status_code=401, detail="Invalid authentication")

    return f"token:{token[:8]}"
