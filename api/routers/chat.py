# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-28
# Updated: 2026-10-18
# Description: chat.py
# -----------------------------------------------------------------------------
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_chat_service, require_caller
from api.schemas.chat import ChatRequest, ChatResponse
from services.CivicChatService import CivicChatService
from utility.errors import ProviderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
def post_chat(
        req: ChatRequest,
        caller: Optional[str] = Depends(require_caller),
        svc: CivicChatService = Depends(get_chat_service),
) -> ChatResponse:
    message = (req.message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    logger.info(
        "POST /chat (start) message_len=%d session=%s max_context_results=%d",
        len(message),
        req.session_id,
        req.max_context_results,
    )

    try:
        out = svc.answer(
            message,
            req.session_id,
            search_context=req.search_context,
            max_context_results=req.max_context_results,
            user_id=caller,
        )
    except ProviderError as e:
        logger.exception("post_chat generation failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to process chat request: {e}")
    except Exception as e:
        logger.exception("post_chat failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Failed to process chat request: {e}")

    logger.info("POST /chat (done) answer_len=%d sources=%d", len(out.response), len(out.source_urls))
    return ChatResponse(**out.to_dict())
