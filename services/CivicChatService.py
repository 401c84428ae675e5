# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-27
# Updated: 2026-10-18
# Description: CivicChatService.py
# -----------------------------------------------------------------------------
import json
import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

from chat.ChatLog import SqliteChatLog
from chat.OpenAIChat import Message, OpenAIChat
from loader.CivicDocumentSource import CivicDocumentSource
from services.CivicSearchService import CivicSearchService
from utility.errors import ProviderError, RateLimited
from utility.logging_utils import get_class_logger
from utility.retry_utils import RetryPolicy, with_retry
from vectorstore.SearchResult import SearchResult

DEGRADED_RESPONSE = (
    "I'm currently experiencing high demand and need to wait a moment before responding. "
    "Please try your question again in a few seconds."
)


@dataclass
class ChatAnswer:
    response: str
    context_documents: int
    relevant_meetings: List[str]
    source_urls: List[Dict[str, Any]]
    session_id: Optional[str] = None
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "context_documents": self.context_documents,
            "relevant_meetings": self.relevant_meetings,
            "source_urls": self.source_urls,
            "session_id": self.session_id,
        }


def build_citations(results: Sequence[SearchResult]) -> List[Dict[str, Any]]:
    citations: List[Dict[str, Any]] = []
    for r in results:
        meta = r.metadata or {}
        citations.append({
            "meeting_id": r.meeting_id,
            "url": meta.get("source_url") or r.meeting_id,
            "title": meta.get("title") or "Meeting Document",
            "date": meta.get("date"),
        })
    return citations


# Live civic API hits rank ahead of stored excerpts
LIVE_RESULT_SCORE = 0.9


def live_meeting_result(meeting: Dict[str, Any]) -> SearchResult:
    """Turn one civic API search hit into a context entry."""
    analysis = meeting.get("ai_analysis") or {}
    lines = [
        f"Meeting: {meeting.get('title')}",
        f"Date: {meeting.get('date')}",
        f"Commission: {meeting.get('commission') or meeting.get('government_body')}",
        f"Document Type: {meeting.get('document_type')}",
        f"Summary: {meeting.get('summary')}",
    ]
    if isinstance(analysis, dict) and analysis.get("key_decisions"):
        lines.append(f"Key Decisions: {json.dumps(analysis['key_decisions'])}")
    if isinstance(analysis, dict) and analysis.get("financial_implications"):
        lines.append(f"Financial Implications: {json.dumps(analysis['financial_implications'])}")
    if meeting.get("url"):
        lines.append(f"URL: {meeting['url']}")

    metadata = {
        "title": meeting.get("title"),
        "date": meeting.get("date"),
        "commission": meeting.get("commission"),
        "source_url": meeting.get("url"),
        "source": "civic_api",
    }
    return SearchResult(
        meeting_id=str(meeting.get("id") or meeting.get("meeting_id") or ""),
        content="\n".join(lines),
        content_type="civic_meeting",
        similarity_score=LIVE_RESULT_SCORE,
        metadata={k: v for k, v in metadata.items() if v is not None},
    )


@dataclass
class CivicChatService:
    """
    Chat Service:
        - retrieves meeting excerpts using CivicSearchService
        - puts live civic API search hits ahead of them when a source is wired
        - builds the civic system prompt around them
        - calls OpenAIChat (with retries) to generate the answer
        - returns answer + citations, logging the exchange when a chat log is wired
    """
    search_service: CivicSearchService
    chat_client: OpenAIChat
    chat_log: Optional[SqliteChatLog] = None
    source: Optional[CivicDocumentSource] = None
    live_search_limit: int = 10
    live_context_results: int = 5
    max_attempts: int = 3
    rate_limit_attempts: int = 5
    sleep: Callable[[float], None] = time.sleep
    locality: str = "La Cañada Flintridge, California"
    search_threshold: float = 0.7
    max_context_chars: int = 12_000
    temperature: float = 0.3
    max_tokens: int = 1500
    today: Callable[[], date] = date.today
    clock: Callable[[], float] = time.monotonic
    logger: logging.Logger | None = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)
        self.retry_policy = RetryPolicy(
            max_attempts=self.max_attempts,
            rate_limit_attempts=self.rate_limit_attempts,
            honor_retry_after=True,
            retry_on=(RateLimited, ProviderError),
        )
        self.logger.info(
            "CivicChatService initialised (search_service=%s chat_client=%s chat_log=%s live_search=%s)",
            type(self.search_service).__name__,
            type(self.chat_client).__name__,
            type(self.chat_log).__name__ if self.chat_log else None,
            self.source is not None,
        )

    def answer(
            self,
            message: str,
            session_id: Optional[str] = None,
            *,
            search_context: bool = True,
            max_context_results: int = 3,
            user_id: Optional[str] = None,
    ) -> ChatAnswer:
        q = (message or "").strip()
        if not q:
            raise ValueError("message must not be empty")

        started = self.clock()
        self.logger.info(
            "chat: message='%s' session=%s search_context=%s max_context_results=%d (start)",
            q[:120],
            session_id,
            search_context,
            max_context_results,
        )

        results: List[SearchResult] = []
        if search_context:
            results = self._live_context(q) + self._retrieve(q, max_context_results)
        relevant_meetings = list(dict.fromkeys(r.meeting_id for r in results))
        citations = build_citations(results)

        messages: List[Message] = [
            {"role": "system", "content": self.system_prompt(self.build_context_block(results))},
            {"role": "user", "content": q},
        ]

        degraded = False
        try:
            text = self._generate(messages)
        except RateLimited as e:
            self.logger.warning("chat: generation rate limited, returning degraded response: %s", e)
            text = DEGRADED_RESPONSE
            degraded = True

        result = ChatAnswer(
            response=text,
            context_documents=len(results),
            relevant_meetings=relevant_meetings,
            source_urls=citations,
            session_id=session_id,
            degraded=degraded,
        )

        if not degraded:
            elapsed_ms = int((self.clock() - started) * 1000)
            self._persist(q, result, user_id=user_id, response_time_ms=elapsed_ms)

        self.logger.info(
            "chat: answer_chars=%d context_documents=%d degraded=%s (done)",
            len(text),
            len(results),
            degraded,
        )
        return result

    # ------------------------------------------------------------------
    def _generate(self, messages: List[Message]) -> str:
        """
        Completion text for the messages. 429s and provider errors are retried
        on separate budgets; the last error is raised once they are spent.
        """
        resp = with_retry(
            lambda: self.chat_client.chat(messages, temperature=self.temperature, max_tokens=self.max_tokens),
            self.retry_policy,
            description="chat completion",
            sleep=self.sleep,
            logger=self.logger,
        )
        try:
            return resp.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as e:
            self.logger.error("chat: unexpected completion format: %s", e, exc_info=True)
            raise ProviderError(f"Unexpected chat response format: {e}") from e

    def _live_context(self, query: str) -> List[SearchResult]:
        if self.source is None:
            return []
        try:
            meetings = self.source.search(query, limit=self.live_search_limit)
        except Exception as e:
            self.logger.warning("chat: civic API search failed, continuing without it: %s", e)
            return []
        results = [live_meeting_result(m) for m in meetings[: self.live_context_results]]
        self.logger.info("chat: %d live civic API results added to context", len(results))
        return results

    def _retrieve(self, query: str, limit: int) -> List[SearchResult]:
        try:
            outcome = self.search_service.search(query, limit=limit, threshold=self.search_threshold)
        except Exception as e:
            self.logger.warning("chat: retrieval failed, proceeding without context: %s", e, exc_info=True)
            return []
        self.logger.info(
            "chat: retrieved %d documents via %s search",
            outcome.total_results,
            outcome.search_type,
        )
        return list(outcome.results)

    def build_context_block(self, results: Sequence[SearchResult]) -> str:
        """
        [Document N - Meeting <id>]:\n<content> blocks separated by blank lines,
        cut at max_context_chars.
        """
        context = "\n\n".join(
            f"[Document {i} - Meeting {r.meeting_id}]:\n{r.content}"
            for i, r in enumerate(results, start=1)
        )
        if len(context) > self.max_context_chars:
            self.logger.warning(
                "build_context_block: truncating context from %d to %d chars",
                len(context),
                self.max_context_chars,
            )
            context = context[: self.max_context_chars]
        return context

    def system_prompt(self, context: str) -> str:
        today = self.today()
        prompt = (
            f"You are a civic assistant helping residents understand local government meetings "
            f"and decisions in {self.locality}.\n\n"
            "CURRENT CONTEXT:\n"
            f"- Today's date: {today.strftime('%a %b %d %Y')}\n"
            f"- Current year: {today.year}\n"
            f"- When users ask about \"this year\" or \"latest\" information, they mean {today.year}\n\n"
            "CORE INSTRUCTIONS:\n"
            "- Base your responses ONLY on the provided meeting data and context documents\n"
            "- If the answer is not found in the provided materials, say \"I don't have information "
            "about that in the available meeting records\"\n"
            "- Be neutral, informative, and concise\n\n"
            "BEHAVIOR RULES:\n"
            "- Always cite which meeting(s) your information comes from, with the meeting date\n"
            "- If multiple meetings discuss the same topic, prefer the most recent one and mention the others\n"
            "- When discussing financial matters, include specific amounts mentioned in the meetings\n\n"
        )
        if context:
            prompt += f"CONTEXT DOCUMENTS:\n{context}\n\n"
        prompt += (
            "Please answer the user's question based solely on the information provided above. "
            "If you cannot find relevant information in the meeting records, clearly state this limitation."
        )
        return prompt

    def _persist(
            self,
            message: str,
            result: ChatAnswer,
            *,
            user_id: Optional[str],
            response_time_ms: int,
    ) -> None:
        if self.chat_log is None or not result.session_id:
            return

        try:
            self.chat_log.ensure_session(result.session_id, user_id=user_id, title=message)
            self.chat_log.add_message(
                result.session_id,
                "user",
                message,
                {"context_used": result.context_documents > 0},
            )
            self.chat_log.add_message(
                result.session_id,
                "assistant",
                result.response,
                {
                    "context_documents": result.context_documents,
                    "relevant_meetings": result.relevant_meetings,
                },
            )
        except Exception as e:
            self.logger.warning("chat: failed to save conversation: %s", e)

        try:
            self.chat_log.record_query(
                message,
                result.session_id,
                result.relevant_meetings,
                response_time_ms,
            )
        except Exception as e:
            self.logger.warning("chat: failed to record query analytics: %s", e)
