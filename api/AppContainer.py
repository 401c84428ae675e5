# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-10-18
# Description: AppContainer.py
# -----------------------------------------------------------------------------
import settings
from chat.ChatLog import SqliteChatLog
from chat.OpenAIChat import OpenAIChat
from config.Config import Config
from embedding.CivicEmbedder import CivicEmbedder
from health.TestRunner import TestRunner
from loader.CivicDocumentSource import CivicDocumentSource
from retrieval.KeywordScorer import KeywordScorer
from services.CivicChatService import CivicChatService
from services.CivicHealthService import CivicHealthService
from services.CivicIngestService import CivicIngestService
from services.CivicSearchService import CivicSearchService
from services.CivicStatsService import CivicStatsService
from utility.logging_utils import get_class_logger
from vectorstore.ChromaCivicVectorStore import ChromaCivicVectorStore


class AppContainer:
    """
    Owns heavy object instantiation and application wiring.
    Singleton instances are provided via FastAPI dependencies.
    """

    def __init__(self, cfg: Config | None = None) -> None:
        self.logger = get_class_logger(self.__class__)

        # Configuration
        self.cfg = cfg or Config.from_env()
        self.logger.info("Config loaded: %s", self.cfg.summary())

        timeout = settings.REQUEST_TIMEOUT_SECONDS
        embed = settings.EMBED_DEFAULTS
        ingest = settings.INGEST_DEFAULTS
        search = settings.SEARCH_DEFAULTS
        chat = settings.CHAT_DEFAULTS

        # Core infrastructure
        self.source = CivicDocumentSource(self.cfg.document_source_endpoint, timeout=timeout)
        self.embedder = CivicEmbedder(
            self.cfg,
            dimension=embed["dimension"],
            min_content_chars=embed["min_content_chars"],
            max_attempts=embed["max_attempts"],
            rate_limit_attempts=embed["rate_limit_attempts"],
            timeout=timeout,
        )
        self.store = ChromaCivicVectorStore(cfg=self.cfg, store_attempts=ingest["store_attempts"])
        self.openai_chat = OpenAIChat(cfg=self.cfg, timeout=timeout)

        # Chat history (blank path disables it)
        self.chat_log = SqliteChatLog(self.cfg.chat_log_path) if self.cfg.chat_log_path else None

        # Smoke tests / health
        self.test_runner = TestRunner(
            store=self.store,
            embedder=self.embedder,
            source=self.source,
            chat_client=self.openai_chat,
            expected_dim=embed["dimension"],
        )
        self.health_service = CivicHealthService(test_runner=self.test_runner)

        self.ingest_service = CivicIngestService(
            source=self.source,
            embedder=self.embedder,
            store=self.store,
            page_size=settings.SOURCE_PAGE_SIZE,
            max_runtime_seconds=ingest["max_runtime_seconds"],
            max_consecutive_doc_errors=ingest["max_consecutive_doc_errors"],
            max_page_errors=ingest["max_page_errors"],
            page_fetch_attempts=ingest["page_fetch_attempts"],
            doc_delay_seconds=ingest["doc_delay_seconds"],
            doc_delay_step=ingest["doc_delay_step"],
            page_delay_seconds=ingest["page_delay_seconds"],
        )

        self.search_service = CivicSearchService(
            store=self.store,
            embedder=self.embedder,
            scorer=KeywordScorer(),
            max_per_meeting=search["max_per_meeting"],
            text_threshold_factor=search["text_threshold_factor"],
            candidate_pool=search["candidate_pool"],
            fallback_score=search["fallback_score"],
        )

        self.chat_service = CivicChatService(
            search_service=self.search_service,
            chat_client=self.openai_chat,
            chat_log=self.chat_log,
            source=self.source if chat["live_search"] else None,
            live_search_limit=chat["live_search_limit"],
            live_context_results=chat["live_context_results"],
            max_attempts=chat["max_attempts"],
            rate_limit_attempts=chat["rate_limit_attempts"],
            locality=chat["locality"],
            search_threshold=chat["search_threshold"],
            max_context_chars=chat["max_context_chars"],
            temperature=chat["temperature"],
            max_tokens=chat["max_tokens"],
        )

        self.stats_service = CivicStatsService(
            store=self.store,
            source=self.source,
            collection_name=self.store.collection_name,
            page_size=settings.SOURCE_PAGE_SIZE,
        )
