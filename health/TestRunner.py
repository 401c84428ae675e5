# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-07
# Updated: 2026-10-18
# Description: TestRunner
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from utility.logging_utils import get_class_logger


class TestRunner:
    """
    Orchestrates all smoke tests and reports a consolidated result.

    Tests included:
      - store_health     (vector store reachable)
      - embedding_health (embedding round-trip with the expected dimension)
      - source_health    (civic data API serves page 1)
      - openai_health    (chat ping, only when run_chat=True)
    """

    __test__ = False  # not a pytest class

    def __init__(
        self,
        *,
        store: Any,
        embedder: Any,
        source: Any = None,
        chat_client: Any = None,
        expected_dim: Optional[int] = 1536,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.embedder = embedder
        self.source = source
        self.chat_client = chat_client
        self.expected_dim = expected_dim
        self.logger = logger or get_class_logger(self.__class__)

        self.logger.info("Initialising SmokeTestRunner")

    # -------------------------------------------------------------------------
    def run_all(self, run_chat: bool = False) -> Dict[str, bool]:
        """
        Run all configured smoke tests.

        :param run_chat: If True, also pings the chat model (costs a completion).
        :return: Dict mapping test names to True/False.
        """
        self.logger.info("Starting smoke test suite (run_chat=%s)", run_chat)

        results: Dict[str, bool] = {}

        self._run(results, "store_health", self.store.test_connection)
        self._run(results, "embedding_health", self._check_embedding)

        if self.source is not None:
            self._run(results, "source_health", self._check_source)

        if run_chat and self.chat_client is not None:
            self._run(results, "openai_health", self.chat_client.healthcheck)

        self._log_summary(results)
        return results

    def _run(self, results: Dict[str, bool], name: str, check: Callable[[], bool]) -> None:
        try:
            self.logger.info("Running %s", name)
            ok = bool(check())
        except Exception as e:
            self.logger.exception("%s raised an exception: %s", name, e)
            ok = False
        results[name] = ok
        self._log_result(name, ok)

    def _check_embedding(self) -> bool:
        vec = self.embedder.embed_query("Civic meeting embedding healthcheck")
        if self.expected_dim is not None and len(vec) != self.expected_dim:
            self.logger.error(
                "Embedding dimension mismatch: expected %d, got %d",
                self.expected_dim,
                len(vec),
            )
            return False
        return len(vec) > 0

    def _check_source(self) -> bool:
        self.source.fetch_page(1, 1)
        return True

    # -------------------------------------------------------------------------
    def _log_result(self, name: str, ok: bool) -> None:
        if ok:
            self.logger.info("%s: PASS", name)
        else:
            self.logger.error("%s: FAIL", name)

    def _log_summary(self, results: Dict[str, bool]) -> None:
        total = len(results)
        passed = sum(1 for v in results.values() if v)
        failed = total - passed

        self.logger.info("Smoke test summary: %d total, %d passed, %d failed", total, passed, failed)

        for name, ok in results.items():
            status = "PASS" if ok else "FAIL"
            self.logger.info("  %s: %s", name, status)
