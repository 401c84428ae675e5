# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-12-20
# Updated: 2026-10-18
# Description: CivicHealthService.py
# -----------------------------------------------------------------------------
from dataclasses import dataclass

from api.schemas.health import DeepHealthResponse, SmokeTestSummary
from health.TestRunner import TestRunner


@dataclass
class CivicHealthService:
    """
    Wraps TestRunner class which operates smoke tests
    on the store, embedding provider, civic data API and chat model.
    Returns DeepHealthResponse for API layer
    """

    test_runner: TestRunner

    def deep_health(self, run_chat: bool = False) -> DeepHealthResponse:
        results = self.test_runner.run_all(run_chat=run_chat)

        total = len(results)
        passed = sum(1 for ok in results.values() if ok)
        failed = total - passed

        overall_status = "ok" if failed == 0 else "error"

        return DeepHealthResponse(
            status=overall_status,
            results=results,
            summary=SmokeTestSummary(total=total, passed=passed, failed=failed),
        )
