# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-18
# Description: retry_utils.py
# -----------------------------------------------------------------------------
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from utility.errors import RateLimited
from utility.logging_utils import get_logger

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff policy for one call site.

    - max_attempts: total tries for ordinary retryable errors
    - rate_limit_attempts: separate budget for RateLimited (429) errors;
      None means 429s share max_attempts
    - honor_retry_after: sleep for RateLimited.retry_after when the provider sent one
    """
    max_attempts: int = 3
    base_delay: float = 0.8
    factor: float = 1.7
    max_delay: float = 30.0
    jitter: float = 0.25
    honor_retry_after: bool = False
    rate_limit_attempts: Optional[int] = None
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.rate_limit_attempts is not None and self.rate_limit_attempts < 1:
            raise ValueError("rate_limit_attempts must be >= 1")

    def delay_for(
            self,
            attempt: int,
            error: BaseException,
            rng: Callable[[], float] = random.random,
    ) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        if self.honor_retry_after and isinstance(error, RateLimited) and error.retry_after is not None:
            return max(0.0, min(float(error.retry_after), self.max_delay))

        delay = self.base_delay * (self.factor ** (attempt - 1))
        delay = delay * (1.0 + self.jitter * rng())
        return min(delay, self.max_delay)


def with_retry(
        fn: Callable[[], T],
        policy: RetryPolicy,
        *,
        description: str = "operation",
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
        rng: Callable[[], float] = random.random,
) -> T:
    """
    Call fn() until it succeeds or the policy's attempt budget is spent.
    Errors outside policy.retry_on propagate immediately; the last retryable
    error is re-raised once the budget is exhausted.
    """
    logger = logger or get_logger("retry")
    failures = 0
    rate_limited_failures = 0

    while True:
        try:
            return fn()
        except policy.retry_on as e:
            if isinstance(e, RateLimited) and policy.rate_limit_attempts is not None:
                rate_limited_failures += 1
                attempt, budget = rate_limited_failures, policy.rate_limit_attempts
            else:
                failures += 1
                attempt, budget = failures, policy.max_attempts

            if attempt >= budget:
                logger.error(
                    "%s failed after %d attempt(s): %s",
                    description,
                    attempt,
                    e,
                )
                raise

            delay = policy.delay_for(attempt, e, rng)
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                description,
                attempt,
                budget,
                e,
                delay,
            )
            sleep(delay)
