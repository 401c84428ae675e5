# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-01-09
# Updated: 2026-10-18
# Description: settings.py
# -----------------------------------------------------------------------------
import os
from typing import Any, Dict


def _env(name: str, default: str = "") -> str:
    """Read env var safely and strip whitespace."""
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be an int, got {v!r}") from e


def _env_float(name: str, default: float) -> float:
    v = _env(name, "")
    if v == "":
        return default
    try:
        return float(v)
    except ValueError as e:
        raise RuntimeError(f"Env var {name} must be a float, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, "")
    if v == "":
        return default
    v = v.lower()
    if v in ("1", "true", "t", "yes", "y", "on"):
        return True
    if v in ("0", "false", "f", "no", "n", "off"):
        return False
    raise RuntimeError(f"Env var {name} must be a boolean, got {v!r}")


# -----------------------------------------------------------------------------
# External calls
# -----------------------------------------------------------------------------
REQUEST_TIMEOUT_SECONDS = _env_float("CIVIC_REQUEST_TIMEOUT_SECONDS", 15.0)
SOURCE_PAGE_SIZE = _env_int("CIVIC_SOURCE_PAGE_SIZE", 20)


# -----------------------------------------------------------------------------
# Embeddings
# -----------------------------------------------------------------------------
EMBED_DEFAULTS: Dict[str, Any] = {
    "dimension": _env_int("CIVIC_EMBED_DIMENSION", 1536),
    "min_content_chars": _env_int("CIVIC_MIN_CONTENT_CHARS", 50),
    # provider errors (5xx, timeouts) vs 429 responses
    "max_attempts": _env_int("CIVIC_EMBED_MAX_ATTEMPTS", 3),
    "rate_limit_attempts": _env_int("CIVIC_EMBED_RATE_LIMIT_ATTEMPTS", 5),
}


# -----------------------------------------------------------------------------
# Ingestion (batch-process) defaults
# -----------------------------------------------------------------------------
INGEST_DEFAULTS: Dict[str, Any] = {
    "batch_size": _env_int("CIVIC_INGEST_BATCH_SIZE", 10),
    # hosting platforms typically kill functions at 10 minutes
    "max_runtime_seconds": _env_float("CIVIC_INGEST_MAX_RUNTIME_SECONDS", 540.0),
    "max_consecutive_doc_errors": _env_int("CIVIC_INGEST_MAX_DOC_ERRORS", 10),
    "max_page_errors": _env_int("CIVIC_INGEST_MAX_PAGE_ERRORS", 5),
    "page_fetch_attempts": _env_int("CIVIC_INGEST_PAGE_FETCH_ATTEMPTS", 3),
    "store_attempts": _env_int("CIVIC_STORE_MAX_ATTEMPTS", 3),
    "doc_delay_seconds": _env_float("CIVIC_INGEST_DOC_DELAY_SECONDS", 0.1),
    "doc_delay_step": _env_int("CIVIC_INGEST_DOC_DELAY_STEP", 25),
    "page_delay_seconds": _env_float("CIVIC_INGEST_PAGE_DELAY_SECONDS", 0.5),
}


# -----------------------------------------------------------------------------
# Search defaults
# -----------------------------------------------------------------------------
SEARCH_DEFAULTS: Dict[str, Any] = {
    "limit": _env_int("CIVIC_SEARCH_LIMIT", 5),
    "threshold": _env_float("CIVIC_SEARCH_THRESHOLD", 0.8),
    "text_threshold_factor": _env_float("CIVIC_TEXT_THRESHOLD_FACTOR", 0.6),
    "max_per_meeting": _env_int("CIVIC_MAX_RESULTS_PER_MEETING", 2),
    "candidate_pool": _env_int("CIVIC_SEARCH_CANDIDATE_POOL", 50),
    "fallback_score": _env_float("CIVIC_FALLBACK_SCORE", 0.5),
}


# -----------------------------------------------------------------------------
# Chat defaults
# -----------------------------------------------------------------------------
CHAT_DEFAULTS: Dict[str, Any] = {
    "max_context_results": _env_int("CIVIC_CHAT_MAX_CONTEXT_RESULTS", 3),
    "search_threshold": _env_float("CIVIC_CHAT_SEARCH_THRESHOLD", 0.7),
    "temperature": _env_float("CIVIC_CHAT_TEMPERATURE", 0.3),
    "max_tokens": _env_int("CIVIC_CHAT_MAX_TOKENS", 1500),
    "max_context_chars": _env_int("CIVIC_MAX_CONTEXT_CHARS", 12000),
    "locality": _env("CIVIC_LOCALITY", "La Cañada Flintridge, California"),
    # generation retries: provider errors vs 429 responses
    "max_attempts": _env_int("CIVIC_CHAT_MAX_ATTEMPTS", 3),
    "rate_limit_attempts": _env_int("CIVIC_CHAT_RATE_LIMIT_ATTEMPTS", 5),
    # live civic API search merged ahead of stored context
    "live_search": _env_bool("CIVIC_CHAT_LIVE_SEARCH", True),
    "live_search_limit": _env_int("CIVIC_CHAT_LIVE_SEARCH_LIMIT", 10),
    "live_context_results": _env_int("CIVIC_CHAT_LIVE_CONTEXT_RESULTS", 5),
}

# Chat requires an authenticated caller unless switched off for local runs
CHAT_REQUIRE_AUTH = _env_bool("CIVIC_CHAT_REQUIRE_AUTH", True)


# -----------------------------------------------------------------------------
# Sanity checks (tunable)
# -----------------------------------------------------------------------------
if INGEST_DEFAULTS["max_runtime_seconds"] <= 0:
    raise RuntimeError("CIVIC_INGEST_MAX_RUNTIME_SECONDS must be positive")

if not 0.0 < SEARCH_DEFAULTS["text_threshold_factor"] <= 1.0:
    raise RuntimeError("CIVIC_TEXT_THRESHOLD_FACTOR must be in (0, 1]")
