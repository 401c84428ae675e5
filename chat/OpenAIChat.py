# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-22
# Updated: 2026-10-18
# Description: OpenAIChat
# -----------------------------------------------------------------------------
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from utility.errors import ProviderError, RateLimited
from utility.logging_utils import get_class_logger

Message = Dict[str, str]  # {"role": "system"|"user"|"assistant", "content": "..."}


def _retry_after_seconds(response: Any) -> Optional[float]:
    headers = getattr(response, "headers", None) or {}
    value = headers.get("retry-after") if hasattr(headers, "get") else None
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass
class OpenAIChat:
    """
        OpenAI chat wrapper for the civic assistant.

        Expected Config fields:
          cfg.openai_api_key: str
          cfg.openai_base_url: str | None (optional)
          cfg.openai_chat_model: str  (e.g. "gpt-4.1-2025-04-14", "gpt-4o-mini")

        Provider failures come back as RateLimited (429) or ProviderError
        (anything else); the caller decides whether to degrade or surface them.
    """

    cfg: Any
    client: Any = None
    timeout: float = 15.0
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

        if not getattr(self.cfg, "openai_api_key", None):
            raise ValueError("Config is missing openai_api_key")

        self.model = getattr(self.cfg, "openai_chat_model", None)
        if not self.model:
            raise ValueError("Config missing openai_chat_model.")

        self.client = self.client or OpenAI(
            api_key=self.cfg.openai_api_key,
            base_url=getattr(self.cfg, "openai_base_url", None) or None,
            timeout=self.timeout,
            max_retries=0,
        )

        self.logger.info("OpenAIChat initialised (model=%s)", self.model)

    # Standard chat call
    def chat(
            self,
            messages: List[Message],
            temperature: float = 0.3,
            max_tokens: int = 1500,
            extra_params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not messages:
            raise ValueError("messages must be non-empty.")

        params: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if extra_params:
            params.update(extra_params)

        self.logger.debug(
            "Chat request: model=%s temp=%s max_tokens=%s",
            self.model, temperature, max_tokens
        )

        try:
            resp = self.client.chat.completions.create(**params)
        except openai.RateLimitError as e:
            raise RateLimited(
                f"Chat provider rate limited: {e}",
                retry_after=_retry_after_seconds(getattr(e, "response", None)),
            ) from e
        except openai.APIStatusError as e:
            raise ProviderError(
                f"Chat provider error {e.status_code}: {getattr(e, 'body', None) or e}",
                status_code=e.status_code,
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderError(f"Chat provider unreachable: {e}") from e

        self.logger.debug("Raw ChatCompletion response: %r", resp)
        return resp

    # Convenience helper
    def simple_chat(
            self,
            user_text: str,
            system_text: Optional[str] = None,
            **kwargs: Any,
    ) -> dict:
        messages: List[Message] = []
        if system_text:
            messages.append({"role": "system", "content": system_text})
        messages.append({"role": "user", "content": user_text})

        resp = self.chat(messages, **kwargs)

        try:
            content = resp.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as e:
            self.logger.error("Unexpected chat response format: %s", e, exc_info=True)
            raise ProviderError(f"Unexpected chat response format: {e}") from e

        self.logger.info("Chat answer generated (model=%s)", getattr(resp, "model", None))
        self.logger.debug("Token usage: %r", getattr(resp, "usage", None))

        return {
            "answer": content,
            "usage": getattr(resp, "usage", None),
            "model": getattr(resp, "model", None),
        }

    def healthcheck(self) -> bool:
        try:
            _ = self.simple_chat("ping", max_tokens=5, temperature=0.0)
            return True
        except Exception as e:
            self.logger.warning("Chat healthcheck failed: %s", e)
            return False
