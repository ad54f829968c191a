"""OpenAI-compatible chat completion client.

Talks to any provider exposing the OpenAI ``/chat/completions`` contract
(Groq, OpenAI, local gateways). HTTP failures are classified into the
provider exception hierarchy so callers can decide on retries by type.

Usage:
    client = ChatCompletionClient(AISettings())
    if client.is_configured():
        content = await client.complete_json(
            [ChatMessage(role="user", content=prompt)],
            GeneratedContent,
            temperature=0.8,
            max_tokens=2000,
        )
    await client.close()
"""

import asyncio
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

import aiohttp
import structlog

from truthordare.models.config import AISettings
from truthordare.observability.metrics import AI_REQUEST_DURATION, AI_REQUESTS_TOTAL
from truthordare.services.ai.base import ChatMessage, LLMResponse, ModelT
from truthordare.services.ai.exceptions import (
    AuthenticationError,
    ContentFilterError,
    LLMProviderError,
    ProviderUnavailableError,
    RateLimitError,
)
from truthordare.services.ai.response_parser import ResponseParser
from truthordare.utils.exceptions import ProviderUnconfiguredError

logger = structlog.get_logger()

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000


class ChatCompletionClient:
    """Async client for OpenAI-compatible chat completions."""

    name = "openai_compatible"

    def __init__(
        self,
        settings: AISettings,
        parser: Optional[ResponseParser] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client.

        Args:
            settings: API key, URL, model and timeout
            parser: JSON response parser (default: ResponseParser())
            session: Optional shared aiohttp session; created lazily otherwise
        """
        self.settings = settings
        self.parser = parser or ResponseParser()
        self._session = session
        self._owns_session = session is None

    def is_configured(self) -> bool:
        return bool(self.settings.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def complete(
        self,
        messages: List[ChatMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> LLMResponse:
        """Send a chat completion request.

        Args:
            messages: Conversation to send
            temperature: Sampling temperature (default 0.7)
            max_tokens: Completion length cap (default 2000)
            model: Override the configured model for this request

        Returns:
            LLMResponse with the first choice's content

        Raises:
            ProviderUnconfiguredError: If no API key is set
            RateLimitError: On HTTP 429
            AuthenticationError: On HTTP 401/403
            ProviderUnavailableError: On 5xx, timeouts and connection errors
            LLMProviderError: On any other failure
        """
        if not self.is_configured():
            raise ProviderUnconfiguredError("AI client not configured: missing API key")

        payload: Dict[str, Any] = {
            "model": model or self.settings.model,
            "messages": [m.to_dict() for m in messages],
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
            "temperature": (
                temperature if temperature is not None else DEFAULT_TEMPERATURE
            ),
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
        }

        session = await self._get_session()
        start = time.time()

        try:
            async with session.post(
                self.settings.api_url, json=payload, headers=headers
            ) as response:
                body = await response.text()
                if response.status != 200:
                    raise self._classify_status(
                        response.status, body, response.headers.get("Retry-After")
                    )
                data = await response.json(content_type=None)
        except asyncio.TimeoutError:
            AI_REQUESTS_TOTAL.labels(status="failed").inc()
            raise ProviderUnavailableError("AI request timeout", provider=self.name)
        except aiohttp.ClientConnectionError as e:
            AI_REQUESTS_TOTAL.labels(status="failed").inc()
            raise ProviderUnavailableError(
                f"AI request connection error: {e}", provider=self.name
            )
        except aiohttp.ClientError as e:
            AI_REQUESTS_TOTAL.labels(status="failed").inc()
            raise LLMProviderError(f"HTTP request failed: {e}", provider=self.name)
        except RateLimitError:
            AI_REQUESTS_TOTAL.labels(status="rate_limited").inc()
            raise
        except LLMProviderError:
            AI_REQUESTS_TOTAL.labels(status="failed").inc()
            raise

        latency = time.time() - start
        AI_REQUEST_DURATION.observe(latency)
        AI_REQUESTS_TOTAL.labels(status="success").inc()

        llm_response = self._build_response(data, payload["model"], latency * 1000)

        logger.debug(
            "ai_completion_success",
            model=llm_response.model,
            input_tokens=llm_response.input_tokens,
            output_tokens=llm_response.output_tokens,
            latency_ms=round(llm_response.latency_ms, 1),
        )

        return llm_response

    async def complete_json(
        self,
        messages: List[ChatMessage],
        target: Type[ModelT],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelT:
        """Send a completion request and parse the reply as ``target``.

        Raises:
            JSONParseError: If the reply is not valid JSON for ``target``
        """
        response = await self.complete(
            messages, temperature=temperature, max_tokens=max_tokens
        )
        return self.parser.parse(response.content, target)

    def _build_response(
        self, data: Dict[str, Any], model: str, latency_ms: float
    ) -> LLMResponse:
        choices = data.get("choices") or []
        first = choices[0] if choices else {}
        usage = data.get("usage") or {}

        return LLMResponse(
            content=(first.get("message") or {}).get("content") or "",
            input_tokens=int(usage.get("prompt_tokens", 0)),
            output_tokens=int(usage.get("completion_tokens", 0)),
            model=data.get("model") or model,
            latency_ms=latency_ms,
            finish_reason=first.get("finish_reason"),
            timestamp=datetime.utcnow(),
        )

    def _classify_status(
        self, status: int, body: str, retry_after_header: Optional[str]
    ) -> LLMProviderError:
        """Map a non-200 response to a provider exception."""
        message = f"AI API error (status {status}): {body[:500]}"

        if status == 429:
            return RateLimitError(
                message,
                retry_after=self._parse_retry_after(retry_after_header),
                provider=self.name,
            )
        if status in (401, 403):
            return AuthenticationError(message, provider=self.name, status_code=status)
        if status >= 500:
            return ProviderUnavailableError(
                message, provider=self.name, status_code=status
            )

        lowered = body.lower()
        if "content_filter" in lowered or "content policy" in lowered:
            return ContentFilterError(message, provider=self.name)

        return LLMProviderError(message, provider=self.name, status_code=status)

    @staticmethod
    def _parse_retry_after(value: Optional[str]) -> Optional[float]:
        if not value:
            return None
        try:
            return float(value)
        except ValueError:
            return None
