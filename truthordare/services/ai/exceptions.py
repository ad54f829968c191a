"""AI Provider Exception Hierarchy

Structured exception types raised by chat completion providers:
- LLMProviderError: Base class for all provider errors
- RateLimitError: Rate limit exceeded (retryable with backoff)
- ProviderUnavailableError: Provider temporarily unavailable (retryable)
- AuthenticationError: Invalid API credentials
- ContentFilterError: Content blocked by safety filters
- JSONParseError: Completion was not the JSON we asked for

Retryability is decided by truthordare.utils.retry.is_retryable_error,
which checks these types before falling back to message heuristics.
"""

from typing import Optional


class LLMProviderError(Exception):
    """Base exception for all provider errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(LLMProviderError):
    """Raised when the provider rate limit is exceeded (HTTP 429).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        provider: Optional[str] = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"{message}. Retry after: {retry_after}s" if retry_after else message,
            provider=provider,
            status_code=429,
        )


class ProviderUnavailableError(LLMProviderError):
    """Raised when the provider is temporarily unavailable.

    Covers 5xx responses, timeouts and connection failures.
    """

    def __init__(
        self,
        message: str = "Provider temporarily unavailable",
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider=provider, status_code=status_code)


class AuthenticationError(LLMProviderError):
    """Raised when API authentication fails. Not retryable."""

    def __init__(
        self,
        message: str = "API authentication failed",
        provider: Optional[str] = None,
        status_code: Optional[int] = 401,
    ):
        super().__init__(message, provider=provider, status_code=status_code)


class ContentFilterError(LLMProviderError):
    """Raised when content is blocked by safety filters. Not retryable."""

    def __init__(
        self,
        message: str = "Content blocked by safety filters",
        provider: Optional[str] = None,
    ):
        super().__init__(message, provider=provider)


class JSONParseError(LLMProviderError):
    """Completion content could not be parsed into the expected JSON shape."""

    def __init__(self, message: str, content: str = "", provider: Optional[str] = None):
        self.content = content
        super().__init__(message, provider=provider)
