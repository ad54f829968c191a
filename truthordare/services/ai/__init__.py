"""AI content provider package."""

from truthordare.services.ai.base import ChatMessage, ContentProvider, LLMResponse
from truthordare.services.ai.client import ChatCompletionClient
from truthordare.services.ai.exceptions import (
    AuthenticationError,
    ContentFilterError,
    JSONParseError,
    LLMProviderError,
    ProviderUnavailableError,
    RateLimitError,
)
from truthordare.services.ai.response_parser import ResponseParser

__all__ = [
    "ChatMessage",
    "ContentProvider",
    "LLMResponse",
    "ChatCompletionClient",
    "ResponseParser",
    "LLMProviderError",
    "RateLimitError",
    "ProviderUnavailableError",
    "AuthenticationError",
    "ContentFilterError",
    "JSONParseError",
]
