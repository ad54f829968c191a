"""Content provider interface.

This module defines:
- ChatMessage: one chat turn sent to the provider
- LLMResponse: normalized completion response
- ContentProvider: the protocol the generation job depends on
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ChatMessage:
    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Standardized completion response.

    Attributes:
        content: The generated text content
        input_tokens: Number of prompt tokens consumed
        output_tokens: Number of completion tokens generated
        model: The model identifier used
        latency_ms: Request latency in milliseconds
        finish_reason: Why generation stopped (stop, length, etc.)
        timestamp: When the response was received
    """

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float
    finish_reason: Optional[str] = None
    timestamp: Optional[datetime] = None

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@runtime_checkable
class ContentProvider(Protocol):
    """What the generation job needs from an AI provider."""

    def is_configured(self) -> bool:
        """True when the provider has credentials to make calls."""
        ...

    async def complete_json(
        self,
        messages: List[ChatMessage],
        target: Type[ModelT],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelT:
        """Run a completion and parse the reply into ``target``.

        Raises:
            LLMProviderError: or a subclass, on any failure
        """
        ...
