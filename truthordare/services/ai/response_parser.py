"""Response Parser Module

Turns raw completion text into validated pydantic models:
- Strips markdown code fences around JSON
- Parses JSON
- Validates against the expected schema
"""

import json
from typing import Any, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from truthordare.services.ai.exceptions import JSONParseError

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


class ResponseParser:
    """Parses completion content into a target model."""

    def parse(self, content: str, target: Type[ModelT]) -> ModelT:
        """Parse completion content into ``target``.

        Args:
            content: Raw completion text
            target: Pydantic model class describing the expected JSON

        Returns:
            Validated model instance

        Raises:
            JSONParseError: If content is not valid JSON or fails validation
        """
        cleaned = self._clean_json_content(content)
        data = self._parse_json(cleaned)

        try:
            return target.model_validate(data)
        except ValidationError as e:
            raise JSONParseError(
                f"AI response does not match {target.__name__}: {e}",
                content=cleaned[:500],
            )

    def _clean_json_content(self, content: str) -> str:
        content = content.strip()

        if content.startswith("```json"):
            content = content[7:]
        elif content.startswith("```"):
            content = content[3:]

        if content.endswith("```"):
            content = content[:-3]

        return content.strip()

    def _parse_json(self, content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.debug("ai_response_not_json", error=str(e), length=len(content))
            raise JSONParseError(
                f"failed to parse AI response as JSON: {e}",
                content=content[:500],
            )
