"""Tests for ResponseParser."""

from typing import List

import pytest
from pydantic import BaseModel

from truthordare.models.content import GeneratedContent
from truthordare.services.ai.exceptions import JSONParseError
from truthordare.services.ai.response_parser import ResponseParser


class StrictShape(BaseModel):
    items: List[str]


@pytest.fixture
def parser():
    return ResponseParser()


class TestParse:
    """Tests for ResponseParser.parse()."""

    def test_plain_json(self, parser):
        """Test plain JSON parses into the target model."""
        result = parser.parse('{"truths": ["a"], "dares": ["b"]}', GeneratedContent)

        assert result == GeneratedContent(truths=["a"], dares=["b"])

    @pytest.mark.parametrize(
        "content",
        [
            '```json\n{"truths": ["a"]}\n```',
            '```\n{"truths": ["a"]}\n```',
            '  \n{"truths": ["a"]}\n  ',
        ],
    )
    def test_strips_fences_and_whitespace(self, parser, content):
        """Test markdown fences and whitespace are removed."""
        result = parser.parse(content, GeneratedContent)

        assert result.truths == ["a"]
        assert result.dares == []

    def test_invalid_json(self, parser):
        """Test invalid JSON raises JSONParseError with the content."""
        with pytest.raises(JSONParseError) as exc_info:
            parser.parse("not json at all", GeneratedContent)

        assert exc_info.value.content == "not json at all"

    def test_schema_mismatch(self, parser):
        """Test JSON of the wrong shape raises JSONParseError."""
        with pytest.raises(JSONParseError, match="does not match StrictShape"):
            parser.parse('{"other": 1}', StrictShape)

    def test_content_truncated_in_error(self, parser):
        """Test the stored content is capped at 500 characters."""
        with pytest.raises(JSONParseError) as exc_info:
            parser.parse("x" * 2000, GeneratedContent)

        assert len(exc_info.value.content) == 500
