"""AI Agents package."""

from devotional.agents.content_agent import (
    ContentGenerationError,
    ContentValidationError,
    GeminiReadingAgent,
    ReadingContentGenerator,
    parse_reading_content,
)

__all__ = [
    "ContentGenerationError",
    "ContentValidationError",
    "GeminiReadingAgent",
    "ReadingContentGenerator",
    "parse_reading_content",
]
