"""Anthropic (Claude) AI provider implementation."""

import logging

from wine_journal.core.schema import SummaryRequest
from wine_journal.services.ai.client import AIClient, AIProvider
from wine_journal.services.ai.prompts import (
    LABEL_ANALYSIS_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    build_summary_prompt,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
LABEL_MAX_TOKENS = 1000
SUMMARY_MAX_TOKENS = 1024


class AnthropicClient(AIClient):
    """Anthropic Claude AI client."""

    provider = AIProvider.ANTHROPIC

    def __init__(self, api_key: str, model: str | None = None):
        """
        Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key.
            model: Model name (defaults to claude-sonnet-4-20250514).
        """
        import anthropic

        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model or DEFAULT_MODEL

    def analyze_label(self, image_data: str, media_type: str) -> str:
        """Send the label photo to Claude and return the text reply."""
        logger.info(f"Sending {media_type} label photo to {self.model} ({len(image_data)} base64 chars)")
        response = self.client.messages.create(
            model=self.model,
            max_tokens=LABEL_MAX_TOKENS,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": media_type,
                                "data": image_data,
                            },
                        },
                        {"type": "text", "text": LABEL_ANALYSIS_PROMPT},
                    ],
                }
            ],
        )
        return _first_text(response)

    def summarize(self, request: SummaryRequest) -> str:
        """Ask Claude for a JSON tasting summary."""
        response = self.client.messages.create(
            model=self.model,
            max_tokens=SUMMARY_MAX_TOKENS,
            system=SUMMARY_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": build_summary_prompt(request)}],
        )
        return _first_text(response)


def _first_text(response) -> str:
    """Return the text of the first text block in a messages response."""
    for block in response.content:
        if getattr(block, "type", "text") == "text":
            return block.text
    return ""
