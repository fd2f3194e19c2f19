"""OpenAI AI provider implementation."""

import logging

from wine_journal.core.schema import SummaryRequest
from wine_journal.services.ai.client import AIClient, AIProvider
from wine_journal.services.ai.prompts import (
    LABEL_ANALYSIS_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    build_summary_prompt,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
LABEL_MAX_TOKENS = 1000


class OpenAIClient(AIClient):
    """OpenAI GPT AI client."""

    provider = AIProvider.OPENAI

    def __init__(self, api_key: str, model: str | None = None):
        """
        Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key.
            model: Model name (defaults to gpt-4o-mini).
        """
        import openai

        self.client = openai.OpenAI(api_key=api_key)
        self.model = model or DEFAULT_MODEL

    def analyze_label(self, image_data: str, media_type: str) -> str:
        """Send the label photo as a data URL and return the text reply."""
        logger.info(f"Sending {media_type} label photo to {self.model} ({len(image_data)} base64 chars)")
        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=LABEL_MAX_TOKENS,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{media_type};base64,{image_data}"},
                        },
                        {"type": "text", "text": LABEL_ANALYSIS_PROMPT},
                    ],
                }
            ],
        )
        return response.choices[0].message.content or ""

    def summarize(self, request: SummaryRequest) -> str:
        """Ask GPT for a JSON tasting summary."""
        response = self.client.chat.completions.create(
            model=self.model,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                {"role": "user", "content": build_summary_prompt(request)},
            ],
        )
        return response.choices[0].message.content or ""
