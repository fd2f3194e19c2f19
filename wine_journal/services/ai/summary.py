"""Tasting summary service: wine details in, AISummary out."""

import json
import logging

from wine_journal.core.schema import AISummary, SummaryRequest
from wine_journal.services.ai.client import AIClient, client_from_env
from wine_journal.services.ai.normalizer import extract_json_object

logger = logging.getLogger(__name__)


class SummaryError(Exception):
    """The model returned no usable summary."""


class SummaryService:
    """Generates sommelier-style summaries for journal wines."""

    def __init__(self, ai_client: AIClient | None = None):
        self._ai_client = ai_client

    @property
    def ai_client(self) -> AIClient:
        """Get or create the AI client from environment variables."""
        if self._ai_client is None:
            self._ai_client = client_from_env()
        return self._ai_client

    def generate(self, request: SummaryRequest) -> AISummary:
        """
        Generate a summary, tags and food pairings for a wine.

        Args:
            request: Wine details and tasting notes.

        Returns:
            The validated summary.

        Raises:
            AIConfigurationError: If no API key is configured.
            SummaryError: If the reply is empty, not JSON, or fails validation.
        """
        raw_response = self.ai_client.summarize(request)
        if not raw_response or not raw_response.strip():
            raise SummaryError("No response from AI")

        block = extract_json_object(raw_response)
        if block is None:
            raise SummaryError("AI response did not contain a JSON object")

        # ValidationError and JSONDecodeError are both ValueErrors
        try:
            return AISummary.model_validate(json.loads(block))
        except (ValueError, RecursionError) as e:
            logger.warning(f"Invalid summary from {self.ai_client.model}: {e}")
            raise SummaryError(f"Invalid summary: {e}") from e
