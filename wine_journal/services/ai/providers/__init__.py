"""AI provider implementations."""

from wine_journal.services.ai.providers.anthropic import AnthropicClient
from wine_journal.services.ai.providers.openai import OpenAIClient

__all__ = ["AnthropicClient", "OpenAIClient"]
