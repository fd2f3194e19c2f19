"""AI client interface and provider abstraction."""

import logging
import os
from abc import ABC, abstractmethod
from enum import Enum

from wine_journal.core.schema import SummaryRequest

logger = logging.getLogger(__name__)

# Placeholder values shipped in .env.example that do not count as configured
_PLACEHOLDER_KEYS = {"your-anthropic-api-key-here", "your-openai-api-key-here"}


class AIProvider(str, Enum):
    """Supported AI providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class AIConfigurationError(Exception):
    """Raised when no usable API key is configured for the selected provider."""


class AIClient(ABC):
    """Abstract base class for AI providers."""

    provider: AIProvider
    model: str

    @abstractmethod
    def analyze_label(self, image_data: str, media_type: str) -> str:
        """
        Ask the vision model to describe a wine label photo.

        Args:
            image_data: Base64-encoded image bytes, without a data URL prefix.
            media_type: Image MIME type, e.g. "image/jpeg".

        Returns:
            The model's raw text reply.

        Raises:
            Exception: Whatever the provider SDK raises on API failure.
        """
        pass

    @abstractmethod
    def summarize(self, request: SummaryRequest) -> str:
        """
        Ask the model for a JSON tasting summary.

        Args:
            request: Wine details and notes.

        Returns:
            The model's raw text reply, expected to hold a JSON object.
        """
        pass


def get_ai_client(
    provider: AIProvider | str,
    api_key: str,
    model: str | None = None,
) -> AIClient:
    """
    Factory function to get an AI client for the specified provider.

    Args:
        provider: The AI provider to use.
        api_key: The API key for the provider.
        model: Optional model name override.

    Returns:
        An AIClient instance for the specified provider.

    Raises:
        ValueError: If the provider is not supported.
    """
    if isinstance(provider, str):
        provider = AIProvider(provider.lower())

    if provider == AIProvider.ANTHROPIC:
        from wine_journal.services.ai.providers.anthropic import AnthropicClient

        return AnthropicClient(api_key=api_key, model=model)
    elif provider == AIProvider.OPENAI:
        from wine_journal.services.ai.providers.openai import OpenAIClient

        return OpenAIClient(api_key=api_key, model=model)
    else:
        raise ValueError(f"Unsupported AI provider: {provider}")


def configured_api_key(provider: AIProvider | str) -> str | None:
    """Return the API key for ``provider`` from the environment, if one is set."""
    provider = AIProvider(provider.lower()) if isinstance(provider, str) else provider
    env_var = "ANTHROPIC_API_KEY" if provider == AIProvider.ANTHROPIC else "OPENAI_API_KEY"
    api_key = os.environ.get(env_var, "").strip()
    if not api_key or api_key in _PLACEHOLDER_KEYS:
        return None
    return api_key


def client_from_env() -> AIClient:
    """
    Create an AI client from environment variables.

    Reads AI_PROVIDER (default "anthropic"), AI_MODEL and the provider's
    API key variable.

    Raises:
        AIConfigurationError: If AI_PROVIDER is unsupported or the provider's
            API key is not set.
    """
    provider_name = os.environ.get("AI_PROVIDER", "anthropic").lower()
    try:
        provider = AIProvider(provider_name)
    except ValueError:
        raise AIConfigurationError(f"Unsupported AI_PROVIDER: {provider_name}") from None
    model = os.environ.get("AI_MODEL") or None

    api_key = configured_api_key(provider)
    if api_key is None:
        env_var = "ANTHROPIC_API_KEY" if provider == AIProvider.ANTHROPIC else "OPENAI_API_KEY"
        logger.error(f"{env_var} is not configured")
        raise AIConfigurationError(f"{env_var} environment variable is required")

    return get_ai_client(provider=provider, api_key=api_key, model=model)
