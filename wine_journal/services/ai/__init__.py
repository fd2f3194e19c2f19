"""AI analysis and summary services for Wine Journal."""

from wine_journal.services.ai.analysis import AnalysisOutcome, WineAnalysisService
from wine_journal.services.ai.client import AIClient, AIConfigurationError, AIProvider
from wine_journal.services.ai.normalizer import AnalysisError, normalize_analysis
from wine_journal.services.ai.summary import SummaryError, SummaryService

__all__ = [
    "AIClient",
    "AIConfigurationError",
    "AIProvider",
    "AnalysisError",
    "AnalysisOutcome",
    "SummaryError",
    "SummaryService",
    "WineAnalysisService",
    "normalize_analysis",
]
