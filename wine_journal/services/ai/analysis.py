"""Photo analysis service: label photo in, WineAnalysis out."""

import logging
import re
from dataclasses import dataclass

from wine_journal.core.enums import AnalysisErrorKind, ImageMediaType
from wine_journal.core.schema import WineAnalysis
from wine_journal.services.ai.client import AIClient, AIConfigurationError, client_from_env
from wine_journal.services.ai.normalizer import (
    classify_error,
    configuration_error_analysis,
    error_message,
    error_status_code,
    fallback_analysis,
    parse_analysis,
)

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/([a-zA-Z0-9.+-]+);base64,")

# Data URL image subtypes accepted by the providers
_MEDIA_TYPES = {
    "jpeg": ImageMediaType.JPEG,
    "jpg": ImageMediaType.JPEG,
    "png": ImageMediaType.PNG,
    "gif": ImageMediaType.GIF,
    "webp": ImageMediaType.WEBP,
}


@dataclass
class AnalysisOutcome:
    """Result of analyzing a label photo; ``analysis`` is always set."""

    success: bool
    analysis: WineAnalysis
    status_code: int = 200
    error_kind: AnalysisErrorKind | None = None
    error_message: str | None = None


def split_photo_data(photo_base64: str) -> tuple[str, ImageMediaType]:
    """
    Separate a photo payload into raw base64 data and its media type.

    Args:
        photo_base64: A ``data:image/<format>;base64,`` URL or bare base64.

    Returns:
        Tuple of (base64 data, media type). Bare base64 is assumed to be JPEG.

    Raises:
        ValueError: If the data URL names an unsupported image format.
    """
    match = _DATA_URL_PREFIX.match(photo_base64)
    if match is None:
        return photo_base64.strip(), ImageMediaType.JPEG

    image_format = match.group(1).lower()
    media_type = _MEDIA_TYPES.get(image_format)
    if media_type is None:
        raise ValueError(f"Unsupported image format: {image_format}")

    return photo_base64[match.end():].strip(), media_type


class WineAnalysisService:
    """Runs label photos through the vision model and normalizes the reply."""

    def __init__(self, ai_client: AIClient | None = None):
        """
        Initialize the analysis service.

        Args:
            ai_client: Optional pre-configured AI client. If not provided,
                      one is created from environment variables on first use.
        """
        self._ai_client = ai_client

    def _get_client(self) -> AIClient:
        if self._ai_client is None:
            self._ai_client = client_from_env()
        return self._ai_client

    def analyze_photo(self, photo_base64: str) -> AnalysisOutcome:
        """
        Analyze a wine label photo.

        Upstream and parsing failures never raise; they produce a fallback
        analysis along with the HTTP status and message to report.

        Args:
            photo_base64: Photo as a data URL or bare base64 string.

        Returns:
            AnalysisOutcome with the analysis or a fallback placeholder.

        Raises:
            ValueError: If the photo is empty or in an unsupported format.
        """
        if not photo_base64 or not photo_base64.strip():
            raise ValueError("Photo data is required")

        image_data, media_type = split_photo_data(photo_base64)
        if not image_data:
            raise ValueError("Photo data is required")

        try:
            client = self._get_client()
        except AIConfigurationError as e:
            logger.error(f"Wine analysis is not configured: {e}")
            return AnalysisOutcome(
                success=False,
                analysis=configuration_error_analysis(),
                status_code=500,
                error_message="Wine analysis is not configured. Please contact support.",
            )

        logger.info(f"Starting wine photo analysis ({media_type.value}, {len(image_data)} chars)")
        try:
            raw_response = client.analyze_label(image_data, media_type.value)
            logger.debug(f"Raw analysis response: {raw_response[:1000]}")
            analysis = parse_analysis(raw_response)
        except Exception as e:
            kind = classify_error(e)
            message = error_message(kind, detail=str(e))
            if kind in (AnalysisErrorKind.NO_STRUCTURED_CONTENT, AnalysisErrorKind.MALFORMED_JSON):
                logger.warning(f"Could not parse wine analysis: {e}")
            else:
                logger.error(f"Wine analysis failed ({kind.value}): {e}")
            return AnalysisOutcome(
                success=False,
                analysis=fallback_analysis(kind, detail=str(e)),
                status_code=error_status_code(kind),
                error_kind=kind,
                error_message=message,
            )

        logger.info(
            f"Wine analysis complete: wine_name='{analysis.wine_name}', "
            f"confidence={analysis.confidence}"
        )
        return AnalysisOutcome(success=True, analysis=analysis)
