"""AI routes: label photo analysis and tasting summaries.

Both operations call a paid model and share the per-user "ai" rate limit.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from wine_journal.core.schema import SummaryRequest
from wine_journal.services.ai.analysis import AnalysisOutcome
from wine_journal.services.ai.client import AIConfigurationError
from wine_journal.services.ai.summary import SummaryError
from wine_journal.web.dependencies import AnalysisServiceDep, SummaryServiceDep, rate_limited

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])


class AnalyzePhotoRequest(BaseModel):
    """Body of a photo analysis request."""

    photo_base64: str | None = Field(default=None, alias="photoBase64")


def outcome_response(outcome: AnalysisOutcome) -> JSONResponse:
    """Render an analysis outcome; failures still carry a fallback analysis."""
    if outcome.success:
        return JSONResponse({"success": True, "analysis": outcome.analysis.to_api()})

    return JSONResponse(
        status_code=outcome.status_code,
        content={
            "success": False,
            "error": outcome.error_message,
            "analysis": outcome.analysis.to_api(),
        },
    )


@router.post("/api/analyze-wine")
def analyze_wine(
    body: AnalyzePhotoRequest,
    service: AnalysisServiceDep,
    user_id: str = Depends(rate_limited("ai")),
) -> JSONResponse:
    """
    Identify a wine from a label photo.

    Args:
        body: JSON with ``photoBase64``, a data URL or bare base64 image.

    Returns:
        ``{"success": true, "analysis": ...}``, or on failure a fallback
        analysis with ``success: false`` and an error message.
    """
    if not body.photo_base64:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Photo data is required"},
        )

    try:
        outcome = service.analyze_photo(body.photo_base64)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    return outcome_response(outcome)


@router.post("/api/ai/summary")
def summarize_wine(
    body: SummaryRequest,
    service: SummaryServiceDep,
    user_id: str = Depends(rate_limited("ai")),
) -> JSONResponse:
    """Generate a summary, descriptor tags and food pairings for a wine."""
    try:
        summary = service.generate(body)
    except AIConfigurationError:
        return JSONResponse(status_code=503, content={"error": "AI summaries are not configured"})
    except SummaryError as e:
        return JSONResponse(status_code=502, content={"error": str(e)})
    except Exception as e:
        logger.error(f"AI summary failed for user {user_id}: {e}")
        return JSONResponse(status_code=502, content={"error": "AI summary failed"})

    return JSONResponse(summary.model_dump(by_alias=True))
