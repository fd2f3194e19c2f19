"""JSON routes for a user's wines and tastings."""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from wine_journal.core.schema import Tasting, TastingCreate, Wine, WineCreate
from wine_journal.core.search import parse_wine_search
from wine_journal.db.engine import get_db
from wine_journal.db.repositories import TastingRepository, WineRepository
from wine_journal.web.dependencies import AnalysisServiceDep, CurrentUserDep, rate_limited
from wine_journal.web.routes.analysis import AnalyzePhotoRequest, outcome_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["wines"])

_WINE_NOT_FOUND = {"error": "Wine not found"}


def wine_to_api(wine: Wine) -> dict[str, Any]:
    """Serialize a wine for the list and detail views."""
    data = wine.model_dump(mode="json")
    data["has_label"] = wine.has_label
    data["has_analysis"] = wine.has_analysis
    return data


def tasting_to_api(tasting: Tasting) -> dict[str, Any]:
    return tasting.model_dump(mode="json")


def _require_wine(repo: WineRepository, wine_id: UUID) -> Wine:
    wine = repo.get_by_id(wine_id)
    if wine is None:
        raise HTTPException(status_code=404, detail=_WINE_NOT_FOUND)
    return wine


@router.get("/wines")
def list_wines(
    request: Request,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """
    List the user's wines, newest first.

    Query parameters ``type``, ``ratingMin``, ``label`` and ``ai`` filter the
    list; an invalid value drops all filters.
    """
    search = parse_wine_search(request.query_params)
    wines = WineRepository(session, user_id).list_for_user(search=search)
    return [wine_to_api(wine) for wine in wines]


@router.post("/wines", status_code=201)
def create_wine(
    body: WineCreate,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> dict[str, Any]:
    """Record a new wine."""
    wine = WineRepository(session, user_id).create(body)
    logger.info(f"Created wine {wine.id} for user {user_id}")
    return wine_to_api(wine)


@router.get("/wines/{wine_id}")
def get_wine(
    wine_id: UUID,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> dict[str, Any]:
    """Get a wine with its tastings."""
    wine = _require_wine(WineRepository(session, user_id), wine_id)
    data = wine_to_api(wine)
    data["tastings"] = [
        tasting_to_api(t) for t in TastingRepository(session, user_id).list_for_wine(wine_id)
    ]
    return data


@router.put("/wines/{wine_id}")
def update_wine(
    wine_id: UUID,
    body: WineCreate,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> dict[str, Any]:
    """Replace a wine's editable fields. An omitted analysis keeps the stored one."""
    try:
        wine = WineRepository(session, user_id).update(wine_id, body)
    except ValueError:
        raise HTTPException(status_code=404, detail=_WINE_NOT_FOUND)
    return wine_to_api(wine)


@router.delete("/wines/{wine_id}", status_code=204)
def delete_wine(
    wine_id: UUID,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> Response:
    """Delete a wine and its tastings."""
    if not WineRepository(session, user_id).delete(wine_id):
        raise HTTPException(status_code=404, detail=_WINE_NOT_FOUND)
    logger.info(f"Deleted wine {wine_id} for user {user_id}")
    return Response(status_code=204)


@router.post("/wines/{wine_id}/analysis")
def analyze_wine_label(
    wine_id: UUID,
    body: AnalyzePhotoRequest,
    service: AnalysisServiceDep,
    user_id: str = Depends(rate_limited("ai")),
    session: Session = Depends(get_db),
) -> JSONResponse:
    """
    Analyze a label photo and store the result on the wine.

    The photo is stored with the analysis. Failed analyses are reported
    like ``POST /api/analyze-wine`` and leave the wine unchanged.
    """
    repo = WineRepository(session, user_id)
    _require_wine(repo, wine_id)

    if not body.photo_base64:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Photo data is required"},
        )

    try:
        outcome = service.analyze_photo(body.photo_base64)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    if outcome.success:
        repo.attach_analysis(wine_id, outcome.analysis, photo=body.photo_base64)
        logger.info(f"Stored analysis on wine {wine_id}")
    return outcome_response(outcome)


@router.get("/wines/{wine_id}/tastings")
def list_wine_tastings(
    wine_id: UUID,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """List the tastings of one wine, most recent first."""
    _require_wine(WineRepository(session, user_id), wine_id)
    return [tasting_to_api(t) for t in TastingRepository(session, user_id).list_for_wine(wine_id)]


@router.post("/wines/{wine_id}/tastings", status_code=201)
def create_tasting(
    wine_id: UUID,
    body: TastingCreate,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> dict[str, Any]:
    """Log a tasting of a wine."""
    _require_wine(WineRepository(session, user_id), wine_id)
    tasting = Tasting(user_id=user_id, wine_id=wine_id, **body.model_dump())
    return tasting_to_api(TastingRepository(session, user_id).create(tasting))


@router.get("/tastings")
def list_tastings(
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """List all of the user's tastings, most recent first."""
    return [tasting_to_api(t) for t in TastingRepository(session, user_id).list_for_user()]


@router.delete("/tastings/{tasting_id}", status_code=204)
def delete_tasting(
    tasting_id: UUID,
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> Response:
    """Delete a tasting."""
    if not TastingRepository(session, user_id).delete(tasting_id):
        raise HTTPException(status_code=404, detail={"error": "Tasting not found"})
    return Response(status_code=204)
