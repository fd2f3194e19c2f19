"""Export routes for downloading a user's journal as CSV."""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from wine_journal.db.engine import get_db
from wine_journal.services.export_service import ExportService
from wine_journal.web.dependencies import CurrentUserDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])


@router.get("/export")
def export_journal(
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> Response:
    """
    Export wines and tastings together.

    Returns:
        A multipart/mixed body with ``wines.csv`` and ``tastings.csv`` parts.
    """
    boundary = f"----wine-journal-{int(time.time() * 1000)}"
    body = ExportService(session, user_id).export_multipart(boundary)
    logger.info(f"Exported journal for user {user_id}")

    return Response(
        content=body,
        media_type=f"multipart/mixed; boundary={boundary}",
    )


@router.get("/export/wines.csv")
def export_wines_csv(
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> Response:
    """Export the user's wines as CSV."""
    return Response(
        content=ExportService(session, user_id).export_wines_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="wines.csv"'},
    )


@router.get("/export/tastings.csv")
def export_tastings_csv(
    user_id: CurrentUserDep,
    session: Session = Depends(get_db),
) -> Response:
    """Export the user's tastings as CSV."""
    return Response(
        content=ExportService(session, user_id).export_tastings_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="tastings.csv"'},
    )
