"""FastAPI application factory for Wine Journal."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.responses import JSONResponse

from wine_journal.core.rate_limit import FixedWindowRateLimiter
from wine_journal.db.engine import init_db
from wine_journal.services.ai.analysis import WineAnalysisService
from wine_journal.services.ai.client import AIClient
from wine_journal.services.ai.summary import SummaryService

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # Dict details are already the response body, e.g. {"error": "Unauthorized"}
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


def create_app(
    rate_limiter: FixedWindowRateLimiter | None = None,
    ai_client: AIClient | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        rate_limiter: Limiter shared by every rate-limited route. A fresh
                      10-per-minute limiter is created if not provided.
        ai_client: Optional AI client for the analysis and summary services.
                   If not provided, one is built from the environment on
                   first use.
    """
    _configure_logging()

    app = FastAPI(
        title="Wine Journal",
        description="A personal wine journal with AI label analysis",
        version="0.1.0",
    )

    app.state.rate_limiter = rate_limiter if rate_limiter is not None else FixedWindowRateLimiter()
    app.state.analysis_service = WineAnalysisService(ai_client)
    app.state.summary_service = SummaryService(ai_client)

    # Initialize database tables
    init_db()

    app.add_exception_handler(HTTPException, _http_error_handler)

    # Include routers (import here to avoid circular imports)
    from wine_journal.web.routes import analysis, export, wines

    app.include_router(analysis.router)
    app.include_router(wines.router)
    app.include_router(export.router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("Wine Journal app created")
    return app
