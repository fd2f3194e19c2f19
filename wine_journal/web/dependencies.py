"""FastAPI dependencies for caller identity, admission control and services.

Authentication itself is handled by the session layer in front of this app;
it forwards the signed-in user's id in the ``X-User-Id`` header.
"""

from typing import Annotated, Callable

from fastapi import Depends, Header, HTTPException, Request

from wine_journal.core.rate_limit import FixedWindowRateLimiter
from wine_journal.services.ai.analysis import WineAnalysisService
from wine_journal.services.ai.summary import SummaryService


def get_current_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Dependency returning the signed-in user's id.

    Raises:
        HTTPException: 401 if no user id was forwarded.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(status_code=401, detail={"error": "Unauthorized"})
    return x_user_id.strip()


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    """Dependency returning the app-wide rate limiter built by ``create_app``."""
    return request.app.state.rate_limiter


def get_analysis_service(request: Request) -> WineAnalysisService:
    """Dependency returning the app-wide photo analysis service."""
    return request.app.state.analysis_service


def get_summary_service(request: Request) -> SummaryService:
    """Dependency returning the app-wide summary service."""
    return request.app.state.summary_service


def rate_limited(operation: str) -> Callable[..., str]:
    """Dependency factory gating an expensive operation per user.

    Requests are counted under the key ``"{operation}-{user_id}"``, so each
    operation has its own budget for each user.

    Example:
        @router.post("/api/analyze-wine")
        def analyze(user_id: str = Depends(rate_limited("ai"))):
            ...

    Args:
        operation: Short name of the protected operation, e.g. "ai".

    Returns:
        A dependency that returns the user id, or raises 429 when the
        user's window is used up.
    """
    def checker(
        user_id: str = Depends(get_current_user_id),
        limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    ) -> str:
        if not limiter.check_and_admit(f"{operation}-{user_id}"):
            raise HTTPException(status_code=429, detail={"error": "Too many requests"})
        return user_id

    return checker


# Type aliases for dependency injection
CurrentUserDep = Annotated[str, Depends(get_current_user_id)]
AnalysisServiceDep = Annotated[WineAnalysisService, Depends(get_analysis_service)]
SummaryServiceDep = Annotated[SummaryService, Depends(get_summary_service)]
