"""Parsing of wine list filter parameters from a query string."""

import logging
import math
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from wine_journal.core.schema import WineSearch

logger = logging.getLogger(__name__)


class _WineSearchParams(BaseModel):
    """Raw query parameters as sent by the wine list page."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    rating_min: float | None = Field(default=None, alias="ratingMin", ge=0, le=100)
    label: bool | None = None
    ai: bool | None = None

    @field_validator("rating_min", mode="before")
    @classmethod
    def parse_number(cls, v: object) -> float | None:
        if v is None:
            return None
        value = float(str(v).strip())
        if not math.isfinite(value):
            raise ValueError("ratingMin must be a finite number")
        return value

    @field_validator("label", "ai", mode="before")
    @classmethod
    def parse_flag(cls, v: object) -> bool | None:
        if v is None:
            return None
        return str(v) == "true"


def parse_wine_search(params: Mapping[str, str]) -> WineSearch:
    """
    Build a WineSearch from query parameters.

    Recognized keys are ``type``, ``ratingMin`` (0-100), ``label`` and ``ai``
    (only the literal "true" enables a flag). If any recognized value is
    invalid the whole filter is dropped and an empty WineSearch is returned.

    Args:
        params: Query parameters, e.g. ``request.query_params``.

    Returns:
        The parsed filters.
    """
    try:
        parsed = _WineSearchParams.model_validate(dict(params))
    except (ValidationError, ValueError) as e:
        logger.debug(f"Ignoring invalid wine search parameters: {e}")
        return WineSearch()

    return WineSearch(
        wine_type=parsed.type,
        rating_min=parsed.rating_min,
        has_label=parsed.label,
        has_ai=parsed.ai,
    )
