"""Pydantic v2 models for the wine journal."""

from datetime import UTC, date, datetime
from typing import Annotated, Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from wine_journal.core.enums import WineType


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


# 0-5 intensity used by every taste profile score
ProfileScore = Annotated[float, Field(ge=0, le=5)]

# 50-100 point rating scale for wines and tastings
PointRating = Annotated[int, Field(ge=50, le=100)]


class TasteProfile(BaseModel):
    """Structured sensory scores for a wine, each on a 0-5 scale."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    # Flavor intensities
    fruit: ProfileScore | None = None
    citrus: ProfileScore | None = None
    floral: ProfileScore | None = None
    herbal: ProfileScore | None = None
    earthy: ProfileScore | None = None
    mineral: ProfileScore | None = None
    spice: ProfileScore | None = None
    oak: ProfileScore | None = None

    # Structure (body: 1=light .. 5=full)
    sweetness: ProfileScore | None = None
    acidity: ProfileScore | None = None
    tannin: ProfileScore | None = None
    alcohol: ProfileScore | None = None
    body: ProfileScore | None = None

    primary_flavors: list[str] | None = None
    secondary_flavors: list[str] | None = None


class WineAnalysis(BaseModel):
    """
    Normalized result of an AI label analysis.

    Every descriptive field is optional because partial identification is a
    normal outcome. ``confidence`` and ``analysis_date`` are always present;
    a confidence of exactly 0 marks a fallback placeholder.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    wine_name: str | None = None
    wine_type: str | None = None
    region: str | None = None
    vintage: int | None = None
    grape_varieties: list[str] | None = None
    tasting_notes: str | None = None
    taste_profile: TasteProfile | None = None
    interesting_fact: str | None = None
    confidence: float = 0.5
    analysis_date: datetime = Field(default_factory=_utc_now)

    @property
    def is_fallback(self) -> bool:
        """True when this value is a failure placeholder rather than a real analysis."""
        return self.confidence == 0

    def to_api(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AISummary(BaseModel):
    """Sommelier-style summary generated from a wine's details and notes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    summary: str
    tags: list[str] = Field(default_factory=list, max_length=8)
    food_pairings: list[str] = Field(default_factory=list, max_length=6)


class SummaryRequest(BaseModel):
    """Wine details sent to the model when asking for a summary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    producer: str | None = None
    region: str | None = None
    country: str | None = None
    appellation: str | None = None
    vintage: int | None = None
    grapes: list[str] | None = None
    tasting_notes: str | None = None
    ocr_text: str | None = None


def _validate_vintage(v: int | None) -> int | None:
    if v is None:
        return v
    if v < 1900:
        raise ValueError("Vintage too old")
    if v > date.today().year + 2:
        raise ValueError("Vintage too far in future")
    return v


class WineCreate(BaseModel):
    """Fields a user supplies when recording a wine."""

    name: str = Field(min_length=2)
    producer: str = ""
    country: str = ""
    region: str = ""
    appellation: str = ""
    vintage: int | None = None
    wine_type: WineType = WineType.RED
    abv: Annotated[float, Field(ge=0, le=25)] | None = None
    price: Annotated[float, Field(ge=0, le=10000)] | None = None
    rating: PointRating | None = None
    grapes: list[str] = Field(default_factory=list)
    notes: str = Field(default="", max_length=10_000)
    location: str = ""
    photo: str | None = None
    analysis: WineAnalysis | None = None

    @field_validator("vintage")
    @classmethod
    def vintage_in_range(cls, v: int | None) -> int | None:
        return _validate_vintage(v)

    @field_serializer("analysis")
    def analysis_as_api(self, analysis: WineAnalysis | None) -> dict[str, Any] | None:
        # Stored and served in the same camelCase shape the analyze endpoint returns
        return analysis.to_api() if analysis else None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if len(v.strip()) < 2:
            raise ValueError("Name is required")
        return v.strip()


class Wine(WineCreate):
    """A wine recorded in a user's journal."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @property
    def has_label(self) -> bool:
        return bool(self.photo)

    @property
    def has_analysis(self) -> bool:
        return self.analysis is not None


class TastingCreate(BaseModel):
    """Fields a user supplies when logging a tasting of a wine."""

    tasted_on: date = Field(default_factory=date.today)
    appearance: str = Field(default="", max_length=5_000)
    nose: str = Field(default="", max_length=5_000)
    palate: str = Field(default="", max_length=5_000)
    conclusion: str = Field(default="", max_length=5_000)
    rating: PointRating | None = None
    serving_temp_c: Annotated[float, Field(ge=0, le=30)] | None = None
    decant_minutes: Annotated[int, Field(ge=0, le=600)] | None = None


class Tasting(TastingCreate):
    """A single tasting of a wine."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    wine_id: UUID
    created_at: datetime = Field(default_factory=_utc_now)


class WineSearch(BaseModel):
    """Filters applied to a user's wine list."""

    wine_type: str | None = None
    rating_min: Annotated[float, Field(ge=0, le=100)] | None = None
    has_label: bool | None = None
    has_ai: bool | None = None
