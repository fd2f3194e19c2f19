"""SQLAlchemy ORM models for the Wine Journal database."""

from datetime import UTC, date, datetime
from uuid import uuid4

from sqlalchemy import Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def _generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class WineDB(Base):
    """
    Database model for journal wines.

    Filterable fields are columns; the AI analysis is stored as an opaque
    JSON blob alongside the record.
    """

    __tablename__ = "wines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_uuid)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    producer: Mapped[str] = mapped_column(String(255), default="")
    country: Mapped[str] = mapped_column(String(100), default="")
    region: Mapped[str] = mapped_column(String(100), default="")
    appellation: Mapped[str] = mapped_column(String(255), default="")
    vintage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    wine_type: Mapped[str] = mapped_column(String(20), default="red", index=True)
    abv: Mapped[float | None] = mapped_column(Float, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    grapes_json: Mapped[str] = mapped_column(Text, default="[]")  # JSON array
    notes: Mapped[str] = mapped_column(Text, default="")
    location: Mapped[str] = mapped_column(String(255), default="")

    # Label photo as a data URL or external URL
    photo: Mapped[str | None] = mapped_column(Text, nullable=True)

    # WineAnalysis payload (camelCase JSON)
    analysis_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<WineDB(id={self.id}, name='{self.name}', vintage={self.vintage})>"


class TastingDB(Base):
    """Database model for tastings of a journal wine."""

    __tablename__ = "tastings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_generate_uuid)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    wine_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    tasted_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    appearance: Mapped[str] = mapped_column(Text, default="")
    nose: Mapped[str] = mapped_column(Text, default="")
    palate: Mapped[str] = mapped_column(Text, default="")
    conclusion: Mapped[str] = mapped_column(Text, default="")
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    serving_temp_c: Mapped[float | None] = mapped_column(Float, nullable=True)
    decant_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<TastingDB(id={self.id}, wine_id={self.wine_id}, tasted_on={self.tasted_on})>"
