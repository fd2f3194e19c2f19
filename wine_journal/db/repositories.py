"""Repository classes for database operations."""

import json
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from wine_journal.core.schema import Tasting, Wine, WineAnalysis, WineCreate, WineSearch
from wine_journal.db.models import TastingDB, WineDB

# Default page size for the wine list
DEFAULT_WINE_LIMIT = 24


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    """SQLite drops the offset; stored timestamps are always UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def _analysis_to_json(analysis: WineAnalysis | None) -> str | None:
    return json.dumps(analysis.to_api()) if analysis else None


class WineRepository:
    """Repository for a user's journal wines. Every query is scoped to ``user_id``."""

    def __init__(self, session: Session, user_id: str):
        self.session = session
        self.user_id = user_id

    def create(self, wine: WineCreate) -> Wine:
        """
        Record a new wine for the current user.

        Args:
            wine: The wine fields supplied by the user.

        Returns:
            The stored Wine with its generated id and timestamps.
        """
        record = Wine(user_id=self.user_id, **wine.model_dump())
        db_wine = WineDB(id=str(record.id), user_id=self.user_id, created_at=record.created_at)
        self._apply(db_wine, record)
        db_wine.updated_at = record.updated_at
        self.session.add(db_wine)
        self.session.flush()
        return self._to_domain(db_wine)

    def get_by_id(self, wine_id: UUID | str) -> Wine | None:
        """
        Get one of the current user's wines by ID.

        Returns:
            The Wine if it exists and belongs to the user, None otherwise.
        """
        db_wine = self._get_db(wine_id)
        return self._to_domain(db_wine) if db_wine else None

    def list_for_user(
        self,
        search: WineSearch | None = None,
        limit: int | None = DEFAULT_WINE_LIMIT,
    ) -> list[Wine]:
        """
        List the user's wines, newest first.

        Args:
            search: Optional filters; flags that are False or None do not filter.
            limit: Maximum number of wines, or None for all.

        Returns:
            List of Wine domain models.
        """
        stmt = (
            select(WineDB)
            .where(WineDB.user_id == self.user_id)
            .order_by(WineDB.created_at.desc())
        )
        if search is not None:
            if search.wine_type:
                stmt = stmt.where(WineDB.wine_type == search.wine_type)
            if search.rating_min:
                stmt = stmt.where(WineDB.rating >= search.rating_min)
            if search.has_label:
                stmt = stmt.where(WineDB.photo.is_not(None))
            if search.has_ai:
                stmt = stmt.where(WineDB.analysis_json.is_not(None))
        if limit is not None:
            stmt = stmt.limit(limit)

        result = self.session.execute(stmt).scalars().all()
        return [self._to_domain(db_wine) for db_wine in result]

    def update(self, wine_id: UUID | str, wine: WineCreate) -> Wine:
        """
        Replace the editable fields of a wine.

        Raises:
            ValueError: If the wine does not exist for this user.
        """
        db_wine = self._get_db(wine_id)
        if db_wine is None:
            raise ValueError(f"Wine with id {wine_id} not found")

        changes = {name: getattr(wine, name) for name in WineCreate.model_fields}
        if wine.analysis is None:
            # The stored analysis is AI output, not a user-editable field
            changes.pop("analysis")
        updated = self._to_domain(db_wine).model_copy(update=changes)
        self._apply(db_wine, updated)
        db_wine.updated_at = _utc_now()
        self.session.flush()
        return self._to_domain(db_wine)

    def attach_analysis(
        self,
        wine_id: UUID | str,
        analysis: WineAnalysis,
        photo: str | None = None,
    ) -> Wine | None:
        """
        Store an AI analysis (and optionally the analyzed photo) on a wine.

        Returns:
            The updated Wine, or None if not found.
        """
        db_wine = self._get_db(wine_id)
        if db_wine is None:
            return None

        db_wine.analysis_json = _analysis_to_json(analysis)
        if photo is not None:
            db_wine.photo = photo
        db_wine.updated_at = _utc_now()
        self.session.flush()
        return self._to_domain(db_wine)

    def delete(self, wine_id: UUID | str) -> bool:
        """
        Delete a wine and its tastings.

        Returns:
            True if deleted, False if not found.
        """
        db_wine = self._get_db(wine_id)
        if db_wine is None:
            return False

        tastings = select(TastingDB).where(TastingDB.wine_id == db_wine.id)
        for db_tasting in self.session.execute(tastings).scalars().all():
            self.session.delete(db_tasting)
        self.session.delete(db_wine)
        self.session.flush()
        return True

    def _get_db(self, wine_id: UUID | str) -> WineDB | None:
        stmt = select(WineDB).where(
            WineDB.id == str(wine_id),
            WineDB.user_id == self.user_id,
        )
        return self.session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _apply(db_wine: WineDB, wine: Wine) -> None:
        """Copy domain fields onto the DB row."""
        db_wine.name = wine.name
        db_wine.producer = wine.producer
        db_wine.country = wine.country
        db_wine.region = wine.region
        db_wine.appellation = wine.appellation
        db_wine.vintage = wine.vintage
        db_wine.wine_type = wine.wine_type.value
        db_wine.abv = wine.abv
        db_wine.price = wine.price
        db_wine.rating = wine.rating
        db_wine.grapes_json = json.dumps(wine.grapes)
        db_wine.notes = wine.notes
        db_wine.location = wine.location
        db_wine.photo = wine.photo
        db_wine.analysis_json = _analysis_to_json(wine.analysis)

    @staticmethod
    def _to_domain(db_wine: WineDB) -> Wine:
        """Convert DB model to domain model."""
        analysis = None
        if db_wine.analysis_json:
            analysis = WineAnalysis.model_validate(json.loads(db_wine.analysis_json))

        return Wine(
            id=UUID(db_wine.id),
            user_id=db_wine.user_id,
            created_at=_as_utc(db_wine.created_at),
            updated_at=_as_utc(db_wine.updated_at),
            name=db_wine.name,
            producer=db_wine.producer,
            country=db_wine.country,
            region=db_wine.region,
            appellation=db_wine.appellation,
            vintage=db_wine.vintage,
            wine_type=db_wine.wine_type,
            abv=db_wine.abv,
            price=db_wine.price,
            rating=db_wine.rating,
            grapes=json.loads(db_wine.grapes_json),
            notes=db_wine.notes,
            location=db_wine.location,
            photo=db_wine.photo,
            analysis=analysis,
        )


class TastingRepository:
    """Repository for a user's tastings."""

    def __init__(self, session: Session, user_id: str):
        self.session = session
        self.user_id = user_id

    def create(self, tasting: Tasting) -> Tasting:
        """Store a tasting; the caller checks that the wine belongs to the user."""
        db_tasting = TastingDB(
            id=str(tasting.id),
            user_id=self.user_id,
            wine_id=str(tasting.wine_id),
            created_at=tasting.created_at,
            tasted_on=tasting.tasted_on,
            appearance=tasting.appearance,
            nose=tasting.nose,
            palate=tasting.palate,
            conclusion=tasting.conclusion,
            rating=tasting.rating,
            serving_temp_c=tasting.serving_temp_c,
            decant_minutes=tasting.decant_minutes,
        )
        self.session.add(db_tasting)
        self.session.flush()
        return self._to_domain(db_tasting)

    def list_for_user(self) -> list[Tasting]:
        """List all of the user's tastings, most recent first."""
        stmt = (
            select(TastingDB)
            .where(TastingDB.user_id == self.user_id)
            .order_by(TastingDB.tasted_on.desc(), TastingDB.created_at.desc())
        )
        return [self._to_domain(t) for t in self.session.execute(stmt).scalars().all()]

    def list_for_wine(self, wine_id: UUID | str) -> list[Tasting]:
        """List the user's tastings of one wine, most recent first."""
        stmt = (
            select(TastingDB)
            .where(TastingDB.user_id == self.user_id, TastingDB.wine_id == str(wine_id))
            .order_by(TastingDB.tasted_on.desc(), TastingDB.created_at.desc())
        )
        return [self._to_domain(t) for t in self.session.execute(stmt).scalars().all()]

    def delete(self, tasting_id: UUID | str) -> bool:
        """
        Delete a tasting by ID.

        Returns:
            True if deleted, False if not found.
        """
        stmt = select(TastingDB).where(
            TastingDB.id == str(tasting_id),
            TastingDB.user_id == self.user_id,
        )
        db_tasting = self.session.execute(stmt).scalar_one_or_none()
        if db_tasting is None:
            return False
        self.session.delete(db_tasting)
        self.session.flush()
        return True

    @staticmethod
    def _to_domain(db_tasting: TastingDB) -> Tasting:
        """Convert DB model to domain model."""
        return Tasting(
            id=UUID(db_tasting.id),
            user_id=db_tasting.user_id,
            wine_id=UUID(db_tasting.wine_id),
            created_at=_as_utc(db_tasting.created_at),
            tasted_on=db_tasting.tasted_on,
            appearance=db_tasting.appearance,
            nose=db_tasting.nose,
            palate=db_tasting.palate,
            conclusion=db_tasting.conclusion,
            rating=db_tasting.rating,
            serving_temp_c=db_tasting.serving_temp_c,
            decant_minutes=db_tasting.decant_minutes,
        )
