"""Tests for database models and repositories."""

import tempfile
from datetime import UTC, date
from pathlib import Path
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from wine_journal.core.enums import WineType
from wine_journal.core.schema import Tasting, WineCreate, WineSearch
from wine_journal.db.models import Base
from wine_journal.db.repositories import TastingRepository, WineRepository
from wine_journal.services.ai.normalizer import parse_analysis


@pytest.fixture
def temp_db_path():
    """Create a temporary database file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def engine(temp_db_path):
    """Create a test database engine."""
    url = f"sqlite:///{temp_db_path}"
    engine = create_engine(url, echo=False)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def wines(session: Session) -> WineRepository:
    return WineRepository(session, "user-1")


def make_wine(**overrides) -> WineCreate:
    fields = {
        "name": "Monte Bello",
        "producer": "Ridge Vineyards",
        "country": "USA",
        "region": "Santa Cruz Mountains",
        "vintage": 2018,
        "wine_type": WineType.RED,
        "rating": 94,
        "grapes": ["Cabernet Sauvignon", "Merlot"],
    }
    fields.update(overrides)
    return WineCreate(**fields)


class TestWineRepository:
    """Tests for WineRepository."""

    def test_create_and_get(self, wines: WineRepository) -> None:
        created = wines.create(make_wine())
        fetched = wines.get_by_id(created.id)

        assert fetched is not None
        assert fetched.name == "Monte Bello"
        assert fetched.user_id == "user-1"
        assert fetched.grapes == ["Cabernet Sauvignon", "Merlot"]
        assert fetched.wine_type == WineType.RED
        assert fetched.analysis is None

    def test_get_other_users_wine_returns_none(self, session: Session) -> None:
        created = WineRepository(session, "user-1").create(make_wine())
        assert WineRepository(session, "user-2").get_by_id(created.id) is None

    def test_get_nonexistent(self, wines: WineRepository) -> None:
        assert wines.get_by_id(uuid4()) is None

    def test_list_is_scoped_to_user(self, session: Session) -> None:
        WineRepository(session, "user-1").create(make_wine())
        WineRepository(session, "user-2").create(make_wine(name="Other"))

        names = [w.name for w in WineRepository(session, "user-1").list_for_user()]
        assert names == ["Monte Bello"]

    def test_list_filters(self, wines: WineRepository) -> None:
        wines.create(make_wine(name="Red 94"))
        wines.create(make_wine(name="Red 88", rating=88))
        wines.create(make_wine(name="White 92", wine_type=WineType.WHITE, rating=92))
        wines.create(make_wine(name="Labeled", rating=90, photo="data:image/jpeg;base64,abc"))

        by_type = wines.list_for_user(WineSearch(wine_type="white"))
        assert [w.name for w in by_type] == ["White 92"]

        by_rating = {w.name for w in wines.list_for_user(WineSearch(rating_min=92))}
        assert by_rating == {"Red 94", "White 92"}

        labeled = wines.list_for_user(WineSearch(has_label=True))
        assert [w.name for w in labeled] == ["Labeled"]

    def test_false_flags_do_not_filter(self, wines: WineRepository) -> None:
        wines.create(make_wine())
        wines.create(make_wine(name="Labeled", photo="data:image/jpeg;base64,abc"))

        assert len(wines.list_for_user(WineSearch(has_label=False, has_ai=False))) == 2

    def test_list_limit(self, wines: WineRepository) -> None:
        for i in range(5):
            wines.create(make_wine(name=f"Wine {i}"))

        assert len(wines.list_for_user(limit=3)) == 3
        assert len(wines.list_for_user(limit=None)) == 5

    def test_update(self, wines: WineRepository) -> None:
        created = wines.create(make_wine())
        updated = wines.update(created.id, make_wine(rating=97, notes="Even better"))

        assert updated.rating == 97
        assert updated.notes == "Even better"
        assert updated.created_at == created.created_at

    def test_timestamps_read_back_as_utc(self, session: Session, wines: WineRepository) -> None:
        """Stored timestamps come back timezone-aware, matching what create returned."""
        created = wines.create(make_wine())
        session.commit()
        session.expire_all()

        fetched = wines.get_by_id(created.id)
        listed = wines.list_for_user()[0]

        assert fetched.created_at.tzinfo == UTC
        assert fetched.created_at == created.created_at
        assert listed.updated_at.tzinfo == UTC
        assert fetched.model_dump(mode="json")["created_at"].endswith(("Z", "+00:00"))

    def test_update_keeps_stored_analysis(self, wines: WineRepository) -> None:
        created = wines.create(make_wine())
        wines.attach_analysis(created.id, parse_analysis('{"wineName": "Monte Bello"}'))

        updated = wines.update(created.id, make_wine(rating=90))

        assert updated.analysis is not None
        assert updated.analysis.wine_name == "Monte Bello"

    def test_update_nonexistent_raises(self, wines: WineRepository) -> None:
        with pytest.raises(ValueError, match="not found"):
            wines.update(uuid4(), make_wine())

    def test_attach_analysis(self, wines: WineRepository) -> None:
        created = wines.create(make_wine())
        analysis = parse_analysis(
            '{"wineName": "Monte Bello", "confidence": 0.8, "tasteProfile": {"oak": 4}}'
        )

        stored = wines.attach_analysis(created.id, analysis, photo="data:image/png;base64,xyz")

        assert stored.has_analysis is True
        assert stored.has_label is True
        assert stored.analysis.confidence == 0.8
        assert stored.analysis.taste_profile.oak == 4
        assert [w.id for w in wines.list_for_user(WineSearch(has_ai=True))] == [created.id]

    def test_attach_analysis_nonexistent(self, wines: WineRepository) -> None:
        assert wines.attach_analysis(uuid4(), parse_analysis("{}")) is None

    def test_create_with_analysis(self, wines: WineRepository) -> None:
        analysis = parse_analysis('{"wineName": "Monte Bello", "vintage": 2018}')
        created = wines.create(make_wine(analysis=analysis))

        assert wines.get_by_id(created.id).analysis.vintage == 2018

    def test_delete_removes_tastings(self, session: Session, wines: WineRepository) -> None:
        tastings = TastingRepository(session, "user-1")
        created = wines.create(make_wine())
        tastings.create(Tasting(user_id="user-1", wine_id=created.id, nose="Cassis"))

        assert wines.delete(created.id) is True
        assert wines.get_by_id(created.id) is None
        assert tastings.list_for_user() == []

    def test_delete_nonexistent(self, wines: WineRepository) -> None:
        assert wines.delete(uuid4()) is False


class TestTastingRepository:
    """Tests for TastingRepository."""

    def test_created_at_read_back_as_utc(self, session: Session, wines: WineRepository) -> None:
        tastings = TastingRepository(session, "user-1")
        wine = wines.create(make_wine())
        tastings.create(Tasting(user_id="user-1", wine_id=wine.id))
        session.commit()
        session.expire_all()

        assert tastings.list_for_wine(wine.id)[0].created_at.tzinfo == UTC

    def test_create_and_list(self, session: Session, wines: WineRepository) -> None:
        tastings = TastingRepository(session, "user-1")
        wine = wines.create(make_wine())

        tastings.create(
            Tasting(user_id="user-1", wine_id=wine.id, tasted_on=date(2024, 1, 5), rating=92)
        )
        tastings.create(
            Tasting(user_id="user-1", wine_id=wine.id, tasted_on=date(2024, 3, 1), rating=95)
        )

        listed = tastings.list_for_wine(wine.id)
        assert [t.rating for t in listed] == [95, 92]
        assert listed[0].tasted_on == date(2024, 3, 1)

    def test_scoped_to_user(self, session: Session, wines: WineRepository) -> None:
        wine = wines.create(make_wine())
        TastingRepository(session, "user-1").create(Tasting(user_id="user-1", wine_id=wine.id))

        assert TastingRepository(session, "user-2").list_for_user() == []

    def test_delete(self, session: Session, wines: WineRepository) -> None:
        tastings = TastingRepository(session, "user-1")
        wine = wines.create(make_wine())
        tasting = tastings.create(Tasting(user_id="user-1", wine_id=wine.id))

        assert TastingRepository(session, "user-2").delete(tasting.id) is False
        assert tastings.delete(tasting.id) is True
        assert tastings.list_for_wine(wine.id) == []


class TestSchemaValidation:
    """Tests for the wine input model."""

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            WineCreate(name="   ")

    def test_vintage_range(self) -> None:
        with pytest.raises(ValueError):
            WineCreate(name="Old", vintage=1850)
        with pytest.raises(ValueError):
            WineCreate(name="Future", vintage=date.today().year + 5)

    def test_rating_range(self) -> None:
        with pytest.raises(ValueError):
            WineCreate(name="Bad", rating=101)
