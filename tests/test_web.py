"""Tests for web routes."""

import json
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from wine_journal.core.rate_limit import FixedWindowRateLimiter
from wine_journal.db.engine import get_db
from wine_journal.db.models import Base
from wine_journal.services.ai.client import AIClient, AIConfigurationError

USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}
PHOTO = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="

ANALYSIS_REPLY = 'Here you go: {"wineName": "Opus One", "vintage": 2018, "confidence": 0.9}'
SUMMARY_REPLY = json.dumps(
    {"summary": "Dense and polished.", "tags": ["cassis"], "foodPairings": ["Lamb"]}
)


@pytest.fixture
def temp_db_path():
    """Create a temporary database file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def test_engine(temp_db_path):
    """Create a test database engine."""
    engine = create_engine(
        f"sqlite:///{temp_db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def ai_client() -> MagicMock:
    client = MagicMock(spec=AIClient)
    client.model = "test-model"
    client.analyze_label.return_value = ANALYSIS_REPLY
    client.summarize.return_value = SUMMARY_REPLY
    return client


@pytest.fixture
def limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter()


@pytest.fixture
def client(test_engine, ai_client, limiter, monkeypatch):
    """Create a test client backed by the temporary database."""
    import wine_journal.web.app as app_module

    monkeypatch.setattr(app_module, "init_db", lambda: None)
    TestSessionLocal = sessionmaker(bind=test_engine)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
            session.commit()
        finally:
            session.close()

    app = app_module.create_app(rate_limiter=limiter, ai_client=ai_client)
    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def create_wine(client: TestClient, **fields) -> dict:
    body = {"name": "Monte Bello", "producer": "Ridge Vineyards", "vintage": 2018, "rating": 94}
    body.update(fields)
    response = client.post("/api/wines", json=body, headers=USER)
    assert response.status_code == 201
    return response.json()


class TestHealth:
    """Tests for the health check."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAuthentication:
    """Tests for caller identity."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/wines"),
            ("post", "/api/analyze-wine"),
            ("get", "/api/tastings"),
            ("get", "/export"),
        ],
    )
    def test_missing_user_is_unauthorized(self, client: TestClient, method: str, path: str) -> None:
        response = getattr(client, method)(path)
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}


class TestAnalyzeWine:
    """Tests for POST /api/analyze-wine."""

    def test_success(self, client: TestClient, ai_client: MagicMock) -> None:
        response = client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["analysis"]["wineName"] == "Opus One"
        assert data["analysis"]["vintage"] == 2018
        assert "analysisDate" in data["analysis"]
        ai_client.analyze_label.assert_called_once_with("/9j/4AAQSkZJRg==", "image/jpeg")

    def test_missing_photo(self, client: TestClient) -> None:
        response = client.post("/api/analyze-wine", json={}, headers=USER)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Photo data is required"}

    def test_unsupported_format(self, client: TestClient) -> None:
        response = client.post(
            "/api/analyze-wine", json={"photoBase64": "data:image/tiff;base64,abc"}, headers=USER
        )
        assert response.status_code == 400

    def test_unparseable_reply_returns_fallback(
        self, client: TestClient, ai_client: MagicMock
    ) -> None:
        ai_client.analyze_label.return_value = "not json at all"
        response = client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"].startswith("Unable to analyze the wine photo.")
        assert data["analysis"]["wineName"] == "Analysis failed"
        assert data["analysis"]["confidence"] == 0

    def test_upstream_rate_limit(self, client: TestClient, ai_client: MagicMock) -> None:
        ai_client.analyze_label.side_effect = RuntimeError("rate limit exceeded")
        response = client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)

        assert response.status_code == 429
        assert response.json()["success"] is False

    def test_rate_limited_after_ten_requests(self, client: TestClient) -> None:
        for _ in range(10):
            response = client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)
            assert response.status_code == 200

        response = client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)
        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests"}

        # Another user has a separate budget
        response = client.post(
            "/api/analyze-wine", json={"photoBase64": PHOTO}, headers=OTHER_USER
        )
        assert response.status_code == 200

    def test_limiter_reset_restores_access(
        self, client: TestClient, limiter: FixedWindowRateLimiter
    ) -> None:
        for _ in range(10):
            client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)

        limiter.reset("ai-user-1")
        response = client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)
        assert response.status_code == 200


class TestSummary:
    """Tests for POST /api/ai/summary."""

    def test_summary(self, client: TestClient) -> None:
        response = client.post(
            "/api/ai/summary",
            json={"name": "Opus One", "tastingNotes": "Cassis and graphite"},
            headers=USER,
        )

        assert response.status_code == 200
        assert response.json() == {
            "summary": "Dense and polished.",
            "tags": ["cassis"],
            "foodPairings": ["Lamb"],
        }

    def test_invalid_reply(self, client: TestClient, ai_client: MagicMock) -> None:
        ai_client.summarize.return_value = "no json"
        response = client.post("/api/ai/summary", json={"name": "Opus One"}, headers=USER)

        assert response.status_code == 502

    def test_not_configured(self, client: TestClient, ai_client: MagicMock) -> None:
        ai_client.summarize.side_effect = AIConfigurationError("ANTHROPIC_API_KEY missing")
        response = client.post("/api/ai/summary", json={"name": "Opus One"}, headers=USER)

        assert response.status_code == 503

    def test_shares_ai_budget_with_analysis(self, client: TestClient) -> None:
        for _ in range(10):
            client.post("/api/analyze-wine", json={"photoBase64": PHOTO}, headers=USER)

        response = client.post("/api/ai/summary", json={"name": "Opus One"}, headers=USER)
        assert response.status_code == 429


class TestWines:
    """Tests for the wine and tasting routes."""

    def test_create_and_get(self, client: TestClient) -> None:
        wine = create_wine(client)

        response = client.get(f"/api/wines/{wine['id']}", headers=USER)
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Monte Bello"
        assert data["has_label"] is False
        assert data["tastings"] == []

    def test_create_invalid(self, client: TestClient) -> None:
        response = client.post("/api/wines", json={"name": "X", "rating": 200}, headers=USER)
        assert response.status_code == 422

    def test_other_user_cannot_see_wine(self, client: TestClient) -> None:
        wine = create_wine(client)

        assert client.get(f"/api/wines/{wine['id']}", headers=OTHER_USER).status_code == 404
        assert client.get("/api/wines", headers=OTHER_USER).json() == []

    def test_list_with_filters(self, client: TestClient) -> None:
        create_wine(client, name="Red", wine_type="red", rating=95)
        create_wine(client, name="White", wine_type="white", rating=88)

        names = [w["name"] for w in client.get("/api/wines?type=white", headers=USER).json()]
        assert names == ["White"]

        names = [w["name"] for w in client.get("/api/wines?ratingMin=90", headers=USER).json()]
        assert names == ["Red"]

        # Invalid filter values fall back to the unfiltered list
        response = client.get("/api/wines?type=white&ratingMin=abc", headers=USER)
        assert len(response.json()) == 2

    def test_update(self, client: TestClient) -> None:
        wine = create_wine(client)
        response = client.put(
            f"/api/wines/{wine['id']}",
            json={"name": "Monte Bello", "rating": 97},
            headers=USER,
        )

        assert response.status_code == 200
        assert response.json()["rating"] == 97

    def test_update_missing(self, client: TestClient) -> None:
        response = client.put(
            "/api/wines/00000000-0000-0000-0000-000000000000",
            json={"name": "Monte Bello"},
            headers=USER,
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Wine not found"}

    def test_delete(self, client: TestClient) -> None:
        wine = create_wine(client)

        assert client.delete(f"/api/wines/{wine['id']}", headers=USER).status_code == 204
        assert client.get(f"/api/wines/{wine['id']}", headers=USER).status_code == 404
        assert client.delete(f"/api/wines/{wine['id']}", headers=USER).status_code == 404

    def test_analyze_and_store(self, client: TestClient) -> None:
        wine = create_wine(client)
        response = client.post(
            f"/api/wines/{wine['id']}/analysis", json={"photoBase64": PHOTO}, headers=USER
        )

        assert response.status_code == 200
        assert response.json()["analysis"]["wineName"] == "Opus One"

        stored = client.get(f"/api/wines/{wine['id']}", headers=USER).json()
        assert stored["has_analysis"] is True
        assert stored["has_label"] is True
        assert stored["analysis"]["wineName"] == "Opus One"

        ai_wines = client.get("/api/wines?ai=true", headers=USER).json()
        assert [w["id"] for w in ai_wines] == [wine["id"]]

    def test_failed_analysis_is_not_stored(self, client: TestClient, ai_client: MagicMock) -> None:
        ai_client.analyze_label.return_value = "no label here"
        wine = create_wine(client)

        response = client.post(
            f"/api/wines/{wine['id']}/analysis", json={"photoBase64": PHOTO}, headers=USER
        )

        assert response.status_code == 400
        stored = client.get(f"/api/wines/{wine['id']}", headers=USER).json()
        assert stored["has_analysis"] is False
        assert stored["has_label"] is False

    def test_analyze_missing_wine(self, client: TestClient, ai_client: MagicMock) -> None:
        response = client.post(
            "/api/wines/00000000-0000-0000-0000-000000000000/analysis",
            json={"photoBase64": PHOTO},
            headers=USER,
        )
        assert response.status_code == 404
        ai_client.analyze_label.assert_not_called()

    def test_tastings(self, client: TestClient) -> None:
        wine = create_wine(client)
        response = client.post(
            f"/api/wines/{wine['id']}/tastings",
            json={"tasted_on": "2024-02-14", "nose": "Cassis", "rating": 95},
            headers=USER,
        )
        assert response.status_code == 201
        tasting = response.json()
        assert tasting["wine_id"] == wine["id"]

        listed = client.get(f"/api/wines/{wine['id']}/tastings", headers=USER).json()
        assert [t["nose"] for t in listed] == ["Cassis"]
        assert len(client.get("/api/tastings", headers=USER).json()) == 1

        assert client.delete(f"/api/tastings/{tasting['id']}", headers=USER).status_code == 204
        assert client.get("/api/tastings", headers=USER).json() == []

    def test_tasting_for_missing_wine(self, client: TestClient) -> None:
        response = client.post(
            "/api/wines/00000000-0000-0000-0000-000000000000/tastings",
            json={"nose": "Cassis"},
            headers=USER,
        )
        assert response.status_code == 404


class TestExport:
    """Tests for the export routes."""

    def test_multipart_export(self, client: TestClient) -> None:
        create_wine(client)
        response = client.get("/export", headers=USER)

        assert response.status_code == 200
        content_type = response.headers["content-type"]
        assert content_type.startswith("multipart/mixed; boundary=----wine-journal-")
        boundary = content_type.split("boundary=")[1]
        assert response.text.endswith(f"--{boundary}--")
        assert "Monte Bello" in response.text

    def test_wines_csv(self, client: TestClient) -> None:
        create_wine(client)
        response = client.get("/export/wines.csv", headers=USER)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "wines.csv" in response.headers["content-disposition"]
        assert "Monte Bello" in response.text

    def test_tastings_csv(self, client: TestClient) -> None:
        response = client.get("/export/tastings.csv", headers=USER)

        assert response.status_code == 200
        assert response.text.startswith("id,wine,date")
