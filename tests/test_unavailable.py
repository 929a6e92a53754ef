import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, create_engine

from main import create_app
from predictor.errors import NotFound
from predictor.services import leaderboard, matches, predictions
from predictor.services.storage import PhotoStorage


@pytest.fixture(name="broken_engine")
def broken_engine_fixture(tmp_path):
    # The parent directory does not exist, so every connection attempt fails
    return create_engine(f"sqlite:///{tmp_path}/missing/predictor.db")


@pytest.fixture(name="offline_client")
def offline_client_fixture(broken_engine, tmp_path):
    app = create_app(engine=broken_engine, photo_storage=PhotoStorage(tmp_path / "uploads", "/uploads"))
    return TestClient(app)


def test_reads_fall_back_to_defaults(broken_engine):
    with Session(broken_engine) as db:
        assert matches.list_matches(db) == []
        assert matches.matches_by_week(db, 1) == []
        assert predictions.get_for_match(db, 1) == []
        assert predictions.get_user_prediction(db, 1, 1) is None
        assert predictions.match_stats(db, 1)["total"] == 0
        assert leaderboard.list_leaderboard(db) == []
        assert leaderboard.weekly_winner(db, 1) is None
        assert leaderboard.user_score(db, 7) == leaderboard._zero_score(7)


def test_read_endpoints_stay_up(offline_client):
    assert offline_client.get("/api/matches").json() == []
    assert offline_client.get("/api/leaderboard").json() == []
    assert offline_client.get("/api/matches/1/comments").json() == []


def test_match_detail_reads_as_missing(broken_engine, offline_client):
    with Session(broken_engine) as db:
        with pytest.raises(NotFound):
            matches.get_match_with_stats(db, 1)

    response = offline_client.get("/api/matches/1")
    assert response.status_code == 404
    assert response.json()["detail"] == "Match not found"


def test_writes_report_unavailable(offline_client):
    response = offline_client.post("/api/auth/register", json={"username": "newfan", "password": "goal1234"})

    assert response.status_code == 503
    assert response.json()["detail"] == "Database not available"
