from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import create_app
from predictor import models  # noqa: F401  registers the tables
from predictor.config import SESSION_COOKIE_NAME
from predictor.database import get_session, utcnow
from predictor.models import Match, Prediction, User
from predictor.services.auth import create_session, hash_password
from predictor.services.storage import PhotoStorage

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Hashing is slow; every fixture user shares this password
PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="app")
def app_fixture(session: Session, tmp_path):
    app = create_app(engine=engine, photo_storage=PhotoStorage(tmp_path / "uploads", "/uploads"))

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(app):
    return TestClient(app)


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    def _make_user(username: str = "testuser", is_admin: bool = False) -> User:
        user = User(
            username=username,
            password_hash=PASSWORD_HASH,
            name=username.title(),
            is_admin=is_admin
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="login")
def login_fixture(client: TestClient, session: Session):
    """Sign ``user`` in on the shared test client."""
    def _login(user: User) -> str:
        token = create_session(session, user.id).session_token
        client.cookies.set(SESSION_COOKIE_NAME, token)
        return token

    return _login


@pytest.fixture(name="user")
def user_fixture(make_user):
    return make_user("testuser")


@pytest.fixture(name="admin")
def admin_fixture(make_user):
    return make_user("boss", is_admin=True)


@pytest.fixture(name="make_match")
def make_match_fixture(session: Session):
    def _make_match(
        home_team: str = "Arsenal",
        away_team: str = "Chelsea",
        kickoff_in: timedelta = timedelta(days=2),
        week: int = 1,
        day: str = "Saturday",
        **fields
    ) -> Match:
        match = Match(
            home_team=home_team,
            away_team=away_team,
            match_date=utcnow() + kickoff_in,
            week=week,
            day=day,
            **fields
        )
        session.add(match)
        session.commit()
        session.refresh(match)
        return match

    return _make_match


@pytest.fixture(name="make_prediction")
def make_prediction_fixture(session: Session):
    def _make_prediction(user: User, match: Match, home: int, away: int, result: str) -> Prediction:
        prediction = Prediction(
            user_id=user.id,
            match_id=match.id,
            predicted_home_score=home,
            predicted_away_score=away,
            predicted_result=result
        )
        session.add(prediction)
        session.commit()
        session.refresh(prediction)
        return prediction

    return _make_prediction
