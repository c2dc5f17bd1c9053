"""
Test configuration and fixtures
"""

import os

os.environ.setdefault("SKILLPATH_DATABASE_URL", "sqlite://")
os.environ.setdefault("SKILLPATH_SCHEDULER_ENABLED", "false")

from datetime import timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from skillpath.core.database import Base, get_db
from skillpath.main import app
from skillpath.models import AssessmentResult, User, VideoProgress
from skillpath.utils.datetime import utc_now, week_start


@pytest.fixture
def test_engine():
    """In-memory SQLite engine shared by every session of a test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Session used by tests to seed and inspect data"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    """Test client with the database dependency pointed at the test engine"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session):
    """Factory creating users with activity in the current week"""
    created = []

    def _make_user(
        name: str,
        *,
        weekly_time: int = 0,
        points: int = 0,
        videos: int = 0,
        assessments: int = 0,
    ) -> User:
        # Distinct creation times keep full ties in a stable order.
        user = User(
            email=f"{name.lower()}@example.com",
            display_name=name,
            points=points,
            weekly_time_spent=weekly_time,
            weekly_stats_week_start=week_start(),
            created_at=utc_now() + timedelta(seconds=len(created)),
        )
        db_session.add(user)
        db_session.flush()
        for index in range(videos):
            db_session.add(
                VideoProgress(
                    user_id=user.user_id,
                    video_id=f"video-{index}",
                    watched_duration=100,
                    total_duration=100,
                    completed=True,
                )
            )
        for index in range(assessments):
            db_session.add(AssessmentResult(user_id=user.user_id, assessment_id=f"assessment-{index}", score=80))
        db_session.commit()
        created.append(user)
        return user

    return _make_user


@pytest.fixture
def podium(make_user):
    """Three users from the documented tie-break example"""
    return (
        make_user("Asha", weekly_time=500, points=10),
        make_user("Bilal", weekly_time=500, points=5),
        make_user("Chen", weekly_time=200, points=50),
    )


@pytest.fixture
def auth_headers():
    """Build the gateway identity header for a user"""

    def _headers(user: User) -> dict:
        return {"X-User-Id": str(user.user_id)}

    return _headers
