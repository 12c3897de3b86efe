"""Fixtures for F5 tests - Web API and CLI."""

from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from precalc.db.fixtures import load_fixture, load_fixture_data
from precalc.web.api import create_app
from precalc.web.params import get_today

SAMPLE_FIXTURE = Path(__file__).resolve().parents[2] / "data" / "fixtures" / "sample_spring.yaml"
SAMPLE_STUDENT = "888888888"
UNDECIDED_STUDENT = "222"
TODAY = date(2024, 2, 1)


@pytest.fixture
def sample_fixture() -> Path:
    return SAMPLE_FIXTURE


@pytest.fixture
def seeded_db(db):
    """Sample term plus a student whose pace order must be chosen."""
    load_fixture(SAMPLE_FIXTURE)
    load_fixture_data(
        {
            "students": [{"student_id": UNDECIDED_STUDENT, "first_name": "Grace", "last_name": "Hopper"}],
            "registrations": [
                {"student_id": UNDECIDED_STUDENT, "course_id": "M 117", "section": "001",
                 "term_key": "SP24", "prereq_satisfied": "Y"},
                {"student_id": UNDECIDED_STUDENT, "course_id": "M 125", "section": "001",
                 "term_key": "SP24", "prereq_satisfied": "Y"},
            ],
        }
    )
    return db


@pytest.fixture
def client(seeded_db):
    """Test client over the seeded database, with today pinned."""
    app = create_app()
    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Log a student in; returns headers carrying the session ID."""

    def _login(student_id: str = SAMPLE_STUDENT) -> dict[str, str]:
        response = client.post("/api/login", json={"student_id": student_id})
        assert response.status_code == 201
        return {"X-Session-Id": response.json()["session_id"]}

    return _login
