"""Tests for the precalc CLI (F5)."""

import pytest
from typer.testing import CliRunner

from precalc.cli.commands import app
from precalc.db.registrations_repository import get_registrations

runner = CliRunner()


@pytest.fixture
def db_option(tmp_path) -> list[str]:
    return ["--db", str(tmp_path / "cli" / "precalc.db")]


@pytest.fixture
def seeded(db_option, sample_fixture) -> list[str]:
    result = runner.invoke(app, ["seed", str(sample_fixture), *db_option])
    assert result.exit_code == 0, result.stdout
    return db_option


class TestInitDb:
    """Tests for precalc init-db."""

    def test_creates_database(self, tmp_path, db_option):
        result = runner.invoke(app, ["init-db", *db_option])
        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert (tmp_path / "cli" / "precalc.db").exists()


class TestSeed:
    """Tests for precalc seed."""

    def test_loads_fixture(self, db_option, sample_fixture):
        result = runner.invoke(app, ["seed", str(sample_fixture), *db_option])
        assert result.exit_code == 0
        assert "✓ Fixture loaded" in result.stdout
        assert "milestones: 20" in result.stdout

    def test_missing_fixture(self, db_option):
        result = runner.invoke(app, ["seed", "nowhere.yaml", *db_option])
        assert result.exit_code == 1
        assert "Fixture not found" in result.stdout


class TestSchedule:
    """Tests for precalc schedule."""

    def test_shows_deadlines(self, seeded):
        result = runner.invoke(app, ["schedule", "888888888", "--today", "2024-02-01", *seeded])
        assert result.exit_code == 0, result.stdout
        assert "Spring, 2024" in result.stdout
        assert "MATH 117" in result.stdout
        assert "2024-02-20" in result.stdout

    def test_bad_date(self, seeded):
        result = runner.invoke(app, ["schedule", "888888888", "--today", "02/01/2024", *seeded])
        assert result.exit_code == 1
        assert "Invalid date" in result.stdout

    def test_no_active_term(self, db_option):
        result = runner.invoke(app, ["schedule", "888888888", *db_option])
        assert result.exit_code == 1
        assert "No active term" in result.stdout


class TestSetOrder:
    """Tests for precalc set-order."""

    def test_sets_order(self, seeded):
        result = runner.invoke(
            app, ["set-order", "888888888", "M 118", "M 117", "--today", "2024-02-01", *seeded]
        )
        assert result.exit_code == 0, result.stdout
        assert "Updated 2 registration(s)" in result.stdout

        orders = {r.course_id: r.pace_order for r in get_registrations("888888888", "SP24")}
        assert orders == {"M 117": 2, "M 118": 1}

    def test_duplicate_course(self, seeded):
        result = runner.invoke(app, ["set-order", "888888888", "M 117", "M 117", *seeded])
        assert result.exit_code == 1
        assert "more than once" in result.stdout
