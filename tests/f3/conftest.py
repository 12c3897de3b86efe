"""Fixtures for F3 tests - Deadlines, Course Status, Outline, E-texts, Placement."""

from datetime import date

import pytest

from precalc.db.fixtures import load_fixture_data
from precalc.db.registrations_repository import get_registrations
from precalc.db.terms_repository import get_active_term

STUDENT = "111"
TODAY = date(2024, 2, 1)


def _milestones(pace: int, track: str, dates: dict[int, list[str]]) -> list[dict]:
    """Review and unit exam milestones for units 1-4, then final and last try."""
    rows = []
    for index, (units, final, last_try) in dates.items():
        for unit, when in enumerate(units, start=1):
            nbr = pace * 100 + index * 10 + unit
            rows.append({"term_key": "SP24", "pace": pace, "track": track, "ms_nbr": nbr, "ms_type": "RE", "ms_date": when})
            rows.append({"term_key": "SP24", "pace": pace, "track": track, "ms_nbr": nbr, "ms_type": "UE", "ms_date": when})
        nbr = pace * 100 + index * 10 + 5
        rows.append({"term_key": "SP24", "pace": pace, "track": track, "ms_nbr": nbr, "ms_type": "FE", "ms_date": final})
        rows.append(
            {"term_key": "SP24", "pace": pace, "track": track, "ms_nbr": nbr, "ms_type": "F1", "ms_date": last_try, "attempts_allowed": 2}
        )
    return rows


def _units(course_id: str) -> list[dict]:
    rows = [{"course_id": course_id, "unit": u, "unit_type": "INST", "re_points_ontime": 3} for u in range(1, 5)]
    rows.append({"course_id": course_id, "unit": 5, "unit_type": "FIN"})
    return rows


@pytest.fixture
def spring_term(db):
    """Active SP24 term with a student in M 117 (order 1) and M 118 (order 2)."""
    load_fixture_data(
        {
            "terms": [
                {"term_key": "FA23", "name": "Fall, 2023", "start_date": "2023-08-21", "end_date": "2023-12-15"},
                {
                    "term_key": "SP24",
                    "name": "Spring, 2024",
                    "start_date": "2024-01-16",
                    "end_date": "2024-05-10",
                    "withdraw_deadline": "2024-03-29",
                    "active": True,
                },
            ],
            "students": [{"student_id": STUDENT, "first_name": "Ada", "last_name": "Lovelace"}],
            "course_sections": [
                {"course_id": "M 117", "section": "001", "term_key": "SP24", "a_min_score": 65, "b_min_score": 58,
                 "c_min_score": 51, "d_min_score": 44},
                {"course_id": "M 118", "section": "001", "term_key": "SP24", "exam_structure": "MASTERY",
                 "review_required": False, "display_grade_scale": False},
            ],
            "course_units": _units("M 117") + _units("M 118"),
            "registrations": [
                {"student_id": STUDENT, "course_id": "M 117", "section": "001", "term_key": "SP24",
                 "pace_order": 1, "open_status": "Y", "prereq_satisfied": "Y"},
                {"student_id": STUDENT, "course_id": "M 118", "section": "001", "term_key": "SP24",
                 "pace_order": 2, "prereq_satisfied": "P"},
            ],
            "milestones": _milestones(
                2,
                "B",
                {
                    1: (["2024-02-01", "2024-02-06", "2024-02-10", "2024-02-15"], "2024-02-20", "2024-02-23"),
                    2: (["2024-03-22", "2024-03-27", "2024-04-01", "2024-04-05"], "2024-04-10", "2024-04-15"),
                },
            ),
        }
    )
    return get_active_term()


@pytest.fixture
def spring_regs(spring_term):
    """The student's SP24 registrations, in pace order."""
    return sorted(get_registrations(STUDENT, "SP24"), key=lambda r: r.pace_order)
