"""Tests for assignment sessions, eligibility and submission (F4)."""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from precalc.core.assignments import (
    AssignmentError,
    AssignmentSession,
    AssignmentSessionStore,
    all_session_stores,
    check_eligibility,
    get_session_store,
    is_mastered,
    start_session,
    submit_session,
)
from precalc.db.exams_repository import (
    HomeworkAttempt,
    StudentExam,
    get_homework_attempts,
    get_student_exams,
    insert_homework_attempt,
    insert_student_exam,
)
from precalc.db.registrations_repository import Registration

STUDENT = "111"
T0 = datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)


def make_session(assignment_id="MATH11711", session_id="login-1", kind="homework", **kwargs):
    return AssignmentSession(
        session_id=session_id,
        student_id=STUDENT,
        course_id="M 117",
        unit=1,
        assignment_id=assignment_id,
        kind=kind,
        started_at=T0,
        last_touched=T0,
        **kwargs,
    )


def reg(**kwargs) -> Registration:
    return Registration(STUDENT, "M 117", "001", "SP24", **kwargs)


class TestAssignmentSession:
    """Tests for AssignmentSession."""

    def test_timeout(self):
        session = make_session(timeout_minutes=30)
        assert not session.is_timed_out(T0 + timedelta(minutes=30))
        assert session.is_timed_out(T0 + timedelta(minutes=31))

    def test_touch_extends(self):
        session = make_session(timeout_minutes=30)
        session.touch(T0 + timedelta(minutes=20))
        assert not session.is_timed_out(T0 + timedelta(minutes=45))

    def test_dict_round_trip(self):
        session = make_session(answers={"q1": "x^2"})
        restored = AssignmentSession.from_dict(session.to_dict())
        assert restored == session


class TestAssignmentSessionStore:
    """Tests for AssignmentSessionStore."""

    @pytest.mark.asyncio
    async def test_put_and_get(self):
        store = AssignmentSessionStore("homework")
        session = make_session()
        assert await store.put(session, now=T0)
        assert await store.get("login-1", "MATH11711", now=T0) is session
        assert await store.get("login-2", "MATH11711", now=T0) is None

    @pytest.mark.asyncio
    async def test_get_drops_timed_out(self):
        store = AssignmentSessionStore("homework")
        session = make_session(timeout_minutes=10)
        await store.put(session, now=T0)

        assert await store.get("login-1", "MATH11711", now=T0 + timedelta(minutes=11)) is None
        assert session.state == "timed_out"
        assert await store.list_sessions() == []

    @pytest.mark.asyncio
    async def test_put_rejects_timed_out(self):
        store = AssignmentSessionStore("homework")
        session = make_session(timeout_minutes=10)
        assert not await store.put(session, now=T0 + timedelta(hours=1))
        assert await store.list_sessions() == []

    @pytest.mark.asyncio
    async def test_list_and_remove(self):
        store = AssignmentSessionStore("homework")
        await store.put(make_session("A"), now=T0)
        await store.put(make_session("B"), now=T0)
        await store.put(make_session("C", session_id="login-2"), now=T0)

        assert len(await store.list_sessions()) == 3
        assert [s.assignment_id for s in await store.list_sessions("login-1")] == ["A", "B"]
        assert await store.remove("login-1", "A")
        assert not await store.remove("login-1", "A")
        assert len(await store.list_sessions()) == 2

    @pytest.mark.asyncio
    async def test_purge_timed_out(self):
        store = AssignmentSessionStore("homework")
        await store.put(make_session("A", timeout_minutes=10), now=T0)
        await store.put(make_session("B", timeout_minutes=120), now=T0)

        assert await store.purge_timed_out(now=T0 + timedelta(minutes=30)) == 1
        assert [s.assignment_id for s in await store.list_sessions()] == ["B"]

    @pytest.mark.asyncio
    async def test_purge_drops_expired_submissions(self):
        store = AssignmentSessionStore("homework")
        await store.mark_submitted(make_session("A", timeout_minutes=10))

        await store.purge_timed_out(now=T0 + timedelta(minutes=30))

        assert await store.get_submitted("login-1", "A", now=T0) is None

    @pytest.mark.asyncio
    async def test_mark_submitted(self):
        store = AssignmentSessionStore("homework")
        session = make_session(timeout_minutes=10)
        await store.put(session, now=T0)

        await store.mark_submitted(session)

        assert await store.get("login-1", "MATH11711", now=T0) is None
        assert await store.get_submitted("login-1", "MATH11711", now=T0) is session
        assert await store.get_submitted("login-2", "MATH11711", now=T0) is None
        assert await store.get_submitted("login-1", "MATH11711", now=T0 + timedelta(minutes=11)) is None

    @pytest.mark.asyncio
    async def test_new_attempt_clears_submission(self):
        store = AssignmentSessionStore("homework")
        await store.mark_submitted(make_session())

        await store.put(make_session(), now=T0)

        assert await store.get_submitted("login-1", "MATH11711", now=T0) is None

    @pytest.mark.asyncio
    async def test_persist_and_restore(self, tmp_path):
        store = AssignmentSessionStore("lta")
        await store.put(make_session("A", kind="lta", answers={"q1": 3}), now=T0)
        await store.put(make_session("B", kind="lta", timeout_minutes=5), now=T0)

        written = await store.persist(tmp_path / "state", now=T0 + timedelta(minutes=10))
        assert written == 1
        assert (tmp_path / "state" / "lta_sessions.json").exists()

        fresh = AssignmentSessionStore("lta")
        restored = await fresh.restore(tmp_path / "state", now=T0 + timedelta(minutes=10))
        assert restored == 1
        session = await fresh.get("login-1", "A", now=T0 + timedelta(minutes=10))
        assert session.answers == {"q1": 3}
        assert not (tmp_path / "state" / "lta_sessions.json").exists()

    @pytest.mark.asyncio
    async def test_restore_skips_sessions_timed_out_while_down(self, tmp_path):
        store = AssignmentSessionStore("homework")
        await store.put(make_session(timeout_minutes=10), now=T0)
        await store.persist(tmp_path, now=T0)

        fresh = AssignmentSessionStore("homework")
        assert await fresh.restore(tmp_path, now=T0 + timedelta(hours=1)) == 0

    @pytest.mark.asyncio
    async def test_restore_without_file(self, tmp_path):
        assert await AssignmentSessionStore("homework").restore(tmp_path) == 0

    @pytest.mark.asyncio
    async def test_persist_leaves_no_temp_file(self, tmp_path):
        store = AssignmentSessionStore("homework")
        await store.put(make_session(), now=T0)
        await store.persist(tmp_path, now=T0)
        assert [p.name for p in tmp_path.iterdir()] == ["homework_sessions.json"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            '[{"session_id": "login-1"}]',
            '[{"bogus": 1, "started_at": "2024-02-01T10:00:00", "last_touched": "2024-02-01T10:00:00"}]',
            "[42]",
        ],
    )
    async def test_restore_sets_aside_unreadable_file(self, tmp_path, content):
        (tmp_path / "homework_sessions.json").write_text(content, encoding="utf-8")
        store = AssignmentSessionStore("homework")

        assert await store.restore(tmp_path, now=T0) == 0

        assert await store.list_sessions() == []
        assert not (tmp_path / "homework_sessions.json").exists()
        assert (tmp_path / "homework_sessions.json.corrupt").read_text(encoding="utf-8") == content


class TestSessionRegistry:
    """Tests for the global per-kind stores."""

    def test_one_store_per_kind(self):
        assert get_session_store("homework") is get_session_store("homework")
        assert get_session_store("homework") is not get_session_store("unit_exam")
        assert [s.kind for s in all_session_stores()] == ["homework", "lta", "review_exam", "unit_exam"]

    def test_unknown_kind(self):
        with pytest.raises(AssignmentError, match="Unknown assignment kind"):
            get_session_store("quiz")


class TestEligibility:
    """Tests for check_eligibility."""

    def test_not_registered(self, db):
        assert check_eligibility("homework", None, "M 117", 1) == ["You are not registered in M 117."]

    @pytest.mark.parametrize(
        "kwargs,fragment",
        [
            ({"open_status": "G"}, "forfeited"),
            ({"open_status": "D"}, "dropped"),
            ({"completed": "Y"}, "already completed"),
        ],
    )
    def test_closed_registration(self, db, kwargs, fragment):
        reasons = check_eligibility("homework", reg(**kwargs), "M 117", 1)
        assert len(reasons) == 1
        assert fragment in reasons[0]

    def test_open_registration(self, db):
        assert check_eligibility("lta", reg(open_status="Y"), "M 117", 1) == []

    def test_review_exam_needs_homework(self, db):
        assert "homework" in check_eligibility("review_exam", reg(), "M 117", 1)[0]
        insert_homework_attempt(HomeworkAttempt(STUDENT, "M 117", 1, "MATH11711", date(2024, 2, 1), 50))
        assert check_eligibility("review_exam", reg(), "M 117", 1) == []
        assert check_eligibility("review_exam", reg(), "M 117", 2) != []

    def test_unit_exam_needs_passed_review(self, db):
        insert_homework_attempt(HomeworkAttempt(STUDENT, "M 117", 1, "MATH11711", date(2024, 2, 1), 50))
        insert_student_exam(StudentExam(STUDENT, "M 117", 1, "R1", "R", date(2024, 2, 1), 60, False))
        assert "Review Exam" in check_eligibility("unit_exam", reg(), "M 117", 1)[0]

        insert_student_exam(StudentExam(STUDENT, "M 117", 1, "R1", "R", date(2024, 2, 2), 90, True))
        assert check_eligibility("unit_exam", reg(), "M 117", 1) == []


class TestMastery:
    """Tests for is_mastered."""

    def test_default_threshold(self):
        assert is_mastered(80)
        assert not is_mastered(79)

    def test_explicit_threshold(self):
        assert is_mastered(70, threshold=0.7)
        assert not is_mastered(69, threshold=0.7)


class TestStartAndSubmit:
    """Tests for start_session and submit_session."""

    @pytest.mark.asyncio
    async def test_ineligible_raises(self, db):
        with pytest.raises(AssignmentError, match="not registered"):
            await start_session("homework", "login-1", None, "M 117", 1, "MATH11711")
        assert await get_session_store("homework").list_sessions() == []

    @pytest.mark.asyncio
    async def test_start_resumes_existing(self, db):
        first = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")
        first.answers["q1"] = "4"
        second = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")
        assert second is first
        assert second.timeout_minutes == 120

    @pytest.mark.asyncio
    async def test_submit_homework(self, db):
        session = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")

        record = await submit_session(session, 85, today=date(2024, 2, 3))

        assert isinstance(record, HomeworkAttempt)
        assert record.passed
        assert session.state == "submitted"
        attempts = get_homework_attempts(STUDENT, "M 117", 1)
        assert [(a.assignment_id, a.score, a.attempt_date) for a in attempts] == [
            ("MATH11711", 85, date(2024, 2, 3))
        ]
        assert await get_session_store("homework").list_sessions() == []
        assert await get_session_store("homework").get_submitted("login-1", "MATH11711") is session

    @pytest.mark.asyncio
    async def test_submit_review_exam(self, db):
        insert_homework_attempt(HomeworkAttempt(STUDENT, "M 117", 1, "MATH11711", date(2024, 2, 1), 50))
        session = await start_session("review_exam", "login-1", reg(), "M 117", 1, "R1")

        record = await submit_session(session, 90, today=date(2024, 2, 3))

        assert isinstance(record, StudentExam)
        assert record.exam_type == "R"
        assert record.first_passed
        assert len(get_student_exams(STUDENT, "M 117", 1)) == 1

    @pytest.mark.asyncio
    async def test_double_submit(self, db):
        session = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")
        await submit_session(session, 50)
        with pytest.raises(AssignmentError, match="already submitted"):
            await submit_session(session, 90)

    @pytest.mark.asyncio
    async def test_score_out_of_range(self, db):
        session = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")
        with pytest.raises(AssignmentError, match="between 0 and 100"):
            await submit_session(session, 120)
        assert session.state == "active"

    @pytest.mark.asyncio
    async def test_concurrent_submits_record_once(self, db):
        session = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")

        results = await asyncio.gather(
            submit_session(session, 90, today=date(2024, 2, 3)),
            submit_session(session, 40, today=date(2024, 2, 3)),
            return_exceptions=True,
        )

        recorded = [r for r in results if isinstance(r, HomeworkAttempt)]
        errors = [r for r in results if isinstance(r, AssignmentError)]
        assert len(recorded) == 1
        assert len(errors) == 1
        assert len(get_homework_attempts(STUDENT, "M 117", 1)) == 1

    @pytest.mark.asyncio
    async def test_start_purges_abandoned_sessions(self, db):
        store = get_session_store("homework")
        await store.put(make_session("MATH11712", session_id="login-2", timeout_minutes=10), now=T0)

        await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")

        assert [s.assignment_id for s in await store.list_sessions()] == ["MATH11711"]

    @pytest.mark.asyncio
    async def test_restart_after_submit(self, db):
        first = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")
        await submit_session(first, 50)

        second = await start_session("homework", "login-1", reg(), "M 117", 1, "MATH11711")

        assert second is not first
        assert second.state == "active"
        assert await get_session_store("homework").get_submitted("login-1", "MATH11711") is None
