"""Homework and exam sessions.

An assignment session is a homework, learning target assignment (LTA),
review exam or unit exam a student has in progress. Sessions live in one
in-memory store per kind, keyed by (login session ID, assignment ID), and
each store serializes access with an asyncio.Lock so two submissions from
the same browser cannot interleave.

A submitted session leaves the store but is remembered until it would have
timed out, so a repeated submission can be told apart from an unknown one.

Stores are persisted to JSON on shutdown and restored on startup; sessions
that have timed out are dropped. An unreadable state file is set aside and
the store starts empty.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import structlog

from precalc.config.app_config import load_app_config
from precalc.db.exams_repository import (
    HomeworkAttempt,
    StudentExam,
    get_homework_attempts,
    get_student_exams,
    insert_homework_attempt,
    insert_student_exam,
)
from precalc.db.registrations_repository import Registration

logger = structlog.get_logger(__name__)

ASSIGNMENT_KINDS = ("homework", "lta", "review_exam", "unit_exam")

# Kinds recorded as student exams, and their exam type
EXAM_TYPES = {"review_exam": "R", "unit_exam": "U"}


class AssignmentError(Exception):
    """Error starting or submitting an assignment."""

    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AssignmentSession:
    """An assignment in progress."""

    session_id: str
    student_id: str
    course_id: str
    unit: int
    assignment_id: str
    kind: str
    state: str = "active"  # active | submitted | timed_out
    answers: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=_now)
    last_touched: datetime = field(default_factory=_now)
    timeout_minutes: int = 120

    def is_timed_out(self, now: datetime | None = None) -> bool:
        now = now or _now()
        return now - self.last_touched > timedelta(minutes=self.timeout_minutes)

    def touch(self, now: datetime | None = None) -> None:
        self.last_touched = now or _now()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses and persistence."""
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["last_touched"] = self.last_touched.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssignmentSession:
        values = dict(data)
        values["started_at"] = datetime.fromisoformat(values["started_at"])
        values["last_touched"] = datetime.fromisoformat(values["last_touched"])
        return cls(**values)


class AssignmentSessionStore:
    """In-memory sessions of one kind, keyed by login session and assignment."""

    def __init__(self, kind: str):
        self.kind = kind
        self._sessions: dict[str, dict[str, AssignmentSession]] = {}
        self._submitted: dict[tuple[str, str], AssignmentSession] = {}
        self._lock = asyncio.Lock()

    @property
    def state_file_name(self) -> str:
        return f"{self.kind}_sessions.json"

    async def get(
        self, session_id: str, assignment_id: str, now: datetime | None = None
    ) -> AssignmentSession | None:
        """Get a session; a timed-out session is removed and not returned."""
        async with self._lock:
            by_assignment = self._sessions.get(session_id, {})
            session = by_assignment.get(assignment_id)
            if session is None:
                return None
            if session.is_timed_out(now):
                session.state = "timed_out"
                self._remove_locked(session_id, assignment_id)
                logger.info(
                    "assignment_session.timed_out",
                    kind=self.kind,
                    session_id=session_id,
                    assignment_id=assignment_id,
                )
                return None
            return session

    async def put(self, session: AssignmentSession, now: datetime | None = None) -> bool:
        """Store a session.

        Returns:
            False (and stores nothing) if the session has already timed out
        """
        if session.is_timed_out(now):
            logger.warning(
                "assignment_session.put_timed_out",
                kind=self.kind,
                session_id=session.session_id,
                assignment_id=session.assignment_id,
            )
            return False

        async with self._lock:
            self._submitted.pop((session.session_id, session.assignment_id), None)
            self._sessions.setdefault(session.session_id, {})[session.assignment_id] = session
        return True

    async def mark_submitted(self, session: AssignmentSession) -> None:
        """Move a session out of the store into the submitted record."""
        async with self._lock:
            self._remove_locked(session.session_id, session.assignment_id)
            self._submitted[(session.session_id, session.assignment_id)] = session

    async def get_submitted(
        self, session_id: str, assignment_id: str, now: datetime | None = None
    ) -> AssignmentSession | None:
        """Get a recently submitted session, or None once it would have timed out."""
        async with self._lock:
            key = (session_id, assignment_id)
            session = self._submitted.get(key)
            if session is not None and session.is_timed_out(now):
                del self._submitted[key]
                return None
            return session

    def _remove_locked(self, session_id: str, assignment_id: str) -> bool:
        by_assignment = self._sessions.get(session_id)
        if by_assignment is None or assignment_id not in by_assignment:
            return False
        del by_assignment[assignment_id]
        if not by_assignment:
            del self._sessions[session_id]
        return True

    async def remove(self, session_id: str, assignment_id: str) -> bool:
        async with self._lock:
            return self._remove_locked(session_id, assignment_id)

    async def list_sessions(self, session_id: str | None = None) -> list[AssignmentSession]:
        """List sessions, optionally only those of one login session."""
        async with self._lock:
            if session_id is not None:
                return list(self._sessions.get(session_id, {}).values())
            return [s for by_assignment in self._sessions.values() for s in by_assignment.values()]

    async def purge_timed_out(self, now: datetime | None = None) -> int:
        """Drop every timed-out session.

        Returns:
            Number of sessions dropped
        """
        async with self._lock:
            expired = [
                (s.session_id, s.assignment_id)
                for by_assignment in self._sessions.values()
                for s in by_assignment.values()
                if s.is_timed_out(now)
            ]
            for session_id, assignment_id in expired:
                self._remove_locked(session_id, assignment_id)

            stale = [key for key, s in self._submitted.items() if s.is_timed_out(now)]
            for key in stale:
                del self._submitted[key]

        if expired:
            logger.info("assignment_session.purged", kind=self.kind, count=len(expired))
        return len(expired)

    async def persist(self, state_dir: Path, now: datetime | None = None) -> int:
        """Write live sessions to `state_dir` as JSON.

        Returns:
            Number of sessions written
        """
        async with self._lock:
            live = [
                s.to_dict()
                for by_assignment in self._sessions.values()
                for s in by_assignment.values()
                if not s.is_timed_out(now)
            ]

        state_dir.mkdir(parents=True, exist_ok=True)
        path = state_dir / self.state_file_name
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(live, indent=2), encoding="utf-8")
        tmp.replace(path)
        logger.info("assignment_session.persisted", kind=self.kind, count=len(live), path=str(path))
        return len(live)

    async def restore(self, state_dir: Path, now: datetime | None = None) -> int:
        """Load sessions persisted by `persist`, skipping timed-out ones.

        The state file is deleted once loaded. A file that cannot be read
        back is renamed to `<name>.corrupt` and nothing is restored.

        Returns:
            Number of sessions restored
        """
        path = state_dir / self.state_file_name
        if not path.exists():
            return 0

        try:
            sessions = [
                AssignmentSession.from_dict(record)
                for record in json.loads(path.read_text(encoding="utf-8"))
            ]
        except (ValueError, KeyError, TypeError) as e:
            corrupt = path.with_name(path.name + ".corrupt")
            path.replace(corrupt)
            logger.error(
                "assignment_session.restore_failed",
                kind=self.kind,
                path=str(path),
                moved_to=str(corrupt),
                error=str(e),
            )
            return 0

        restored = 0
        async with self._lock:
            for session in sessions:
                if session.is_timed_out(now):
                    continue
                self._sessions.setdefault(session.session_id, {})[session.assignment_id] = session
                restored += 1

        path.unlink()
        logger.info("assignment_session.restored", kind=self.kind, count=restored)
        return restored


# Global stores, one per assignment kind
_session_stores: dict[str, AssignmentSessionStore] = {}


def get_session_store(kind: str) -> AssignmentSessionStore:
    """Get the global store for an assignment kind.

    Raises:
        AssignmentError: If the kind is unknown
    """
    if kind not in ASSIGNMENT_KINDS:
        raise AssignmentError(f"Unknown assignment kind: {kind}")
    if kind not in _session_stores:
        _session_stores[kind] = AssignmentSessionStore(kind)
    return _session_stores[kind]


def all_session_stores() -> list[AssignmentSessionStore]:
    return [get_session_store(kind) for kind in ASSIGNMENT_KINDS]


def reset_session_stores() -> None:
    """Reset the global stores (for testing)."""
    _session_stores.clear()


def homework_ineligibility(reg: Registration | None, course_id: str) -> list[str]:
    """Reasons a student may not work homework in a course (empty if eligible)."""
    if reg is None:
        return [f"You are not registered in {course_id}."]

    reasons = []
    if reg.open_status == "G":
        reasons.append(f"Your registration in {course_id} has been forfeited.")
    elif reg.open_status == "D":
        reasons.append(f"You have dropped {course_id}.")
    if reg.is_completed:
        reasons.append(f"You have already completed {course_id}.")
    return reasons


def review_exam_ineligibility(reg: Registration | None, course_id: str, unit: int) -> list[str]:
    reasons = homework_ineligibility(reg, course_id)
    if reasons:
        return reasons
    if not get_homework_attempts(reg.student_id, course_id, unit):
        reasons.append(f"You must attempt the Unit {unit} homework before the Review Exam.")
    return reasons


def unit_exam_ineligibility(reg: Registration | None, course_id: str, unit: int) -> list[str]:
    reasons = review_exam_ineligibility(reg, course_id, unit)
    if reasons:
        return reasons
    exams = get_student_exams(reg.student_id, course_id, unit)
    if not any(e.exam_type == "R" and e.passed for e in exams):
        reasons.append(f"You must pass the Unit {unit} Review Exam before the Unit Exam.")
    return reasons


def check_eligibility(kind: str, reg: Registration | None, course_id: str, unit: int) -> list[str]:
    """Reasons a student may not start an assignment of `kind` (empty if eligible)."""
    if kind == "review_exam":
        return review_exam_ineligibility(reg, course_id, unit)
    if kind == "unit_exam":
        return unit_exam_ineligibility(reg, course_id, unit)
    return homework_ineligibility(reg, course_id)


async def start_session(
    kind: str,
    session_id: str,
    reg: Registration | None,
    course_id: str,
    unit: int,
    assignment_id: str,
) -> AssignmentSession:
    """Start (or resume) an assignment session.

    Raises:
        AssignmentError: If the student is not eligible; the message lists
            the reasons
    """
    store = get_session_store(kind)
    await store.purge_timed_out()
    existing = await store.get(session_id, assignment_id)
    if existing is not None:
        existing.touch()
        return existing

    reasons = check_eligibility(kind, reg, course_id, unit)
    if reasons:
        logger.info(
            "assignment.ineligible",
            kind=kind,
            course_id=course_id,
            unit=unit,
            reasons=reasons,
        )
        raise AssignmentError(" ".join(reasons))

    session = AssignmentSession(
        session_id=session_id,
        student_id=reg.student_id,
        course_id=course_id,
        unit=unit,
        assignment_id=assignment_id,
        kind=kind,
        timeout_minutes=load_app_config().sessions.assignment_timeout_minutes,
    )
    await store.put(session)
    logger.info(
        "assignment.started",
        kind=kind,
        student_id=reg.student_id,
        course_id=course_id,
        assignment_id=assignment_id,
    )
    return session


def is_mastered(score: int, threshold: float | None = None) -> bool:
    """Whether a percent score meets the mastery threshold."""
    if threshold is None:
        threshold = load_app_config().sessions.mastery_threshold
    return score >= round(threshold * 100)


async def submit_session(
    session: AssignmentSession, score: int, today: date | None = None
) -> HomeworkAttempt | StudentExam:
    """Record a finished assignment and move it to its store's submitted record.

    Args:
        session: The active session
        score: Percent score, 0..100
        today: Date recorded on the attempt

    Raises:
        AssignmentError: If the session was already submitted
    """
    if session.state != "active":
        raise AssignmentError(f"Assignment {session.assignment_id} was already {session.state}.")
    if not 0 <= score <= 100:
        raise AssignmentError(f"Score must be between 0 and 100, got {score}.")

    today = today or date.today()
    passed = is_mastered(score)
    exam_type = EXAM_TYPES.get(session.kind)

    record: HomeworkAttempt | StudentExam
    if exam_type is None:
        record = insert_homework_attempt(
            HomeworkAttempt(
                student_id=session.student_id,
                course_id=session.course_id,
                unit=session.unit,
                assignment_id=session.assignment_id,
                attempt_date=today,
                score=score,
                passed=passed,
            )
        )
    else:
        record = insert_student_exam(
            StudentExam(
                student_id=session.student_id,
                course_id=session.course_id,
                unit=session.unit,
                exam_id=session.assignment_id,
                exam_type=exam_type,
                exam_date=today,
                score=score,
                passed=passed,
            )
        )

    session.state = "submitted"
    session.touch()
    await get_session_store(session.kind).mark_submitted(session)
    logger.info(
        "assignment.submitted",
        kind=session.kind,
        student_id=session.student_id,
        assignment_id=session.assignment_id,
        score=score,
        passed=passed,
    )
    return record
