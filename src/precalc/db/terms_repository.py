"""Repository functions for the terms table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import structlog

from precalc.db.database import get_db
from precalc.utils.dates import parse_date, to_iso

logger = structlog.get_logger(__name__)


@dataclass
class TermRecord:
    """Term record from database."""

    term_key: str  # e.g. "SP24"
    name: str  # e.g. "Spring, 2024"
    start_date: date
    end_date: date
    withdraw_deadline: date | None = None
    active: bool = False


def insert_term(term: TermRecord) -> None:
    """Insert a term; marking it active clears any other active term."""
    with get_db() as conn:
        if term.active:
            conn.execute("UPDATE terms SET active = 0")
        conn.execute(
            """
            INSERT INTO terms (term_key, name, start_date, end_date, withdraw_deadline, active)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                term.term_key,
                term.name,
                to_iso(term.start_date),
                to_iso(term.end_date),
                to_iso(term.withdraw_deadline),
                1 if term.active else 0,
            ),
        )

    logger.debug("terms.inserted", term_key=term.term_key, active=term.active)


def get_active_term() -> TermRecord | None:
    """Get the active term, or None if none is configured."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM terms WHERE active = 1").fetchone()

    return None if row is None else _row_to_record(row)


def get_term(term_key: str) -> TermRecord | None:
    """Get a term by key."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM terms WHERE term_key = ?", (term_key,)).fetchone()

    return None if row is None else _row_to_record(row)


def _row_to_record(row) -> TermRecord:
    return TermRecord(
        term_key=row["term_key"],
        name=row["name"],
        start_date=parse_date(row["start_date"]),
        end_date=parse_date(row["end_date"]),
        withdraw_deadline=parse_date(row["withdraw_deadline"]),
        active=bool(row["active"]),
    )
