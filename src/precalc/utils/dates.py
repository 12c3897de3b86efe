"""Date helpers shared by repositories and page logic."""

from __future__ import annotations

from datetime import date, datetime


def parse_date(value: str | date | None) -> date | None:
    """Parse an ISO date stored as TEXT (None passes through)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO datetime stored as TEXT (None passes through)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def to_iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def format_md(value: date) -> str:
    """Format as e.g. '3/4'."""
    return f"{value.month}/{value.day}"


def deadline_proximity(deadline: date, today: date) -> str | None:
    """Describe a deadline that falls within the next three days.

    Returns:
        "TODAY", "TOMORROW", "2 DAYS FROM TODAY", "3 DAYS FROM TODAY", or None
    """
    days = (deadline - today).days
    if days == 0:
        return "TODAY"
    if days == 1:
        return "TOMORROW"
    if days in (2, 3):
        return f"{days} DAYS FROM TODAY"
    return None
