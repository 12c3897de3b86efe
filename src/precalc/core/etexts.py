"""E-text groups for the student's e-text page."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from precalc.db.etexts_repository import StudentEText, get_student_etexts


@dataclass
class ETextEntry:
    etext_id: str
    title: str
    course_id: str | None
    active_date: date | None
    expiration_date: date | None
    refund_deadline: date | None
    refundable: bool = False
    refund_date: date | None = None
    refund_reason: str | None = None


@dataclass
class ETextGroups:
    """A student's e-texts split into active, expired and refunded."""

    active: list[ETextEntry] = field(default_factory=list)
    expired: list[ETextEntry] = field(default_factory=list)
    refunded: list[ETextEntry] = field(default_factory=list)


def _entry(record: StudentEText, today: date) -> ETextEntry:
    refundable = (
        record.refund_date is None
        and record.refund_deadline is not None
        and record.refund_deadline >= today
    )
    return ETextEntry(
        etext_id=record.etext_id,
        title=record.title,
        course_id=record.course_id,
        active_date=record.active_date,
        expiration_date=record.expiration_date,
        refund_deadline=record.refund_deadline,
        refundable=refundable,
        refund_date=record.refund_date,
        refund_reason=record.refund_reason,
    )


def group_etexts(records: list[StudentEText], today: date) -> ETextGroups:
    groups = ETextGroups()
    for record in records:
        entry = _entry(record, today)
        if record.refund_date is not None:
            groups.refunded.append(entry)
        elif record.expiration_date is not None and record.expiration_date < today:
            groups.expired.append(entry)
        else:
            groups.active.append(entry)
    return groups


def build_etexts(student_id: str, today: date) -> ETextGroups:
    return group_etexts(get_student_etexts(student_id), today)
