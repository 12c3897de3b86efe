"""Pydantic schemas for the Web API.

Response models read straight from the core dataclasses
(`from_attributes`), so routes validate core objects directly.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field


class _FromCore(BaseModel):
    model_config = {"from_attributes": True}


# =============================================================================
# HEALTH / LOGIN
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


class LoginRequest(BaseModel):
    """Request body for logging in."""

    student_id: str = Field(..., min_length=1, max_length=20)


class LoginResponse(BaseModel):
    """A new login session."""

    session_id: str
    student_id: str
    display_name: str
    expires_at: str


# =============================================================================
# SCHEDULE SCHEMAS
# =============================================================================


class OrderingOptionResponse(_FromCore):
    """One ordering the student may choose."""

    option_number: int
    start_order: int
    course_ids: list[str]
    orders: dict[int, str]


class ExamDeadlineResponse(_FromCore):
    exam_title: str
    exam_type: str
    unit: int
    deadline: date
    status: str
    urgency: str
    passed: bool


class LastTryResponse(_FromCore):
    deadline: date
    attempts_allowed: int
    attempts_taken: int


class PaceCourseResponse(_FromCore):
    course_id: str
    label: str
    name: str
    section: str
    pace_order: int | None
    is_incomplete: bool
    config_error: str | None = None
    deadlines: list[ExamDeadlineResponse] = Field(default_factory=list)
    last_try: LastTryResponse | None = None
    notes: list[str] = Field(default_factory=list)


class IncompleteResponse(_FromCore):
    course_id: str
    label: str
    incomplete_term: str | None
    deadline: date
    proximity: str | None = None


class ScheduleViewResponse(_FromCore):
    term_name: str
    opening: list[str]
    incompletes: list[IncompleteResponse] = Field(default_factory=list)
    non_scheduled: list[str] = Field(default_factory=list)
    courses: list[PaceCourseResponse] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class ScheduleResponse(_FromCore):
    """Schedule, or the ordering options when the pace order is undecided."""

    student_id: str
    resolved: bool
    pace: int
    track: str
    first_course: str | None
    options: list[OrderingOptionResponse] = Field(default_factory=list)
    view: ScheduleViewResponse | None = None


class OrderChoiceRequest(BaseModel):
    """Chosen pace orders: order number -> course ID."""

    orders: dict[int, str] = Field(..., min_length=1)


class OrderChoiceResponse(BaseModel):
    updated: int
    schedule: ScheduleResponse


# =============================================================================
# COURSE SCHEMAS
# =============================================================================


class StandardResponse(_FromCore):
    target_number: str
    assignment_id: str
    mastered: bool


class GradeScaleResponse(_FromCore):
    max_possible: int | None
    a_min: int | None
    b_min: int | None
    c_min: int | None
    d_min: int | None


class CourseStatusResponse(_FromCore):
    course_id: str
    label: str
    available: bool
    standards: list[StandardResponse] = Field(default_factory=list)
    standards_mastered: int = 0
    final_passed: bool | None = None
    total_points: int = 0
    incomplete_term: str | None = None
    grade_scale: GradeScaleResponse | None = None
    message: str | None = None


class OutlineItemResponse(_FromCore):
    assignment_id: str
    title: str
    status: str
    locked: bool
    best_score: int | None = None


class ModuleOutlineResponse(_FromCore):
    module_number: int
    title: str
    skills_review: OutlineItemResponse
    learning_targets: list[OutlineItemResponse] = Field(default_factory=list)
    explorations: list[OutlineItemResponse] = Field(default_factory=list)


class CourseOutlineResponse(_FromCore):
    course_id: str
    label: str
    mode: str
    modules: list[ModuleOutlineResponse] = Field(default_factory=list)


# =============================================================================
# E-TEXT / PLACEMENT SCHEMAS
# =============================================================================


class ETextResponse(_FromCore):
    etext_id: str
    title: str
    course_id: str | None
    active_date: date | None
    expiration_date: date | None
    refund_deadline: date | None
    refundable: bool
    refund_date: date | None = None
    refund_reason: str | None = None


class ETextGroupsResponse(_FromCore):
    active: list[ETextResponse] = Field(default_factory=list)
    expired: list[ETextResponse] = Field(default_factory=list)
    refunded: list[ETextResponse] = Field(default_factory=list)


class PlacementAttemptResponse(_FromCore):
    version: str
    serial_nbr: int
    started: datetime | None
    duration: str | None
    placed: bool
    subtests: dict[str, int] = Field(default_factory=dict)


class PlacementCreditResponse(_FromCore):
    course_id: str
    label: str
    kind: str


class PlacementReportResponse(_FromCore):
    attempted: bool
    attempts: list[PlacementAttemptResponse] = Field(default_factory=list)
    credit: list[PlacementCreditResponse] = Field(default_factory=list)
    denied: list[PlacementCreditResponse] = Field(default_factory=list)


# =============================================================================
# ASSIGNMENT SCHEMAS
# =============================================================================


class AssignmentStartRequest(BaseModel):
    """Request body for starting a homework or exam."""

    course_id: str
    unit: int = Field(..., ge=0, le=9)
    assignment_id: str = Field(..., min_length=1, max_length=40)


class AssignmentResponse(_FromCore):
    """An assignment session in progress."""

    assignment_id: str
    kind: str
    student_id: str
    course_id: str
    unit: int
    state: str
    answers: dict[str, Any] = Field(default_factory=dict)
    started_at: datetime
    last_touched: datetime


class AnswersRequest(BaseModel):
    """Answers to merge into a session."""

    answers: dict[str, Any]


class SubmitRequest(BaseModel):
    """Percent score for a finished assignment."""

    score: int = Field(..., ge=0, le=100)


class SubmitResponse(BaseModel):
    assignment_id: str
    kind: str
    score: int
    passed: bool
    first_passed: bool | None = None


# =============================================================================
# FEEDBACK SCHEMAS
# =============================================================================


class MediaFeedbackRequest(BaseModel):
    media_id: str = Field(..., min_length=1, max_length=40)
    comment: str = Field(..., min_length=1, max_length=2000)


class MediaFeedbackResponse(BaseModel):
    feedback_id: int
    media_id: str
