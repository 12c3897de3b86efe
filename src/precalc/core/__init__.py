"""Core course-site logic.

Modules:
- pace: pace and pace-track determination
- pace_order: pace-order verification, assignment and ordering options
- deadlines: exam deadline schedule for paced courses
- schedule: ties term, registrations, pace order and deadlines together
- course_status: standards mastered, points and grade scale
- outline: module outline with Skills Review gating
- etexts: e-text groups
- placement: placement report
- assignments: homework/exam session stores and submission
"""

__all__ = [
    "pace",
    "pace_order",
    "deadlines",
    "schedule",
    "course_status",
    "outline",
    "etexts",
    "placement",
    "assignments",
]
