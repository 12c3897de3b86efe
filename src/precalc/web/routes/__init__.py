"""Route handlers for the Web API."""

from precalc.web.routes.health import router as health_router
from precalc.web.routes.login import router as login_router
from precalc.web.routes.schedule import router as schedule_router
from precalc.web.routes.courses import router as courses_router
from precalc.web.routes.reports import router as reports_router
from precalc.web.routes.assignments import router as assignments_router
from precalc.web.routes.feedback import router as feedback_router

__all__ = [
    "health_router",
    "login_router",
    "schedule_router",
    "courses_router",
    "reports_router",
    "assignments_router",
    "feedback_router",
]
