"""Route handlers for the course API."""

from gradetrack.web.routes.assessments import router as assessments_router
from gradetrack.web.routes.courses import router as courses_router
from gradetrack.web.routes.health import router as health_router
from gradetrack.web.routes.modules import router as modules_router
from gradetrack.web.routes.years import router as years_router

__all__ = [
    "assessments_router",
    "courses_router",
    "health_router",
    "modules_router",
    "years_router",
]
