"""API routes."""

from salary_progression.api.routes.health import router as health_router
from salary_progression.api.routes.salary import router as salary_router

__all__ = ["salary_router", "health_router"]
