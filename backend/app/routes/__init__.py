"""API routes."""

from .applications import router as applications_router
from .businesses import router as businesses_router
from .equity import router as equity_router
from .profiles import router as profiles_router
from .projects import router as projects_router
from .tickets import router as tickets_router

__all__ = [
    "applications_router",
    "businesses_router",
    "equity_router",
    "profiles_router",
    "projects_router",
    "tickets_router",
]
