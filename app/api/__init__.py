"""
API modules for the portfolio projects service.
"""
from app.api.auth import get_current_user, get_optional_user
from app.api.contact import router as contact_router
from app.api.projects import router as projects_router
from app.api.uploads import router as uploads_router

__all__ = [
    "get_current_user",
    "get_optional_user",
    "projects_router",
    "contact_router",
    "uploads_router",
]
