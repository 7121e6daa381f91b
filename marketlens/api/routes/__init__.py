"""
API Routes

Modular route definitions for the MarketLens API.
"""
from marketlens.api.routes.health import router as health_router
from marketlens.api.routes.projects import router as projects_router
from marketlens.api.routes.documents import router as documents_router
from marketlens.api.routes.focus_groups import router as focus_groups_router

__all__ = [
    "health_router",
    "projects_router",
    "documents_router",
    "focus_groups_router",
]
