"""
API routes module.

Exports all route routers for registration in main app.
"""

from notaire.presentation.api.routes.health import router as health_router
from notaire.presentation.api.routes.listener import router as listener_router

__all__ = [
    "health_router",
    "listener_router",
]
