"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    branches_router,
    display_router,
    register_router,
    staff_router,
    system_router,
    tickets_router,
)

__all__ = [
    "admin_router",
    "branches_router",
    "display_router",
    "register_router",
    "staff_router",
    "system_router",
    "tickets_router",
]
