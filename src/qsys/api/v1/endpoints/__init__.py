"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .branches import router as branches_router
from .display import router as display_router
from .register import router as register_router
from .staff import router as staff_router
from .system import router as system_router
from .tickets import router as tickets_router

__all__ = [
    "admin_router",
    "branches_router",
    "display_router",
    "register_router",
    "staff_router",
    "system_router",
    "tickets_router",
]
