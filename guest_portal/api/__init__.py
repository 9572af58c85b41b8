"""API routers."""

from guest_portal.api.auth import router as auth_router
from guest_portal.api.guests import router as guests_router

__all__ = ["auth_router", "guests_router"]
