"""API routers."""

from app.routers.auth import router as auth_router
from app.routers.companies import router as companies_router

__all__ = ["auth_router", "companies_router"]
