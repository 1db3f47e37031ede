"""API package exports."""

from shram_setu.api.admin import router as admin_router
from shram_setu.api.auth import router as auth_router
from shram_setu.api.health import router as health_router
from shram_setu.api.middleware import CorrelationIdMiddleware

__all__ = ["admin_router", "auth_router", "health_router", "CorrelationIdMiddleware"]
