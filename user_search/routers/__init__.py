"""
API routers for user search endpoints.
"""

from . import avatar_router, health_router, search_router

__all__ = ["search_router", "avatar_router", "health_router"]
