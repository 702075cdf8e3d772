"""
Shared dependencies for the application.

Provides dependency injection functions used across routers.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .services.user_search_service import UserSearchService

# Global service instance (set by main app)
_user_search_service: Optional["UserSearchService"] = None


def set_user_search_service(service: Optional["UserSearchService"]) -> None:
    """
    Set the global user search service instance.

    Called by main app during startup and cleared at shutdown.
    """
    global _user_search_service
    _user_search_service = service


async def get_user_search_service() -> "UserSearchService":
    """
    Get user search service instance for dependency injection.

    Used by all routers that need the service.
    """
    if _user_search_service is None:
        raise RuntimeError("User search service not initialized")
    return _user_search_service
