"""
User search API router.

Exposes prefix search against the remote directory (cached locally) and
browsing of the users saved by earlier searches.
"""

from typing import List

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..config import settings
from ..dependencies import get_user_search_service
from ..domain.entities import UserRecord
from ..services.user_search_service import UserSearchService
from .errors import to_http_exception

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["users"])


class UserResponse(BaseModel):
    """Single user in a result page."""

    id: int
    display_name: str
    user_name: str
    avatar_url: str


class UserPageResponse(BaseModel):
    """One page of users."""

    success: bool = True
    query: str
    page: int
    page_size: int
    count: int
    denied: bool = Field(
        default=False,
        description="True when the query is known to return no users and was not searched",
    )
    users: List[UserResponse]


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    message: str
    details: dict = {}


ERROR_RESPONSES = {
    400: {"description": "Invalid paging parameters", "model": ErrorResponse},
    502: {"description": "Remote directory unavailable", "model": ErrorResponse},
    503: {"description": "Local store unavailable", "model": ErrorResponse},
}


def _page_response(
    query: str, page: int, page_size: int, users: List[UserRecord], denied: bool = False
) -> UserPageResponse:
    return UserPageResponse(
        query=query,
        page=page,
        page_size=page_size,
        count=len(users),
        denied=denied,
        users=[UserResponse(**user.to_dict()) for user in users],
    )


@router.get(
    "/search",
    response_model=UserPageResponse,
    responses=ERROR_RESPONSES,
    summary="Search users by name prefix",
    description="""
    Search users whose display name or user name starts with the query.

    The first page of a non-empty query is fetched from the remote directory
    and saved locally; later pages are served from the local store.
    Queries known to return nothing are answered with `denied: true`.
    """,
)
async def search_users(
    query: str = Query("", max_length=200, description="Name prefix"),
    page: int = Query(0, ge=0, description="Zero-based page index"),
    page_size: int = Query(
        settings.PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Users per page"
    ),
    service: UserSearchService = Depends(get_user_search_service),
):
    """Search users by name prefix."""
    try:
        outcome = await service.search(query, page, page_size)
    except Exception as e:
        raise to_http_exception(e)

    logger.info(
        "Search completed",
        query=query,
        page=page,
        count=len(outcome.users),
        denied=outcome.denied,
    )
    return _page_response(query, page, page_size, outcome.users, denied=outcome.denied)


@router.get(
    "/saved",
    response_model=UserPageResponse,
    responses=ERROR_RESPONSES,
    summary="Browse saved users",
    description="Page through users saved by earlier searches without calling the remote directory.",
)
async def browse_saved_users(
    query: str = Query("", max_length=200, description="Name prefix"),
    page: int = Query(0, ge=0, description="Zero-based page index"),
    page_size: int = Query(
        settings.PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Users per page"
    ),
    service: UserSearchService = Depends(get_user_search_service),
):
    """Browse users already in the local store."""
    try:
        users = await service.browse_saved(query, page, page_size)
    except Exception as e:
        raise to_http_exception(e)

    return _page_response(query, page, page_size, users)
