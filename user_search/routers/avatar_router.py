"""
Avatar API router.

Serves avatar images from the local store, downloading them on first use.
"""

import mimetypes
from urllib.parse import urlparse

import structlog
from fastapi import APIRouter, Depends, Query, Response

from ..dependencies import get_user_search_service
from ..services.user_search_service import UserSearchService
from .errors import to_http_exception

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["avatars"])

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def guess_media_type(url: str) -> str:
    """Guess the image media type from the URL path suffix."""
    media_type, _ = mimetypes.guess_type(urlparse(url).path)
    return media_type or DEFAULT_MEDIA_TYPE


@router.get(
    "/avatars",
    response_class=Response,
    responses={
        200: {"description": "Raw image bytes"},
        502: {"description": "Image could not be downloaded"},
        503: {"description": "Local store unavailable"},
    },
    summary="Get avatar image",
    description="Return the avatar stored for a URL, downloading and storing it on first use.",
)
async def get_avatar(
    url: str = Query(..., min_length=1, description="Avatar URL as returned in search results"),
    service: UserSearchService = Depends(get_user_search_service),
):
    try:
        avatar = await service.resolve_avatar(url)
    except Exception as e:
        raise to_http_exception(e)

    logger.debug("Avatar served", url=url, size=len(avatar.image_bytes))
    return Response(content=avatar.image_bytes, media_type=guess_media_type(url))
