"""
Business logic service layer.

Orchestrates user searches for one session: consults the deny-list
before going to the network, learns from empty searches, and resolves
avatars for the users on a page.
"""

import asyncio
import logging
from typing import Dict, Iterable, List

from .. import metrics
from ..domain.entities import AvatarRecord, Page, SearchOutcome, UserRecord
from ..repositories.image_repository import ImageRepository
from ..repositories.user_repository import UserSearchRepository
from .deny_list import DenyListManager

logger = logging.getLogger(__name__)


class UserSearchService:
    """
    Session-level user search.

    Owns the deny-list integration: a denied text is answered with an
    empty outcome before any I/O, and a first page that comes back empty
    adds its text to the deny-list.
    """

    def __init__(
        self,
        user_repository: UserSearchRepository,
        image_repository: ImageRepository,
        deny_list: DenyListManager,
    ):
        """
        Initialize search service.

        Args:
            user_repository: Read-through user repository
            image_repository: Read-through avatar repository
            deny_list: Loaded deny-list for this session
        """
        self.user_repository = user_repository
        self.image_repository = image_repository
        self.deny_list = deny_list

    async def search(self, text: str, page_offset: int, page_size: int) -> SearchOutcome:
        """
        Search users by name prefix.

        Args:
            text: Name prefix typed by the user
            page_offset: Zero-based page index
            page_size: Users per page

        Returns:
            SearchOutcome with the page of users and whether the deny-list
            answered the query

        Raises:
            ValidationException: If the paging parameters are invalid
            NetworkException: If the remote search fails
            StorageException: If the local store fails
        """
        page = Page(text, page_offset, page_size)
        first_text_page = page.is_first and bool(page.searched_text)

        if first_text_page and self.deny_list.contains(page.searched_text):
            metrics.deny_list_short_circuits_total.inc()
            logger.info(f"Search for '{page.searched_text}' skipped by deny-list")
            return SearchOutcome(users=[], denied=True)

        users = await self.user_repository.query(
            page.searched_text, page.page_offset, page.page_size
        )

        if first_text_page and not users:
            self.deny_list.record_zero_result(page.searched_text)

        return SearchOutcome(users=users)

    async def browse_saved(
        self, text: str, page_offset: int, page_size: int
    ) -> List[UserRecord]:
        """
        Browse previously downloaded users without searching the directory.

        The deny-list is neither consulted nor updated.
        """
        return await self.user_repository.query_saved_only(text, page_offset, page_size)

    async def resolve_avatar(self, url: str) -> AvatarRecord:
        """Get a user's avatar, downloading it on first use."""
        return await self.image_repository.resolve_image(url)

    async def preload_avatars(self, users: Iterable[UserRecord]) -> Dict[str, AvatarRecord]:
        """
        Resolve the avatars of a page of users concurrently.

        Failed downloads are logged and left out of the result.

        Args:
            users: Users whose avatars should be available

        Returns:
            Resolved avatars keyed by URL
        """
        urls = list(dict.fromkeys(user.avatar_url for user in users if user.avatar_url))
        if not urls:
            return {}

        results = await asyncio.gather(
            *(self.image_repository.resolve_image(url) for url in urls),
            return_exceptions=True,
        )

        avatars: Dict[str, AvatarRecord] = {}
        for url, result in zip(urls, results):
            if isinstance(result, AvatarRecord):
                avatars[url] = result
            elif isinstance(result, Exception):
                logger.warning(f"Failed to load avatar {url}: {result}")

        logger.info(f"Preloaded {len(avatars)}/{len(urls)} avatars")
        return avatars

    async def status(self) -> dict:
        """
        Counts for readiness checks.

        Raises:
            StorageException: If the local store cannot be queried
        """
        local_store = self.user_repository.local_store
        return {
            "users": await local_store.count_users(),
            "avatars": await local_store.count_avatars(),
            "deny_list_entries": self.deny_list.size,
            "remote": self.user_repository.api_client.get_health_status(),
        }

    async def suspend(self) -> None:
        """Persist session state before the host suspends or shuts down."""
        await self.deny_list.save()
