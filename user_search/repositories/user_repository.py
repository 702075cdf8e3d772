"""
Read-through repository for directory users.

Decides per call whether a page is served from the local store or
refreshed from the remote directory first.
"""

import logging
from typing import List

from ..domain.entities import Page, UserRecord
from ..infrastructure.single_flight import SingleFlight
from ..infrastructure.user_api_client import IUserAPIClient
from .local_store import ILocalStore

logger = logging.getLogger(__name__)


class UserSearchRepository:
    """
    User repository with a read-through local cache.

    Routing:
    1. Empty search text: local store (every stored user, paged)
    2. Page offset > 0: local store (page 0 already downloaded the results)
    3. Page 0 with text: remote search, bulk upsert, then page 0 re-read
       from the local store so every page has the same shape and order

    Concurrent page-0 queries for the same text share one remote search
    and one upsert.
    """

    def __init__(self, api_client: IUserAPIClient, local_store: ILocalStore):
        """
        Initialize repository.

        Args:
            api_client: Remote user directory
            local_store: Persistent local store
        """
        self.api_client = api_client
        self.local_store = local_store
        self._downloads: SingleFlight[int] = SingleFlight(name="user_search")

    async def query(
        self, searched_text: str, page_offset: int, page_size: int
    ) -> List[UserRecord]:
        """
        Get one page of users whose name starts with the searched text.

        Args:
            searched_text: Name prefix (empty for all users)
            page_offset: Zero-based page index
            page_size: Users per page

        Returns:
            Users of the requested page, possibly empty

        Raises:
            ValidationException: If the paging parameters are invalid
            NetworkException: If the remote search fails (local store untouched)
            StorageException: If storing or reading the results fails
        """
        page = Page(searched_text, page_offset, page_size)

        if not page.searched_text or not page.is_first:
            return await self._read_local(page)

        downloaded = await self._downloads.run(
            page.searched_text, lambda: self._download(page.searched_text)
        )
        if downloaded == 0:
            logger.info(f"Remote search for '{page.searched_text}' returned no users")
            return []

        return await self._read_local(page)

    async def query_saved_only(
        self, searched_text: str, page_offset: int, page_size: int
    ) -> List[UserRecord]:
        """
        Get one page of already stored users without contacting the directory.

        Same paging contract as query().
        """
        return await self._read_local(Page(searched_text, page_offset, page_size))

    async def _download(self, text: str) -> int:
        """
        Search the directory and store the results.

        Returns:
            Number of users the directory returned
        """
        remote_users = await self.api_client.search_users(text)
        if not remote_users:
            return 0

        records = [user.to_record() for user in remote_users]
        await self.local_store.upsert_users(records)
        logger.info(f"Stored {len(records)} users for '{text}'")
        return len(records)

    async def _read_local(self, page: Page) -> List[UserRecord]:
        users = await self.local_store.search_users(
            page.searched_text, page.page_offset, page.page_size
        )
        logger.debug(
            f"Local page {page.page_offset} for '{page.searched_text}': {len(users)} users"
        )
        return users
