"""
Cache-first repository for avatar images.
"""

import logging

from ..domain.entities import AvatarRecord
from ..domain.exceptions import DataIntegrityException
from ..infrastructure.single_flight import SingleFlight
from ..infrastructure.user_api_client import IUserAPIClient
from ..metrics import track_cache_lookup
from .local_store import ILocalStore

logger = logging.getLogger(__name__)


class ImageRepository:
    """
    Avatar repository with a read-through local cache.

    A stored avatar is returned without network I/O. On a miss the image
    is downloaded, stored, and read back so both paths return the stored
    record.
    """

    def __init__(self, api_client: IUserAPIClient, local_store: ILocalStore):
        self.api_client = api_client
        self.local_store = local_store
        self._downloads: SingleFlight[AvatarRecord] = SingleFlight(name="avatar")

    async def resolve_image(self, url: str) -> AvatarRecord:
        """
        Get the avatar stored for a URL, downloading it on first use.

        Args:
            url: Avatar source URL

        Returns:
            Stored avatar record

        Raises:
            NetworkException: If the download fails (nothing is stored)
            StorageException: If the local store fails
        """
        avatar = await self.local_store.get_avatar(url)
        if avatar is not None:
            track_cache_lookup("avatar", hit=True)
            return avatar

        track_cache_lookup("avatar", hit=False)
        return await self._downloads.run(url, lambda: self._download(url))

    async def _download(self, url: str) -> AvatarRecord:
        image_bytes = await self.api_client.fetch_image(url)
        await self.local_store.put_avatar(AvatarRecord(url=url, image_bytes=image_bytes))

        stored = await self.local_store.get_avatar(url)
        if stored is None:
            raise DataIntegrityException("avatar", f"{url} missing right after it was stored")

        logger.info(f"Cached avatar {url} ({len(stored.image_bytes)} bytes)")
        return stored
