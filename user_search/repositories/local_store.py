"""
Local store interface (Abstract Base Class).

Defines the contract for the persistent user table and the avatar blob
store, independent of the underlying storage mechanism.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..domain.entities import AvatarRecord, UserRecord


class ILocalStore(ABC):
    """
    Abstract repository interface for locally cached directory data.

    Users are read with paged prefix scans; avatars with point lookups.
    Writes are all-or-nothing and return only after they are committed.
    """

    @abstractmethod
    async def search_users(
        self, prefix: str, page_offset: int, page_size: int
    ) -> List[UserRecord]:
        """
        Read one page of users whose display name or user name starts with prefix.

        Matching is case-insensitive; an empty prefix matches every user.
        Results are ordered by display name, then user name, then id.

        Args:
            prefix: Name prefix
            page_offset: Zero-based page index
            page_size: Users per page

        Returns:
            Users at positions page_offset * page_size onwards, at most page_size

        Raises:
            StorageException: If the store cannot be read
            ValidationException: If the paging parameters are invalid
        """
        pass

    @abstractmethod
    async def upsert_users(self, records: Sequence[UserRecord]) -> None:
        """
        Insert or overwrite users by id in a single transaction.

        Args:
            records: Users to store; later entries win on duplicate ids

        Raises:
            StorageException: If the batch cannot be committed (nothing is stored)
        """
        pass

    @abstractmethod
    async def get_avatar(self, url: str) -> Optional[AvatarRecord]:
        """
        Look up a stored avatar.

        Args:
            url: Avatar source URL

        Returns:
            Stored avatar, or None if absent

        Raises:
            StorageException: If the store cannot be read
        """
        pass

    @abstractmethod
    async def put_avatar(self, record: AvatarRecord) -> None:
        """
        Insert or overwrite an avatar by URL.

        Args:
            record: Avatar to store

        Raises:
            StorageException: If the write fails
        """
        pass

    @abstractmethod
    async def count_users(self) -> int:
        """Number of stored users."""
        pass

    @abstractmethod
    async def count_avatars(self) -> int:
        """Number of stored avatars."""
        pass
