"""
In-memory implementation of the local store.

Same contract as the SQL store, backed by dictionaries. Used as a test
double and for throwaway sessions.
"""

import threading
from typing import Dict, List, Optional, Sequence

from ..domain.entities import AvatarRecord, Page, UserRecord
from .local_store import ILocalStore


class InMemoryLocalStore(ILocalStore):
    """Dictionary-backed user table and avatar store."""

    def __init__(self):
        self._users: Dict[int, UserRecord] = {}
        self._avatars: Dict[str, AvatarRecord] = {}
        self._lock = threading.Lock()

    async def search_users(
        self, prefix: str, page_offset: int, page_size: int
    ) -> List[UserRecord]:
        page = Page(prefix, page_offset, page_size)
        needle = page.searched_text.lower()

        with self._lock:
            users = list(self._users.values())

        if needle:
            users = [
                user
                for user in users
                if user.display_name.lower().startswith(needle)
                or user.user_name.lower().startswith(needle)
            ]
        users.sort(key=lambda user: (user.display_name, user.user_name, user.id))
        return users[page.fetch_offset : page.fetch_offset + page.fetch_limit]

    async def upsert_users(self, records: Sequence[UserRecord]) -> None:
        # Build the next state first so readers never see half a batch
        with self._lock:
            updated = dict(self._users)
            for record in records:
                updated[record.id] = record
            self._users = updated

    async def get_avatar(self, url: str) -> Optional[AvatarRecord]:
        with self._lock:
            return self._avatars.get(url)

    async def put_avatar(self, record: AvatarRecord) -> None:
        with self._lock:
            self._avatars[record.url] = record

    async def count_users(self) -> int:
        with self._lock:
            return len(self._users)

    async def count_avatars(self) -> int:
        with self._lock:
            return len(self._avatars)
