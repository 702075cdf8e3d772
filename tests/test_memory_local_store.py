"""
Tests for the in-memory local store.

The in-memory store is used as a test double, so it must follow the
same paging and upsert rules as the SQL store.
"""

from unittest.mock import MagicMock

import pytest

from user_search.domain.entities import AvatarRecord, UserRecord
from user_search.domain.exceptions import ValidationException
from user_search.repositories.memory_local_store import InMemoryLocalStore


@pytest.fixture
def store():
    return InMemoryLocalStore()


class TestInMemoryLocalStore:
    """Test InMemoryLocalStore."""

    @pytest.mark.asyncio
    async def test_search_and_paging(self, store, sample_users):
        await store.upsert_users(sample_users)

        first = await store.search_users("ANN", 0, 2)
        second = await store.search_users("ann", 1, 2)

        assert [user.id for user in first] == [1, 2]
        assert [user.id for user in second] == [3]

    @pytest.mark.asyncio
    async def test_non_ascii_prefix_is_case_insensitive(self, store):
        await store.upsert_users(
            [UserRecord(id=1, display_name="Élodie", user_name="elodie", avatar_url="")]
        )

        assert [user.id for user in await store.search_users("é", 0, 20)] == [1]
        assert [user.id for user in await store.search_users("ÉLO", 0, 20)] == [1]

    @pytest.mark.asyncio
    async def test_empty_prefix_returns_all(self, store, sample_users):
        await store.upsert_users(sample_users)
        assert await store.count_users() == 4
        assert len(await store.search_users("", 0, 20)) == 4

    @pytest.mark.asyncio
    async def test_last_write_wins(self, store):
        await store.upsert_users(
            [
                UserRecord(id=1, display_name="Old", user_name="old", avatar_url=""),
                UserRecord(id=1, display_name="New", user_name="new", avatar_url=""),
            ]
        )

        assert [user.display_name for user in await store.search_users("", 0, 20)] == ["New"]

    @pytest.mark.asyncio
    async def test_invalid_page_rejected(self, store):
        with pytest.raises(ValidationException):
            await store.search_users("", 0, 0)

    @pytest.mark.asyncio
    async def test_avatars(self, store):
        assert await store.get_avatar("https://a/1.png") is None

        await store.put_avatar(AvatarRecord(url="https://a/1.png", image_bytes=b"data"))

        assert (await store.get_avatar("https://a/1.png")).image_bytes == b"data"
        assert await store.count_avatars() == 1

    @pytest.mark.asyncio
    async def test_counts_take_the_store_lock(self, store, sample_users):
        await store.upsert_users(sample_users)
        lock = MagicMock()
        store._lock = lock

        assert await store.count_users() == 4
        assert await store.count_avatars() == 0
        assert lock.__enter__.call_count == 2
        assert lock.__exit__.call_count == 2
