"""
Tests for the read-through user repository.

Covers:
- Routing between remote directory and local store
- Read-back after download
- Failure isolation
- De-duplication of concurrent page-0 searches
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from user_search.domain.exceptions import (
    NetworkErrorKind,
    NetworkException,
    StorageErrorKind,
    StorageException,
    ValidationException,
)
from user_search.infrastructure.memory_user_api_client import InMemoryUserAPIClient
from user_search.infrastructure.user_api_client import RemoteUser
from user_search.repositories.memory_local_store import InMemoryLocalStore
from user_search.repositories.user_repository import UserSearchRepository


@pytest.fixture
def repository(api_client, local_store):
    return UserSearchRepository(api_client, local_store)


class TestRouting:
    """Test where each page is read from."""

    @pytest.mark.asyncio
    async def test_first_page_downloads_and_reads_back(self, repository, api_client, local_store):
        result = await repository.query("ann", 0, 20)

        assert [user.display_name for user in result] == ["Ann", "Anna", "Annie"]
        assert api_client.search_calls == 1
        assert await local_store.count_users() == 3

    @pytest.mark.asyncio
    async def test_first_page_is_sorted_page_of_store(self, repository):
        result = await repository.query("ann", 0, 2)

        assert [user.id for user in result] == [1, 2]

    @pytest.mark.asyncio
    async def test_later_pages_never_call_remote(self, repository, api_client):
        await repository.query("ann", 0, 2)

        second = await repository.query("ann", 1, 2)

        assert [user.id for user in second] == [3]
        assert api_client.search_calls == 1

    @pytest.mark.asyncio
    async def test_later_page_without_first_page_is_local_only(self, repository, api_client):
        assert await repository.query("ann", 1, 20) == []
        assert api_client.search_calls == 0

    @pytest.mark.asyncio
    async def test_empty_text_reads_local_store(self, repository, api_client, local_store, sample_users):
        await local_store.upsert_users(sample_users)

        result = await repository.query("", 0, 20)

        assert len(result) == 4
        assert api_client.search_calls == 0

    @pytest.mark.asyncio
    async def test_saved_only_never_calls_remote(self, repository, api_client, local_store, sample_users):
        await local_store.upsert_users(sample_users[:1])

        result = await repository.query_saved_only("ann", 0, 20)

        assert [user.id for user in result] == [1]
        assert api_client.search_calls == 0

    @pytest.mark.asyncio
    async def test_repeat_query_is_idempotent(self, repository, api_client, local_store):
        first = await repository.query("ann", 0, 20)
        second = await repository.query("ann", 0, 20)

        assert first == second
        assert api_client.search_calls == 2
        assert await local_store.count_users() == 3

    @pytest.mark.asyncio
    async def test_zero_results_is_empty_success(self, repository, api_client, local_store):
        assert await repository.query("nobody", 0, 20) == []
        assert api_client.search_calls == 1
        assert await local_store.count_users() == 0

    @pytest.mark.asyncio
    async def test_remote_results_not_matching_prefix_still_stored(self, local_store):
        client = InMemoryUserAPIClient()
        client.search_users = AsyncMock(
            return_value=[RemoteUser(id=9, display_name="Zed", username="zed")]
        )
        repository = UserSearchRepository(client, local_store)

        result = await repository.query("ann", 0, 20)

        assert result == []
        assert await local_store.count_users() == 1

    @pytest.mark.asyncio
    async def test_invalid_page_rejected_before_io(self, repository, api_client):
        with pytest.raises(ValidationException):
            await repository.query("ann", 0, 0)

        assert api_client.search_calls == 0


class TestFailures:
    """Test failure propagation."""

    @pytest.mark.asyncio
    async def test_network_failure_leaves_store_untouched(
        self, repository, api_client, local_store, sample_users
    ):
        await local_store.upsert_users(sample_users[:1])
        api_client.fail_with = NetworkErrorKind.TRANSPORT

        with pytest.raises(NetworkException) as exc_info:
            await repository.query("ann", 0, 20)

        assert exc_info.value.kind is NetworkErrorKind.TRANSPORT
        assert await local_store.count_users() == 1

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, api_client):
        store = AsyncMock(spec=InMemoryLocalStore)
        store.upsert_users.side_effect = StorageException(
            StorageErrorKind.IO_FAULT, "upsert_users", "disk full"
        )
        repository = UserSearchRepository(api_client, store)

        with pytest.raises(StorageException):
            await repository.query("ann", 0, 20)

        store.search_users.assert_not_called()


class TestConcurrency:
    """Test de-duplication of concurrent searches."""

    @pytest.mark.asyncio
    async def test_concurrent_identical_queries_share_one_download(self, local_store, remote_users):
        gate = asyncio.Event()
        calls = []

        async def slow_search(text):
            calls.append(text)
            await gate.wait()
            return [user for user in remote_users if user.display_name.lower().startswith(text)]

        client = InMemoryUserAPIClient()
        client.search_users = slow_search
        repository = UserSearchRepository(client, local_store)

        tasks = [asyncio.create_task(repository.query("ann", 0, 20)) for _ in range(5)]
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        assert calls == ["ann"]
        assert all(result == results[0] for result in results)
        assert len(results[0]) == 3

    @pytest.mark.asyncio
    async def test_different_texts_not_shared(self, local_store, remote_users):
        gate = asyncio.Event()
        calls = []

        async def slow_search(text):
            calls.append(text)
            await gate.wait()
            return []

        client = InMemoryUserAPIClient()
        client.search_users = slow_search
        repository = UserSearchRepository(client, local_store)

        tasks = [
            asyncio.create_task(repository.query("ann", 0, 20)),
            asyncio.create_task(repository.query("bob", 0, 20)),
        ]
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(*tasks)

        assert sorted(calls) == ["ann", "bob"]

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_abort_shared_download(self, local_store, remote_users):
        gate = asyncio.Event()

        async def slow_search(text):
            await gate.wait()
            return remote_users

        client = InMemoryUserAPIClient()
        client.search_users = slow_search
        repository = UserSearchRepository(client, local_store)

        cancelled = asyncio.create_task(repository.query("ann", 0, 20))
        waiting = asyncio.create_task(repository.query("ann", 0, 20))
        await asyncio.sleep(0)
        cancelled.cancel()
        gate.set()

        result = await waiting

        assert len(result) == 3
        with pytest.raises(asyncio.CancelledError):
            await cancelled
        assert await local_store.count_users() == 4
