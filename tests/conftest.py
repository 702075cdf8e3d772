"""
Test configuration and fixtures
"""

import pytest

from user_search.database import create_store_engine, init_db
from user_search.domain.entities import UserRecord
from user_search.infrastructure.memory_user_api_client import InMemoryUserAPIClient
from user_search.infrastructure.user_api_client import RemoteUser
from user_search.models import Base
from user_search.repositories.key_value_store import InMemoryKeyValueStore
from user_search.repositories.sql_local_store import SqlLocalStore
from user_search.services.deny_list import DenyListManager


@pytest.fixture(scope="function")
def engine():
    """Create a fresh in-memory database for each test"""
    engine = create_store_engine("sqlite:///:memory:")
    init_db(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def local_store(engine):
    """SQL local store on the in-memory database"""
    return SqlLocalStore(engine)


@pytest.fixture
def sample_users():
    """Users sharing the 'Ann' prefix plus one unrelated user"""
    return [
        UserRecord(id=1, display_name="Ann", user_name="ann", avatar_url="https://img.test/1.png"),
        UserRecord(id=2, display_name="Anna", user_name="anna.k", avatar_url="https://img.test/2.png"),
        UserRecord(id=3, display_name="Annie", user_name="annie", avatar_url="https://img.test/3.png"),
        UserRecord(id=4, display_name="Bob", user_name="bobby", avatar_url="https://img.test/4.png"),
    ]


@pytest.fixture
def remote_users(sample_users):
    """Wire models of the sample users as the directory returns them"""
    return [
        RemoteUser(
            id=user.id,
            display_name=user.display_name,
            username=user.user_name,
            avatar_url=user.avatar_url,
        )
        for user in sample_users
    ]


@pytest.fixture
def api_client(remote_users):
    """In-memory directory serving the sample users and their avatars"""
    images = {user.avatar_url: f"image-{user.id}".encode() for user in remote_users}
    return InMemoryUserAPIClient(users=remote_users, images=images)


@pytest.fixture
def preferences():
    """Empty in-memory preference store"""
    return InMemoryKeyValueStore()


@pytest.fixture
def deny_list_file(tmp_path):
    """Small default deny-list on disk"""
    path = tmp_path / "denylist.txt"
    path.write_text("zzz\nQWERTY\n\nxxx\n", encoding="utf-8")
    return path
