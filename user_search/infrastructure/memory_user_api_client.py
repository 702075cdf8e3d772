"""
In-memory stand-in for the remote user directory.

Serves a fixed set of users and images without network access. Used
by tests and for running the service offline.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..domain.exceptions import NetworkErrorKind, NetworkException
from .user_api_client import IUserAPIClient, RemoteUser

logger = logging.getLogger(__name__)


class InMemoryUserAPIClient(IUserAPIClient):
    """
    Directory double backed by plain collections.

    Search matches display name or user name prefixes case-insensitively,
    which is how the real directory behaves for the queries we send it.
    Call counters let tests assert how often the "network" was used.
    """

    def __init__(
        self,
        users: Optional[Iterable[RemoteUser]] = None,
        images: Optional[Dict[str, bytes]] = None,
    ):
        self.users: List[RemoteUser] = list(users or [])
        self.images: Dict[str, bytes] = dict(images or {})
        self.search_calls = 0
        self.image_calls = 0
        self.fail_with: Optional[NetworkErrorKind] = None

    async def search_users(self, text: str) -> List[RemoteUser]:
        self.search_calls += 1
        if self.fail_with is not None:
            raise NetworkException(self.fail_with, reason="simulated failure")

        needle = text.lower()
        return [
            user
            for user in self.users
            if user.display_name.lower().startswith(needle)
            or user.user_name.lower().startswith(needle)
        ]

    async def fetch_image(self, url: str) -> bytes:
        self.image_calls += 1
        if self.fail_with is not None:
            raise NetworkException(self.fail_with, url=url, reason="simulated failure")

        if url not in self.images:
            raise NetworkException(NetworkErrorKind.TRANSPORT, url=url, reason="HTTP 404")
        return self.images[url]

    def get_health_status(self) -> dict:
        return {
            "backend": "memory",
            "users": len(self.users),
            "images": len(self.images),
            "search_calls": self.search_calls,
            "image_calls": self.image_calls,
        }
