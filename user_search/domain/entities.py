"""
Domain entities for the user directory.

Core business objects representing cached users, their avatars,
and the page window used to read them back.
"""

from dataclasses import dataclass, field
from typing import List

from .exceptions import ValidationException

# Identity is stored as a signed 64-bit integer
MIN_USER_ID = -(2**63)
MAX_USER_ID = 2**63 - 1


@dataclass(frozen=True)
class UserRecord:
    """
    A user of the remote directory as stored locally.

    Identity is the remote ``id``; re-inserting a record with the same id
    overwrites every other field.
    """

    id: int
    display_name: str
    user_name: str
    avatar_url: str

    def __post_init__(self):
        """Reject identities that cannot be stored without truncation."""
        if not MIN_USER_ID <= self.id <= MAX_USER_ID:
            raise ValueError(f"User id out of 64-bit range: {self.id}")

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "user_name": self.user_name,
            "avatar_url": self.avatar_url,
        }


@dataclass(frozen=True)
class AvatarRecord:
    """Avatar image bytes keyed by the URL they were downloaded from."""

    url: str
    image_bytes: bytes = field(repr=False)


@dataclass(frozen=True)
class Page:
    """
    Value object for a window over the sorted search results.

    Records for offset ``o`` are the ``o * page_size`` through
    ``(o + 1) * page_size - 1``-th matches.
    """

    searched_text: str
    page_offset: int
    page_size: int

    def __post_init__(self):
        """Validate paging parameters on creation."""
        if self.page_offset < 0:
            raise ValidationException(
                "page_offset", self.page_offset, "Page offset cannot be negative"
            )
        if self.page_size <= 0:
            raise ValidationException(
                "page_size", self.page_size, "Page size must be positive"
            )

    @property
    def fetch_offset(self) -> int:
        return self.page_offset * self.page_size

    @property
    def fetch_limit(self) -> int:
        return self.page_size

    @property
    def is_first(self) -> bool:
        return self.page_offset == 0


@dataclass
class SearchOutcome:
    """
    Result of a user search as seen by the caller.

    ``denied`` is set when the query was short-circuited by the deny-list,
    so that an empty list can be told apart from a search that ran and
    found nothing.
    """

    users: List[UserRecord]
    denied: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.users
