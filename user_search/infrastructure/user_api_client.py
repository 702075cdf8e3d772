"""
Remote user directory client interface.

Defines the contract for the directory's search and avatar endpoints,
and the wire models of the search response.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ..domain.entities import MAX_USER_ID, MIN_USER_ID, UserRecord


class RemoteUser(BaseModel):
    """
    User entry as returned by the directory search endpoint.

    Absent or null fields fall back to an empty string or zero. Ids
    outside the signed 64-bit range fail validation.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    avatar_url: str = ""
    display_name: str = ""
    id: int = Field(default=0, ge=MIN_USER_ID, le=MAX_USER_ID)
    user_name: str = Field(default="", alias="username")

    @field_validator("*", mode="before")
    @classmethod
    def null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Replace explicit nulls with the field default."""
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    def to_record(self) -> UserRecord:
        """Map the wire model to the domain entity."""
        return UserRecord(
            id=self.id,
            display_name=self.display_name,
            user_name=self.user_name,
            avatar_url=self.avatar_url,
        )


class UserListResponse(BaseModel):
    """Body of the directory search endpoint."""

    model_config = ConfigDict(extra="ignore")

    ok: bool = False
    error: Optional[str] = None
    users: Optional[List[RemoteUser]] = None


class IUserAPIClient(ABC):
    """
    Abstract interface for the remote user directory.

    Implementations perform a single attempt per call and raise
    NetworkException on failure. They hold no caching or routing policy.
    """

    @abstractmethod
    async def search_users(self, text: str) -> List[RemoteUser]:
        """
        Search the directory with the raw query text.

        Args:
            text: Search text, sent unmodified

        Returns:
            Users in the order returned by the directory (possibly empty)

        Raises:
            NetworkException: If the request or decoding fails
        """
        pass

    @abstractmethod
    async def fetch_image(self, url: str) -> bytes:
        """
        Download raw image bytes.

        Args:
            url: Absolute image URL

        Returns:
            Response body

        Raises:
            NetworkException: If the URL is malformed or the download fails
        """
        pass

    @abstractmethod
    def get_health_status(self) -> dict:
        """
        Get client health status.

        Returns:
            Dictionary with client details and call statistics
        """
        pass

    async def close(self) -> None:
        """Release network resources held by the client."""
        return None
