"""
Database models for the user search service.

This module defines SQLAlchemy ORM models for the local copy of the
remote user directory and the avatar image cache.
"""

from typing import Any

from sqlalchemy import BigInteger, Column, Index, LargeBinary, String
from sqlalchemy.orm import declarative_base

Base: Any = declarative_base()


class UserCache(Base):
    """
    Locally cached user of the remote directory.

    Rows are written only by bulk upsert and are never deleted
    individually. The id is the remote identity.

    Attributes:
        id: Remote user id (64-bit)
        display_name: Display name shown in results
        user_name: Account handle
        avatar_url: URL of the user's avatar image
    """

    __tablename__ = "users"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    display_name = Column(String(255), nullable=False, default="")
    user_name = Column(String(255), nullable=False, default="")
    avatar_url = Column(String(2048), nullable=False, default="")

    # Prefix scans are ordered by (display_name, user_name)
    __table_args__ = (
        Index("idx_users_display_user", "display_name", "user_name"),
        Index("idx_users_user_name", "user_name"),
    )


class AvatarCache(Base):
    """
    Downloaded avatar image keyed by its URL.

    Attributes:
        url: Source URL (unique)
        image_bytes: Raw image payload
    """

    __tablename__ = "avatars"

    url = Column(String(2048), primary_key=True)
    image_bytes = Column(LargeBinary, nullable=False)
