"""
SQLAlchemy implementation of the local store.

Keeps the downloaded user directory and avatar images in a relational
database (SQLite by default). Reads run inline; writes run on a worker
thread, one transaction at a time.
"""

import asyncio
import logging
import threading
from typing import Dict, List, Optional, Sequence, Type

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..database import SQLITE_LOWER_FUNCTION
from ..domain.entities import AvatarRecord, Page, UserRecord
from ..domain.exceptions import StorageErrorKind, StorageException
from ..models import AvatarCache, UserCache
from .local_store import ILocalStore

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the text is matched literally."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class SqlLocalStore(ILocalStore):
    """Relational implementation of the user table and avatar blob store."""

    def __init__(self, engine: Engine):
        """
        Initialize store.

        Args:
            engine: SQLAlchemy engine; tables must already exist
        """
        self.engine = engine
        self.session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
        self._write_lock = threading.Lock()

    async def search_users(
        self, prefix: str, page_offset: int, page_size: int
    ) -> List[UserRecord]:
        """Read one page of users matching the name prefix."""
        page = Page(prefix, page_offset, page_size)

        statement = select(UserCache)
        if page.searched_text:
            pattern = escape_like(page.searched_text.lower()) + "%"
            statement = statement.where(
                or_(
                    self._lower(UserCache.display_name).like(pattern, escape=LIKE_ESCAPE),
                    self._lower(UserCache.user_name).like(pattern, escape=LIKE_ESCAPE),
                )
            )
        statement = (
            statement.order_by(UserCache.display_name, UserCache.user_name, UserCache.id)
            .offset(page.fetch_offset)
            .limit(page.fetch_limit)
        )

        try:
            with self.session_factory() as session:
                rows = session.scalars(statement).all()
                return [self._map_to_entity(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Error searching users for prefix '{prefix}': {e}")
            raise self._storage_error("search_users", e) from e

    async def upsert_users(self, records: Sequence[UserRecord]) -> None:
        """Insert or overwrite users by id in one transaction."""
        # Last occurrence wins within a batch
        latest: Dict[int, UserRecord] = {record.id: record for record in records}
        if not latest:
            return

        rows = [record.to_dict() for record in latest.values()]
        await asyncio.to_thread(self._write, "upsert_users", UserCache, "id", rows)
        logger.info(f"Upserted {len(rows)} users")

    async def get_avatar(self, url: str) -> Optional[AvatarRecord]:
        """Look up a stored avatar by URL."""
        try:
            with self.session_factory() as session:
                row = session.get(AvatarCache, url)
                if row is None:
                    return None
                return AvatarRecord(url=row.url, image_bytes=bytes(row.image_bytes))
        except SQLAlchemyError as e:
            logger.error(f"Error reading avatar {url}: {e}")
            raise self._storage_error("get_avatar", e) from e

    async def put_avatar(self, record: AvatarRecord) -> None:
        """Insert or overwrite an avatar by URL."""
        rows = [{"url": record.url, "image_bytes": record.image_bytes}]
        await asyncio.to_thread(self._write, "put_avatar", AvatarCache, "url", rows)
        logger.debug(f"Stored avatar {record.url} ({len(record.image_bytes)} bytes)")

    async def count_users(self) -> int:
        return self._count(UserCache)

    async def count_avatars(self) -> int:
        return self._count(AvatarCache)

    def _lower(self, column):
        """Lowercase a column the same way Python lowercases the prefix."""
        if self.engine.dialect.name == "sqlite":
            return getattr(func, SQLITE_LOWER_FUNCTION)(column)
        return func.lower(column)

    def _count(self, model: Type) -> int:
        try:
            with self.session_factory() as session:
                return session.scalar(select(func.count()).select_from(model)) or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting {model.__tablename__}: {e}")
            raise self._storage_error("count", e) from e

    def _write(self, operation: str, model: Type, key: str, rows: List[dict]) -> None:
        """
        Upsert rows in a single transaction.

        Runs on a worker thread. The lock keeps one write transaction
        in flight per store.
        """
        statement = self._build_upsert(model, key)
        with self._write_lock:
            try:
                if statement is not None:
                    with self.engine.begin() as connection:
                        connection.execute(statement, rows)
                else:
                    with self.session_factory.begin() as session:
                        for row in rows:
                            session.merge(model(**row))
            except SQLAlchemyError as e:
                logger.error(f"Error during {operation} ({len(rows)} rows): {e}")
                raise self._storage_error(operation, e) from e

    def _build_upsert(self, model: Type, key: str):
        """
        Build a dialect-specific INSERT .. ON CONFLICT DO UPDATE.

        Returns None for dialects without native upsert support, in which
        case rows are merged through the ORM.
        """
        dialect = self.engine.dialect.name
        if dialect == "sqlite":
            statement = sqlite_insert(model.__table__)
        elif dialect == "postgresql":
            statement = postgresql_insert(model.__table__)
        else:
            return None

        updated = {
            column.name: statement.excluded[column.name]
            for column in model.__table__.columns
            if column.name != key
        }
        return statement.on_conflict_do_update(index_elements=[key], set_=updated)

    @staticmethod
    def _map_to_entity(row: UserCache) -> UserRecord:
        """Map database model to domain entity."""
        return UserRecord(
            id=row.id,
            display_name=row.display_name or "",
            user_name=row.user_name or "",
            avatar_url=row.avatar_url or "",
        )

    @staticmethod
    def _storage_error(operation: str, error: SQLAlchemyError) -> StorageException:
        kind = (
            StorageErrorKind.CONSTRAINT_VIOLATION
            if isinstance(error, IntegrityError)
            else StorageErrorKind.IO_FAULT
        )
        reason = str(getattr(error, "orig", None) or error)
        return StorageException(kind, operation, reason[:200])
