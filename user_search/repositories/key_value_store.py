"""
Key-value preference stores.

Persist small JSON-serializable values (such as the deny-list) across
sessions. Three backends share one interface: a JSON file, Redis, and
process memory.
"""

import asyncio
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class IKeyValueStore(ABC):
    """Abstract interface for persisted preferences."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """
        Read a value.

        Args:
            key: Preference key

        Returns:
            Stored value, or None if the key is absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """
        Write a value, replacing any previous one.

        Args:
            key: Preference key
            value: JSON-serializable value
        """
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None


class JsonFileKeyValueStore(IKeyValueStore):
    """
    Preferences kept in a single JSON object on disk.

    Writes replace the file atomically (temporary file + rename).
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[Any]:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._update, key, value)
        logger.debug(f"Saved preference '{key}' to {self.path}")

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _update(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".prefs-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise


class RedisKeyValueStore(IKeyValueStore):
    """
    Preferences kept as JSON strings in Redis.

    Keys are namespaced so the store can share a database.
    """

    def __init__(self, redis_client: redis.Redis, namespace: str = "user_search:prefs"):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client
            namespace: Prefix for every key
        """
        self.redis = redis_client
        self.namespace = namespace

    def _build_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.redis.get(self._build_key(key))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        await self.redis.set(self._build_key(key), json.dumps(value))
        logger.debug(f"Saved preference '{key}' to Redis")

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryKeyValueStore(IKeyValueStore):
    """Preferences that live only as long as the process."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Optional[Any]:
        return self.values.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.values[key] = value
