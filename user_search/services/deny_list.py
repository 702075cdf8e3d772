"""
Deny-list of search texts known to return no users.

The list is loaded once per session, grows whenever a search comes back
empty, and is written back only when the session is suspended. Entries
added after the last save are lost if the process dies first.
"""

import logging
import threading
from importlib import resources
from pathlib import Path
from typing import List, Optional, Set, Union

from .. import metrics
from ..repositories.key_value_store import IKeyValueStore

logger = logging.getLogger(__name__)

DENY_LIST_KEY = "denyList"
DEFAULT_RESOURCE = "denylist.txt"


def parse_deny_list(content: str) -> Set[str]:
    """
    Parse a newline-delimited deny-list.

    Empty lines are dropped and entries are lowercased.
    """
    return {line.lower() for line in content.splitlines() if line}


class DenyListManager:
    """
    Session-scoped set of lowercase search texts that yield no results.

    Must be loaded before use; contains() and record_zero_result() raise
    RuntimeError on an unloaded manager.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        default_resource: Optional[Union[str, Path]] = None,
        key: str = DENY_LIST_KEY,
    ):
        """
        Initialize manager.

        Args:
            store: Preference store holding the persisted list
            default_resource: Newline-delimited list used when nothing is
                persisted yet (bundled list if None)
            key: Preference key of the persisted list
        """
        self.store = store
        self.default_resource = Path(default_resource) if default_resource else None
        self.key = key
        self._entries: Optional[Set[str]] = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._entries is not None

    async def load(self) -> Set[str]:
        """
        Load the list from the preference store, or from the default resource.

        The preference store is not written here; see save().

        Returns:
            Copy of the loaded entries
        """
        persisted = await self.store.get(self.key)
        if persisted is not None:
            entries = {str(item).lower() for item in persisted if item}
            source = "preferences"
        else:
            entries = parse_deny_list(self._read_default())
            source = "default list"

        with self._lock:
            self._entries = entries

        logger.info(f"Loaded {len(entries)} deny-list entries from {source}")
        return set(entries)

    def contains(self, text: str) -> bool:
        """Check whether the text (any casing) is on the list."""
        entries = self._require_loaded()
        with self._lock:
            return text.lower() in entries

    def record_zero_result(self, text: str) -> None:
        """Add a text whose search returned no users."""
        entries = self._require_loaded()
        if not text:
            return
        normalized = text.lower()
        with self._lock:
            if normalized in entries:
                return
            entries.add(normalized)

        metrics.deny_list_additions_total.inc()
        logger.info(f"Added '{normalized}' to deny-list")

    def snapshot(self) -> List[str]:
        """Sorted copy of the current entries."""
        entries = self._require_loaded()
        with self._lock:
            return sorted(entries)

    async def save(self) -> None:
        """Persist the current entries to the preference store."""
        if self._entries is None:
            logger.warning("Deny-list was never loaded, nothing to save")
            return

        values = self.snapshot()
        await self.store.set(self.key, values)
        logger.info(f"Saved {len(values)} deny-list entries")

    @property
    def size(self) -> int:
        return len(self._entries or ())

    def _require_loaded(self) -> Set[str]:
        if self._entries is None:
            raise RuntimeError("Deny-list not loaded")
        return self._entries

    def _read_default(self) -> str:
        if self.default_resource is not None:
            try:
                return self.default_resource.read_text(encoding="utf-8")
            except OSError as e:
                logger.warning(f"Cannot read deny-list {self.default_resource}: {e}")
                return ""
        return (
            resources.files("user_search.resources")
            .joinpath(DEFAULT_RESOURCE)
            .read_text(encoding="utf-8")
        )
