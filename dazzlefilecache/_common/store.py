"""
Private content storage with LRU eviction and a byte ceiling.

The store keeps file contents in an OrderedDict whose order is the LRU
order (oldest first) and keeps a running byte total. Every eviction it
performs calls an ``on_evict`` hook first so directory tracking can follow.
"""

import logging
from typing import Callable, Iterable, List, NamedTuple, Optional

from .identity import path_of, same_path
from .state import CacheEntry, CacheState, Content

logger = logging.getLogger(__name__)


class StoreSnapshot(NamedTuple):
    total_bytes: int
    entry_count: int


class _LruContentStore:
    """
    Private content storage with strict LRU eviction.

    This class encapsulates all storage operations including:
    - Get/put with LRU ordering
    - Byte-ceiling eviction, oldest first
    - Targeted eviction by id
    - Resizing the ceiling

    Entries larger than the whole ceiling are never stored.
    """

    def __init__(self, state: CacheState,
                 on_evict: Optional[Callable[[str], None]] = None):
        """
        Initialize the store over a shared cache state.

        Args:
            state: The owning cache's state (entries, byte count, ceiling)
            on_evict: Called with the entry id before each eviction
        """
        self.state = state
        self.on_evict = on_evict

    @property
    def byte_ceiling(self) -> int:
        return self.state.byte_ceiling

    @property
    def total_bytes(self) -> int:
        return self.state.total_bytes

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self.state.entries

    def __len__(self) -> int:
        return len(self.state.entries)

    def get(self, entry_id: str) -> Optional[Content]:
        """
        Get cached content, marking it most recently used.

        Args:
            entry_id: Entry id from make_id()

        Returns:
            Cached content or None if not found
        """
        entry = self.state.entries.get(entry_id)
        if entry is None:
            return None

        self.state.entries.move_to_end(entry_id)
        return entry.content

    def put(self, entry_id: str, content: Content) -> bool:
        """
        Store content, evicting older entries if needed.

        Args:
            entry_id: Entry id from make_id()
            content: The bytes (or decoded text) that were read

        Returns:
            True if cached, False if rejected for being larger than the ceiling
        """
        entry = CacheEntry.create(entry_id, content)
        if entry.size > self.state.byte_ceiling:
            logger.debug("file too big for cache: %s, size: %d", path_of(entry_id), entry.size)
            return False

        # Replacing an entry: the id stays tracked, only the bytes change
        old = self.state.entries.pop(entry_id, None)
        if old is not None:
            self.state.total_bytes -= old.size

        self._evict_until_fit(entry.size)

        self.state.entries[entry_id] = entry
        self.state.total_bytes += entry.size
        logger.debug("cached: %s", entry_id)
        logger.debug("cache size: %d", self.state.total_bytes)
        return True

    def evict(self, entry_ids: Iterable[str]) -> int:
        """
        Remove the given entries if present.

        Args:
            entry_ids: Ids to remove; absent ids are ignored

        Returns:
            Number of entries removed
        """
        removed = 0
        for entry_id in list(entry_ids):
            if entry_id in self.state.entries:
                self._remove(entry_id)
                removed += 1
        if removed:
            logger.debug("cache size: %d", self.state.total_bytes)
        return removed

    def fits(self, content: Content) -> bool:
        """Whether put() would accept this content."""
        return len(content) <= self.state.byte_ceiling

    def discard(self, entry_id: str) -> None:
        """Remove one entry without calling the on_evict hook."""
        entry = self.state.entries.pop(entry_id, None)
        if entry is not None:
            self.state.total_bytes -= entry.size

    def set_ceiling(self, num_bytes: int) -> None:
        """
        Change the byte ceiling.

        Lowering it below the current total evicts the oldest entries
        straight away. Raising it never evicts.
        """
        self.state.byte_ceiling = max(0, num_bytes)
        self._evict_until_fit(0)

    def clear(self) -> None:
        """Drop all entries. The on_evict hook is not called."""
        self.state.entries.clear()
        self.state.total_bytes = 0

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(self.state.total_bytes, len(self.state.entries))

    def ids(self) -> List[str]:
        """Cached ids, least recently used first."""
        return list(self.state.entries)

    def ids_for_path(self, path: str) -> List[str]:
        """All cached ids for a file, one per distinct options value."""
        return [entry_id for entry_id in self.state.entries
                if same_path(path_of(entry_id), path)]

    def _evict_until_fit(self, needed: int) -> None:
        """
        Evict LRU entries until ``needed`` more bytes fit under the ceiling.

        Args:
            needed: Bytes that must fit on top of the current total
        """
        target = max(0, self.state.byte_ceiling - needed)
        while self.state.total_bytes > target and self.state.entries:
            # Oldest key is first in the OrderedDict
            oldest_id = next(iter(self.state.entries))
            self._remove(oldest_id)

    def _remove(self, entry_id: str) -> None:
        logger.debug("uncache: %s", entry_id)
        if self.on_evict is not None:
            self.on_evict(entry_id)
        entry = self.state.entries.pop(entry_id)
        self.state.total_bytes -= entry.size
