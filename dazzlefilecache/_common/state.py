"""Per-cache mutable state.

One CacheState is owned by each FileCache and shared by reference with its
store and watch registry. Nothing here is module-global.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Set, Union

Content = Union[bytes, str]


@dataclass(frozen=True)
class CacheEntry:
    """One cached read. Replaced wholesale, never mutated."""
    id: str
    content: Content
    size: int

    @classmethod
    def create(cls, entry_id: str, content: Content) -> 'CacheEntry':
        return cls(id=entry_id, content=content, size=len(content))


@dataclass
class DirectoryTracker:
    """A live directory watch and the cached ids it covers."""
    directory: str
    watch_handle: Any
    tracked_ids: Set[str] = field(default_factory=set)

    @property
    def count(self) -> int:
        return len(self.tracked_ids)


@dataclass
class CacheState:
    """Everything a FileCache knows.

    ``entries`` doubles as the LRU order: least recently used first.
    """
    byte_ceiling: int
    total_bytes: int = 0
    entries: 'OrderedDict[str, CacheEntry]' = field(default_factory=OrderedDict)
    trackers: Dict[str, DirectoryTracker] = field(default_factory=dict)

    def reset(self) -> None:
        """Empty the maps and zero the byte count. Watches are not closed here."""
        self.entries.clear()
        self.trackers.clear()
        self.total_bytes = 0
