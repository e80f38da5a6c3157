"""Directory watch bookkeeping.

One watch per directory that currently has cached files in it. A directory
tracker is created when the first id from that directory is attached and
its watch is closed when the last one is detached, so the number of live
watches never exceeds the number of directories represented in the cache.
"""

import logging
import os
from contextlib import nullcontext
from typing import Callable, ContextManager, Iterable, List, Optional

from ..error_policies import ContinueOnErrorsPolicy, ErrorPolicy
from ..errors import BookkeepingInconsistency
from .identity import directory_of
from .state import CacheState, DirectoryTracker

logger = logging.getLogger(__name__)


class DirectoryWatchRegistry:
    """
    Reference-counted directory watches keyed by directory path.

    Watch notifications are turned into evictions:
    - an event naming a file evicts only the ids cached for that file
    - an event without a name evicts everything tracked in the directory

    Example:
        registry = DirectoryWatchRegistry(state, storage, evict=store.evict)
        store.on_evict = registry.detach
    """

    def __init__(self, state: CacheState, storage, evict: Callable[[Iterable[str]], int],
                 ids_for_path: Callable[[str], List[str]],
                 enabled: bool = True, error_policy: Optional[ErrorPolicy] = None,
                 lock: Optional[ContextManager] = None):
        """
        Initialize the registry.

        Args:
            state: The owning cache's state (trackers live here)
            storage: Backend providing ``watch(directory, on_event)``
            evict: Store eviction entry point, used by watch events
            ids_for_path: Lookup of cached ids for one file path
            enabled: When False every operation is a no-op
            error_policy: Receives BookkeepingInconsistency reports
            lock: Held while a watch event is dispatched (backends may
                deliver events from their own threads)
        """
        self.state = state
        self.storage = storage
        self.enabled = enabled
        self._evict = evict
        self._ids_for_path = ids_for_path
        self.error_policy = error_policy or ContinueOnErrorsPolicy()
        self._lock = lock if lock is not None else nullcontext()

    @property
    def tracked_folder_count(self) -> int:
        return len(self.state.trackers)

    def tracked_directories(self) -> List[str]:
        return list(self.state.trackers)

    def attach(self, entry_id: str) -> None:
        """Start tracking an id, watching its directory if not yet watched."""
        if not self.enabled:
            return

        directory = directory_of(entry_id)
        tracker = self.state.trackers.get(directory)
        if tracker is None:
            handle = self.storage.watch(directory, self._make_listener(directory))
            tracker = DirectoryTracker(directory=directory, watch_handle=handle)
            self.state.trackers[directory] = tracker
            logger.debug("added folder tracker for: %s", directory)
            logger.debug("num tracked folders: %d", len(self.state.trackers))

        tracker.tracked_ids.add(entry_id)

    def detach(self, entry_id: str) -> None:
        """Stop tracking an id, closing the directory watch with the last one."""
        if not self.enabled:
            return

        directory = directory_of(entry_id)
        tracker = self.state.trackers.get(directory)
        if tracker is None:
            self.error_policy.handle(BookkeepingInconsistency(
                f"missing folder info for: {entry_id}",
                entry_id=entry_id, directory=directory))
            return
        if entry_id not in tracker.tracked_ids:
            self.error_policy.handle(BookkeepingInconsistency(
                f"no tracked entry for: {entry_id} in: {directory}",
                entry_id=entry_id, directory=directory))
            return

        tracker.tracked_ids.discard(entry_id)
        if tracker.count == 0:
            del self.state.trackers[directory]
            tracker.watch_handle.close()
            logger.debug("removed folder tracker for: %s", directory)
            logger.debug("num tracked folders: %d", len(self.state.trackers))

    def on_event(self, directory: str, event_kind, changed_name: Optional[str]) -> int:
        """
        Dispatch one watch notification for a directory.

        Args:
            directory: The watched directory
            event_kind: Backend specific kind ("change", "rename", ...); unused
            changed_name: Name of the changed entry inside the directory, if known

        Returns:
            Number of cache entries evicted
        """
        with self._lock:
            if changed_name:
                ids = self._ids_for_path(os.path.join(directory, changed_name))
            else:
                tracker = self.state.trackers.get(directory)
                ids = list(tracker.tracked_ids) if tracker is not None else []

            logger.debug("watch event %s for %s (%s): %d entries",
                         event_kind, directory, changed_name, len(ids))
            if not ids:
                return 0
            return self._evict(ids)

    def teardown_all(self) -> None:
        """Close every live watch and forget all trackers."""
        trackers = list(self.state.trackers.values())
        self.state.trackers.clear()
        for tracker in trackers:
            tracker.watch_handle.close()

    def _make_listener(self, directory: str) -> Callable:
        def listener(event_kind, changed_name=None):
            return self.on_event(directory, event_kind, changed_name)
        return listener
