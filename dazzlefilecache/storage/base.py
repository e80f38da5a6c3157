"""StorageBackend abstraction for DazzleFileCache.

The backend is everything the cache does not do itself: reading files,
synchronously and with a completion callback, and watching directories
for changes. Swapping the backend is how tests drive the cache without
touching the disk.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol, Union

Content = Union[bytes, str]
ReadCallback = Callable[[Optional[BaseException], Optional[Content]], None]
WatchListener = Callable[[Any, Optional[str]], None]


class WatchHandle(Protocol):
    """A live directory watch."""

    def close(self) -> None:
        """Release the watch. Called exactly once by the cache."""
        ...


class StorageBackend(ABC):
    """Abstract file reader and directory watcher.

    Implementations follow Node's ``fs`` calling conventions so the cache
    can sit in front of them transparently:
    - ``read_async`` reports through ``on_done(error, content)``
    - ``read_sync`` returns content or raises
    - ``watch`` calls ``on_event(event_kind, name_or_None)`` zero or more times
    """

    @abstractmethod
    def watch(self, directory: str, on_event: WatchListener) -> WatchHandle:
        """Start watching a directory.

        Args:
            directory: Directory to watch (not recursive)
            on_event: Called with ``(event_kind, changed_name)``; the name is
                relative to ``directory`` or None when unknown

        Returns:
            Handle whose ``close()`` stops the watch
        """
        pass

    @abstractmethod
    def read_async(self, path: str, options: Any, on_done: ReadCallback) -> None:
        """Read a file and report the outcome through ``on_done``.

        Args:
            path: File to read
            options: Read options (encoding and such)
            on_done: Called once with ``(None, content)`` or ``(error, None)``
        """
        pass

    @abstractmethod
    def read_sync(self, path: str, options: Any) -> Content:
        """Read a file, blocking.

        Raises:
            Whatever the underlying read raises (OSError for local files)
        """
        pass
