"""Test fixtures for DazzleFileCache consumers.

These fixtures provide an in-memory StorageBackend whose watches are fired
by hand, so cache invalidation can be tested without touching the disk or
waiting for real filesystem events.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from ..storage.base import Content, ReadCallback, StorageBackend, WatchListener


class FakeWatchHandle:
    """Watch handle that records how often it was closed."""

    def __init__(self, directory: str, listener: WatchListener):
        self.directory = directory
        self.listener = listener
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def close(self) -> None:
        self.close_count += 1

    def fire(self, event_kind: Any = 'change', name: Optional[str] = None) -> None:
        """Deliver a watch event as the backend would."""
        self.listener(event_kind, name)


class FakeFileSystem(StorageBackend):
    """In-memory StorageBackend for tests.

    Files are looked up by ``(path, options)`` first and then by path alone,
    so a test can serve different content per read options.

    Example:
        fs = FakeFileSystem({"a.txt": b"hello"})
        cache = FileCache(storage=fs)
        cache.read_blocking("a.txt")
        fs.fire(".")          # directory-wide change
    """

    def __init__(self, files: Optional[Dict[Any, Content]] = None):
        self.files: Dict[Any, Content] = dict(files or {})
        self.watches: List[FakeWatchHandle] = []
        self.read_calls: List[Tuple[str, Any]] = []

    def set_file(self, path: str, content: Content, options: Any = None) -> None:
        key = path if options is None else (path, _freeze(options))
        self.files[key] = content

    def remove_file(self, path: str) -> None:
        for key in list(self.files):
            if key == path or (isinstance(key, tuple) and key[0] == path):
                del self.files[key]

    def live_watches(self, directory: Optional[str] = None) -> List[FakeWatchHandle]:
        return [w for w in self.watches
                if not w.closed and (directory is None or w.directory == directory)]

    def fire(self, directory: str, name: Optional[str] = None, event_kind: Any = 'change') -> None:
        """Fire an event on every live watch of ``directory``."""
        for handle in self.live_watches(directory):
            handle.fire(event_kind, name)

    def watch(self, directory: str, on_event: WatchListener) -> FakeWatchHandle:
        handle = FakeWatchHandle(directory, on_event)
        self.watches.append(handle)
        return handle

    def read_sync(self, path: str, options: Any) -> Content:
        self.read_calls.append((path, options))
        key = (path, _freeze(options))
        if key in self.files:
            return self.files[key]
        if path in self.files:
            return self.files[path]
        raise FileNotFoundError(2, "No such file or directory", path)

    def read_async(self, path: str, options: Any, on_done: ReadCallback) -> None:
        loop = asyncio.get_running_loop()
        try:
            content = self.read_sync(path, options)
        except OSError as e:
            loop.call_soon(on_done, e, None)
        else:
            loop.call_soon(on_done, None, content)


def _freeze(options: Any) -> Any:
    if isinstance(options, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in options.items()))
    return options
