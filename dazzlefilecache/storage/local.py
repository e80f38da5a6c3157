"""Local filesystem backend.

Reads go through pathlib; asynchronous reads run in the event loop's
default executor. Directory watches use ``watchfiles`` on a daemon thread
per watched directory.
"""

import asyncio
import logging
import os
import threading
from pathlib import Path
from typing import Any, Mapping, Optional

import watchfiles

from .base import Content, ReadCallback, StorageBackend, WatchListener

logger = logging.getLogger(__name__)


def _decode_options(options: Any):
    """Split fs.readFile style options into (encoding, errors).

    Accepts None, an encoding name, or a mapping with ``encoding`` and
    optionally ``errors``. Other mapping keys (``flag``...) are ignored.
    """
    if options is None:
        return None, 'strict'
    if isinstance(options, str):
        return options, 'strict'
    if isinstance(options, Mapping):
        return options.get('encoding'), options.get('errors') or 'strict'
    raise TypeError(f"unsupported read options: {options!r}")


class WatchfilesHandle:
    """A watchfiles watch on one directory, running on a daemon thread.

    Events are delivered on ``loop`` while it is running, otherwise on the
    watcher thread itself. A watch stays live until close() however long
    its loop lives.
    """

    def __init__(self, directory: str, on_event: WatchListener,
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 debounce_ms: int = 50, force_polling: Optional[bool] = None):
        self.directory = directory
        self._watch_path = os.path.abspath(directory)
        self._real_path = os.path.realpath(self._watch_path)
        self._on_event = on_event
        self._loop = loop
        self._debounce_ms = debounce_ms
        self._force_polling = force_polling
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"dazzlefilecache-watch:{directory}", daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def close(self) -> None:
        # No join: close() may run on the watcher thread itself
        self._stop.set()

    def _run(self) -> None:
        try:
            for changes in watchfiles.watch(
                    self._watch_path,
                    watch_filter=None,
                    debounce=self._debounce_ms,
                    stop_event=self._stop,
                    recursive=False,
                    raise_interrupt=False,
                    force_polling=self._force_polling):
                for change, changed_path in changes:
                    self._deliver(change.name, self._name_in_directory(changed_path))
        except Exception:
            logger.exception("watch on %s stopped", self.directory)

    def _name_in_directory(self, changed_path: str) -> Optional[str]:
        if os.path.realpath(os.path.dirname(changed_path)) == self._real_path:
            return os.path.basename(changed_path)
        # The directory itself, or something we cannot attribute
        return None

    def _deliver(self, event_kind: str, name: Optional[str]) -> None:
        if self._stop.is_set():
            return
        loop = self._loop
        if loop is not None and loop.is_running():
            try:
                loop.call_soon_threadsafe(self._deliver_on_loop, event_kind, name)
                return
            except RuntimeError:
                # Closed between the check and the call
                pass
        if loop is not None and loop.is_closed():
            logger.debug("event loop for %s is closed, delivering on watcher thread",
                         self.directory)
            self._loop = None
        # Loop gone or not running: the watch must keep invalidating
        self._on_event(event_kind, name)

    def _deliver_on_loop(self, event_kind: str, name: Optional[str]) -> None:
        if not self._stop.is_set():
            self._on_event(event_kind, name)


class LocalFileSystem(StorageBackend):
    """StorageBackend over the real filesystem.

    Example:
        cache = FileCache(storage=LocalFileSystem(debounce_ms=100))
    """

    def __init__(self, debounce_ms: int = 50, force_polling: Optional[bool] = None):
        """
        Args:
            debounce_ms: watchfiles debounce window for grouping changes
            force_polling: Passed to watchfiles; None lets it decide
        """
        self.debounce_ms = debounce_ms
        self.force_polling = force_polling

    def watch(self, directory: str, on_event: WatchListener) -> WatchfilesHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        return WatchfilesHandle(directory, on_event, loop=loop,
                                debounce_ms=self.debounce_ms,
                                force_polling=self.force_polling)

    def read_sync(self, path: str, options: Any) -> Content:
        encoding, errors = _decode_options(options)
        data = Path(path).read_bytes()
        if encoding is None:
            return data
        return data.decode(encoding, errors)

    def read_async(self, path: str, options: Any, on_done: ReadCallback) -> None:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self.read_sync, path, options)

        def _done(fut: asyncio.Future) -> None:
            if fut.cancelled():
                on_done(asyncio.CancelledError(), None)
                return
            error = fut.exception()
            if error is not None:
                on_done(error, None)
            else:
                on_done(None, fut.result())

        future.add_done_callback(_done)
