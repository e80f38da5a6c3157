"""In-memory file cache with directory-watch invalidation.

FileCache sits in front of a StorageBackend and keeps what it reads in
memory, up to a byte ceiling. Each cached file's directory is watched so
a change on disk evicts the stale copy.
"""

import asyncio
import logging
import threading
from typing import Any, NamedTuple, Optional

from ._common import CacheState, DirectoryWatchRegistry, _LruContentStore, make_id
from .config import CacheConfig
from .storage import LocalFileSystem, StorageBackend
from .storage.base import Content, ReadCallback

logger = logging.getLogger(__name__)


class CacheInfo(NamedTuple):
    cache_size: int
    num_tracked_folders: int


class FileCache:
    """
    A size-bounded in-memory cache for file contents.

    Reads are keyed by path and read options, so the same file read as
    bytes and as text is cached twice. Entries are evicted oldest first
    when the cache is full, and dropped when their directory reports a
    change.

    Example:
        cache = FileCache(cache_size_limit=8 * 1024 * 1024)
        text = cache.read_blocking("templates/index.html", "utf-8")

        async def handler():
            data = await cache.aread("static/logo.png")
    """

    def __init__(self, config: Optional[CacheConfig] = None,
                 storage: Optional[StorageBackend] = None, **overrides: Any):
        """
        Initialize the cache.

        Args:
            config: Cache configuration (defaults to CacheConfig())
            storage: Backend that really reads and watches files
                (defaults to LocalFileSystem()); ``file_system=`` is accepted too
            **overrides: CacheConfig fields to override, e.g. cache_size_limit
        """
        file_system = overrides.pop('file_system', None)
        if storage is None:
            storage = file_system

        config = (config or CacheConfig()).with_overrides(**overrides)
        config.validate()
        self.config = config
        self.storage = storage if storage is not None else LocalFileSystem()

        self._lock = threading.RLock()
        self._state = CacheState(byte_ceiling=config.cache_size_limit)
        self._store = _LruContentStore(self._state)
        self._registry = DirectoryWatchRegistry(
            self._state,
            self.storage,
            evict=self._store.evict,
            ids_for_path=self._store.ids_for_path,
            enabled=config.check_for_file_changes,
            error_policy=config.error_policy,
            lock=self._lock,
        )
        self._store.on_evict = self._registry.detach

    def __enter__(self) -> 'FileCache':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def error_policy(self):
        return self._registry.error_policy

    def read(self, path: str, options: Any = None,
             callback: Optional[ReadCallback] = None) -> None:
        """
        Read a file, from the cache when possible.

        Works like Node's ``fs.readFile``: ``callback(error, content)`` is
        called once, and ``read(path, callback)`` may omit the options.
        Must be called with an event loop running. Cache hits are delivered
        on a later loop iteration, never before this method returns.

        Args:
            path: File to read
            options: Read options passed through to the backend
            callback: Receives ``(None, content)`` or ``(error, None)``
        """
        if callback is None and callable(options):
            callback, options = options, None
        if callback is None:
            raise TypeError("read() requires a callback")

        loop = asyncio.get_running_loop()
        entry_id = self._make_id(path, options)
        with self._lock:
            content = self._store.get(entry_id)
        if content is not None:
            logger.debug("from cache: %s", entry_id)
            loop.call_soon(callback, None, content)
            return

        def on_done(error: Optional[BaseException], data: Optional[Content]) -> None:
            if error is not None:
                callback(error, None)
                return
            try:
                self._cache_content(entry_id, data)
            finally:
                # The read succeeded; the caller gets its content regardless
                callback(None, data)

        self.storage.read_async(path, options, on_done)

    async def aread(self, path: str, options: Any = None) -> Content:
        """
        Awaitable form of read().

        Raises:
            Whatever the backend's read raised
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def on_done(error: Optional[BaseException], data: Optional[Content]) -> None:
            if future.done():
                return
            if isinstance(error, asyncio.CancelledError):
                future.cancel()
            elif error is not None:
                future.set_exception(error)
            else:
                future.set_result(data)

        self.read(path, options, on_done)
        return await future

    def read_blocking(self, path: str, options: Any = None) -> Content:
        """
        Read a file synchronously, from the cache when possible.

        Works like Node's ``fs.readFileSync``.

        Raises:
            Whatever the backend's read_sync raised; failures are not cached
        """
        entry_id = self._make_id(path, options)
        with self._lock:
            content = self._store.get(entry_id)
            if content is not None:
                logger.debug("from cache: %s", entry_id)
                return content

            content = self.storage.read_sync(path, options)
            self._cache_content(entry_id, content)
            return content

    def clear(self) -> None:
        """Close every directory watch and drop all cached content."""
        with self._lock:
            self._registry.teardown_all()
            self._store.clear()
        logger.debug("cleared cache")

    def close(self) -> None:
        """Release all watches. The cache stays usable afterwards."""
        self.clear()

    def set_cache_size_limit(self, num_bytes: int) -> None:
        """
        Change the number of bytes the cache may hold.

        If more is cached than the new limit allows, the least recently
        used files are evicted immediately until it fits.
        """
        with self._lock:
            self._store.set_ceiling(num_bytes)

    def info(self) -> CacheInfo:
        """Current cached byte count and number of watched directories."""
        with self._lock:
            return CacheInfo(
                cache_size=self._state.total_bytes,
                num_tracked_folders=self._registry.tracked_folder_count,
            )

    @property
    def cache_size_limit(self) -> int:
        return self._state.byte_ceiling

    def _make_id(self, path: str, options: Any) -> str:
        return make_id(path, options, canonical=self.config.canonical_options)

    def _cache_content(self, entry_id: str, content: Content) -> None:
        with self._lock:
            if not self._store.fits(content):
                logger.debug("file too big for cache: %s, size: %d", entry_id, len(content))
                return
            # Watch first so an unwatchable directory evicts nothing
            try:
                self._registry.attach(entry_id)
            except OSError as e:
                logger.warning("cannot watch folder for %s, not caching: %s", entry_id, e)
                return
            if not self._store.put(entry_id, content):
                self._registry.detach(entry_id)
