"""DazzleFileCache - In-Memory File Cache with Change Invalidation.

DazzleFileCache keeps file contents in memory up to a byte limit and
watches the directories of cached files, so a file changed on disk is
never served stale.

Usage:
━━━━━━━━━━━━━━━━━━━━━━━━━━
Synchronous:
    cache = FileCache()
    data = cache.read_blocking("config.json", "utf-8")

Asynchronous:
    data = await cache.aread("config.json", "utf-8")
    cache.read("config.json", "utf-8", lambda err, data: ...)
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from .cache import FileCache, CacheInfo
from .config import CacheConfig, DEFAULT_CACHE_SIZE_LIMIT
from .errors import FileCacheError, BookkeepingInconsistency
from .error_policies import ErrorPolicy, FailFastPolicy, ContinueOnErrorsPolicy
from .storage import StorageBackend, LocalFileSystem

__all__ = [
    "__version__",
    "FileCache",
    "CacheInfo",
    "CacheConfig",
    "DEFAULT_CACHE_SIZE_LIMIT",
    "FileCacheError",
    "BookkeepingInconsistency",
    "ErrorPolicy",
    "FailFastPolicy",
    "ContinueOnErrorsPolicy",
    "StorageBackend",
    "LocalFileSystem",
]
