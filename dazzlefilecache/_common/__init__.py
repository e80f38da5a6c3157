"""Cache engine shared by the public FileCache.

This internal package holds the pure bookkeeping: entry ids, the LRU
content store and the directory watch registry. It performs no I/O of its
own and should NOT be imported directly by users.

Important: This package must NEVER import from ``dazzlefilecache.cache``
or ``dazzlefilecache.storage`` to avoid circular dependencies.
"""

from .identity import make_id, path_of, directory_of, same_path
from .state import CacheEntry, CacheState, DirectoryTracker
from .store import _LruContentStore, StoreSnapshot
from .registry import DirectoryWatchRegistry

__all__ = [
    'make_id',
    'path_of',
    'directory_of',
    'same_path',
    'CacheEntry',
    'CacheState',
    'DirectoryTracker',
    '_LruContentStore',
    'StoreSnapshot',
    'DirectoryWatchRegistry',
]
