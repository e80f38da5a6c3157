"""Storage backends: where cached content really comes from."""

from .base import StorageBackend, WatchHandle, ReadCallback, WatchListener
from .local import LocalFileSystem, WatchfilesHandle

__all__ = [
    'StorageBackend',
    'WatchHandle',
    'ReadCallback',
    'WatchListener',
    'LocalFileSystem',
    'WatchfilesHandle',
]
