"""Exception types raised or reported by DazzleFileCache.

Read failures are never wrapped: whatever the storage backend raises
reaches the caller unchanged. The types here cover the cache's own
internal diagnostics.
"""

from typing import Optional


class FileCacheError(Exception):
    """Base class for DazzleFileCache diagnostics."""


class BookkeepingInconsistency(FileCacheError):
    """Directory tracking disagrees with the cached entries.

    Raised only through a FailFastPolicy. The default policy logs it and
    the cache carries on treating the operation as a no-op.
    """

    def __init__(self, message: str, entry_id: Optional[str] = None,
                 directory: Optional[str] = None):
        super().__init__(message)
        self.entry_id = entry_id
        self.directory = directory
