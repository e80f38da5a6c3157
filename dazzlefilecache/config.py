"""Configuration system for DazzleFileCache.

This module defines how users size the cache and whether it should watch
the filesystem for changes to the files it holds.
"""

from dataclasses import dataclass, replace
from typing import Optional, Any

from .error_policies import ErrorPolicy

DEFAULT_CACHE_SIZE_LIMIT = 64 * 1024 * 1024  # 64 MiB


@dataclass
class CacheConfig:
    """Configuration for a FileCache instance.

    Example:
        config = CacheConfig(cache_size_limit=16 * 1024 * 1024)
        cache = FileCache(config)
    """

    cache_size_limit: int = DEFAULT_CACHE_SIZE_LIMIT  # Byte ceiling
    check_for_file_changes: bool = True               # Watch directories of cached files
    canonical_options: bool = False                   # Sort option keys when building ids
    error_policy: Optional[ErrorPolicy] = None        # None means ContinueOnErrorsPolicy

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid
        """
        if not isinstance(self.cache_size_limit, int) or isinstance(self.cache_size_limit, bool):
            raise ValueError(
                f"cache_size_limit must be an int, got {type(self.cache_size_limit).__name__}"
            )
        if self.cache_size_limit < 0:
            raise ValueError(f"cache_size_limit must be >= 0, got {self.cache_size_limit}")

    def with_overrides(self, **overrides: Any) -> 'CacheConfig':
        """Return a copy of this config with the given fields replaced."""
        return replace(self, **overrides)
