"""Testing utilities for DazzleFileCache consumers."""

from .fixtures import FakeFileSystem, FakeWatchHandle

__all__ = ['FakeFileSystem', 'FakeWatchHandle']
