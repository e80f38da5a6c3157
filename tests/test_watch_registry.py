"""
Tests for DirectoryWatchRegistry.

Verifies that directory watches are reference counted by the cached ids
they cover, and that watch events turn into the right evictions.
"""

import os

import pytest

from dazzlefilecache._common.identity import make_id
from dazzlefilecache._common.registry import DirectoryWatchRegistry
from dazzlefilecache._common.state import CacheState
from dazzlefilecache._common.store import _LruContentStore
from dazzlefilecache.error_policies import ContinueOnErrorsPolicy, FailFastPolicy
from dazzlefilecache.errors import BookkeepingInconsistency
from dazzlefilecache.testing import FakeFileSystem


SUB_A = os.path.join("sub", "a.txt")
SUB_B = os.path.join("sub", "b.txt")
OTHER_C = os.path.join("other", "c.txt")


class Harness:
    """Store and registry wired together the way FileCache wires them."""

    def __init__(self, ceiling=100, enabled=True, policy=None):
        self.fs = FakeFileSystem()
        self.state = CacheState(byte_ceiling=ceiling)
        self.store = _LruContentStore(self.state)
        self.policy = policy if policy is not None else ContinueOnErrorsPolicy(verbose=False)
        self.registry = DirectoryWatchRegistry(
            self.state, self.fs,
            evict=self.store.evict,
            ids_for_path=self.store.ids_for_path,
            enabled=enabled,
            error_policy=self.policy,
        )
        self.store.on_evict = self.registry.detach

    def cache(self, path, content, options=None):
        entry_id = make_id(path, options)
        if self.store.put(entry_id, content):
            self.registry.attach(entry_id)
        return entry_id


class TestAttachDetach:
    """Tracker lifecycle."""

    def test_first_file_creates_watch(self):
        h = Harness()
        h.cache(SUB_A, b"aaa")

        assert h.registry.tracked_folder_count == 1
        assert h.registry.tracked_directories() == ["sub"]
        assert [w.directory for w in h.fs.watches] == ["sub"]

    def test_second_file_in_same_directory_reuses_watch(self):
        h = Harness()
        a = h.cache(SUB_A, b"aaa")
        b = h.cache(SUB_B, b"bb")

        assert len(h.fs.watches) == 1
        assert h.state.trackers["sub"].tracked_ids == {a, b}
        assert h.state.trackers["sub"].count == 2

    def test_attach_is_idempotent(self):
        h = Harness()
        a = h.cache(SUB_A, b"aaa")
        h.registry.attach(a)
        assert h.state.trackers["sub"].count == 1

    def test_one_watch_per_directory(self):
        h = Harness()
        h.cache(SUB_A, b"a")
        h.cache(OTHER_C, b"c")
        assert h.registry.tracked_folder_count == 2
        assert sorted(w.directory for w in h.fs.watches) == ["other", "sub"]

    def test_last_detach_closes_watch_once(self):
        h = Harness()
        a = h.cache(SUB_A, b"aaa")
        b = h.cache(SUB_B, b"bb")

        h.store.evict([a])
        assert h.fs.watches[0].close_count == 0

        h.store.evict([b])
        assert h.fs.watches[0].close_count == 1
        assert h.registry.tracked_folder_count == 0
        assert "sub" not in h.state.trackers

    def test_directory_rewatched_after_being_dropped(self):
        h = Harness()
        a = h.cache(SUB_A, b"aaa")
        h.store.evict([a])
        h.cache(SUB_A, b"aaa")

        assert len(h.fs.watches) == 2
        assert h.fs.watches[0].closed
        assert not h.fs.watches[1].closed

    def test_lru_eviction_detaches(self):
        h = Harness(ceiling=4)
        h.cache(SUB_A, b"aaa")
        h.cache(OTHER_C, b"cc")

        assert h.registry.tracked_folder_count == 1
        assert h.registry.tracked_directories() == ["other"]
        assert h.fs.watches[0].close_count == 1


class TestDisabled:
    """check_for_file_changes=False."""

    def test_no_watches_when_disabled(self):
        h = Harness(enabled=False)
        a = h.cache(SUB_A, b"aaa")
        h.store.evict([a])

        assert h.fs.watches == []
        assert h.registry.tracked_folder_count == 0
        assert h.policy.errors == []


class TestBookkeepingInconsistency:
    """Detaching ids the registry does not know about."""

    def test_missing_tracker_is_reported_not_raised(self):
        h = Harness()
        h.registry.detach(make_id(SUB_A))

        assert len(h.policy.errors) == 1
        assert h.policy.errors[0]['error_type'] == 'BookkeepingInconsistency'
        assert h.policy.errors[0]['directory'] == "sub"

    def test_missing_membership_is_reported(self):
        h = Harness()
        h.cache(SUB_A, b"aaa")
        h.registry.detach(make_id(SUB_B))

        assert len(h.policy.errors) == 1
        assert h.state.trackers["sub"].count == 1
        assert not h.fs.watches[0].closed

    def test_fail_fast_policy_raises(self):
        h = Harness(policy=FailFastPolicy())
        with pytest.raises(BookkeepingInconsistency) as exc_info:
            h.registry.detach(make_id(SUB_A))
        assert exc_info.value.entry_id == make_id(SUB_A)


class TestWatchEvents:
    """Event dispatch."""

    def test_unnamed_event_evicts_whole_directory(self):
        h = Harness()
        h.cache(SUB_A, b"aaa")
        h.cache(SUB_B, b"bb")
        c = h.cache(OTHER_C, b"c")

        h.fs.fire("sub")

        assert h.store.ids() == [c]
        assert h.state.total_bytes == 1
        assert h.registry.tracked_directories() == ["other"]
        sub_watch = h.fs.watches[0]
        assert sub_watch.directory == "sub"
        assert sub_watch.close_count == 1

    def test_named_event_evicts_only_that_file(self):
        h = Harness()
        raw = h.cache(SUB_A, b"aaa")
        text = h.cache(SUB_A, "aaa", "utf-8")
        b = h.cache(SUB_B, b"bb")

        assert h.fs.watches[0].listener("change", "a.txt") == 2

        assert h.store.ids() == [b]
        assert raw not in h.store and text not in h.store
        assert h.registry.tracked_folder_count == 1
        assert not h.fs.watches[0].closed

    def test_named_event_in_current_directory(self):
        h = Harness()
        h.cache("test.file", b"abcef", "utf-8")
        h.cache("test.file2", b"xyz", "utf-8")

        h.fs.fire(".", "test.file", event_kind="rename")

        assert h.state.total_bytes == 3
        assert h.registry.tracked_folder_count == 1

    def test_named_event_for_uncached_file(self):
        h = Harness()
        h.cache(SUB_A, b"aaa")
        assert h.fs.watches[0].listener("change", "unrelated.log") == 0
        assert h.state.total_bytes == 3

    def test_event_on_closed_watch_is_harmless(self):
        h = Harness()
        h.cache(SUB_A, b"aaa")
        stale = h.fs.watches[0]
        h.registry.teardown_all()

        assert stale.listener("change", None) == 0
        assert h.policy.errors == []


class TestTeardown:
    """teardown_all."""

    def test_closes_every_watch_once(self):
        h = Harness()
        h.cache(SUB_A, b"a")
        h.cache(OTHER_C, b"c")

        h.registry.teardown_all()

        assert h.registry.tracked_folder_count == 0
        assert [w.close_count for w in h.fs.watches] == [1, 1]
