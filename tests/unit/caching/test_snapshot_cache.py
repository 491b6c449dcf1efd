"""Tests for derivation cache backends and fingerprints."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from flowscene.core.caching import CacheKey, NullCache, SnapshotCache, compute_fingerprint
from flowscene.core.graph import FlowGraph


def _key(fingerprint: str) -> CacheKey:
    return CacheKey(step_id="graph.index", step_version="1", input_fingerprint=fingerprint)


class TestSnapshotCache:
    """Tests for SnapshotCache."""

    def test_store_and_load(self):
        cache: SnapshotCache[str] = SnapshotCache()
        cache.store(_key("a"), "value-a")
        assert cache.load(_key("a")) == "value-a"
        assert cache.load(_key("b")) is None

    def test_oldest_entry_evicted(self):
        cache: SnapshotCache[int] = SnapshotCache(max_entries=2)
        cache.store(_key("a"), 1)
        cache.store(_key("b"), 2)
        cache.store(_key("c"), 3)
        assert len(cache) == 2
        assert cache.load(_key("a")) is None
        assert cache.load(_key("c")) == 3

    def test_restore_refreshes_position(self):
        cache: SnapshotCache[int] = SnapshotCache(max_entries=2)
        cache.store(_key("a"), 1)
        cache.store(_key("b"), 2)
        cache.store(_key("a"), 10)
        cache.store(_key("c"), 3)
        assert cache.load(_key("a")) == 10
        assert cache.load(_key("b")) is None

    def test_invalidate_and_clear(self):
        cache: SnapshotCache[int] = SnapshotCache()
        cache.store(_key("a"), 1)
        cache.store(_key("b"), 2)
        cache.invalidate(_key("a"))
        cache.invalidate(_key("missing"))
        assert cache.load(_key("a")) is None
        cache.clear()
        assert len(cache) == 0

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            SnapshotCache(max_entries=0)

    def test_concurrent_stores_keep_bound(self):
        cache: SnapshotCache[int] = SnapshotCache(max_entries=8)
        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(lambda i: cache.store(_key(str(i)), i), range(50)))
        assert len(cache) == 8


def test_null_cache_never_hits():
    cache: NullCache[int] = NullCache()
    cache.store(_key("a"), 1)
    assert cache.load(_key("a")) is None
    assert len(cache) == 0


def test_cache_key_str_is_short():
    assert str(_key("0123456789abcdef")) == "graph.index:1:0123456789ab"


class TestFingerprint:
    """Tests for compute_fingerprint."""

    def test_key_order_insensitive(self):
        assert compute_fingerprint({"a": 1, "b": 2}) == compute_fingerprint({"b": 2, "a": 1})

    def test_ignored_editor_fields_do_not_change_digest(self, circle_scene_graph):
        plain = FlowGraph.model_validate(circle_scene_graph)
        circle_scene_graph["nodes"][0]["position"] = {"x": 12, "y": 40}
        circle_scene_graph["viewport"] = {"zoom": 2}
        decorated = FlowGraph.model_validate(circle_scene_graph)
        assert compute_fingerprint(plain) == compute_fingerprint(decorated)

    def test_payload_change_changes_digest(self, circle_scene_graph):
        before = compute_fingerprint(FlowGraph.model_validate(circle_scene_graph))
        circle_scene_graph["nodes"][0]["data"]["color"] = "#000000"
        after = compute_fingerprint(FlowGraph.model_validate(circle_scene_graph))
        assert before != after
