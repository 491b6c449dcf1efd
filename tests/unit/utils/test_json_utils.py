"""Tests for JSON helpers."""

from __future__ import annotations

from flowscene.core.utils.json import canonical_json, read_json, write_json


def test_write_then_read(tmp_path):
    path = tmp_path / "nested" / "scene.json"
    write_json(path, {"name": "Ünïcode", "values": [1, 2]})
    assert read_json(path) == {"name": "Ünïcode", "values": [1, 2]}
    assert path.read_text(encoding="utf-8").endswith("\n")


def test_canonical_json_sorts_and_compacts():
    assert canonical_json({"b": 1, "a": {"d": 2, "c": 3}}) == '{"a":{"c":3,"d":2},"b":1}'
