from __future__ import annotations

import json

import pytest

from collection_curator.adapters.settings.in_memory_settings_store import InMemorySettingsStore
from collection_curator.adapters.settings.json_file_settings_store import JsonFileSettingsStore
from collection_curator.adapters.settings.merge import deep_merge


def test_deep_merge_merges_nested_dicts_and_replaces_leaves():
    base = {"cohorts": {"bestsellers": {"tag": "top", "target_count": 10}}, "exclusions": {"tags": ["a"]}}
    patch = {"cohorts": {"bestsellers": {"collection_id": "c1"}}, "exclusions": {"tags": ["b"]}}

    merged = deep_merge(base, patch)

    assert merged == {
        "cohorts": {"bestsellers": {"tag": "top", "target_count": 10, "collection_id": "c1"}},
        "exclusions": {"tags": ["b"]},
    }
    assert base["cohorts"]["bestsellers"] == {"tag": "top", "target_count": 10}


def test_in_memory_store_returns_copies():
    store = InMemorySettingsStore({"t1": {"cohorts": {}}})

    store.get_settings("t1")["cohorts"]["aging"] = {"enabled": False}

    assert store.get_settings("t1") == {"cohorts": {}}
    assert store.get_settings("unknown") == {}


def test_json_file_store_upsert_creates_and_merges(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    store = JsonFileSettingsStore(str(path))

    assert store.get_settings("t1") == {}

    store.upsert_settings("t1", {"cohorts": {"bestsellers": {"target_count": 5}}})
    store.upsert_settings("t1", {"cohorts": {"bestsellers": {"collection_id": "c9"}}})
    store.upsert_settings("t2", {"exclusions": {"enabled": False}})

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["t1"] == {"cohorts": {"bestsellers": {"collection_id": "c9", "target_count": 5}}}
    assert store.get_settings("t2") == {"exclusions": {"enabled": False}}
    assert not path.with_suffix(".tmp").exists()


def test_json_file_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid JSON"):
        JsonFileSettingsStore(str(path)).get_settings("t1")
