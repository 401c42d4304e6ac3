"""Tests for the whole-document JSON store."""

import json

import pytest

from stagingpage.store import JsonDocumentStore, StateStore, empty_state


class TestLoad:
    def test_missing_file_gives_empty_document(self, store):
        assert not store.exists()
        assert store.load() == {"components": [], "incidents": [], "templates": []}

    def test_garbage_file_gives_empty_document(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")
        assert store.load() == empty_state()

    def test_non_object_gives_empty_document(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("[1, 2, 3]", encoding="utf-8")
        assert store.load() == empty_state()

    def test_missing_sections_are_filled(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"components": [{"id": "a"}]}), encoding="utf-8")
        doc = store.load()
        assert doc["components"] == [{"id": "a"}]
        assert doc["incidents"] == []
        assert doc["templates"] == []


class TestSave:
    def test_creates_directory_on_first_write(self, tmp_path):
        store = StateStore(tmp_path / "nested" / "dir" / "state.json")
        store.save(empty_state())
        assert store.path.exists()

    def test_round_trip(self, store):
        doc = {"components": [{"id": "a", "status": "operational"}], "incidents": [], "templates": []}
        store.save(doc)
        assert store.load() == doc

    def test_no_temp_files_left_behind(self, store):
        store.save(empty_state())
        assert [p.name for p in store.path.parent.iterdir()] == ["test-data.json"]


class TestEdit:
    def test_saves_on_clean_exit(self, store):
        with store.edit() as doc:
            doc["templates"].append({"id": "t1"})
        assert store.load()["templates"] == [{"id": "t1"}]

    def test_discards_on_exception(self, store):
        store.save(empty_state())
        with pytest.raises(RuntimeError):
            with store.edit() as doc:
                doc["templates"].append({"id": "t1"})
                raise RuntimeError("boom")
        assert store.load()["templates"] == []

    def test_generic_store_uses_its_own_defaults(self, tmp_path):
        store = JsonDocumentStore(tmp_path / "x.json", lambda: {"items": [], "marker": None})
        assert store.load() == {"items": [], "marker": None}
