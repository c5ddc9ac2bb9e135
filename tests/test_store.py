"""
Tests for CollectionStore: whole-collection writes and graceful reads.
"""

from storage.db import PREFS, SESSIONS, TAGS, TASKS, Database
from storage.repos import CollectionStore


class TestRead:
    def test_absent_collection_reads_empty(self, store):
        assert store.read(TASKS) == []
        assert store.has(TASKS) is False

    def test_round_trip_keeps_order(self, store):
        store.write_all(TAGS, ["b", "a", "c"])
        assert store.read(TAGS) == ["b", "a", "c"]
        assert store.has(TAGS) is True

    def test_malformed_json_reads_empty(self, store, db):
        db.conn.execute(
            "INSERT INTO collections(name, value) VALUES(?, ?)", (SESSIONS, "{not json")
        )
        db.conn.commit()
        assert store.read(SESSIONS) == []

    def test_non_list_reads_empty(self, store):
        store.write_all(TASKS, {"oops": True})
        assert store.read(TASKS) == []

    def test_prefs_non_dict_reads_empty(self, store):
        store.write_all(PREFS, ["x"])
        assert store.read_record(PREFS) == {}


class TestWrite:
    def test_write_all_replaces_collection(self, store):
        store.write_all(TAGS, ["a", "b"])
        store.write_all(TAGS, ["c"])
        assert store.read(TAGS) == ["c"]

    def test_merge_record_keeps_other_keys(self, store):
        store.write_all(PREFS, {"activeTag": "Reading", "alarmSound": "bell"})
        merged = store.merge_record(PREFS, {"alarmSound": "chime"})
        assert merged == {"activeTag": "Reading", "alarmSound": "chime"}
        assert store.read_record(PREFS) == merged

    def test_persists_across_connections(self, tmp_path):
        path = str(tmp_path / "persist.db")
        first = Database(path)
        first.init_schema()
        CollectionStore(first).write_all(TAGS, ["Deep Work"])
        first.close()

        second = Database(path)
        second.init_schema()
        assert CollectionStore(second).read(TAGS) == ["Deep Work"]
        second.close()


class TestSchema:
    def test_init_schema_is_idempotent(self, db):
        db.init_schema()
        db.init_schema()
        assert db.schema_version() == "2"
