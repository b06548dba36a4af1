"""
Tests for the grace store and its backends.

Validates:
- Missing state is a cold start
- Corrupt state is fatal
- Lock file rejects overlapping runs
- Atomic write keeps a .bak of the previous state
- Legacy camelCase state is read
- Period re-entrancy replays from the base state
"""
import json

import pytest

from hierarch.exceptions import (
    GraceStoreCorruptError,
    GraceStoreError,
    GraceStoreLockedError,
)
from hierarch.store import (
    GraceStore,
    JsonGraceStore,
    MemoryGraceStoreBackend,
    PersistedGraceState,
    parse_state,
)

from tests.conftest import make_grace_record


class TestGraceStore:
    def test_put_get_delete(self):
        store = GraceStore()
        store.put(make_grace_record("b"))
        store.put(make_grace_record("a"))
        assert store.user_ids() == ["a", "b"]
        assert [r.user_id for r in store] == ["a", "b"]
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a") is None
        assert len(store) == 1

    def test_snapshot_is_a_copy(self):
        store = GraceStore({"a": make_grace_record("a")})
        snapshot = store.snapshot()
        store.delete("a")
        assert "a" in snapshot

    def test_equality(self):
        assert GraceStore({"a": make_grace_record("a")}) == GraceStore({"a": make_grace_record("a")})
        assert GraceStore() != GraceStore({"a": make_grace_record("a")})


class TestParseState:
    def test_legacy_flat_format(self):
        state = parse_state({
            "123": {"username": "Ada", "weeksOut": 1, "firstWeekOut": "2026-10-05T09:00:00.000Z"},
        })
        assert state.period is None
        assert state.records["123"].display_name == "Ada"

    def test_unknown_version_rejected(self):
        with pytest.raises(GraceStoreCorruptError):
            parse_state({"version": 99, "records": {}})

    @pytest.mark.parametrize("data", [
        [],
        {"version": 1, "records": []},
        {"version": 1, "records": {"1": {"display_name": "x"}}},
        {"version": 1, "records": {"1": {"display_name": "x", "weeks_out": 0,
                                         "first_week_out": "2026-10-05T09:00:00Z"}}},
        {"version": 1, "period": 5, "records": {}},
    ])
    def test_malformed_state_rejected(self, data):
        with pytest.raises(GraceStoreCorruptError):
            parse_state(data)


class TestPersistedGraceState:
    def test_new_period_moves_records_to_base(self):
        state = PersistedGraceState(period="W1", records={"a": make_grace_record("a")})
        after = state.after_run(GraceStore(), "W2")
        assert after.period == "W2"
        assert set(after.base) == {"a"}
        assert after.records == {}

    def test_same_period_replays_from_base(self):
        base = {"a": make_grace_record("a", weeks_out=1)}
        records = {"a": make_grace_record("a", weeks_out=2)}
        state = PersistedGraceState(period="W2", base=base, records=records)

        assert state.working_store("W2").get("a").weeks_out == 1
        assert state.working_store("W3").get("a").weeks_out == 2
        assert state.working_store(None).get("a").weeks_out == 2

        after = state.after_run(GraceStore(records), "W2")
        assert after.base == base


class TestMemoryBackend:
    def test_open_commit(self):
        backend = MemoryGraceStoreBackend.with_records(make_grace_record("a"))
        with backend:
            store = backend.open()
            store.delete("a")
            backend.commit(store)
        assert backend.persisted.records == {}
        assert backend.commits == 1
        assert not backend.is_open

    def test_commit_requires_open(self):
        with pytest.raises(GraceStoreError):
            MemoryGraceStoreBackend().commit(GraceStore())

    def test_double_open_rejected(self):
        backend = MemoryGraceStoreBackend()
        backend.open()
        with pytest.raises(GraceStoreError):
            backend.open()
        backend.close()


class TestJsonGraceStore:
    def test_cold_start(self, tmp_path):
        backend = JsonGraceStore(tmp_path / "state" / "grace.json")
        with backend:
            store = backend.open()
        assert len(store) == 0

    def test_commit_then_reload(self, tmp_path):
        path = tmp_path / "grace.json"
        backend = JsonGraceStore(path)
        with backend:
            store = backend.open("W1")
            store.put(make_grace_record("a", weeks_out=1, display_name="Ada"))
            backend.commit(store)

        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["period"] == "W1"
        assert data["records"]["a"]["weeks_out"] == 1

        with JsonGraceStore(path) as again:
            reloaded = again.open()
        assert reloaded.get("a").display_name == "Ada"

    def test_backup_written_on_second_commit(self, tmp_path):
        path = tmp_path / "grace.json"
        for weeks in (1, 2):
            with JsonGraceStore(path) as backend:
                store = backend.open()
                store.put(make_grace_record("a", weeks_out=weeks))
                backend.commit(store)

        backup = json.loads((tmp_path / "grace.json.bak").read_text())
        assert backup["records"]["a"]["weeks_out"] == 1
        assert not (tmp_path / "grace.json.tmp").exists()

    def test_corrupt_json_is_fatal(self, tmp_path):
        path = tmp_path / "grace.json"
        path.write_text("{not json")
        backend = JsonGraceStore(path)
        with pytest.raises(GraceStoreCorruptError):
            backend.open()
        assert not backend.lock_path.exists()

    def test_lock_rejects_second_run(self, tmp_path):
        path = tmp_path / "grace.json"
        first = JsonGraceStore(path)
        first.open()
        try:
            with pytest.raises(GraceStoreLockedError):
                JsonGraceStore(path).open()
        finally:
            first.close()
        assert not first.lock_path.exists()

        with JsonGraceStore(path) as second:
            second.open()

    def test_legacy_file_rewritten_in_current_format(self, tmp_path):
        path = tmp_path / "grace-tracking.json"
        path.write_text(json.dumps({
            "123": {"username": "Ada", "weeksOut": 1, "firstWeekOut": "2026-10-05T09:00:00.000Z"},
        }))
        with JsonGraceStore(path) as backend:
            store = backend.open()
            assert store.get("123").weeks_out == 1
            backend.commit(store)

        data = json.loads(path.read_text())
        assert data["records"]["123"] == {
            "display_name": "Ada",
            "weeks_out": 1,
            "first_week_out": "2026-10-05T09:00:00Z",
        }

    def test_read_does_not_lock(self, tmp_path):
        backend = JsonGraceStore(tmp_path / "grace.json")
        assert backend.read().records == {}
        assert not backend.lock_path.exists()
