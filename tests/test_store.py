"""Tests for the aiosqlite-backed notification store."""
import pytest

from wakeful.database import NotificationStore, StoreUnavailable
from wakeful.models.entities import NotificationRequest

from conftest import NOW


async def _insert_raw(store: NotificationStore, notification_id: int, data: str) -> None:
    async with store._transaction() as conn:
        await conn.execute(
            "INSERT OR REPLACE INTO notification_requests (id, data) VALUES (?, ?)",
            (notification_id, data),
        )


def _request(notification_id: int, **kwargs) -> NotificationRequest:
    return NotificationRequest(id=notification_id, payload={"title": f"n{notification_id}"}, **kwargs)


class TestRequests:
    async def test_save_and_get(self, store: NotificationStore):
        request = _request(1, at_time=NOW, repeat_interval=1000, alert_while_idle=True)
        await store.save(request)
        assert await store.get(1) == request

    async def test_get_missing_returns_none(self, store: NotificationStore):
        assert await store.get(404) is None

    async def test_save_overwrites_same_id(self, store: NotificationStore):
        await store.save(_request(1, at_time=NOW))
        await store.save(_request(1, at_time=NOW + 1))
        assert (await store.get(1)).at_time == NOW + 1
        assert await store.get_ids() == [1]

    async def test_get_malformed_returns_none(self, store: NotificationStore):
        await _insert_raw(store, 5, "{broken")
        assert await store.get(5) is None

    async def test_get_rejects_mismatched_id(self, store: NotificationStore):
        await _insert_raw(store, 5, '{"id": 6}')
        assert await store.get(5) is None

    async def test_get_all_skips_malformed(self, store: NotificationStore):
        await store.save(_request(1))
        await store.save(_request(2))
        await _insert_raw(store, 3, "nope")
        assert set(await store.get_all()) == {1, 2}

    async def test_get_all_raw_keeps_malformed(self, store: NotificationStore):
        await store.save(_request(1))
        await _insert_raw(store, 3, "nope")
        raw = await store.get_all_raw()
        assert raw[3] == "nope"
        assert NotificationRequest.from_json(raw[1]).id == 1

    async def test_get_ids_sorted(self, store: NotificationStore):
        for nid in (3, 1, 2):
            await store.save(_request(nid))
        assert await store.get_ids() == [1, 2, 3]


class TestRemoval:
    async def test_remove_deletes_fired_record(self, store: NotificationStore):
        await store.save(_request(1))
        await store.register_fired(1, NOW)
        await store.remove(1)
        assert await store.get(1) is None
        assert await store.last_fired(1) == 0
        assert await store.fired_snapshot() == {}

    async def test_remove_is_idempotent(self, store: NotificationStore):
        await store.remove(1)
        await store.remove(1)
        assert await store.get_ids() == []

    async def test_remove_keeps_other_ids(self, store: NotificationStore):
        await store.save(_request(1))
        await store.save(_request(2))
        await store.register_fired(2, NOW)
        await store.remove(1)
        assert await store.get_ids() == [2]
        assert await store.last_fired(2) == NOW

    async def test_remove_all(self, store: NotificationStore):
        await store.save(_request(1))
        await store.save(_request(2))
        await store.register_fired(1, NOW)
        assert await store.remove_all() == 2
        assert await store.get_ids() == []
        assert await store.fired_snapshot() == {}


class TestFiredRecords:
    async def test_last_fired_defaults_to_zero(self, store: NotificationStore):
        assert await store.last_fired(1) == 0

    async def test_register_fired_overwrites(self, store: NotificationStore):
        await store.register_fired(1, NOW)
        await store.register_fired(1, NOW + 5000)
        assert await store.last_fired(1) == NOW + 5000

    async def test_fired_record_is_independent_of_request(self, store: NotificationStore):
        await store.register_fired(9, NOW)
        assert await store.get(9) is None
        assert await store.fired_snapshot() == {9: NOW}

    async def test_snapshot_skips_unparseable_values(self, store: NotificationStore):
        await store.register_fired(1, NOW)
        async with store._transaction() as conn:
            await conn.execute("INSERT INTO alarms_fired (id, fired_at) VALUES (?, ?)", (2, "yesterday"))
        assert await store.fired_snapshot() == {1: NOW}
        assert await store.last_fired(2) == 0


class TestPersistence:
    async def test_survives_reopen(self, tmp_path):
        path = tmp_path / "wakeful.db"
        first = NotificationStore(path)
        await first.save(_request(1, at_time=NOW))
        await first.register_fired(1, NOW)
        await first.close()

        second = NotificationStore(path)
        try:
            assert (await second.get(1)).at_time == NOW
            assert await second.last_fired(1) == NOW
        finally:
            await second.close()

    async def test_default_path_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("WAKEFUL_DB_PATH", str(tmp_path / "env.db"))
        assert NotificationStore().db_path == tmp_path / "env.db"

    async def test_unopenable_database_raises_store_unavailable(self, tmp_path):
        store = NotificationStore(tmp_path / "missing" / "dir" / "x.db")
        with pytest.raises(StoreUnavailable):
            await store.save(_request(1))

    async def test_get_never_raises(self, tmp_path):
        store = NotificationStore(tmp_path / "missing" / "dir" / "x.db")
        assert await store.get(1) is None
