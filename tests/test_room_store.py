# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

import asyncio, json
import pytest
from fakeredis import FakeAsyncRedis
from unittest.mock import AsyncMock, MagicMock

from conftest import settle
from Public.WebSocket.Models import Room, User
from Public.WebSocket.Libs   import MemoryStorage, RedisStorage, RoomStore, PersistenceFailure, build_storage
from Public.WebSocket.Libs.room_store import StorageQuotaExceeded


def oda(code="ABC123"):
    return Room(code=code, users=[User(username="ayse")])


class SahtePubSub:
    """`listen` verilen mesajları verir, sonra hata fırlatır ya da bekler."""

    def __init__(self, mesajlar, hata=None):
        self.mesajlar = mesajlar
        self.hata     = hata
        self.abone    = []
        self.kapandi  = False

    async def subscribe(self, kanal):
        self.abone.append(kanal)

    async def unsubscribe(self, kanal):
        self.abone.remove(kanal)

    async def aclose(self):
        self.kapandi = True

    async def listen(self):
        for mesaj in self.mesajlar:
            yield mesaj
        if self.hata:
            raise self.hata
        await asyncio.Event().wait()


class TestMemoryStorage:
    async def test_put_then_get(self, storage):
        store = RoomStore(storage)
        room  = oda()

        raw = await store.put(room.code, room)

        assert raw == RoomStore.serialize(room)
        assert await store.get_raw(room.code) == raw
        assert await store.get(room.code) == room
        assert await store.get("YOKYOK") is None

    async def test_change_reaches_other_views_but_not_writer(self, storage):
        yazan  = RoomStore(storage)
        dinler = RoomStore(storage)
        yazan_gelen, dinler_gelen = [], []
        yazan.subscribe(yazan_gelen.append)
        dinler.subscribe(dinler_gelen.append)

        room = oda()
        await yazan.put(room.code, room)
        assert dinler_gelen == []  # teslim bir sonraki turda

        await settle()
        assert yazan_gelen == []
        assert len(dinler_gelen) == 1

        degisim = dinler_gelen[0]
        assert degisim.code == "ABC123"
        assert degisim.key == "watchparty:room:ABC123"
        assert degisim.old_value is None
        assert degisim.snapshot() == room

    async def test_old_value_is_previous_write(self, storage):
        yazan  = RoomStore(storage)
        dinler = RoomStore(storage)
        gelen  = []
        dinler.subscribe(gelen.append)

        room = oda()
        ilk  = await yazan.put(room.code, room)
        room.users.append(User(username="mehmet"))
        await yazan.put(room.code, room)
        await settle()

        assert gelen[-1].old_value == ilk

    async def test_unsubscribe_and_close(self, storage):
        yazan  = RoomStore(storage)
        dinler = RoomStore(storage)
        gelen  = []
        iptal  = dinler.subscribe(gelen.append)
        iptal()

        await yazan.put("ABC123", oda())
        await settle()
        assert gelen == []

        dinler.close()
        assert storage.view_count == 1

    async def test_listener_error_does_not_break_delivery(self, storage):
        yazan  = RoomStore(storage)
        dinler = RoomStore(storage)
        gelen  = []

        def bozuk(_):
            raise RuntimeError("boom")

        dinler.subscribe(bozuk)
        dinler.subscribe(gelen.append)

        await yazan.put("ABC123", oda())
        await settle()
        assert len(gelen) == 1

    async def test_quota_exceeded_is_persistence_failure(self):
        store = RoomStore(MemoryStorage(quota_bytes=64))
        with pytest.raises(PersistenceFailure):
            await store.put("ABC123", oda())

    async def test_quota_counts_utf8_bytes(self):
        storage = MemoryStorage(quota_bytes=60)

        await storage.write("x", "ğ" * 10, origin="ayse")
        assert storage.used_bytes() == 21

        # 40 karakter ama 80 byte
        with pytest.raises(StorageQuotaExceeded):
            await storage.write("x", "ğ" * 40, origin="ayse")

    async def test_corrupt_record_is_persistence_failure(self, storage):
        storage._data[storage.room_key("ABC123")] = "{bozuk"
        with pytest.raises(PersistenceFailure):
            await RoomStore(storage).get("ABC123")

    async def test_foreign_keys_are_not_delivered(self, storage):
        dinler = RoomStore(storage)
        gelen  = []
        dinler.subscribe(gelen.append)

        await storage.write("baska:anahtar", "{}", origin="x")
        await settle()
        assert gelen == []


class TestRedisStorage:
    @pytest.fixture
    def redis_storage(self):
        return RedisStorage(FakeAsyncRedis(), ttl=60)

    async def test_put_then_get(self, redis_storage):
        store = RoomStore(redis_storage)
        room  = oda()

        raw = await store.put(room.code, room)

        assert await store.get_raw(room.code) == raw
        assert await store.get(room.code) == room
        assert await redis_storage.redis.ttl(redis_storage.room_key(room.code)) > 0

    async def test_event_fans_out_except_origin(self, redis_storage):
        yazan  = RoomStore(redis_storage)
        dinler = RoomStore(redis_storage)
        yazan_gelen, dinler_gelen = [], []
        yazan.subscribe(yazan_gelen.append)
        dinler.subscribe(dinler_gelen.append)

        raw = RoomStore.serialize(oda())
        redis_storage.handle_event(json.dumps({
            "origin" : yazan.view_id,
            "key"    : redis_storage.room_key("ABC123"),
            "new"    : raw,
            "old"    : None,
        }).encode())

        assert yazan_gelen == []
        assert dinler_gelen[0].new_value == raw

    async def test_malformed_event_is_ignored(self, redis_storage):
        dinler = RoomStore(redis_storage)
        gelen  = []
        dinler.subscribe(gelen.append)

        redis_storage.handle_event(b"{bozuk")
        redis_storage.handle_event(json.dumps({"new": "x"}))
        assert gelen == []

    async def test_backend_error_is_persistence_failure(self, redis_storage):
        async def patlak(*args, **kwargs):
            raise ConnectionError("redis yok")

        redis_storage.redis.set = patlak
        with pytest.raises(PersistenceFailure):
            await RoomStore(redis_storage).put("ABC123", oda())

    async def test_listener_resubscribes_after_connection_loss(self):
        olay = json.dumps({
            "origin" : "baska",
            "key"    : "watchparty:room:ABC123",
            "new"    : RoomStore.serialize(oda()),
            "old"    : None,
        })
        kopan  = SahtePubSub([], hata=ConnectionError("redis gitti"))
        yenisi = SahtePubSub([{"type": "message", "data": olay.encode()}])

        redis = MagicMock()
        redis.pubsub.side_effect = [kopan, yenisi]
        redis.aclose = AsyncMock()

        storage = RedisStorage(redis, retry_delay=0)
        dinler  = RoomStore(storage)
        gelen   = []
        dinler.subscribe(gelen.append)

        await storage.start()
        await settle(10)

        assert kopan.kapandi
        assert yenisi.abone == ["watchparty:room-events"]
        assert [c.code for c in gelen] == ["ABC123"]

        await storage.close()
        assert yenisi.kapandi
        assert storage._listener is None

    async def test_close_waits_for_listener(self):
        pubsub = SahtePubSub([])
        redis  = MagicMock()
        redis.pubsub.return_value = pubsub
        redis.aclose = AsyncMock()

        storage = RedisStorage(redis)
        await storage.start()
        listener = storage._listener

        await storage.close()

        assert listener.cancelled()
        assert pubsub.kapandi
        redis.aclose.assert_awaited_once()


class TestBuildStorage:
    def test_memory_default(self):
        assert isinstance(build_storage("memory"), MemoryStorage)

    def test_unknown_backend_falls_back_to_memory(self):
        assert isinstance(build_storage("sqlite"), MemoryStorage)

    def test_redis(self):
        storage = build_storage("redis", redis_url="redis://127.0.0.1:6379/0", ttl=10)
        assert isinstance(storage, RedisStorage)
        assert storage.ttl == 10
