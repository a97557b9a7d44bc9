# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI           import konsol
from abc           import ABC, abstractmethod
from dataclasses   import dataclass
from typing        import Callable
from redis.asyncio import Redis
from ..Models      import Room
from .errors       import PersistenceFailure
import asyncio, json, uuid

DEFAULT_KEY_PREFIX = "watchparty:room:"
EVENTS_CHANNEL     = "watchparty:room-events"

@dataclass(frozen=True)
class RoomChange:
    """Paylaşılan depoda bir oda anahtarının değiştiği bildirimi"""
    key       : str
    code      : str
    new_value : str | None
    old_value : str | None

    def snapshot(self) -> Room | None:
        """Yeni değeri Room'a çevir (silinmişse None)"""
        if self.new_value is None:
            return None
        return Room.from_dict(json.loads(self.new_value))

ChangeListener = Callable[[RoomChange], None]

class Storage(ABC):
    """
    Paylaşılan, transaction'sız, last-write-wins anahtar/değer ortamı.

    Yazma bildirimi yazan görünüm (RoomStore) hariç tüm görünümlere gider.
    Atomiklik ve sıralama garantisi yoktur.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX):
        self.key_prefix = key_prefix
        self._views: dict[str, "RoomStore"] = {}

    def room_key(self, code: str) -> str:
        return f"{self.key_prefix}{code}"

    def code_from_key(self, key: str) -> str | None:
        if not key.startswith(self.key_prefix):
            return None
        return key[len(self.key_prefix):] or None

    @property
    def view_count(self) -> int:
        return len(self._views)

    def attach(self, view: "RoomStore") -> None:
        self._views[view.view_id] = view

    def detach(self, view: "RoomStore") -> None:
        self._views.pop(view.view_id, None)

    def _fan_out(self, key: str, new_value: str | None, old_value: str | None, origin: str | None) -> None:
        code = self.code_from_key(key)
        if code is None:
            return

        change = RoomChange(key=key, code=code, new_value=new_value, old_value=old_value)
        for view_id, view in list(self._views.items()):
            if view_id == origin:
                continue
            view.deliver(change)

    async def start(self) -> None:
        """Arka plan kaynaklarını başlat"""

    async def close(self) -> None:
        """Arka plan kaynaklarını kapat"""

    @abstractmethod
    async def read(self, key: str) -> str | None: ...

    @abstractmethod
    async def write(self, key: str, value: str, origin: str) -> None: ...

class StorageQuotaExceeded(Exception):
    pass

class MemoryStorage(Storage):
    """
    Süreç içi paylaşılan depo (tarayıcı localStorage eşdeğeri).

    Bildirimler yazmanın içinde değil, event loop'un bir sonraki turunda
    teslim edilir. `quota_bytes` aşılırsa yazma reddedilir.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX, quota_bytes: int = 5 * 1024 * 1024):
        super().__init__(key_prefix)
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    @staticmethod
    def _entry_bytes(key: str, value: str) -> int:
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    def used_bytes(self) -> int:
        return sum(self._entry_bytes(key, value) for key, value in self._data.items())

    async def read(self, key: str) -> str | None:
        return self._data.get(key)

    async def write(self, key: str, value: str, origin: str) -> None:
        old_value = self._data.get(key)

        if self.quota_bytes:
            kullanilan = self.used_bytes() - (self._entry_bytes(key, old_value) if old_value is not None else 0)
            if kullanilan + self._entry_bytes(key, value) > self.quota_bytes:
                raise StorageQuotaExceeded(f"Depolama kotası aşıldı ({self.quota_bytes} byte)")

        self._data[key] = value
        asyncio.get_running_loop().call_soon(self._fan_out, key, value, old_value, origin)

class RedisStorage(Storage):
    """
    Süreçler arası paylaşılan depo: Redis string + pub/sub bildirim.

    Her yazma `{origin, key, new, old}` olarak tek kanala yayınlanır, süreç
    başına tek dinleyici task olayı yerel görünümlere dağıtır. Bağlantı
    koparsa dinleyici `retry_delay` bekleyip yeniden abone olur.
    """

    def __init__(self, redis: Redis, key_prefix: str = DEFAULT_KEY_PREFIX, ttl: int = 0, channel: str = EVENTS_CHANNEL, retry_delay: float = 1.0):
        super().__init__(key_prefix)
        self.redis       = redis
        self.ttl         = ttl or None
        self.channel     = channel
        self.retry_delay = retry_delay
        self._pubsub     = None
        self._listener   : asyncio.Task | None = None

    async def start(self) -> None:
        if self._listener is not None:
            return

        await self._subscribe()
        self._listener = asyncio.create_task(self._listen())

    async def close(self) -> None:
        if self._listener and not self._listener.done():
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
        self._listener = None

        if self._pubsub is not None:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None

        await self.redis.aclose()

    async def _subscribe(self) -> None:
        self._pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        await self._pubsub.subscribe(self.channel)

    async def _drop_pubsub(self) -> None:
        pubsub, self._pubsub = self._pubsub, None
        if pubsub is None:
            return

        try:
            await pubsub.aclose()
        except Exception as hata:
            konsol.log(f"[yellow]Redis pub/sub kapatılamadı:[/] {type(hata).__name__}: {hata}")

    async def _listen(self) -> None:
        while True:
            try:
                if self._pubsub is None:
                    await self._subscribe()
                    konsol.log(f"[green]Redis kanalına yeniden abone olundu:[/] {self.channel}")

                async for mesaj in self._pubsub.listen():
                    if mesaj.get("type") != "message":
                        continue
                    self.handle_event(mesaj.get("data"))

                konsol.log(f"[yellow]Redis dinleyicisi kapandı, yeniden bağlanılıyor:[/] {self.channel}")
            except asyncio.CancelledError:
                raise
            except Exception as hata:
                konsol.log(f"[red]Redis dinleyicisi koptu:[/] {type(hata).__name__}: {hata}")

            await self._drop_pubsub()
            await asyncio.sleep(self.retry_delay)

    def handle_event(self, raw) -> None:
        """Pub/sub olayını yerel görünümlere dağıt (origin görünüm hariç)"""
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            olay = json.loads(raw)
            self._fan_out(olay["key"], olay.get("new"), olay.get("old"), olay.get("origin"))
        except (ValueError, KeyError, TypeError) as hata:
            konsol.log(f"[red]Redis olay çözümlenemedi:[/] {hata}")

    async def read(self, key: str) -> str | None:
        value = await self.redis.get(key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def write(self, key: str, value: str, origin: str) -> None:
        old_value = await self.redis.set(key, value, ex=self.ttl, get=True)
        if isinstance(old_value, bytes):
            old_value = old_value.decode("utf-8")

        await self.redis.publish(self.channel, json.dumps({
            "origin" : origin,
            "key"    : key,
            "new"    : value,
            "old"    : old_value,
        }, ensure_ascii=False))

class RoomStore:
    """
    Bir istemcinin paylaşılan depoya bakışı.

    `put` tüm Room'u serialize edip yazar, `get` okur, `subscribe` diğer
    istemcilerin yazmalarını bildirir. Kendi yazmaları kendisine bildirilmez.
    """

    def __init__(self, storage: Storage):
        self.storage   = storage
        self.view_id   = uuid.uuid4().hex
        self._listeners: list[ChangeListener] = []
        storage.attach(self)

    @staticmethod
    def serialize(room: Room) -> str:
        return json.dumps(room.to_dict(), ensure_ascii=False)

    async def put(self, code: str, room: Room) -> str:
        """Tüm oda snapshot'ını yaz, yazılan serialize değeri döndür"""
        raw = self.serialize(room)
        try:
            await self.storage.write(self.storage.room_key(code), raw, origin=self.view_id)
        except Exception as hata:
            konsol.log(f"[red]Oda kaydedilemedi:[/] {code} - {type(hata).__name__}: {hata}")
            raise PersistenceFailure() from hata
        return raw

    async def get(self, code: str) -> Room | None:
        raw = await self.get_raw(code)
        if raw is None:
            return None

        try:
            return Room.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as hata:
            konsol.log(f"[red]Oda kaydı bozuk:[/] {code} - {hata}")
            raise PersistenceFailure("Oda kaydı okunamadı") from hata

    async def get_raw(self, code: str) -> str | None:
        try:
            return await self.storage.read(self.storage.room_key(code))
        except Exception as hata:
            konsol.log(f"[red]Oda okunamadı:[/] {code} - {type(hata).__name__}: {hata}")
            raise PersistenceFailure("Oda durumu okunamadı") from hata

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def deliver(self, change: RoomChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as hata:
                konsol.log(f"[red]Değişiklik dinleyicisi hatası:[/] {type(hata).__name__}: {hata}")

    def close(self) -> None:
        self._listeners.clear()
        self.storage.detach(self)

def build_storage(backend: str, *, key_prefix: str = DEFAULT_KEY_PREFIX, quota_bytes: int = 0, redis_url: str = "", ttl: int = 0) -> Storage:
    """Ayarlara göre paylaşılan depo ortamını oluştur"""
    if backend == "redis":
        return RedisStorage(Redis.from_url(redis_url), key_prefix=key_prefix, ttl=ttl)

    if backend != "memory":
        konsol.log(f"[yellow]Bilinmeyen depo türü '{backend}', memory kullanılıyor[/]")

    return MemoryStorage(key_prefix=key_prefix, quota_bytes=quota_bytes)
