# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

"""Ortak test fixture'ları: sahte saat, paylaşılan depo, oda kurulumu."""

import asyncio
import pytest

from Public.WebSocket.Models import Room, User, VideoState
from Public.WebSocket.Libs   import MemoryStorage, RoomStore, PlayerFactory, SyncEngine

NATIVE_URL = "https://cdn.example.com/film.mp4"


class FakeClock:
    """Elle ilerletilen monotonic saat."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, saniye: float) -> None:
        self.now += saniye


async def settle(turns: int = 3) -> None:
    """Event loop'a birkaç tur ver (call_soon ile planlanan bildirimler teslim edilsin)."""
    for _ in range(turns):
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def make_room():
    def _make(code="ABC123", *, url=NATIVE_URL, current_time=0.0, playing=False, users=("ayse",)):
        video = VideoState(url=url, player_type="native" if url else "", current_time=current_time, playing=playing)
        return Room(code=code, users=[User(username=name) for name in users], video_state=video)
    return _make


@pytest.fixture
async def make_engine(storage, clock):
    """Depoyu paylaşan bağımsız istemciler üretir; test sonunda hepsi durdurulur."""
    engines = []

    async def _make(room, *, username=None, merge_on_write=False, sync_interval=3600.0, store_room=True):
        store = RoomStore(storage)
        if store_room:
            await store.put(room.code, room)

        user = room.users[0] if username is None else next(u for u in room.users if u.username == username)

        engine = SyncEngine(
            store, room.copy(), user,
            player_factory = PlayerFactory(clock=clock, auto_ready=True),
            sync_interval  = sync_interval,
            merge_on_write = merge_on_write,
            clock          = clock,
        )
        await engine.start()
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        await engine.stop()
        engine.store.close()


def drain(engine) -> list:
    """Engine olay kuyruğundaki her şeyi topla."""
    events = []
    while not engine.events.empty():
        events.append(engine.events.get_nowait())
    return events
