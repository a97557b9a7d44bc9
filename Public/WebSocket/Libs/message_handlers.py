# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI              import konsol
from fastapi          import WebSocket
from Settings         import MAX_PARTICIPANTS, MESSAGE_LIMIT, SYNC_INTERVAL, DRIFT_TOLERANCE, MASTER_WINDOW, TYPING_TIMEOUT, EMBED_READY_TIMEOUT, MERGE_ON_WRITE, PROBE_SOURCES, RESOLVE_EMBEDS, PUBLIC_URL
from ..Models         import (
    JoinPayload,
    VideoChangePayload,
    TimePayload,
    SeekPayload,
    ChatPayload,
    VoicePayload,
    VolumePayload,
    PlayerReadyPayload,
    PlayerStatePayload,
    PlayerErrorPayload,
)
from .errors          import WatchPartyError, PersistenceFailure
from .room_store      import Storage, RoomStore
from .players         import PlayerFactory
from .session_manager import SessionManager, share_link
from .sync_engine     import SyncEngine
from .source_probe    import probe_native_source
from .ytdlp_service   import ytdlp_extract_video_info
import asyncio, json

class MessageHandler:
    """
    WebSocket mesaj işleyici sınıfı.

    Her bağlantı bağımsız bir istemcidir: kendi RoomStore görünümü, kendi
    SyncEngine'i ve oynatıcısı vardır. Diğer istemcilerle tek ortak nokta
    paylaşılan depodur.
    """

    def __init__(self, websocket: WebSocket, storage: Storage):
        self.websocket = websocket
        self.store     = RoomStore(storage)
        self.sessions  = SessionManager(self.store, max_participants=MAX_PARTICIPANTS)
        self.user      = None
        self.engine    : SyncEngine | None = None

        self._pump   : asyncio.Task | None = None
        self._typing : asyncio.Task | None = None

    async def send_error(self, message: str):
        """Hata mesajı gönder"""
        await self.websocket.send_text(json.dumps({
            "type"    : "error",
            "message" : message
        }, ensure_ascii=False))

    async def send_json(self, data: dict):
        """JSON mesajı gönder"""
        await self.websocket.send_text(json.dumps(data, ensure_ascii=False))

    async def notify(self, hata: WatchPartyError):
        """Toparlanabilir hatayı bildirim olarak gönder"""
        await self.send_json(hata.to_notification())

    async def send_room_state(self):
        room  = self.engine.local_room
        veri  = room.to_dict()
        veri.pop("messages")

        await self.send_json({
            "type"       : "room_state",
            **veri,
            "user"       : self.user.to_dict(),
            "share_link" : share_link(room.code, PUBLIC_URL),
            "is_master"  : self.engine.is_master,
        })

    def _player_factory(self) -> PlayerFactory:
        return PlayerFactory(
            ready_timeout = EMBED_READY_TIMEOUT,
            prober        = probe_native_source if PROBE_SOURCES else None,
            resolver      = ytdlp_extract_video_info if RESOLVE_EMBEDS else None,
        )

    async def _pump_events(self):
        """Engine olaylarını sokete aktar"""
        while True:
            event = await self.engine.events.get()
            try:
                await self.send_json({"type": event.type, **event.data})
            except Exception as hata:
                konsol.log(f"[red]Olay gönderilemedi:[/] {type(hata).__name__}: {hata}")
                return

    # ============== Handlers ==============

    async def handle_join(self, message: dict):
        """JOIN mesajını işle - oda kodu varsa katıl, yoksa yeni oda oluştur"""
        if self.user:
            await self.send_error("Zaten bir odadasınız")
            return

        payload = JoinPayload.model_validate(message)
        user    = self.sessions.create_user(payload.username)

        if payload.room_code:
            room = await self.sessions.join_room(payload.room_code, user)
        else:
            room = await self.sessions.create_room(user, payload.video_url)

        self.user   = user
        self.engine = SyncEngine(
            self.store, room, user,
            player_factory = self._player_factory(),
            tolerance      = DRIFT_TOLERANCE,
            master_window  = MASTER_WINDOW,
            sync_interval  = SYNC_INTERVAL,
            message_limit  = MESSAGE_LIMIT,
            merge_on_write = MERGE_ON_WRITE,
        )
        await self.engine.start()

        await self.send_room_state()
        self._pump = asyncio.create_task(self._pump_events())

    async def handle_video_change(self, message: dict):
        """VIDEO_CHANGE mesajını işle"""
        payload = VideoChangePayload.model_validate(message)
        await self.engine.apply_local_action("load", url=payload.url)

    async def handle_play(self, message: dict):
        payload = TimePayload.model_validate(message)
        await self.engine.apply_local_action("play", time=payload.time)

    async def handle_pause(self, message: dict):
        payload = TimePayload.model_validate(message)
        await self.engine.apply_local_action("pause", time=payload.time)

    async def handle_seek(self, message: dict):
        payload = SeekPayload.model_validate(message)
        await self.engine.apply_local_action("seek", time=payload.time)

    async def handle_ended(self):
        await self.engine.apply_local_action("end")

    async def handle_chat(self, message: dict):
        """CHAT mesajını işle"""
        payload = ChatPayload.model_validate(message)
        await self.engine.send_message(payload.message)

    async def handle_voice(self, message: dict):
        payload = VoicePayload.model_validate(message)
        await self.engine.send_voice(payload.data, payload.duration)

    async def handle_typing(self):
        """TYPING mesajını işle - gösterge sadece yerel, süre dolunca kapanır"""
        if self._typing and not self._typing.done():
            self._typing.cancel()
        else:
            await self.send_json({"type": "typing", "username": self.user.username, "active": True})

        self._typing = asyncio.create_task(self._clear_typing())

    async def _clear_typing(self):
        await asyncio.sleep(TYPING_TIMEOUT)
        await self.send_json({"type": "typing", "username": self.user.username, "active": False})

    async def handle_volume(self, message: dict):
        payload = VolumePayload.model_validate(message)
        self.engine.set_volume(payload.level)

    async def handle_player_ready(self, message: dict):
        payload = PlayerReadyPayload.model_validate(message)
        self.engine.player_ready(payload.kind)

    async def handle_player_state(self, message: dict):
        payload = PlayerStatePayload.model_validate(message)
        self.engine.renderer_state(payload.current_time, payload.duration, payload.playing)

    async def handle_player_error(self, message: dict):
        payload = PlayerErrorPayload.model_validate(message)
        self.engine.renderer_error(payload.message)

    async def handle_get_state(self):
        """GET_STATE mesajını işle"""
        await self.engine.refresh()
        await self.send_room_state()

    async def handle_disconnect(self):
        """Kullanıcı bağlantısı koptuğunda çağrılır"""
        for task in (self._typing, self._pump):
            if task and not task.done():
                task.cancel()

        if self.user and self.engine:
            try:
                await self.sessions.leave_room(self.engine.code, self.user.id)
                konsol.log(f"[yellow]🚪 Odadan ayrıldı:[/] {self.engine.code} [cyan]({self.user.username})[/]")
            except PersistenceFailure as hata:
                konsol.log(f"[red]Ayrılma kaydedilemedi:[/] {hata.mesaj}")

        if self.engine:
            await self.engine.stop()

        self.store.close()
