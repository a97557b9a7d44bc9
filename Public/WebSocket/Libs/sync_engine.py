# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI                import konsol
from dataclasses        import dataclass, field
from typing             import Callable
from ..Models           import Room, User, Message, VideoState
from .errors            import WatchPartyError, VideoLoadFailed, PersistenceFailure
from .message_log       import MessageLog
from .players           import PlaybackAdapter, PlayerFactory
from .room_store        import RoomStore, RoomChange
from .source_classifier import classify, UNRECOGNIZED, PLAYER_KINDS
import asyncio, json, time

# ============== Defaults (seconds) ==============
SYNC_INTERVAL   = 5.0   # Periyodik reconcile aralığı
DRIFT_TOLERANCE = 2.0   # Bu farktan büyük drift'te seek
MASTER_WINDOW   = 1.0   # Yerel aksiyon sonrası düzeltmelerden muaf kalma süresi

LOCAL_ACTIONS = ("load", "play", "pause", "seek", "end")

@dataclass
class SyncEvent:
    """UI köprüsüne giden olay (chat, system, users, player, notification, state)"""
    type : str
    data : dict = field(default_factory=dict)

class SyncEngine:
    """
    Bir istemcinin oda senkronizasyon çekirdeği.

    Paylaşılan depo sıralama ve atomiklik garantisi vermez; her yazma tüm Room
    kaydını yerel kopyadan serialize edip üzerine yazar (last-write-wins).
    İki tetikleyici aynı `reconcile` girişini besler: periyodik timer ve
    depo değişiklik bildirimi. Yerel aksiyon sonrası istemci kısa süreliğine
    "master" olur ve kendi aksiyonu geri düzeltilmez.
    """

    def __init__(
        self,
        store          : RoomStore,
        room           : Room,
        user           : User,
        *,
        player_factory : Callable[..., PlaybackAdapter] | None = None,
        tolerance      : float = DRIFT_TOLERANCE,
        master_window  : float = MASTER_WINDOW,
        sync_interval  : float = SYNC_INTERVAL,
        message_limit  : int   = 100,
        merge_on_write : bool  = False,
        clock          : Callable[[], float] = time.monotonic,
    ):
        self.store          = store
        self.room           = room
        self.user           = user
        self.player_factory = player_factory or PlayerFactory(clock=clock)
        self.tolerance      = tolerance
        self.master_window  = master_window
        self.sync_interval  = sync_interval
        self.merge_on_write = merge_on_write
        self.clock          = clock

        self.log    = MessageLog(message_limit)
        self.events : asyncio.Queue[SyncEvent] = asyncio.Queue()

        self.is_master      = False
        self.master_expiry  = 0.0
        self.last_poll_time = 0.0

        self.player     : PlaybackAdapter | None = None
        self.loaded_url = ""

        self._current_raw      = RoomStore.serialize(room)
        self._last_written     : str | None = None
        self._video_adopted_at = clock()
        self._unsubscribe      = None
        self._timer            : asyncio.Task | None = None

    @property
    def code(self) -> str:
        return self.room.code

    @property
    def local_room(self) -> Room:
        return self.room

    # ============== Lifecycle ==============

    async def start(self) -> None:
        """Depoyu dinlemeye başla, mevcut mesajları yükle, timer'ı çalıştır"""
        self._unsubscribe = self.store.subscribe(self._on_store_change)

        for message in self.log.replay(self.room.messages):
            self._emit("chat", message=message.to_dict())
        self._emit("users", users=[user.to_dict() for user in self.room.users])

        self.reconcile()
        self._timer = asyncio.create_task(self._sync_loop())

    async def stop(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

        if self._timer and not self._timer.done():
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
        self._timer = None

        if self.player:
            self.player.destroy()
            self.player = None

    async def _sync_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sync_interval)
            try:
                await self.refresh()
            except Exception as hata:
                # Bir turun hatası sonraki turları durdurmaz
                konsol.log(f"[red]Senkron turu hatası:[/] {type(hata).__name__}: {hata}")

    # ============== Incoming snapshots ==============

    async def refresh(self) -> None:
        """Depoyu yeniden oku, değiştiyse benimse, ardından reconcile et"""
        self.last_poll_time = self.clock()

        try:
            raw = await self.store.get_raw(self.code)
        except PersistenceFailure as hata:
            self._notify(hata)
            raw = None

        if raw is not None and raw != self._current_raw:
            self._adopt_raw(raw)

        self.reconcile()

    def _on_store_change(self, change: RoomChange) -> None:
        if change.code != self.code or change.new_value is None:
            return

        # Kendi yazmasını yankılayan transport'lar için
        if change.new_value in (self._last_written, self._current_raw):
            return

        if self._adopt_raw(change.new_value):
            self.reconcile()

    def _adopt_raw(self, raw: str) -> bool:
        try:
            room = Room.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as hata:
            konsol.log(f"[red]Bozuk oda snapshot'ı yok sayıldı:[/] {self.code} - {hata}")
            return False

        return self.adopt(room, raw)

    def apply_snapshot(self, room: Room) -> bool:
        """Uzak snapshot'ı benimse ve reconcile et"""
        adopted = self.adopt(room)
        self.reconcile()
        return adopted

    def adopt(self, room: Room, raw: str | None = None) -> bool:
        """Snapshot'ı yerel kopya yap; yeni mesajları ve üyelik değişimini yayınla"""
        if room.code != self.code:
            return False

        raw = raw if raw is not None else RoomStore.serialize(room)
        if raw == self._current_raw:
            return False

        previous = self.room
        self.room         = room
        self._current_raw = raw

        if room.video_state != previous.video_state:
            self._video_adopted_at = self.clock()
            self._emit("state", video_state=room.video_state.to_dict())

        for message in self.log.replay(room.messages):
            self._emit("chat", message=message.to_dict(), own=message.username == self.user.username)

        self._announce_membership(previous.users, room.users)
        return True

    def _announce_membership(self, onceki: list[User], simdiki: list[User]) -> None:
        onceki_ids  = {user.id for user in onceki}
        simdiki_ids = {user.id for user in simdiki}
        if onceki_ids == simdiki_ids:
            return

        for user in simdiki:
            if user.id not in onceki_ids and user.id != self.user.id:
                self._system(f"{user.username} odaya katıldı")
        for user in onceki:
            if user.id not in simdiki_ids and user.id != self.user.id:
                self._system(f"{user.username} odadan ayrıldı")

        self._emit("users", users=[user.to_dict() for user in simdiki])

    # ============== Reconciliation ==============

    def expected_time(self) -> float:
        """Paylaşılan pozisyon; oynuyorsa benimsendiğinden beri geçen yerel süre eklenir"""
        video = self.room.video_state
        zaman = video.current_time
        if video.playing:
            zaman += max(self.clock() - self._video_adopted_at, 0.0)

        duration = self.player.get_duration() if self.player else 0.0
        if duration > 0:
            zaman = min(zaman, duration)

        return max(zaman, 0.0)

    def _expire_master(self) -> None:
        if self.is_master and self.clock() >= self.master_expiry:
            self.is_master = False

    def _claim_master(self) -> None:
        self.is_master     = True
        self.master_expiry = self.clock() + self.master_window

    def reconcile(self) -> None:
        """
        Yerel oynatıcıyı paylaşılan videoState'e yaklaştır. Asla exception
        fırlatmaz; hatalar bildirim olarak UI'a gider. Değişmemiş snapshot'a
        karşı tekrar çalıştırmak idempotenttir.

        Oynatıcı türü URL'den çıkarılır, `playerType` sadece URL yoksa
        kullanılır. Drift hedefi `expected_time()`: video oynuyorsa kayıttaki
        `currentTime` değil, ona benimsemeden beri geçen yerel süre eklenmiş
        konumdur. Duruyorsa ikisi aynıdır.
        """
        self._expire_master()
        video = self.room.video_state

        try:
            # a. Oynatıcı türü değiştiyse önce adapter'ı değiştir
            kind = classify(video.url).kind if video.url else video.player_type
            if kind in PLAYER_KINDS and (self.player is None or self.player.kind != kind):
                self._switch_player(kind)

            # b. Kaynak değiştiyse yeniden yükle
            if video.url and video.url != self.loaded_url:
                self._load(video.url)

            player = self.player
            if player is None or not player.ready or player.source is None or player.source.url != video.url:
                return

            if self.is_master:
                return

            # c. Drift düzeltme
            expected = self.expected_time()
            if abs(player.get_current_time() - expected) > self.tolerance:
                player.seek(expected)

            # d. Play / pause
            if video.playing and not player.is_playing():
                player.play()
            elif not video.playing and player.is_playing():
                player.pause()

        except WatchPartyError as hata:
            self._notify(hata)

    def _switch_player(self, kind: str) -> None:
        if self.player:
            self.player.destroy()

        self.player     = None
        self.loaded_url = ""
        self.player     = self.player_factory(kind, on_command=self._on_player_command, on_error=self._on_player_error)
        self.player.start()

    def _load(self, url: str) -> None:
        # Hatalı URL her turda tekrar bildirilmesin
        self.loaded_url = url

        source = classify(url)
        if source.kind == UNRECOGNIZED:
            raise VideoLoadFailed(f"Video kaynağı tanınmadı: {url[:80]}")

        if self.player is None or self.player.kind != source.kind:
            self._switch_player(source.kind)
            self.loaded_url = url

        self.player.load(source)

    # ============== Local actions ==============

    async def apply_local_action(self, kind: str, **payload) -> VideoState:
        """
        Yerel oynatım aksiyonunu yayınla (load / play / pause / seek / end).

        Tüm videoState kaydı yeniden yazılır ve depoya konur. Yazma başarısız
        olursa önceki videoState ve master durumu korunur.
        """
        if kind not in LOCAL_ACTIONS:
            raise ValueError(f"Bilinmeyen aksiyon: {kind}")

        video = self.room.video_state

        if kind == "load":
            source = classify(payload.get("url", ""))
            if source.kind == UNRECOGNIZED:
                raise VideoLoadFailed("Geçerli bir video URL'si girin (MP4, WebM, HLS, YouTube veya Vimeo)")
            degisiklik = {"url": source.url, "player_type": source.kind, "current_time": 0.0, "playing": False}
        else:
            if not video.url:
                raise VideoLoadFailed("Önce bir video yükleyin")

            if kind in ("play", "pause"):
                zaman = payload.get("time")
                if zaman is None:
                    zaman = self.player.get_current_time() if self.player and self.player.ready else video.current_time
                degisiklik = {"current_time": max(float(zaman), 0.0), "playing": kind == "play"}
            elif kind == "seek":
                degisiklik = {"current_time": max(float(payload["time"]), 0.0)}
            else:
                degisiklik = {"current_time": 0.0, "playing": False}

        new_state = video.rewrite(**degisiklik)

        onceki_master = (self.is_master, self.master_expiry)
        self._claim_master()
        try:
            await self._commit(lambda room: setattr(room, "video_state", new_state))
        except PersistenceFailure:
            self.is_master, self.master_expiry = onceki_master
            raise

        self._video_adopted_at = self.clock()
        self._drive_player(kind, new_state)

        if kind == "load":
            self._system(f"{self.user.username} yeni bir video yükledi")
        elif kind == "end":
            self._system("Video bitti")

        return new_state

    def _drive_player(self, kind: str, video: VideoState) -> None:
        try:
            if kind == "load":
                self._load(video.url)
                return
        except WatchPartyError as hata:
            self._notify(hata)
            return

        player = self.player
        if player is None or not player.ready:
            return

        if abs(player.get_current_time() - video.current_time) > 0.01:
            player.seek(video.current_time)

        if kind == "play":
            player.play()
        elif kind in ("pause", "end"):
            player.pause()

    async def send_message(self, content: str, *, type: str = "text", duration: float = 0.0) -> Message:
        """Mesajı loga ekle ve tüm odayı yayınla (videoState ile aynı kayıp riski)"""
        message = Message(username=self.user.username, content=content, type=type, duration=duration)

        # Kendi mesajımız gönderim anında render edilir, replay'de atlanır
        self.log.mark_rendered(message)
        try:
            await self._commit(lambda room: self.log.append_local(room, message))
        except PersistenceFailure:
            self.log.forget(message)
            raise

        self._emit("chat", message=message.to_dict(), own=True)
        return message

    async def send_voice(self, data: str, duration: float = 0.0) -> Message:
        return await self.send_message(data, type="voice", duration=duration)

    async def _commit(self, mutate: Callable[[Room], None]) -> Room:
        """
        Yerel değişikliği depoya yaz.

        Varsayılan: yerel kopyanın tamamı yazılır (eşzamanlı başka yazma
        kaybolabilir). `merge_on_write`: önce güncel kayıt okunur, sadece bu
        aksiyonun değiştirdiği alan onun üzerine uygulanır.
        """
        base = await self.store.get(self.code) if self.merge_on_write else None
        if base is None:
            base = self.room.copy()

        mutate(base)

        raw = await self.store.put(self.code, base)
        self._last_written = raw
        self.adopt(base, raw)
        return base

    # ============== Renderer bridge ==============

    def player_ready(self, kind: str) -> None:
        if self.player and self.player.kind == kind:
            self.player.mark_ready()
            self.reconcile()

    def renderer_state(self, current_time: float, duration: float, playing: bool) -> None:
        if self.player:
            self.player.sync_from_renderer(current_time, duration, playing)

    def set_volume(self, level: float) -> None:
        """Ses seviyesi yereldir, replike edilmez"""
        if self.player:
            self.player.set_volume(level)

    def renderer_error(self, mesaj: str) -> None:
        """Renderer'ın bildirdiği oynatım hatası, paylaşılan duruma yansımaz"""
        self._on_player_error(VideoLoadFailed(mesaj))

    def _on_player_command(self, komut: str, veri: dict) -> None:
        self._emit("player", command=komut, **veri)

    def _on_player_error(self, hata: WatchPartyError) -> None:
        # videoState'e dokunulmaz, diğer istemciler etkilenmez
        self._notify(hata)

    # ============== Events ==============

    def _emit(self, tip: str, **veri) -> None:
        self.events.put_nowait(SyncEvent(tip, veri))

    def _system(self, metin: str) -> None:
        """Sadece yerel sistem mesajı - replike edilmez"""
        self._emit("system", message=metin, timestamp=time.time())

    def _notify(self, hata: WatchPartyError) -> None:
        konsol.log(f"[yellow]⚠ {self.code} / {self.user.username}:[/] {hata.mesaj}")
        bildirim = hata.to_notification()
        bildirim.pop("type")
        self._emit("notification", **bildirim)
