# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI                import konsol
from abc                import ABC
from typing             import Awaitable, Callable
from .errors            import WatchPartyError, AdapterNotReady, VideoLoadFailed
from .source_classifier import Source, NATIVE, YOUTUBE, VIMEO
import asyncio, time

CommandCallback = Callable[[str, dict], None]
ErrorCallback   = Callable[[WatchPartyError], None]

class PlaybackAdapter(ABC):
    """
    Oynatıcı backend'lerinin sağlaması gereken ortak yetenek seti.

    Senkronizasyon mantığı içermez. Pozisyon `(position, updated_at, playing)`
    üçlüsüyle tutulur ve oynarken yerel saatle ilerletilir; renderer bağlıysa
    `sync_from_renderer` ile gerçek değerler üzerine yazılır.

    Hazır olmayan backend: sorgular nötr değer döner, mutator'lar no-op.
    Hazır olmadan gelen `load` isteği derinliği 1 olan kuyrukta bekler.
    """
    kind = ""

    def __init__(self, *, on_command: CommandCallback | None = None, on_error: ErrorCallback | None = None, clock: Callable[[], float] = time.monotonic):
        self.on_command = on_command
        self.on_error   = on_error
        self.clock      = clock

        self.ready      = False
        self.source     : Source | None = None
        self.title      = ""

        self._pending    : Source | None = None
        self._position   = 0.0
        self._updated_at = clock()
        self._playing    = False
        self._duration   = 0.0
        self._volume     = 1.0
        self._destroyed  = False
        self._tasks      : set[asyncio.Task] = set()

    # ============== Lifecycle ==============

    def start(self) -> None:
        """Backend'i başlat (hazır sinyali alt sınıfa göre gelir)"""

    def mark_ready(self) -> None:
        """Hazır sinyali - bekleyen load tam olarak bir kez tekrar oynatılır"""
        if self.ready or self._destroyed:
            return

        self.ready = True
        self._command("ready")

        pending, self._pending = self._pending, None
        if pending:
            self.load(pending)

    def destroy(self) -> None:
        """Backend'i kapat, bekleyen işleri iptal et"""
        self._destroyed = True
        self.ready      = False
        self._pending   = None

        for task in list(self._tasks):
            if not task.done():
                task.cancel()
        self._tasks.clear()

        self._command("destroy")

    # ============== Mutators ==============

    def load(self, source: Source) -> None:
        if self._destroyed:
            return

        if not self.ready:
            # İkinci bekleyen istek birincinin üzerine yazar
            self._pending = source
            return

        self.source      = source
        self.title       = ""
        self._position   = 0.0
        self._updated_at = self.clock()
        self._playing    = False
        self._duration   = 0.0

        self._command("load", url=source.url, video_id=source.video_id, format=source.format)
        self._after_load(source)

    def play(self) -> None:
        if not self._accepts("play"):
            return

        self._position   = self.get_current_time()
        self._updated_at = self.clock()
        self._playing    = True
        self._command("play", time=self._position)

    def pause(self) -> None:
        if not self._accepts("pause"):
            return

        self._position   = self.get_current_time()
        self._updated_at = self.clock()
        self._playing    = False
        self._command("pause", time=self._position)

    def seek(self, zaman: float) -> None:
        if not self._accepts("seek"):
            return

        self._position   = self._clamp(zaman)
        self._updated_at = self.clock()
        self._command("seek", time=self._position)

    def set_volume(self, seviye: float) -> None:
        if not self._accepts("volume"):
            return

        self._volume = min(max(float(seviye), 0.0), 1.0)
        self._command("volume", level=self._volume)

    def sync_from_renderer(self, current_time: float, duration: float, playing: bool) -> None:
        """Renderer'ın bildirdiği gerçek oynatım durumunu modele yaz"""
        if not self.ready or self.source is None:
            return

        if duration > 0:
            self._duration = float(duration)

        self._position   = self._clamp(current_time)
        self._updated_at = self.clock()
        self._playing    = bool(playing)

    # ============== Queries ==============

    def get_current_time(self) -> float:
        if not self.ready or self.source is None:
            return 0.0

        zaman = self._position
        if self._playing:
            zaman += self.clock() - self._updated_at

        return self._clamp(zaman)

    def get_duration(self) -> float:
        return self._duration if self.ready else 0.0

    def get_volume(self) -> float:
        return self._volume if self.ready else 0.0

    def is_playing(self) -> bool:
        return self.ready and self.source is not None and self._playing

    # ============== Internal ==============

    def _after_load(self, source: Source) -> None:
        """Load sonrası backend'e özel asenkron iş (probe, metadata)"""

    def _accepts(self, aksiyon: str) -> bool:
        if self.ready and self.source is not None:
            return True

        konsol.log(f"[yellow]⏳ {self.kind} oynatıcı hazır değil, '{aksiyon}' atlandı[/]")
        return False

    def _clamp(self, zaman: float) -> float:
        zaman = max(float(zaman), 0.0)
        if self._duration > 0:
            zaman = min(zaman, self._duration)
        return zaman

    def _command(self, komut: str, **veri) -> None:
        if self.on_command:
            self.on_command(komut, {"kind": self.kind, **veri})

    def _report(self, hata: WatchPartyError) -> None:
        konsol.log(f"[red]{self.kind} oynatıcı hatası:[/] {hata.mesaj}")
        if self.on_error:
            self.on_error(hata)

    def _spawn(self, coro: Awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Event loop yoksa (senkron kullanım) arka plan işi atlanır
            coro.close()
            return

        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

class NativePlayer(PlaybackAdapter):
    """Doğrudan dosya / stream oynatıcı - her zaman hazır"""
    kind = NATIVE

    def __init__(self, *, prober: Callable[[str], Awaitable[None]] | None = None, **kwargs):
        super().__init__(**kwargs)
        self.prober = prober

    def start(self) -> None:
        self.mark_ready()

    def _after_load(self, source: Source) -> None:
        if self.prober:
            self._spawn(self._probe(source))

    async def _probe(self, source: Source) -> None:
        try:
            await self.prober(source.url)
        except VideoLoadFailed as hata:
            if self.source == source:
                self._report(hata)

class EmbedPlayer(PlaybackAdapter):
    """
    Üçüncü parti embed oynatıcı (YouTube / Vimeo).

    Renderer embed API'sini yükleyip `player_ready` bildirene kadar hazır
    değildir. `ready_timeout` içinde hazır olmazsa AdapterNotReady bildirilir.
    """

    def __init__(self, *, auto_ready: bool = False, ready_timeout: float = 15.0, resolver: Callable[[str], Awaitable[dict | None]] | None = None, **kwargs):
        super().__init__(**kwargs)
        self.auto_ready    = auto_ready
        self.ready_timeout = ready_timeout
        self.resolver      = resolver

    def start(self) -> None:
        if self.auto_ready:
            self.mark_ready()
            return

        self._command("init")
        self._spawn(self._watch_readiness())

    async def _watch_readiness(self) -> None:
        await asyncio.sleep(self.ready_timeout)
        if not self.ready and not self._destroyed:
            self._report(AdapterNotReady(f"{self.kind} oynatıcı başlatılamadı"))

    def _after_load(self, source: Source) -> None:
        if self.resolver:
            self._spawn(self._resolve(source))

    async def _resolve(self, source: Source) -> None:
        info = await self.resolver(source.url)
        if not info or self.source != source:
            return

        self.title = info.get("title", "")
        if info.get("duration"):
            self._duration = float(info["duration"])
            self._command("metadata", title=self.title, duration=self._duration)

class YouTubePlayer(EmbedPlayer):
    kind = YOUTUBE

class VimeoPlayer(EmbedPlayer):
    kind = VIMEO

PLAYERS: dict[str, type[PlaybackAdapter]] = {
    NATIVE  : NativePlayer,
    YOUTUBE : YouTubePlayer,
    VIMEO   : VimeoPlayer,
}

class PlayerFactory:
    """Oynatıcı türü -> adapter; backend ayarlarını tek yerde toplar"""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic, auto_ready: bool = False, ready_timeout: float = 15.0, prober=None, resolver=None):
        self.clock         = clock
        self.auto_ready    = auto_ready
        self.ready_timeout = ready_timeout
        self.prober        = prober
        self.resolver      = resolver

    def __call__(self, kind: str, *, on_command: CommandCallback | None = None, on_error: ErrorCallback | None = None) -> PlaybackAdapter:
        player_cls = PLAYERS.get(kind)
        if player_cls is None:
            raise VideoLoadFailed(f"Desteklenmeyen oynatıcı türü: {kind or '?'}")

        ortak = {"on_command": on_command, "on_error": on_error, "clock": self.clock}

        if issubclass(player_cls, EmbedPlayer):
            return player_cls(auto_ready=self.auto_ready, ready_timeout=self.ready_timeout, resolver=self.resolver, **ortak)

        return player_cls(prober=self.prober, **ortak)
